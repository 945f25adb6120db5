"""
Loading and parsing of work item specification files.

A specification can be given as an HTTP(S) URL, a file path, or a short
name such as "feature", which is looked up as "feature-spec.local.json" or
"feature-spec.json" in the current directory.
"""

import json
import os
from typing import List, Optional

import requests
from loguru import logger

import constants
from exceptions import SpecLoadError, SpecParseError
from models.work_item_spec import WorkItemSpecFile


def _read_file(path: str) -> str:
    logger.info("Reading spec file: {}", path)
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise SpecParseError(f"Spec file '{path}' is not valid UTF-8: {e}") from e
    except OSError as e:
        raise SpecLoadError(f"Could not read spec file '{path}': {e}") from e


def _find_by_name(directory: str, name: str) -> Optional[str]:
    """Case-insensitive search for <name>-spec.local.json, then <name>-spec.json."""
    try:
        entries = [e for e in os.listdir(directory) if e.lower().endswith(".json")]
    except OSError:
        return None

    for suffix in constants.SPEC_FILE_SUFFIXES:
        wanted = f"{name}{suffix}".lower()
        for entry in entries:
            candidate = os.path.join(directory, entry)
            if entry.lower() == wanted and os.path.isfile(candidate):
                return candidate
    return None


def load_spec_content(spec_path: str, directory: Optional[str] = None) -> str:
    """
    Load the raw text of a specification file.

    Args:
        spec_path (str): URL, file path or short spec name.
        directory (str): Directory to resolve names in; defaults to the
            current working directory.

    Returns:
        str: The file content.

    Raises:
        SpecLoadError: If the specification cannot be found or downloaded.
    """
    if spec_path.lower().startswith(("http://", "https://")):
        logger.info("Downloading spec file from: {}", spec_path)
        try:
            response = requests.get(spec_path, timeout=constants.AZDO_REQUEST_TIMEOUT)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise SpecLoadError(f"Could not download spec file '{spec_path}': {e}") from e
        return response.text

    if os.path.isfile(spec_path):
        return _read_file(spec_path)

    current_dir = directory or os.getcwd()
    exact_path = os.path.join(current_dir, spec_path)
    if os.path.isfile(exact_path):
        return _read_file(exact_path)

    found = _find_by_name(current_dir, spec_path)
    if found:
        return _read_file(found)

    tried = [
        "HTTP(S) URL",
        f"Exact path: {spec_path}",
        f"Current directory: {exact_path}",
    ] + [f"Case-insensitive search for: {spec_path}{suffix}" for suffix in constants.SPEC_FILE_SUFFIXES]
    raise SpecLoadError(f"Could not find spec file '{spec_path}'. Tried:\n" + "\n".join(f"  - {t}" for t in tried))


def strip_json_comments(text: str) -> str:
    """
    Remove // line comments and /* */ block comments outside of JSON strings.

    Newlines inside removed comments are kept so parser error positions
    still point at the right line.
    """
    result: List[str] = []
    i = 0
    length = len(text)
    in_string = False

    while i < length:
        char = text[i]

        if in_string:
            result.append(char)
            if char == "\\" and i + 1 < length:
                result.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue

        if char == '"':
            in_string = True
            result.append(char)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = length if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end == -1:
                raise SpecParseError("Unterminated /* comment in specification file")
            result.append("\n" * text.count("\n", i, end))
            i = end + 2
        else:
            result.append(char)
            i += 1

    return "".join(result)


def parse_spec_content(content: str) -> WorkItemSpecFile:
    """
    Parse specification text into a WorkItemSpecFile.

    Raises:
        SpecParseError: If the JSON is malformed or has no work items.
    """
    try:
        data = json.loads(strip_json_comments(content))
    except json.JSONDecodeError as e:
        raise SpecParseError(f"Invalid JSON in specification file: {e}") from e

    return WorkItemSpecFile.from_spec_data(data)


def load_spec(spec_path: str, directory: Optional[str] = None) -> WorkItemSpecFile:
    """Load and parse a specification file."""
    return parse_spec_content(load_spec_content(spec_path, directory))

"""
Markdown detection and conversion for Azure DevOps rich text fields.

Azure DevOps renders HTML in long-text fields. Spec files are usually
written in Markdown, so values containing Markdown are converted to HTML
before they are sent. Values that already contain HTML are left alone.
"""

import re
from enum import Enum
from typing import Any, Dict, List

from loguru import logger

import constants

# System fields that have a rich text companion field (<field>.Html).
# Custom fields don't; they receive the HTML directly.
FIELDS_SUPPORTING_HTML = frozenset(
    name.lower()
    for name in (
        "System.Description",
        "System.History",
        "Microsoft.VSTS.Common.AcceptanceCriteria",
        "Microsoft.VSTS.TCM.ReproSteps",
        "Microsoft.VSTS.TCM.SystemInfo",
    )
)

HTML_TAG_PATTERN = re.compile(
    r"<\s*([a-zA-Z][a-zA-Z0-9]*)\b[^>]*>"
    r"|<\s*/\s*([a-zA-Z][a-zA-Z0-9]*)\s*>"
    r"|<\s*([a-zA-Z][a-zA-Z0-9]*)\s*/\s*>",
    re.IGNORECASE,
)

MARKDOWN_PATTERNS = [
    re.compile(r"^#{1,6}[ \t]+.+$", re.MULTILINE),  # Headers
    re.compile(r"\*\*.+?\*\*"),  # Bold with **
    re.compile(r"__.+?__"),  # Bold with __
    re.compile(r"(?<!\*)\*(?!\*)(?:(?!\*).)+\*(?!\*)"),  # Italic with *
    re.compile(r"(?<!_)_(?!_)(?:(?!_).)+_(?!_)"),  # Italic with _
    re.compile(r"\[.+?\]\(.+?\)"),  # Links
    re.compile(r"^\s*[-*+]\s+.+$", re.MULTILINE),  # Unordered lists
    re.compile(r"^\s*\d+\.\s+.+$", re.MULTILINE),  # Ordered lists
    re.compile(r"```[\s\S]*?```"),  # Code blocks
    re.compile(r"`[^`]+`"),  # Inline code
    re.compile(r"^>\s+.+$", re.MULTILINE),  # Blockquotes
]

# Longest marker first so "##" is never consumed as "#"
HEADER_PATTERNS = [
    (re.compile(rf"^{'#' * level}[ \t]+(.+)$", re.MULTILINE), f"<h{level}>\\1</h{level}>")
    for level in range(6, 0, -1)
]

UNORDERED_ITEM_PATTERN = re.compile(r"^\s*[-*+]\s+(.+)$")
ORDERED_ITEM_PATTERN = re.compile(r"^\s*\d+\.\s+(.+)$")
BLOCKQUOTE_PATTERN = re.compile(r"^>\s+(.+)$")


class ListState(Enum):
    """Which list, if any, the line pass is currently inside."""

    NONE = "none"
    UNORDERED = "ul"
    ORDERED = "ol"


def contains_html(text: str) -> bool:
    """Check whether the text contains at least one HTML tag."""
    return bool(HTML_TAG_PATTERN.search(text))


def supports_html_field(field_name: str) -> bool:
    """Check whether a field has a rich text companion field."""
    return field_name.lower() in FIELDS_SUPPORTING_HTML


def contains_markdown_syntax(value: Any) -> bool:
    """
    Detect typical Markdown syntax or HTML tags in a value.

    Args:
        value: Field value to inspect. Anything but a non-blank string is
            reported as plain.

    Returns:
        bool: True if the value contains Markdown or HTML.
    """
    if not isinstance(value, str) or not value.strip():
        return False

    if contains_html(value):
        return True

    return any(pattern.search(value) for pattern in MARKDOWN_PATTERNS)


def _convert_inline(text: str) -> str:
    html = text
    for pattern, replacement in HEADER_PATTERNS:
        html = pattern.sub(replacement, html)

    # Bold before italic so "**" is not read as two "*"
    html = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", html)
    html = re.sub(r"__(.+?)__", r"<strong>\1</strong>", html)
    html = re.sub(r"(?<!\*)\*(?!\*)(.+?)\*(?!\*)", r"<em>\1</em>", html)
    html = re.sub(r"(?<!_)_(?!_)(.+?)_(?!_)", r"<em>\1</em>", html)

    html = re.sub(r"\[(.+?)\]\((.+?)\)", r'<a href="\2">\1</a>', html)

    html = re.sub(r"```([\s\S]*?)```", r"<pre><code>\1</code></pre>", html)
    html = re.sub(r"`([^`]+)`", r"<code>\1</code>", html)
    return html


def _close_list(state: ListState, parts: List[str]) -> ListState:
    if state is not ListState.NONE:
        parts.append(f"</{state.value}>")
    return ListState.NONE


def _open_list(state: ListState, wanted: ListState, parts: List[str]) -> ListState:
    if state is wanted:
        return state
    _close_list(state, parts)
    parts.append(f"<{wanted.value}>")
    return wanted


def _convert_blocks(text: str) -> str:
    lines = text.split("\n")
    parts: List[str] = []
    state = ListState.NONE

    for index, line in enumerate(lines):
        unordered = UNORDERED_ITEM_PATTERN.match(line)
        ordered = ORDERED_ITEM_PATTERN.match(line)
        quote = BLOCKQUOTE_PATTERN.match(line)

        if unordered:
            state = _open_list(state, ListState.UNORDERED, parts)
            parts.append(f"<li>{unordered.group(1)}</li>")
        elif ordered:
            state = _open_list(state, ListState.ORDERED, parts)
            parts.append(f"<li>{ordered.group(1)}</li>")
        elif quote:
            state = _close_list(state, parts)
            parts.append(f"<blockquote>{quote.group(1)}</blockquote>")
        else:
            state = _close_list(state, parts)
            if line.strip():
                parts.append(f"<div>{line}</div>")
            elif index < len(lines) - 1:
                parts.append("<br/>")

    _close_list(state, parts)
    return "".join(parts)


def convert_markdown_to_html(markdown: str) -> str:
    """
    Convert Markdown text to HTML for Azure DevOps rich text fields.

    Text that already contains HTML tags is returned as-is (trimmed), so
    converting an already converted value is a no-op.

    Args:
        markdown (str): Markdown source text.

    Returns:
        str: HTML rendering of the text, or "" for blank input.
    """
    if not markdown or not markdown.strip():
        return ""

    text = markdown.strip()
    if contains_html(text):
        return text

    return _convert_blocks(_convert_inline(text))


def apply_markdown_to_field(field_name: str, value: Any) -> Dict[str, Any]:
    """
    Build the field values to send for one resolved field.

    Markdown in a field with a companion field keeps the original text and
    adds the HTML under "<field>.Html"; any other field gets the HTML in
    place of the original text. Values without Markdown are passed through.

    Args:
        field_name (str): Fully qualified field name.
        value: Resolved field value.

    Returns:
        dict: Field name to value mapping (one or two entries).
    """
    if not contains_markdown_syntax(value):
        return {field_name: value}

    html_value = convert_markdown_to_html(value)

    if supports_html_field(field_name):
        html_field_name = f"{field_name}{constants.HTML_FIELD_SUFFIX}"
        logger.info("  └─ Detected markdown in '{}', adding HTML field '{}'", field_name, html_field_name)
        return {field_name: value, html_field_name: html_value}

    logger.info("  └─ Detected markdown in '{}', converting to HTML", field_name)
    return {field_name: html_value}

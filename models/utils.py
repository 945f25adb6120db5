"""
Shared utility functions for work item tags and URLs.
"""

import re
from typing import Any, Iterable, List, Optional
from urllib.parse import quote

import constants

TAG_SEPARATOR_PATTERN = re.compile(r"[;,]")


def split_tags(tags: Optional[str]) -> List[str]:
    """
    Split a tag string on ';' or ',' into trimmed, non-empty tags.

    Args:
        tags (str): Tag string as stored in System.Tags or written in a spec.

    Returns:
        list: Tags in their original order.
    """
    if not tags:
        return []
    return [tag.strip() for tag in TAG_SEPARATOR_PATTERN.split(tags) if tag.strip()]


def tags_to_string(value: Any) -> str:
    """
    Turn a tag value from a spec file into a tag string.

    Lists are joined with "; " and any other value is converted with str().
    None becomes "".
    """
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "; ".join(str(v) for v in value if v is not None)
    return str(value)


def dedupe_tags(tags: Iterable[str]) -> List[str]:
    """Drop case-insensitive duplicates, keeping the first spelling seen."""
    seen = set()
    result = []
    for tag in tags:
        key = tag.lower()
        if key not in seen:
            seen.add(key)
            result.append(tag)
    return result


def has_tool_tag(tags: Optional[str]) -> bool:
    """Check whether a tag string contains the tool tag (case-insensitive)."""
    return any(tag.lower() == constants.TOOL_TAG.lower() for tag in split_tags(tags))


def build_create_tags(spec_tags: Optional[str]) -> str:
    """Tag string for a new work item: the tool tag followed by the spec tags."""
    return "; ".join(dedupe_tags([constants.TOOL_TAG] + split_tags(spec_tags)))


def merge_tags(existing_tags: Optional[str], spec_tags: Optional[str]) -> str:
    """
    Merge existing tags with spec tags and the tool tag.

    Duplicates are collapsed case-insensitively and the tool tag is always
    present in the result.

    Args:
        existing_tags (str): Current System.Tags value of the work item.
        spec_tags (str): Tags from the work item specification.

    Returns:
        str: "; "-joined tag string.
    """
    merged = split_tags(existing_tags) + split_tags(spec_tags) + [constants.TOOL_TAG]
    return "; ".join(dedupe_tags(merged))


def escape_wiql(value: str) -> str:
    """Escape a value for use inside a single-quoted WIQL string literal."""
    return value.replace("'", "''")


def build_work_item_url(organization: str, project: str, work_item_id: int) -> str:
    """Browser URL of a work item, with the project name percent-encoded."""
    return f"{organization.rstrip('/')}/{quote(project, safe='')}/_workitems/edit/{work_item_id}"

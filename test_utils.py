"""
Tests for tag handling and URL helpers.
"""

import constants
from models.utils import (
    build_create_tags,
    build_work_item_url,
    escape_wiql,
    has_tool_tag,
    merge_tags,
    split_tags,
    tags_to_string,
)


def test_split_tags_accepts_both_separators():
    assert split_tags("a; b,c ;; ,d ") == ["a", "b", "c", "d"]
    assert split_tags(None) == []
    assert split_tags("") == []


def test_has_tool_tag_is_case_insensitive():
    assert has_tool_tag("foo; AZDO-WI-CREATOR")
    assert not has_tool_tag("foo; azdo-wi-creator-old")
    assert not has_tool_tag(None)


def test_build_create_tags_puts_tool_tag_first():
    assert build_create_tags("login, ui") == f"{constants.TOOL_TAG}; login; ui"
    assert build_create_tags(None) == constants.TOOL_TAG
    assert build_create_tags(constants.TOOL_TAG.upper()) == constants.TOOL_TAG


def test_merge_tags_keeps_first_spelling_and_adds_tool_tag():
    assert merge_tags("Foo; BAR", "bar, baz") == f"Foo; BAR; baz; {constants.TOOL_TAG}"


def test_merge_tags_does_not_duplicate_tool_tag():
    merged = merge_tags(f"{constants.TOOL_TAG}; x", "y")
    assert merged == f"{constants.TOOL_TAG}; x; y"
    assert split_tags(merged).count(constants.TOOL_TAG) == 1


def test_merge_tags_with_nothing_yields_tool_tag():
    assert merge_tags(None, None) == constants.TOOL_TAG
    assert merge_tags("", "  ") == constants.TOOL_TAG


def test_escape_wiql_doubles_single_quotes():
    assert escape_wiql("Bob's task") == "Bob''s task"
    assert escape_wiql("plain") == "plain"


def test_work_item_url_encodes_project():
    assert build_work_item_url("https://dev.azure.com/org/", "My Project", 42) == (
        "https://dev.azure.com/org/My%20Project/_workitems/edit/42"
    )
    assert build_work_item_url("https://dev.azure.com/org", "A/B", 1) == (
        "https://dev.azure.com/org/A%2FB/_workitems/edit/1"
    )


def test_tags_to_string_accepts_lists_and_scalars():
    assert tags_to_string(["a", "b"]) == "a; b"
    assert tags_to_string(5) == "5"
    assert tags_to_string("x, y") == "x, y"
    assert tags_to_string(None) == ""

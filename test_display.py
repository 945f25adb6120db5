"""
Tests for list command rendering.
"""

import json

from display import (
    render_area_paths_strings,
    render_area_paths_tree,
    render_work_items_json,
    render_work_items_table,
    render_work_items_text,
)
from models.azure_work_item import AzureWorkItem

ORG = "https://dev.azure.com/org"


def sample_items():
    return [
        AzureWorkItem(12, {
            "System.Title": "Login page",
            "System.State": "Active",
            "System.WorkItemType": "User Story",
            "System.AreaPath": "Web\\Frontend",
            "System.Tags": "azdo-wi-creator; ui",
        }),
        AzureWorkItem(3, {"System.Title": "Bare"}),
    ]


def test_text_blocks():
    text = render_work_items_text(sample_items(), ORG, "Web")
    first, second = text.split("\n\n")

    assert first.splitlines()[0] == "#12 - Login page"
    assert "  Tags: azdo-wi-creator; ui" in first
    assert first.endswith("  URL: https://dev.azure.com/org/Web/_workitems/edit/12")
    assert "Tags:" not in second
    assert "  Area Path: (unknown)" in second


def test_table_columns_fit_content():
    lines = render_work_items_table(sample_items()).splitlines()

    assert lines[0].startswith("ID  Title       State")
    assert set(lines[1].replace(" ", "")) == {"-"}
    assert lines[2].startswith("12  Login page  Active")
    assert lines[3].startswith("3   Bare        (unknown)")
    assert len(lines) == 4


def test_json_uses_camel_case_keys():
    data = json.loads(render_work_items_json(sample_items(), ORG, "Web"))

    assert data[0] == {
        "id": 12,
        "title": "Login page",
        "state": "Active",
        "type": "User Story",
        "areaPath": "Web\\Frontend",
        "tags": "azdo-wi-creator; ui",
        "url": "https://dev.azure.com/org/Web/_workitems/edit/12",
    }
    assert data[1]["title"] == "Bare"


def test_area_paths_as_strings():
    assert render_area_paths_strings(["P\\A", "P\\A\\B"]) == '"P\\\\A",\n"P\\\\A\\\\B"'


def test_area_paths_as_tree():
    tree = render_area_paths_tree(["P\\Team\\Sub", "P\\Alpha", "P\\Team"])
    assert tree == "P\n  Alpha\n  Team\n    Sub"

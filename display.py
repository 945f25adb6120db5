"""
Console rendering of work items and area paths for the list command.
"""

import json
from typing import Dict, List

from models.azure_work_item import AzureWorkItem
from models.utils import build_work_item_url

TABLE_COLUMNS = [
    ("ID", 2),
    ("Title", 5),
    ("State", 5),
    ("Area Path", 9),
    ("Tags", 4),
]


def render_work_items_text(work_items: List[AzureWorkItem], organization: str, project: str) -> str:
    """Render each work item as a block of "key: value" lines."""
    blocks = []
    for work_item in work_items:
        lines = [
            f"#{work_item.id} - {work_item.title}",
            f"  Type: {work_item.work_item_type}",
            f"  State: {work_item.state}",
            f"  Area Path: {work_item.area_path}",
        ]
        if work_item.tags.strip():
            lines.append(f"  Tags: {work_item.tags}")
        lines.append(f"  URL: {build_work_item_url(organization, project, work_item.id)}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def render_work_items_table(work_items: List[AzureWorkItem]) -> str:
    """Render work items as a table with columns sized to their content."""
    rows = [
        [str(wi.id), wi.title, wi.state, wi.area_path, wi.tags]
        for wi in work_items
    ]

    widths = []
    for index, (name, min_width) in enumerate(TABLE_COLUMNS):
        widths.append(max([min_width] + [len(row[index]) for row in rows]))

    def format_row(cells: List[str]) -> str:
        return "  ".join(cell.ljust(width) for cell, width in zip(cells, widths))

    lines = [
        format_row([name for name, _ in TABLE_COLUMNS]),
        format_row(["-" * width for width in widths]),
    ]
    lines.extend(format_row(row) for row in rows)
    return "\n".join(lines)


def render_work_items_json(work_items: List[AzureWorkItem], organization: str, project: str) -> str:
    """Render work items as indented JSON with camelCase keys."""
    return json.dumps(
        [wi.to_summary_dict(organization, project) for wi in work_items],
        indent=2,
        ensure_ascii=False,
    )


def render_area_paths_strings(area_paths: List[str]) -> str:
    """Render area paths as quoted, comma separated strings ready to paste into a spec file."""
    escaped = ['"{}"'.format(path.replace("\\", "\\\\")) for path in area_paths]
    return ",\n".join(escaped)


def render_area_paths_tree(area_paths: List[str]) -> str:
    """Render area paths as a tree, indenting two spaces per level."""
    root: Dict[str, dict] = {}
    for path in area_paths:
        node = root
        for part in path.split("\\"):
            node = node.setdefault(part, {})

    lines: List[str] = []

    def walk(node: Dict[str, dict], depth: int) -> None:
        for name in sorted(node):
            lines.append(f"{'  ' * depth}{name}")
            walk(node[name], depth + 1)

    walk(root, 0)
    return "\n".join(lines)

"""
Models package for the Azure DevOps work item creator.

This package contains the data model classes for work item specifications
and Azure DevOps work items, together with the field name resolver and the
Markdown to HTML converter used when writing field values.
"""

from .work_item_spec import WorkItemSpec, WorkItemSpecFile
from .azure_work_item import AzureWorkItem, build_patch_document
from .field_resolver import resolve_field_name, resolve_fields, get_known_fields, is_ambiguous
from .markdown_helper import (
    contains_markdown_syntax,
    convert_markdown_to_html,
    supports_html_field,
    apply_markdown_to_field,
)
from .utils import (
    split_tags,
    has_tool_tag,
    tags_to_string,
    build_create_tags,
    merge_tags,
    escape_wiql,
    build_work_item_url,
)


__all__ = [
    'WorkItemSpec',
    'WorkItemSpecFile',
    'AzureWorkItem',
    'build_patch_document',
    'resolve_field_name',
    'resolve_fields',
    'get_known_fields',
    'is_ambiguous',
    'contains_markdown_syntax',
    'convert_markdown_to_html',
    'supports_html_field',
    'apply_markdown_to_field',
    'split_tags',
    'has_tool_tag',
    'tags_to_string',
    'build_create_tags',
    'merge_tags',
    'escape_wiql',
    'build_work_item_url',
]

"""
Azure DevOps Work Item Class

This module provides a read-only view of work items returned by the
Azure DevOps REST API and the JSON Patch documents used to write them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .utils import has_tool_tag, build_work_item_url

FIELD_TITLE = "System.Title"
FIELD_STATE = "System.State"
FIELD_WORK_ITEM_TYPE = "System.WorkItemType"
FIELD_AREA_PATH = "System.AreaPath"
FIELD_TAGS = "System.Tags"


@dataclass
class AzureWorkItem:
    """
    Represents an existing Azure DevOps work item.

    Only the numeric id and the field values are kept; relations, links and
    revisions are not needed to decide between create and update.
    """

    id: int
    fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_azure_data(cls, azure_data: Dict[str, Any]) -> "AzureWorkItem":
        """
        Create AzureWorkItem from a work item returned by the REST API.

        Args:
            azure_data: Dictionary with at least "id" and "fields"

        Returns:
            AzureWorkItem instance
        """
        return cls(
            id=int(azure_data.get("id", 0)),
            fields=dict(azure_data.get("fields") or {}),
        )

    def _field_text(self, name: str, default: str) -> str:
        value = self.fields.get(name)
        return str(value) if value is not None else default

    @property
    def title(self) -> str:
        return self._field_text(FIELD_TITLE, "(no title)")

    @property
    def state(self) -> str:
        return self._field_text(FIELD_STATE, "(unknown)")

    @property
    def work_item_type(self) -> str:
        return self._field_text(FIELD_WORK_ITEM_TYPE, "(unknown)")

    @property
    def area_path(self) -> str:
        return self._field_text(FIELD_AREA_PATH, "(unknown)")

    @property
    def tags(self) -> str:
        return self._field_text(FIELD_TAGS, "")

    def has_tool_tag(self) -> bool:
        """Check whether this item carries the tool tag."""
        return has_tool_tag(self.tags)

    def to_summary_dict(self, organization: str, project: str) -> Dict[str, Any]:
        """Dictionary used for JSON output of the list command."""
        return {
            "id": self.id,
            "title": self.title,
            "state": self.state,
            "type": self.work_item_type,
            "areaPath": self.area_path,
            "tags": self.tags,
            "url": build_work_item_url(organization, project, self.id),
        }

    def __str__(self) -> str:
        """String representation of the work item."""
        return f"AzureWorkItem(#{self.id}: {self.title[:50]})"


def build_patch_document(fields: Dict[str, Any], operation: str) -> List[Dict[str, Any]]:
    """
    Generate JSON Patch operations setting each field independently.

    Args:
        fields: Fully qualified field names mapped to values
        operation: "add" for creation, "replace" for updates

    Returns:
        List of JSON Patch operations
    """
    return [
        {"op": operation, "path": f"/fields/{name}", "value": value}
        for name, value in fields.items()
    ]

"""
Work Item Specification Classes

This module provides the in-memory representation of a specification file:
a list of desired work items with their project, fields, area paths and tags.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from exceptions import SpecParseError


def _lower_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Property names in spec files are matched case-insensitively."""
    return {str(key).lower(): value for key, value in data.items()}


@dataclass(frozen=True)
class WorkItemSpec:
    """
    Represents one desired work item from a specification file.

    Attributes:
        project: Target project; falls back to the run's default project.
        fields: Short or fully qualified field names mapped to values.
        area_paths: Area paths to create the item in. When empty, the
            project's root area path is used.
        tags: Free-form tag string, ';' or ',' delimited.
    """

    project: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)
    area_paths: List[str] = field(default_factory=list)
    tags: Optional[str] = None

    @classmethod
    def from_spec_data(cls, spec_data: Dict[str, Any], index: int = 0) -> "WorkItemSpec":
        """
        Create WorkItemSpec from one parsed "workItems" entry.

        Args:
            spec_data: Dictionary for a single work item entry
            index: Position of the entry, used in error messages

        Returns:
            WorkItemSpec instance
        """
        if not isinstance(spec_data, dict):
            raise SpecParseError(f"Work item #{index + 1} must be an object")

        data = _lower_keys(spec_data)

        fields = data.get("fields") or {}
        if not isinstance(fields, dict):
            raise SpecParseError(f"Work item #{index + 1}: 'fields' must be an object")

        area_paths = data.get("areapaths") or []
        if not isinstance(area_paths, list) or not all(isinstance(p, str) for p in area_paths):
            raise SpecParseError(f"Work item #{index + 1}: 'areaPaths' must be a list of strings")

        project = data.get("project")
        tags = data.get("tags")

        return cls(
            project=str(project) if project is not None else None,
            fields=dict(fields),
            area_paths=list(area_paths),
            tags=str(tags) if tags is not None else None,
        )

    def effective_project(self, default_project: Optional[str]) -> Optional[str]:
        """The work item's own project, or the default when it has none."""
        if self.project and self.project.strip():
            return self.project
        if default_project and default_project.strip():
            return default_project
        return None

    def target_area_paths(self, project: str) -> List[str]:
        """Area paths to process; the project root when none are listed."""
        return list(self.area_paths) if self.area_paths else [project]

    def __str__(self) -> str:
        """String representation of the spec."""
        title = self.fields.get("Title") or self.fields.get("System.Title") or "?"
        return f"WorkItemSpec(project='{self.project}', title='{title}')"


@dataclass(frozen=True)
class WorkItemSpecFile:
    """A parsed specification file."""

    work_items: List[WorkItemSpec] = field(default_factory=list)

    @classmethod
    def from_spec_data(cls, spec_data: Any) -> "WorkItemSpecFile":
        """
        Create WorkItemSpecFile from the parsed JSON document.

        Unknown top-level properties are ignored.

        Raises:
            SpecParseError: If the document has no work items.
        """
        if not isinstance(spec_data, dict):
            raise SpecParseError("Specification file must contain a JSON object")

        entries = _lower_keys(spec_data).get("workitems") or []
        if not isinstance(entries, list):
            raise SpecParseError("'workItems' must be a list")

        work_items = [WorkItemSpec.from_spec_data(entry, i) for i, entry in enumerate(entries)]
        if not work_items:
            raise SpecParseError("No work items found in specification file.")

        return cls(work_items=work_items)

    def projects(self, default_project: Optional[str]) -> List[str]:
        """Distinct effective projects, sorted."""
        return sorted({p for p in (wi.effective_project(default_project) for wi in self.work_items) if p})

"""
Work item creation and update.

Reconciles the work items of a specification file against Azure DevOps:
every (work item, area path) pair is looked up by title and area path, then
created, updated or skipped. Only work items carrying the tool tag are
updated unless force mode is enabled.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

import constants
import display
from azure_devops_client import AzureDevOpsClient
from exceptions import (
    MissingTitleError,
    ProjectUnspecifiedError,
    RemoteLookupError,
    WorkItemCreatorError,
)
from models.azure_work_item import FIELD_AREA_PATH, FIELD_STATE, FIELD_TAGS, FIELD_TITLE, AzureWorkItem
from models.field_resolver import resolve_fields
from models.markdown_helper import apply_markdown_to_field, contains_markdown_syntax, supports_html_field
from models.utils import build_create_tags, build_work_item_url, merge_tags, tags_to_string
from models.work_item_spec import WorkItemSpec, WorkItemSpecFile

ClientFactory = Callable[[str], AzureDevOpsClient]


@dataclass
class RunSummary:
    """Counters and errors collected over one invocation."""

    created: int = 0
    updated: int = 0
    skipped: int = 0
    simulated: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 1 if self.errors else 0

    def log_summary(self) -> None:
        """Log the final counts and every recorded error."""
        logger.info("=== SUMMARY ===")
        logger.info("Created: {}", self.created)
        logger.info("Updated: {}", self.updated)
        if self.skipped:
            logger.info("Skipped: {}", self.skipped)
        if self.errors:
            logger.error("Errors: {}", len(self.errors))
            logger.error("Errors encountered:")
            for error in self.errors:
                logger.error("  - {}", error)


def build_field_values(resolved_fields: Dict[str, Any]) -> Dict[str, Any]:
    """Apply Markdown conversion to every resolved field."""
    values: Dict[str, Any] = {}
    for name, value in resolved_fields.items():
        values.update(apply_markdown_to_field(name, value))
    return values


def group_by_project(work_items: List[WorkItemSpec], default_project: Optional[str]) -> List[Tuple[str, List[WorkItemSpec]]]:
    """
    Group work items by their effective project.

    Groups appear in the order their project is first seen; work items keep
    their original order within a group.

    Raises:
        ProjectUnspecifiedError: If any work item has no project at all.
    """
    missing = [wi for wi in work_items if not wi.effective_project(default_project)]
    if missing:
        raise ProjectUnspecifiedError(len(missing))

    groups: Dict[str, List[WorkItemSpec]] = {}
    for work_item in work_items:
        groups.setdefault(work_item.effective_project(default_project), []).append(work_item)
    return list(groups.items())


class WorkItemExecutor:
    """Runs the create and list commands against one Azure DevOps organization."""

    def __init__(
        self,
        organization: str,
        project: Optional[str],
        work_item_type: str,
        pat: Optional[str] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.organization = organization.rstrip("/")
        self.project = project
        self.work_item_type = work_item_type
        self.pat = pat
        self.client_factory = client_factory or self._default_client_factory

    def _default_client_factory(self, project: str) -> AzureDevOpsClient:
        return AzureDevOpsClient(self.organization, project, self.pat)

    def execute_create(self, spec_file: WorkItemSpecFile, simulate: bool = False, force: bool = False, force_new: bool = False) -> RunSummary:
        """
        Create or update every work item in the specification.

        Args:
            spec_file: Parsed specification file
            simulate: Only log what would be created
            force: Update work items even if they lack the tool tag
            force_new: Always create new work items, never look up existing ones

        Returns:
            RunSummary with counts and recorded errors.

        Raises:
            ProjectUnspecifiedError: Before any remote call, if a work item has
                no project and there is no default project.
        """
        groups = group_by_project(spec_file.work_items, self.project)
        projects = sorted(project for project, _ in groups)

        logger.info("Loaded {} work item specification(s)", len(spec_file.work_items))
        logger.info("Organization: {}", self.organization)
        if len(projects) == 1:
            logger.info("Project: {}", projects[0])
        else:
            logger.info("Projects: {} ({} projects)", ", ".join(projects), len(projects))
        logger.info("Work Item Type: {}", self.work_item_type)
        logger.info("Mode: {}", "SIMULATION (no changes will be made)" if simulate else "EXECUTION")
        if force:
            logger.warning("⚠️  FORCE MODE ENABLED - Will update work items without tool tag!")
        if force_new:
            logger.info("📝 NEW MODE ENABLED - Will always create new work items")

        if simulate:
            return self.simulate_creation(groups)
        return self.execute_creation(groups, force, force_new)

    def simulate_creation(self, groups: List[Tuple[str, List[WorkItemSpec]]]) -> RunSummary:
        """Log the work items that would be created without contacting Azure DevOps."""
        summary = RunSummary()
        logger.info("=== SIMULATION MODE - No changes will be made ===")

        for project, work_items in groups:
            for work_item in work_items:
                try:
                    resolved_fields = resolve_fields(work_item.fields)
                except ValueError as e:
                    logger.error("Error: {}", e)
                    continue

                for area_path in work_item.target_area_paths(project):
                    summary.simulated += 1
                    self._log_simulated_item(summary.simulated, project, area_path, work_item, resolved_fields)

        logger.info("=== SIMULATION COMPLETE ===")
        logger.info("Would create {} work item(s)", summary.simulated)
        return summary

    def _log_simulated_item(self, number: int, project: str, area_path: str, work_item: WorkItemSpec, resolved_fields: Dict[str, Any]) -> None:
        logger.info("Would create work item #{}:", number)
        logger.info("  Project: {}", project)
        logger.info("  Type: {}", self.work_item_type)
        logger.info("  Area Path: {}", area_path)
        logger.info("  State: {}", constants.INITIAL_STATE)
        if FIELD_TITLE in resolved_fields:
            logger.info("  Title: {}", resolved_fields[FIELD_TITLE])

        logger.info("  Fields:")
        max_length = constants.SIMULATION_VALUE_MAX_LENGTH
        for name in sorted(resolved_fields):
            value = resolved_fields[name]
            text = str(value)
            if len(text) > max_length:
                text = text[:max_length - 3] + "..."
            logger.info("    {}: {}", name, text)

            if contains_markdown_syntax(value):
                if supports_html_field(name):
                    logger.info("      └─ Markdown detected, will also create: {}{}", name, constants.HTML_FIELD_SUFFIX)
                else:
                    logger.info("      └─ Markdown detected, will convert to HTML")

        logger.info("  Tags: {}", build_create_tags(work_item.tags))

    def execute_creation(self, groups: List[Tuple[str, List[WorkItemSpec]]], force: bool, force_new: bool) -> RunSummary:
        """Create or update work items, one client session per project."""
        summary = RunSummary()

        for project, work_items in groups:
            logger.info("--- Processing project: {} ---", project)

            with self.client_factory(project) as client:
                for work_item in work_items:
                    try:
                        self._process_work_item(client, project, work_item, force, force_new, summary)
                    except Exception as e:
                        error_msg = f"Error processing {work_item}: {e}"
                        summary.errors.append(error_msg)
                        logger.error("✗ {}", error_msg)

        summary.log_summary()
        return summary

    def _process_work_item(self, client: AzureDevOpsClient, project: str, work_item: WorkItemSpec, force: bool, force_new: bool, summary: RunSummary) -> None:
        try:
            resolved_fields = resolve_fields(work_item.fields)
        except ValueError as e:
            summary.errors.append(f"Field resolution error: {e}")
            return

        title = resolved_fields.get(FIELD_TITLE)
        if title is None or not str(title).strip():
            error = MissingTitleError()
            logger.error("{}", error)
            summary.errors.append(str(error))
            return
        title = str(title)

        # A "Tags" field is treated like the spec's tag string so the tool
        # tag is never overwritten by it.
        spec_tags = "; ".join(
            t for t in (work_item.tags or "", tags_to_string(resolved_fields.pop(FIELD_TAGS, None))) if t.strip()
        )

        for area_path in work_item.target_area_paths(project):
            try:
                self._process_area_path(client, project, title, area_path, resolved_fields, spec_tags, force, force_new, summary)
            except Exception as e:
                error_msg = f"Error creating work item '{title}' in area path '{area_path}': {e}"
                summary.errors.append(error_msg)
                logger.error("✗ {}", error_msg)

    def _find_existing(self, client: AzureDevOpsClient, title: str, area_path: str) -> Optional[AzureWorkItem]:
        try:
            return client.find_existing_work_item(self.work_item_type, title, area_path)
        except RemoteLookupError as e:
            logger.warning("Warning: Error searching for existing work item: {}", e)
            return None

    def _process_area_path(
        self,
        client: AzureDevOpsClient,
        project: str,
        title: str,
        area_path: str,
        resolved_fields: Dict[str, Any],
        spec_tags: str,
        force: bool,
        force_new: bool,
        summary: RunSummary,
    ) -> None:
        existing = None if force_new else self._find_existing(client, title, area_path)

        if existing is None:
            fields = build_field_values(resolved_fields)
            fields[FIELD_AREA_PATH] = area_path
            fields[FIELD_STATE] = constants.INITIAL_STATE
            fields[FIELD_TAGS] = build_create_tags(spec_tags)

            created = client.create_work_item(self.work_item_type, fields)
            logger.success("✓ Created work item #{}: {}", created.id, title)
            self._log_location(project, area_path, created.id)
            summary.created += 1
            return

        if not existing.has_tool_tag():
            if not force:
                logger.warning("⚠️  Skipping: Work item #{} '{}' exists but was not created by this tool.", existing.id, title)
                logger.warning("   Use --force to update anyway (not recommended).")
                summary.skipped += 1
                return
            logger.warning("⚠️  Force updating work item #{} '{}' (not created by this tool)", existing.id, title)

        logger.info("Updating existing work item #{}: {}", existing.id, existing.title)

        fields = build_field_values(resolved_fields)
        fields[FIELD_TAGS] = merge_tags(existing.tags, spec_tags)

        updated = client.update_work_item(existing.id, fields)
        logger.success("✓ Updated work item #{}: {}", updated.id, title)
        self._log_location(project, area_path, updated.id)
        summary.updated += 1

    def _log_location(self, project: str, area_path: str, work_item_id: int) -> None:
        logger.info("  Area Path: {}", area_path)
        logger.info("  URL: {}", build_work_item_url(self.organization, project, work_item_id))

    def _require_project(self) -> str:
        if not self.project or not self.project.strip():
            raise WorkItemCreatorError("--project is required for the list command.")
        return self.project

    def execute_list(self, table_format: bool = False, json_format: bool = False) -> str:
        """
        Render the work items in the project that carry the tool tag.

        Returns:
            str: Rendered output (text blocks, table or JSON).
        """
        project = self._require_project()

        if not json_format:
            logger.info("Listing work items created by this tool...")
            logger.info("Organization: {}", self.organization)
            logger.info("Project: {}", project)

        with self.client_factory(project) as client:
            work_items = client.get_work_items_created_by_tool()

        if json_format:
            return display.render_work_items_json(work_items, self.organization, project)

        if not work_items:
            return "No work items found created by this tool."

        header = f"Found {len(work_items)} work item(s):\n\n"
        if table_format:
            return header + display.render_work_items_table(work_items)
        return header + display.render_work_items_text(work_items, self.organization, project)

    def execute_list_area_paths(self, full_strings: bool = False) -> str:
        """
        Render the area paths defined in the project.

        Returns:
            str: Area paths as an indented tree, or as quoted strings.
        """
        project = self._require_project()

        logger.info("Listing area paths in project...")
        logger.info("Organization: {}", self.organization)
        logger.info("Project: {}", project)

        with self.client_factory(project) as client:
            area_paths = client.get_area_paths()

        if not area_paths:
            return "No area paths found in the project."

        header = f"Found {len(area_paths)} area path(s):\n\n"
        if full_strings:
            return header + display.render_area_paths_strings(area_paths)
        return header + display.render_area_paths_tree(area_paths)

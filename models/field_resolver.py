"""
Field name resolution for Azure DevOps work item fields.

Maps short, human-friendly names such as "Description" to fully qualified
reference names such as "System.Description". Names that already contain a
dot are taken as fully qualified and passed through untouched.
"""

from types import MappingProxyType
from typing import Any, Dict, List, Mapping

from loguru import logger

from exceptions import AmbiguousFieldError

# (short name, reference name) pairs. A short name listed more than once is
# ambiguous and must be written fully qualified in spec files.
FIELD_ALIASES = [
    # Core System fields
    ("Title", "System.Title"),
    ("Description", "System.Description"),
    ("State", "System.State"),
    ("Reason", "System.Reason"),
    ("AssignedTo", "System.AssignedTo"),
    ("CreatedDate", "System.CreatedDate"),
    ("CreatedBy", "System.CreatedBy"),
    ("ChangedDate", "System.ChangedDate"),
    ("ChangedBy", "System.ChangedBy"),
    ("AreaPath", "System.AreaPath"),
    ("IterationPath", "System.IterationPath"),
    ("Tags", "System.Tags"),
    ("History", "System.History"),
    ("WorkItemType", "System.WorkItemType"),
    ("Id", "System.Id"),
    # VSTS Common fields
    ("AcceptanceCriteria", "Microsoft.VSTS.Common.AcceptanceCriteria"),
    ("BusinessValue", "Microsoft.VSTS.Common.BusinessValue"),
    ("ValueArea", "Microsoft.VSTS.Common.ValueArea"),
    ("Risk", "Microsoft.VSTS.Common.Risk"),
    ("Priority", "Microsoft.VSTS.Common.Priority"),
    ("Severity", "Microsoft.VSTS.Common.Severity"),
    ("StackRank", "Microsoft.VSTS.Common.StackRank"),
    ("BacklogPriority", "Microsoft.VSTS.Common.BacklogPriority"),
    ("TimeCriticality", "Microsoft.VSTS.Common.TimeCriticality"),
    ("Activity", "Microsoft.VSTS.Common.Activity"),
    ("ResolvedDate", "Microsoft.VSTS.Common.ResolvedDate"),
    ("ResolvedBy", "Microsoft.VSTS.Common.ResolvedBy"),
    ("ResolvedReason", "Microsoft.VSTS.Common.ResolvedReason"),
    ("ClosedDate", "Microsoft.VSTS.Common.ClosedDate"),
    ("ClosedBy", "Microsoft.VSTS.Common.ClosedBy"),
    ("Blocked", "Microsoft.VSTS.Common.Blocked"),
    ("Blocked", "Microsoft.VSTS.CMMI.Blocked"),
    # VSTS Scheduling fields
    ("Effort", "Microsoft.VSTS.Scheduling.Effort"),
    ("StoryPoints", "Microsoft.VSTS.Scheduling.StoryPoints"),
    ("OriginalEstimate", "Microsoft.VSTS.Scheduling.OriginalEstimate"),
    ("RemainingWork", "Microsoft.VSTS.Scheduling.RemainingWork"),
    ("CompletedWork", "Microsoft.VSTS.Scheduling.CompletedWork"),
    ("TargetDate", "Microsoft.VSTS.Scheduling.TargetDate"),
    ("StartDate", "Microsoft.VSTS.Scheduling.StartDate"),
    ("FinishDate", "Microsoft.VSTS.Scheduling.FinishDate"),
    ("DueDate", "Microsoft.VSTS.Scheduling.DueDate"),
    ("Size", "Microsoft.VSTS.Scheduling.Size"),
    ("Size", "Microsoft.VSTS.CMMI.Size"),
    # VSTS Build fields
    ("IntegrationBuild", "Microsoft.VSTS.Build.IntegrationBuild"),
    ("FoundIn", "Microsoft.VSTS.Build.FoundIn"),
    # VSTS CMMI fields
    ("RequiredAttendee1", "Microsoft.VSTS.CMMI.RequiredAttendee1"),
    ("RequiredAttendee2", "Microsoft.VSTS.CMMI.RequiredAttendee2"),
    ("RequiredAttendee3", "Microsoft.VSTS.CMMI.RequiredAttendee3"),
    ("OptionalAttendee1", "Microsoft.VSTS.CMMI.OptionalAttendee1"),
    ("OptionalAttendee2", "Microsoft.VSTS.CMMI.OptionalAttendee2"),
    ("OptionalAttendee3", "Microsoft.VSTS.CMMI.OptionalAttendee3"),
    # Bug specific
    ("ReproSteps", "Microsoft.VSTS.TCM.ReproSteps"),
    ("SystemInfo", "Microsoft.VSTS.TCM.SystemInfo"),
]


def _build_reverse_mapping(aliases: List[tuple]) -> Dict[str, List[str]]:
    """Index lowercase short names to their distinct reference names."""
    reverse: Dict[str, List[str]] = {}
    for short_name, full_name in aliases:
        targets = reverse.setdefault(short_name.lower(), [])
        if full_name not in targets:
            targets.append(full_name)
    return reverse


_REVERSE_MAPPING = MappingProxyType(_build_reverse_mapping(FIELD_ALIASES))


def resolve_field_name(field_name: str) -> str:
    """
    Resolve a field name to its fully qualified reference name.

    Args:
        field_name (str): Short name (e.g. "Description") or fully qualified
            name (e.g. "System.Description").

    Returns:
        str: The fully qualified reference name. Unknown short names are
            returned unchanged and left for Azure DevOps to validate.

    Raises:
        ValueError: If the field name is empty.
        AmbiguousFieldError: If the short name maps to several fields.
    """
    if not field_name or not field_name.strip():
        raise ValueError("Field name cannot be null or empty.")

    if "." in field_name:
        return field_name

    candidates = _REVERSE_MAPPING.get(field_name.lower())
    if candidates is None:
        logger.warning(
            "Unknown field '{}'. If this is a custom field, use the fully qualified reference name (e.g., 'Custom.MyField').",
            field_name,
        )
        return field_name

    if len(candidates) > 1:
        raise AmbiguousFieldError(field_name, candidates)

    return candidates[0]


def normalize_field_value(value: Any) -> Any:
    """Convert a deserialized JSON value into a plain field value (null becomes "")."""
    if value is None:
        return ""
    if isinstance(value, dict):
        return {str(k): normalize_field_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_field_value(v) for v in value]
    return value


def resolve_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Resolve every field name in a spec field mapping.

    The whole mapping is rejected on the first ambiguous name; a partially
    resolved mapping is never returned.

    Args:
        fields: Mapping of short or qualified field names to values.

    Returns:
        dict: Mapping of fully qualified field names to normalized values.
    """
    resolved: Dict[str, Any] = {}
    sources: Dict[str, str] = {}

    for name, value in fields.items():
        try:
            resolved_name = resolve_field_name(name)
            if resolved_name in resolved:
                raise AmbiguousFieldError(
                    resolved_name,
                    [sources[resolved_name], name],
                    message=(
                        f"Fields '{sources[resolved_name]}' and '{name}' both resolve to "
                        f"'{resolved_name}'. Please specify the field only once."
                    ),
                )
        except AmbiguousFieldError as e:
            logger.error("Error resolving field name: {}", e)
            raise

        sources[resolved_name] = name
        resolved[resolved_name] = normalize_field_value(value)

    return resolved


def get_known_fields() -> Mapping[str, str]:
    """Return the unambiguous short names and the reference names they map to."""
    known = {}
    for short_name, full_name in FIELD_ALIASES:
        if len(_REVERSE_MAPPING[short_name.lower()]) == 1:
            known[short_name] = full_name
    return MappingProxyType(known)


def is_ambiguous(field_name: str) -> bool:
    """Check whether a field name is an ambiguous short name."""
    if "." in field_name:
        return False
    return len(_REVERSE_MAPPING.get(field_name.lower(), [])) > 1

"""
Exception hierarchy for the Azure DevOps work item creator.

Per-item errors (ambiguous fields, missing title, failed remote mutations)
are recorded by the executor and do not stop the run. Invocation-level
errors (spec loading, missing project, authentication) abort before any
work item is touched.
"""

from typing import List, Optional


class WorkItemCreatorError(Exception):
    """Base class for all errors raised by this tool."""


class AmbiguousFieldError(WorkItemCreatorError, ValueError):
    """A short field name maps to more than one fully qualified field."""

    def __init__(self, field_name: str, candidates: List[str], message: Optional[str] = None):
        self.field_name = field_name
        self.candidates = list(candidates)
        if message is None:
            listing = "\n".join(f"  - {c}" for c in self.candidates)
            message = (
                f"Ambiguous field name '{field_name}'. Multiple fields match:\n"
                f"{listing}\n\nPlease use the fully qualified field reference name."
            )
        super().__init__(message)


class MissingTitleError(WorkItemCreatorError):
    """A work item specification has no System.Title after resolution."""

    def __init__(self, message: str = "Work item specification must contain 'System.Title' field (or 'Title')"):
        super().__init__(message)


class RemoteLookupError(WorkItemCreatorError):
    """Searching for an existing work item failed."""


class RemoteMutationError(WorkItemCreatorError):
    """Creating or updating a work item failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, response_text: str = ""):
        self.status_code = status_code
        self.response_text = response_text
        super().__init__(message)


class SpecLoadError(WorkItemCreatorError):
    """The specification file could not be found or downloaded."""


class SpecParseError(WorkItemCreatorError):
    """The specification file is malformed or contains no work items."""


class ProjectUnspecifiedError(WorkItemCreatorError):
    """Some work items have neither their own project nor a default project."""

    def __init__(self, count: int):
        self.count = count
        super().__init__(
            f"{count} work item(s) do not have a project specified. "
            "Either specify --project on command line as default, "
            "or add \"project\" field to each work item in the spec file."
        )


class AuthenticationError(WorkItemCreatorError):
    """Connecting to Azure DevOps with the given credentials failed."""

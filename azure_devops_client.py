"""
Azure DevOps REST client.

Wraps the work item tracking endpoints used by the work item creator:
WIQL queries, batched work item reads, JSON Patch create/update and the
area path classification tree. One client is opened per project and must
be closed when the project has been processed (use it as a context manager).
"""

import json
import os
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests
from loguru import logger

import constants
from exceptions import (
    AuthenticationError,
    RemoteLookupError,
    RemoteMutationError,
    WorkItemCreatorError,
)
from models.azure_work_item import AzureWorkItem, build_patch_document
from models.utils import escape_wiql


def validate_api_response(response: requests.Response, operation_name: str, expected_status_codes: Optional[List[int]] = None) -> Tuple[bool, Dict[str, Any]]:
    """
    Validate API response and return standardized result.

    Args:
        response: requests.Response object
        operation_name (str): Name of the operation for logging
        expected_status_codes (list): List of acceptable status codes

    Returns:
        tuple: (success: bool, data: dict or error_dict)
    """
    if expected_status_codes is None:
        expected_status_codes = [200]

    if response.status_code in expected_status_codes:
        try:
            data = response.json()
            logger.debug("{} successful. Response: {}", operation_name, data)
            return True, data
        except ValueError as e:
            error_msg = f"Failed to parse JSON response for {operation_name}: {e}"
            logger.error(error_msg)
            return False, {"error": error_msg, "status_code": response.status_code}
    else:
        error_msg = f"{operation_name} failed. Status code: {response.status_code}"
        logger.debug("Response: {}", response.text)
        return False, {"error": error_msg, "status_code": response.status_code, "response": response.text}


class AzureDevOpsClient:
    """Session-scoped client for one Azure DevOps project."""

    def __init__(self, organization_url: str, project: str, pat: Optional[str] = None, quiet: bool = False, connect: bool = True):
        self.organization_url = organization_url.rstrip("/")
        self.project = project
        self.timeout = constants.AZDO_REQUEST_TIMEOUT
        self.api_version = constants.AZDO_API_VERSION

        effective_pat = pat or os.getenv(constants.AZDO_PAT_ENV_VAR)
        if not effective_pat:
            raise AuthenticationError(
                "No Personal Access Token provided. Use --pat or set the "
                f"{constants.AZDO_PAT_ENV_VAR} environment variable."
            )

        # Do NOT log secrets. Log only presence to avoid leaking credentials.
        if not quiet:
            logger.info("Using Personal Access Token for authentication.")

        self.session = requests.Session()
        self.session.auth = ("", effective_pat)
        self.session.headers.update({"Accept": "application/json"})

        if connect:
            try:
                self.connect()
            except Exception:
                self.close()
                raise

    def __enter__(self) -> "AzureDevOpsClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self.session.close()

    def _project_url(self, path: str) -> str:
        return f"{self.organization_url}/{quote(self.project, safe='')}/_apis/{path}"

    def _params(self, **extra: Any) -> Dict[str, Any]:
        params = {"api-version": self.api_version}
        params.update(extra)
        return params

    def connect(self) -> None:
        """
        Authenticate against the project so credential problems surface
        before any work item is processed.

        Raises:
            AuthenticationError: If the PAT is rejected.
            WorkItemCreatorError: If the project cannot be reached.
        """
        url = f"{self.organization_url}/_apis/projects/{quote(self.project, safe='')}"
        try:
            response = self.session.get(url, params=self._params(), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise WorkItemCreatorError(f"Could not connect to {self.organization_url}: {e}") from e

        # Azure DevOps answers 203 with a sign-in page when a PAT is invalid
        if response.status_code in (203, 401, 403):
            raise AuthenticationError(
                f"Authentication failed (status code {response.status_code}).\n\n"
                "Please check your Personal Access Token (PAT):\n"
                f"1. Visit {self.organization_url}/_usersSettings/tokens\n"
                "2. Create a new token with 'Work Items (Read, Write, & Manage)' scope\n"
                f"3. Use --pat YOUR_TOKEN or set {constants.AZDO_PAT_ENV_VAR} environment variable"
            )

        success, data = validate_api_response(response, f"Get project {self.project}")
        if not success:
            raise WorkItemCreatorError(f"Could not open project '{self.project}': {data['error']}")

        logger.debug("Connected to project {} ({})", self.project, data.get("id", ""))

    def _query_ids(self, query: str) -> List[int]:
        """Run a WIQL query and return the matching work item ids in query order."""
        response = self.session.post(
            self._project_url("wit/wiql"),
            params=self._params(),
            json={"query": " ".join(query.split())},
            timeout=self.timeout,
        )
        success, data = validate_api_response(response, "WIQL query")
        if not success:
            raise RemoteLookupError(data["error"])
        return [int(item["id"]) for item in data.get("workItems", [])]

    def _get_work_items(self, ids: List[int]) -> List[AzureWorkItem]:
        """Fetch full field data for the given ids, preserving their order."""
        items: Dict[int, AzureWorkItem] = {}
        batch_size = constants.AZDO_WORK_ITEMS_BATCH_SIZE

        for start in range(0, len(ids), batch_size):
            batch = ids[start:start + batch_size]
            response = self.session.get(
                self._project_url("wit/workitems"),
                params=self._params(ids=",".join(str(i) for i in batch), **{"$expand": "all"}),
                timeout=self.timeout,
            )
            success, data = validate_api_response(response, f"Get work items {batch[0]}..{batch[-1]}")
            if not success:
                raise RemoteLookupError(data["error"])
            for raw_item in data.get("value", []):
                item = AzureWorkItem.from_azure_data(raw_item)
                items[item.id] = item

        return [items[i] for i in ids if i in items]

    def find_existing_work_item(self, work_item_type: str, title: str, area_path: str) -> Optional[AzureWorkItem]:
        """
        Find the most recently changed work item with the same type, title and area path.

        Args:
            work_item_type (str): Work item type, e.g. "User Story"
            title (str): Exact title to match
            area_path (str): Exact area path to match

        Returns:
            AzureWorkItem or None if there is no match.

        Raises:
            RemoteLookupError: If the search fails.
        """
        query = f"""
            SELECT [System.Id]
            FROM WorkItems
            WHERE [System.TeamProject] = '{escape_wiql(self.project)}'
              AND [System.WorkItemType] = '{escape_wiql(work_item_type)}'
              AND [System.Title] = '{escape_wiql(title)}'
              AND [System.AreaPath] = '{escape_wiql(area_path)}'
            ORDER BY [System.ChangedDate] DESC"""

        try:
            ids = self._query_ids(query)
            if not ids:
                return None

            if not constants.TITLE_MATCH_CASE_SENSITIVE:
                items = self._get_work_items(ids[:1])
                return items[0] if items else None

            for item in self._get_work_items(ids):
                if item.fields.get("System.Title") == title:
                    return item
            logger.debug("Found {} work item(s) matching '{}' only case-insensitively", len(ids), title)
            return None
        except requests.exceptions.RequestException as e:
            raise RemoteLookupError(f"Error searching for existing work item: {e}") from e

    def get_work_items_created_by_tool(self) -> List[AzureWorkItem]:
        """Return all work items in the project tagged with the tool tag, newest first."""
        query = f"""
            SELECT [System.Id], [System.Title], [System.WorkItemType], [System.State], [System.AreaPath], [System.Tags]
            FROM WorkItems
            WHERE [System.TeamProject] = '{escape_wiql(self.project)}'
              AND [System.Tags] CONTAINS '{escape_wiql(constants.TOOL_TAG)}'
            ORDER BY [System.Id] DESC"""

        try:
            ids = self._query_ids(query)
            return self._get_work_items(ids) if ids else []
        except requests.exceptions.RequestException as e:
            raise RemoteLookupError(f"Error listing work items: {e}") from e

    def _send_patch(self, method: str, url: str, patch_document: List[Dict[str, Any]], operation_name: str) -> AzureWorkItem:
        try:
            response = self.session.request(
                method,
                url,
                params=self._params(),
                json=patch_document,
                headers={"Content-Type": "application/json-patch+json"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise RemoteMutationError(f"{operation_name} failed: {e}") from e

        success, data = validate_api_response(response, operation_name)
        if not success:
            message = data["error"]
            remote_message = _extract_error_message(data.get("response", ""))
            if remote_message:
                message = f"{message}: {remote_message}"
            raise RemoteMutationError(message, data.get("status_code"), data.get("response", ""))

        return AzureWorkItem.from_azure_data(data)

    def create_work_item(self, work_item_type: str, fields: Dict[str, Any]) -> AzureWorkItem:
        """
        Create a work item, adding every field with an "add" operation.

        Raises:
            RemoteMutationError: If the service rejects the request.
        """
        url = self._project_url(f"wit/workitems/${quote(work_item_type, safe='')}")
        patch_document = build_patch_document(fields, "add")
        return self._send_patch("POST", url, patch_document, f"Create {work_item_type}")

    def update_work_item(self, work_item_id: int, fields: Dict[str, Any]) -> AzureWorkItem:
        """
        Update a work item, setting every field with a "replace" operation.

        Raises:
            RemoteMutationError: If the service rejects the request.
        """
        url = self._project_url(f"wit/workitems/{work_item_id}")
        patch_document = build_patch_document(fields, "replace")
        return self._send_patch("PATCH", url, patch_document, f"Update work item {work_item_id}")

    def get_area_paths(self) -> List[str]:
        """Return every area path below the project root, sorted."""
        try:
            response = self.session.get(
                self._project_url("wit/classificationnodes/areas"),
                params=self._params(**{"$depth": 100}),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise RemoteLookupError(f"Error fetching area paths: {e}") from e

        success, data = validate_api_response(response, "Get area paths")
        if not success:
            raise RemoteLookupError(data["error"])

        area_paths: List[str] = []
        _collect_area_paths(data, area_paths)
        return sorted(area_paths)


def _collect_area_paths(node: Dict[str, Any], area_paths: List[str], parent_path: str = "") -> None:
    current_path = f"{parent_path}\\{node.get('name', '')}" if parent_path else node.get("name", "")

    # The root node is the project itself
    if parent_path:
        area_paths.append(current_path)

    for child in node.get("children") or []:
        _collect_area_paths(child, area_paths, current_path)


def _extract_error_message(response_text: str) -> str:
    """Pull the "message" out of an Azure DevOps error body, if there is one."""
    if not response_text:
        return ""
    try:
        return str(json.loads(response_text).get("message", ""))
    except (ValueError, AttributeError):
        return response_text[:200]

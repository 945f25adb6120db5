"""
Shared pytest fixtures: an in-memory Azure DevOps stand-in and a loguru
message collector.
"""

import itertools
from typing import Any, Dict, List, Optional

import pytest
from loguru import logger

from exceptions import RemoteLookupError, RemoteMutationError
from models.azure_work_item import AzureWorkItem


class FakeAzureDevOps:
    """Work items of several projects, kept in memory."""

    def __init__(self):
        self.items: Dict[str, List[AzureWorkItem]] = {}
        self.sessions: List["FakeClient"] = []
        self.created: List[Dict[str, Any]] = []
        self.updated: List[Dict[str, Any]] = []
        self.fail_lookup = False
        self.lookup_exception: Optional[BaseException] = None
        self.fail_create_titles: set = set()
        self._ids = itertools.count(1)

    def add_item(self, project: str, fields: Dict[str, Any]) -> AzureWorkItem:
        item = AzureWorkItem(id=next(self._ids), fields=dict(fields))
        self.items.setdefault(project, []).append(item)
        return item

    def client_factory(self, project: str) -> "FakeClient":
        client = FakeClient(self, project)
        self.sessions.append(client)
        return client


class FakeClient:
    """Mimics the AzureDevOpsClient interface used by the executor."""

    def __init__(self, service: FakeAzureDevOps, project: str):
        self.service = service
        self.project = project
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.closed = True

    def find_existing_work_item(self, work_item_type: str, title: str, area_path: str) -> Optional[AzureWorkItem]:
        if self.service.lookup_exception is not None:
            raise self.service.lookup_exception
        if self.service.fail_lookup:
            raise RemoteLookupError("WIQL query failed. Status code: 500")
        matches = [
            item for item in self.service.items.get(self.project, [])
            if item.fields.get("System.WorkItemType") == work_item_type
            and item.fields.get("System.Title") == title
            and item.fields.get("System.AreaPath") == area_path
        ]
        # Most recently changed first
        return matches[-1] if matches else None

    def create_work_item(self, work_item_type: str, fields: Dict[str, Any]) -> AzureWorkItem:
        if fields.get("System.Title") in self.service.fail_create_titles:
            raise RemoteMutationError("Create failed. Status code: 400", 400)
        stored = dict(fields, **{"System.WorkItemType": work_item_type})
        item = self.service.add_item(self.project, stored)
        self.service.created.append({"project": self.project, "id": item.id, "fields": dict(fields)})
        return item

    def update_work_item(self, work_item_id: int, fields: Dict[str, Any]) -> AzureWorkItem:
        for item in self.service.items.get(self.project, []):
            if item.id == work_item_id:
                item.fields.update(fields)
                self.service.updated.append({"project": self.project, "id": item.id, "fields": dict(fields)})
                return item
        raise RemoteMutationError(f"Update work item {work_item_id} failed. Status code: 404", 404)

    def get_work_items_created_by_tool(self) -> List[AzureWorkItem]:
        return [i for i in reversed(self.service.items.get(self.project, [])) if i.has_tool_tag()]

    def get_area_paths(self) -> List[str]:
        return sorted({str(i.fields.get("System.AreaPath")) for i in self.service.items.get(self.project, [])})


@pytest.fixture
def fake_service():
    return FakeAzureDevOps()


@pytest.fixture
def log_messages():
    """Collect loguru messages as (level, message) tuples."""
    messages = []
    handler_id = logger.add(lambda m: messages.append((m.record["level"].name, m.record["message"])), level="DEBUG")
    yield messages
    logger.remove(handler_id)

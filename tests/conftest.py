"""
Root test configuration and fixtures for the import project.

Provides:
- A mock PocketBase factory for repository and API tests
- In-memory fakes of the store contracts for pipeline tests
- Small CSV builders shared across test modules

Note: sys.path manipulation is handled here to ensure imports work correctly.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any
from unittest.mock import Mock, patch

import pytest

# Add project root to path to allow imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fieldvisit.importer.core.errors import CollaboratorError  # noqa: E402
from fieldvisit.importer.core.models import DuplicateKey, MappedSubmission  # noqa: E402
from fieldvisit.importer.core.options import ImportOptions  # noqa: E402
from fieldvisit.importer.data.repositories.submission_repository import to_record  # noqa: E402
from fieldvisit.importer.orchestrator import ImportOrchestrator  # noqa: E402

REQUIRED_HEADER = "Terminal ID,Submitted On,Visit,Emp. code,approved"


def create_mock_pocketbase():
    """Create a mock PocketBase instance."""
    mock_pb = Mock()

    # Collection mock with chaining support
    mock_collection = Mock()
    mock_collection.auth_with_password = Mock(return_value=True)

    mock_list_response = Mock()
    mock_list_response.items = []
    mock_list_response.total_items = 0
    mock_list_response.total_pages = 1
    mock_list_response.page = 1
    mock_list_response.per_page = 30

    mock_collection.get_full_list = Mock(return_value=[])
    mock_collection.get_list = Mock(return_value=mock_list_response)
    mock_collection.get_one = Mock()
    mock_collection.get_first_list_item = Mock(side_effect=Exception("not found"))
    mock_collection.create = Mock(return_value=Mock(id="mock-id"))

    # Make collection callable to return itself for chaining
    mock_pb.collection = Mock(return_value=mock_collection)
    mock_pb.send = Mock(return_value={})

    mock_pb.auth_store = Mock()
    mock_pb.auth_store.base_token = "mock-token"

    return mock_pb


@pytest.fixture
def mock_pocketbase():
    """Create a mock PocketBase instance for tests that need it."""
    return create_mock_pocketbase()


@pytest.fixture(autouse=True)
def mock_all_external_services():
    """Automatically mock PocketBase so no test opens a real connection."""
    if os.environ.get("SKIP_MOCKING") == "true":
        yield {}
        return

    mock_pb = create_mock_pocketbase()
    with patch("pocketbase.PocketBase") as mock_pb_class:
        mock_pb_class.return_value = mock_pb
        yield {"pocketbase": mock_pb}


# =============================================================================
# In-memory store fakes
# =============================================================================


class FakeCodeLookup:
    """CodeLookup backed by a dict; records every chunk it is asked for."""

    def __init__(self, ids_by_code: dict[str, str] | None = None, error: Exception | None = None):
        self.ids_by_code = dict(ids_by_code or {})
        self.error = error
        self.calls: list[tuple[list[str], str]] = []

    def find_ids_by_codes(self, codes: list[str], org_id: str) -> dict[str, str]:
        self.calls.append((list(codes), org_id))
        if self.error is not None:
            raise self.error
        return {code: self.ids_by_code[code] for code in codes if code in self.ids_by_code}


class FakeSubmissionStore:
    """ExistingKeyLookup and SubmissionWriter over a list of stored records.

    ``fail_batches`` holds 1-based insert call numbers that are rejected.
    """

    def __init__(self, fail_batches: set[int] | None = None, reject_agent_ids: set[str] | None = None):
        self.records: list[dict[str, Any]] = []
        self.fail_batches = fail_batches or set()
        self.reject_agent_ids = reject_agent_ids or set()
        self.insert_calls: list[list[MappedSubmission]] = []
        self.seed_calls: list[tuple[str, list[str]]] = []
        self.seed_error: Exception | None = None

    def find_existing_keys(self, form_id: str, entity_ids: list[str]) -> list[DuplicateKey]:
        self.seed_calls.append((form_id, list(entity_ids)))
        if self.seed_error is not None:
            raise self.seed_error
        return [
            DuplicateKey.for_stored(r["agent_id"], r["cycle_number"], r["submitted_at"])
            for r in self.records
            if r["form_id"] == form_id and r["agent_id"] in entity_ids
        ]

    def insert_batch(self, form_id: str, submissions: list[MappedSubmission]) -> None:
        self.insert_calls.append(list(submissions))
        if len(self.insert_calls) in self.fail_batches:
            raise CollaboratorError("store unavailable")
        if any(s.entity_id in self.reject_agent_ids for s in submissions):
            raise CollaboratorError("agent_id: record is locked")
        self.records.extend(to_record(form_id, s) for s in submissions)


@pytest.fixture
def fake_store():
    return FakeSubmissionStore()


@pytest.fixture
def agent_lookup():
    return FakeCodeLookup({"T001": "E1", "T002": "E2", "T003": "E3"})


@pytest.fixture
def supervisor_lookup():
    return FakeCodeLookup({"SUP9": "U1", "SUP7": "U2"})


@pytest.fixture
def make_orchestrator(agent_lookup, supervisor_lookup, fake_store):
    """Build an orchestrator over the fakes; keyword args become ImportOptions."""

    def _make(**option_overrides: Any) -> ImportOrchestrator:
        return ImportOrchestrator(
            agent_lookup=agent_lookup,
            supervisor_lookup=supervisor_lookup,
            existing_lookup=fake_store,
            submission_writer=fake_store,
            options=ImportOptions(**option_overrides),
        )

    return _make


def build_csv(*rows: str, header: str = REQUIRED_HEADER) -> str:
    """Join a header and data lines into file text."""
    return "\n".join((header, *rows)) + "\n"


@pytest.fixture(name="build_csv")
def build_csv_fixture():
    return build_csv


@pytest.fixture
def store_factory():
    """FakeSubmissionStore class, for tests that configure failures."""
    return FakeSubmissionStore


@pytest.fixture
def orchestrator_for(agent_lookup, supervisor_lookup):
    """Build an orchestrator over a given store; keyword args become ImportOptions."""

    def _make(store: Any, **option_overrides: Any) -> ImportOrchestrator:
        options = ImportOptions(**option_overrides)
        return ImportOrchestrator(agent_lookup, supervisor_lookup, store, store, options=options)

    return _make

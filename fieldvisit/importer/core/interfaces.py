"""Protocols for the backing-store collaborators.

The pipeline depends only on these contracts; the PocketBase repositories in
``data.repositories`` implement them and tests substitute in-memory fakes.
Implementations are synchronous and raise CollaboratorError on failure; the
pipeline runs them off the event loop."""

from __future__ import annotations

from typing import Protocol

from .models import DuplicateKey, MappedSubmission


class CodeLookup(Protocol):
    """Resolve external codes to internal ids within a tenant"""

    def find_ids_by_codes(self, codes: list[str], org_id: str) -> dict[str, str]:
        """Return code -> id for every code that exists; unknown codes are absent"""
        ...


class ExistingKeyLookup(Protocol):
    """Report visits already on record for a form"""

    def find_existing_keys(self, form_id: str, entity_ids: list[str]) -> list[DuplicateKey]:
        """Return the duplicate keys of stored submissions for these entities"""
        ...


class SubmissionWriter(Protocol):
    """Persist submissions as one batched write"""

    def insert_batch(self, form_id: str, submissions: list[MappedSubmission]) -> None:
        """Insert all submissions or raise CollaboratorError for the batch"""
        ...

"""PocketBase repositories implementing the importer's collaborator contracts."""

from __future__ import annotations

from .code_lookup_repository import CodeLookupRepository, CustomerRepository, SupervisorRepository
from .errors import as_collaborator_error, describe_store_error
from .submission_repository import SubmissionRepository, to_record

__all__ = [
    "CodeLookupRepository",
    "CustomerRepository",
    "SubmissionRepository",
    "SupervisorRepository",
    "as_collaborator_error",
    "describe_store_error",
    "to_record",
]

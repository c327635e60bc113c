"""Code -> id lookups for tenant-scoped collections.

Customers (agents/terminals) and users (supervisors) are both looked up by a
unique code column within an organisation; only the collection and column
differ.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fieldvisit.logging_config import TRACE

from ...core.constants import CUSTOMERS_COLLECTION, USERS_COLLECTION
from ..filters import any_of, equals
from .errors import as_collaborator_error

if TYPE_CHECKING:
    from pocketbase import PocketBase

logger = logging.getLogger(__name__)


class CodeLookupRepository:
    """Resolve codes in one collection to record ids."""

    collection_name: str = ""
    code_field: str = ""

    def __init__(self, pb_client: PocketBase) -> None:
        """Initialize repository with PocketBase client.

        Args:
            pb_client: Authenticated PocketBase client
        """
        self.pb = pb_client

    def find_ids_by_codes(self, codes: list[str], org_id: str) -> dict[str, str]:
        """Look up one chunk of codes.

        Args:
            codes: Distinct codes to resolve (callers chunk large sets)
            org_id: Owning organisation

        Returns:
            code -> record id for codes that exist; unknown codes are absent

        Raises:
            CollaboratorError: If PocketBase rejects or fails the query
        """
        if not codes:
            return {}

        filter_str = f"{equals('org_id', org_id)} && {any_of(self.code_field, codes)}"
        logger.log(TRACE, f"Looking up {len(codes)} codes in {self.collection_name}")

        try:
            records = self.pb.collection(self.collection_name).get_full_list(
                batch=500,
                query_params={"filter": filter_str, "fields": f"id,{self.code_field}"},
            )
        except Exception as e:
            raise as_collaborator_error(e, f"Lookup in {self.collection_name} failed") from e

        found: dict[str, str] = {}
        for record in records:
            code = getattr(record, self.code_field, None)
            if code:
                found[str(code)] = record.id
        return found


class CustomerRepository(CodeLookupRepository):
    """Agents/terminals, keyed by customer_code."""

    collection_name = CUSTOMERS_COLLECTION
    code_field = "customer_code"


class SupervisorRepository(CodeLookupRepository):
    """Supervisor users, keyed by supervisor_code."""

    collection_name = USERS_COLLECTION
    code_field = "supervisor_code"

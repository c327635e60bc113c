"""EntityResolver - Resolves agent and supervisor codes to ids once per run.

Codes are collected from the whole file, de-duplicated and looked up in
chunks so no single filter grows beyond what the store accepts. The result is
an immutable EntityCache; codes that do not exist are simply absent and are
reported per row later.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from types import MappingProxyType

from ..core.constants import COLUMN_ENTITY_CODE, COLUMN_SUPERVISOR_CODE
from ..core.interfaces import CodeLookup
from ..core.models import EntityCache, RawRow
from ..data.store_calls import call_store

logger = logging.getLogger(__name__)


def distinct_codes(rows: Iterable[RawRow], column: str) -> list[str]:
    """Non-blank values of a column in first-seen order, without repeats."""
    seen: dict[str, None] = {}
    for row in rows:
        code = row.get(column, "")
        if code:
            seen.setdefault(code, None)
    return list(seen)


def chunked(values: list[str], size: int) -> list[list[str]]:
    return [values[i : i + size] for i in range(0, len(values), size)]


class EntityResolver:
    """Builds the per-run code -> id cache"""

    def __init__(
        self,
        agent_lookup: CodeLookup,
        supervisor_lookup: CodeLookup,
        chunk_size: int = 50,
        timeout: float = 30.0,
    ):
        """Initialize the resolver.

        Args:
            agent_lookup: Resolves agent/terminal codes
            supervisor_lookup: Resolves supervisor codes
            chunk_size: Codes per lookup query
            timeout: Seconds allowed per lookup query
        """
        self.agent_lookup = agent_lookup
        self.supervisor_lookup = supervisor_lookup
        self.chunk_size = chunk_size
        self.timeout = timeout

    async def resolve(self, rows: list[RawRow], org_id: str) -> EntityCache:
        """Resolve every agent and supervisor code referenced by the rows.

        Raises:
            CollaboratorError: If any lookup chunk fails or times out
        """
        agent_codes = distinct_codes(rows, COLUMN_ENTITY_CODE)
        supervisor_codes = distinct_codes(rows, COLUMN_SUPERVISOR_CODE)

        agents = await self._resolve_codes(self.agent_lookup, agent_codes, org_id, "Agent lookup")
        supervisors = await self._resolve_codes(self.supervisor_lookup, supervisor_codes, org_id, "Supervisor lookup")

        logger.info(
            f"Resolved {len(agents)}/{len(agent_codes)} agent codes and "
            f"{len(supervisors)}/{len(supervisor_codes)} supervisor codes"
        )
        return EntityCache(agents=MappingProxyType(agents), supervisors=MappingProxyType(supervisors))

    async def _resolve_codes(self, lookup: CodeLookup, codes: list[str], org_id: str, operation: str) -> dict[str, str]:
        resolved: dict[str, str] = {}
        for chunk in chunked(codes, self.chunk_size):
            found = await call_store(
                lookup.find_ids_by_codes, chunk, org_id, timeout=self.timeout, operation=operation
            )
            resolved.update(found)
        return resolved

"""DuplicateDetector - Tracks which visits are already on record.

Seeded once from the store, then grows as rows are accepted so that a second
row for the same visit within the same file is also skipped.
"""

from __future__ import annotations

import logging

from ..core.interfaces import ExistingKeyLookup
from ..core.models import DuplicateKey
from ..data.store_calls import call_store
from ..resolution.entity_resolver import chunked

logger = logging.getLogger(__name__)


class DuplicateDetector:
    """Set of (entity, cycle, month) keys seen so far in this run"""

    def __init__(self, existing_lookup: ExistingKeyLookup, chunk_size: int = 50, timeout: float = 30.0):
        self.existing_lookup = existing_lookup
        self.chunk_size = chunk_size
        self.timeout = timeout
        self._seen: set[DuplicateKey] = set()

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, key: object) -> bool:
        return key in self._seen

    async def seed(self, form_id: str, entity_ids: list[str]) -> int:
        """Load keys of stored submissions for the given entities.

        Returns:
            Number of distinct stored keys loaded

        Raises:
            CollaboratorError: If any lookup chunk fails or times out
        """
        for chunk in chunked(sorted(set(entity_ids)), self.chunk_size):
            keys = await call_store(
                self.existing_lookup.find_existing_keys,
                form_id,
                chunk,
                timeout=self.timeout,
                operation="Existing submission lookup",
            )
            self._seen.update(keys)

        logger.info(f"Loaded {len(self._seen)} existing submission keys for {len(entity_ids)} agents")
        return len(self._seen)

    def check_and_add(self, key: DuplicateKey) -> bool:
        """Return True if the key was already seen; otherwise remember it."""
        if key in self._seen:
            return True
        self._seen.add(key)
        return False

"""RunContext - State owned by a single import run.

Everything a run mutates (the resolved entity cache, the running result,
the lifecycle state) lives here and is passed explicitly from stage to
stage. A new run always starts from a fresh context.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from .cancellation import CancellationToken
from .models import EntityCache, ImportResult
from .options import ImportOptions

logger = logging.getLogger(__name__)


class RunState(Enum):
    """Lifecycle of an import run"""

    IDLE = "idle"
    PARSING = "parsing"
    VALIDATING = "validating"
    WRITING = "writing"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


_TERMINAL_STATES = {RunState.COMPLETE, RunState.FAILED, RunState.CANCELLED}

_ALLOWED_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.IDLE: {RunState.PARSING},
    RunState.PARSING: {RunState.VALIDATING, RunState.FAILED},
    RunState.VALIDATING: {RunState.WRITING, RunState.FAILED, RunState.CANCELLED},
    RunState.WRITING: {RunState.COMPLETE, RunState.FAILED, RunState.CANCELLED},
}


@dataclass
class RunContext:
    """Mutable state of one run.

    Attributes:
        org_id: Tenant that owns the entities being resolved
        options: Tunables for this run
        cancellation: Token checked between batches
        result: Running result, returned to the caller at the end
        entities: Code -> id maps, replaced once after resolution
        started_at: Fallback submission time for rows without a usable timestamp
        state: Current lifecycle state
    """

    org_id: str
    options: ImportOptions
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    result: ImportResult = field(default_factory=ImportResult)
    entities: EntityCache = field(default_factory=EntityCache)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    state: RunState = RunState.IDLE

    def advance(self, new_state: RunState) -> None:
        """Move to the next lifecycle state.

        Raises:
            RuntimeError: If the transition is not allowed (runs are not reentrant)
        """
        if new_state not in _ALLOWED_TRANSITIONS.get(self.state, set()):
            raise RuntimeError(f"Invalid import run transition {self.state.value} -> {new_state.value}")
        logger.debug(f"Import run {self.state.value} -> {new_state.value}")
        self.state = new_state

    @property
    def is_finished(self) -> bool:
        return self.state in _TERMINAL_STATES

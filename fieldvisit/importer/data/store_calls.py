"""Run blocking repository calls off the event loop with a timeout."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

from ..core.errors import CollaboratorError, CollaboratorTimeoutError

T = TypeVar("T")


async def call_store(func: Callable[..., T], *args: Any, timeout: float, operation: str) -> T:
    """Await a synchronous store call in a worker thread.

    Args:
        func: Repository method (blocking PocketBase SDK call)
        *args: Positional arguments for func
        timeout: Seconds before the call is abandoned
        operation: Short description used in error messages

    Raises:
        CollaboratorTimeoutError: If the call does not finish within timeout
        CollaboratorError: If the call fails with anything else
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=timeout)
    except TimeoutError as e:
        raise CollaboratorTimeoutError(f"{operation} timed out after {timeout:g}s") from e
    except CollaboratorError:
        raise
    except Exception as e:
        raise CollaboratorError(f"{operation} failed: {e}") from e

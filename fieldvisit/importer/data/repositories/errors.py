"""Translate PocketBase SDK failures into collaborator errors."""

from __future__ import annotations

from typing import Any

from pocketbase.client import ClientResponseError  # type: ignore[attr-defined]

from ...core.errors import CollaboratorError


def describe_store_error(error: Exception) -> str:
    """Readable reason for a failed PocketBase call.

    ClientResponseError carries the server's JSON body in ``data``; its
    ``message`` (and the first field-level message, if any) is what staff
    need to see in the error log.
    """
    if isinstance(error, ClientResponseError):
        data: Any = getattr(error, "data", None) or {}
        status = getattr(error, "status", None)
        message = data.get("message") if isinstance(data, dict) else None
        details = data.get("data") if isinstance(data, dict) else None
        if isinstance(details, dict) and details:
            field_name, field_error = next(iter(details.items()))
            if isinstance(field_error, dict) and field_error.get("message"):
                message = f"{message or 'Invalid data'} ({field_name}: {field_error['message']})"
        if message:
            return f"{message} [HTTP {status}]" if status else message
    return str(error) or error.__class__.__name__


def as_collaborator_error(error: Exception, action: str | None = None) -> CollaboratorError:
    """Wrap an SDK exception, keeping the original as the cause."""
    reason = describe_store_error(error)
    collaborator_error = CollaboratorError(f"{action}: {reason}" if action else reason)
    collaborator_error.__cause__ = error
    return collaborator_error

"""
Logging setup for import scripts.

Scripts log through fieldvisit.logging_config with an "import/<layer>" source.
"""

from __future__ import annotations

import inspect
import logging

from fieldvisit.logging_config import configure_logging


def setup_logging(
    layer_name: str | None = None,
    level: int | None = None,
    debug_override: bool | None = None,
) -> logging.Logger:
    """
    Set up logging for an import script.

    Args:
        layer_name: Name of the import layer (e.g., 'submissions')
        level: Explicit logging level (defaults to LOG_LEVEL, then INFO)
        debug_override: Force debug logging when no explicit level is given

    Returns:
        Logger for the calling module
    """
    source = f"import/{layer_name}" if layer_name else "import"
    configure_logging(source=source, level=level, debug=debug_override)

    frame = inspect.stack()[1]
    module = inspect.getmodule(frame[0])
    logger_name = module.__name__ if module else "import"

    return logging.getLogger(logger_name)

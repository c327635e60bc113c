#!/usr/bin/env python3
"""
Import historical supervision visit submissions from a CSV export.

Usage:
    python scripts/import/import_form_submissions.py visits.csv --org-id ORG_ID
    python scripts/import/import_form_submissions.py visits.csv --org-id ORG_ID --preview
    python scripts/import/import_form_submissions.py visits.csv --org-id ORG_ID --batch-size 50 --errors-out errors.csv

The error log is written next to the input file (``<name>.errors.csv``)
unless --errors-out is given. Ctrl+C stops the import after the current batch.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import signal
import sys
from dataclasses import asdict
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from fieldvisit.config import ConfigError, ConfigLoader  # noqa: E402
from fieldvisit.importer import (  # noqa: E402
    CancellationToken,
    CollaboratorError,
    ImportOptions,
    ImportOrchestrator,
    ProgressUpdate,
    build_preview,
    errors_to_csv,
)
from fieldvisit.importer.data import ConnectionConfig, connect, fit_to_batch_api, read_batch_settings  # noqa: E402
from fieldvisit.importer.import_logging import setup_logging  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import supervision visit submissions from a CSV export")
    parser.add_argument("csv_path", type=Path, help="CSV file exported from the survey tool")
    parser.add_argument("--org-id", required=True, help="Organisation that owns the agents and supervisors")
    parser.add_argument("--form-id", help="Form to import into (defaults to configured import.form_id)")
    parser.add_argument("--batch-size", type=int, help="Rows per batch insert (defaults to import.batch_size)")
    parser.add_argument("--preview", action="store_true", help="Show how the first rows map, then exit")
    parser.add_argument("--errors-out", type=Path, help="Where to write the error log CSV")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def default_errors_path(csv_path: Path) -> Path:
    return csv_path.with_name(f"{csv_path.stem}.errors.csv")


def main(argv: list[str] | None = None) -> int:
    """Run the import; exit code 0 on success, 1 on failure or cancellation."""
    load_dotenv()
    args = build_parser().parse_args(argv)
    logger = setup_logging("submissions", debug_override=args.debug or None)

    try:
        csv_text = args.csv_path.read_text(encoding="utf-8-sig")
    except OSError as e:
        logger.error(f"Could not read {args.csv_path}: {e}")
        return 1

    connection = ConnectionConfig.from_env()

    if args.preview:
        loader = ConfigLoader()
        if connection.has_credentials:
            try:
                loader = ConfigLoader(connect(connection))
            except CollaboratorError as e:
                logger.warning(f"Previewing with environment config only: {e}")
        try:
            options = ImportOptions.from_config(loader, form_id=args.form_id, batch_size=args.batch_size)
        except ConfigError as e:
            logger.error(f"Invalid import options: {e}")
            return 1
        preview = build_preview(csv_text, options)
        if not preview.headers:
            logger.error("CSV file is empty")
            return 1
        logger.info(f"Headers: {', '.join(preview.headers)}")
        if preview.unmapped_columns:
            logger.info(f"Ignored columns: {', '.join(preview.unmapped_columns)}")
        for row in preview.mapped_rows:
            print(json.dumps(asdict(row), ensure_ascii=False, indent=2))
        return 0

    try:
        pb = connect(connection)
        options = ImportOptions.from_config(ConfigLoader(pb), form_id=args.form_id, batch_size=args.batch_size)
        options = fit_to_batch_api(options, read_batch_settings(pb))
    except ConfigError as e:
        logger.error(f"Invalid import options: {e}")
        return 1
    except CollaboratorError as e:
        logger.error(f"Cannot import: {e}")
        return 1

    cancellation = CancellationToken()

    def on_progress(update: ProgressUpdate) -> None:
        logger.info(f"[{update.progress:3d}%] {update.message}")

    async def run() -> int:
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, cancellation.cancel, "Interrupted")
        except NotImplementedError:
            logger.debug("Signal handlers unavailable; Ctrl+C will abort immediately")

        orchestrator = ImportOrchestrator.from_pocketbase(pb, options)
        result = await orchestrator.run(csv_text, args.org_id, on_progress=on_progress, cancellation=cancellation)

        logger.info(
            f"Rows: {result.total_rows}, imported: {result.success_count}, "
            f"errors: {result.error_count}, skipped: {result.skipped_count}"
        )
        if result.errors:
            errors_path = args.errors_out or default_errors_path(args.csv_path)
            errors_path.write_text(errors_to_csv(result.errors), encoding="utf-8")
            logger.warning(f"Wrote {len(result.errors)} error entries to {errors_path}")

        return 0 if result.success else 1

    return asyncio.run(run())


if __name__ == "__main__":
    sys.exit(main())

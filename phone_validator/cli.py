"""Command line interface for importing, confirming, and validating contacts."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import ConfigurationError, load_configuration
from .factory import build_enricher, build_validator
from .ingestion import export_customers, load_import_rows, load_review, write_review
from .orchestrator import ImportPipeline
from .store import SpreadsheetContactStore

LOGGER = logging.getLogger(__name__)


def build_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Normalize, enrich, and validate customer phone numbers",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="Normalize rows and fetch phone suggestions for review")
    import_parser.add_argument("input", help="Path to the input spreadsheet (CSV or XLSX)")
    import_parser.add_argument("output", help="Path where the review spreadsheet should be written")
    import_parser.add_argument("--config", help="Path to the configuration file (YAML or JSON)")

    confirm_parser = subparsers.add_parser("confirm", help="Write reviewed rows to the contact store")
    confirm_parser.add_argument("review", help="Path to the reviewed spreadsheet")
    confirm_parser.add_argument("--store", required=True, help="Contact store spreadsheet")
    confirm_parser.add_argument("--destination", help="Spreadsheet receiving the writes (defaults to --store)")

    validate_parser = subparsers.add_parser("validate", help="Validate stored phone numbers in bulk")
    validate_parser.add_argument("store", help="Contact store spreadsheet")
    validate_parser.add_argument("--config", help="Path to the configuration file (YAML or JSON)")
    validate_parser.add_argument("--destination", help="Spreadsheet receiving the writes (defaults to the store)")
    validate_parser.add_argument(
        "--ids",
        nargs="*",
        default=None,
        help="Only validate these record ids (e.g. customer-5)",
    )
    validate_parser.add_argument("--export", help="Also export the validated customers to this file")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _run_import(args: argparse.Namespace) -> int:
    config = load_configuration(args.config)
    records = load_import_rows(args.input)
    pipeline = ImportPipeline(build_enricher(config))
    rows, summary = pipeline.prepare(records)
    write_review(args.output, rows)
    LOGGER.info(
        "Processed %d rows: %d valid, %d need enrichment, %d with suggestions",
        summary.total,
        summary.valid,
        summary.needs_enrichment,
        summary.with_suggestions,
    )
    LOGGER.info("Review file written to %s", Path(args.output).resolve())
    return 0


def _run_confirm(args: argparse.Namespace) -> int:
    rows = load_review(args.review)
    store = SpreadsheetContactStore(args.store, args.destination)
    pipeline = ImportPipeline(store=store)
    imported = pipeline.confirm(rows)
    LOGGER.info("Successfully imported %d customers into %s", imported, store.destination.resolve())
    return 0


def _run_validate(args: argparse.Namespace) -> int:
    config = load_configuration(args.config)
    store = SpreadsheetContactStore(args.store, args.destination)
    validator = build_validator(config, store)
    report = validator.validate_stored(args.ids)
    summary = report.summary
    LOGGER.info(
        "Bulk validation completed: total=%d processed=%d successful=%d valid=%d invalid=%d errors=%d",
        summary.total,
        summary.processed,
        summary.successful,
        summary.valid,
        summary.invalid,
        summary.errors,
    )
    if report.deferred_ids:
        LOGGER.warning(
            "%d records were not validated in this run; rerun with --ids %s",
            len(report.deferred_ids),
            " ".join(report.deferred_ids),
        )
    if args.export:
        lookups = {
            outcome.record.client_id: outcome.lookup
            for outcome in report.results
            if outcome.success and outcome.record is not None and outcome.lookup is not None
        }
        export_customers(args.export, report.updated_records, lookups)
        LOGGER.info("Exported validated customers to %s", Path(args.export).resolve())
    return 0


_COMMANDS = {
    "import": _run_import,
    "confirm": _run_confirm,
    "validate": _run_validate,
}


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    try:
        return _COMMANDS[args.command](args)
    except ConfigurationError as exc:
        LOGGER.error("%s", exc)
        return 2


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())

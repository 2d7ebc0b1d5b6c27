"""
dumpload/cli.py

Command-line entry point for dump ingestion.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import signal

from dumpload.config import get_dump_ingestion_settings
from dumpload.connectors.dump_archive import ArchiveFetchError
from dumpload.logging_utils import configure_logging
from dumpload.resources import load_resource_configs
from dumpload.schemas.run_summary import build_run_summary_response
from dumpload.services.dump_pipeline import DumpIngestionPipeline

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Stream CSV dump files into destination tables.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--archive-url",
        dest="archive_url",
        default=None,
        help="Download the .tar.gz dump from this URL. Defaults to DUMP_DOWNLOAD_URL.",
    )
    source.add_argument(
        "--archive-path",
        dest="archive_path",
        default=None,
        help="Extract a local .tar.gz dump instead of downloading one.",
    )
    source.add_argument(
        "--extracted-dir",
        dest="extracted_dir",
        default=None,
        help="Read CSV files from an already extracted dump directory.",
    )
    parser.add_argument(
        "--batch-capacity",
        dest="batch_capacity",
        type=int,
        default=None,
        help="Rows per committed batch. Defaults to DUMP_INGEST_BATCH_CAPACITY or 100.",
    )
    parser.add_argument(
        "--resources-file",
        dest="resources_file",
        default=None,
        help="JSON file listing resources and their CSV locators, in load order.",
    )
    parser.add_argument(
        "--failure-log",
        dest="failure_log",
        default=None,
        help="Append-only log for rows of failed batches. Defaults to failed_rows.log.",
    )
    parser.add_argument(
        "--database-url",
        dest="database_url",
        default=None,
        help="Destination database URL. Defaults to the resolved environment URL.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_dump_ingestion_settings()
    configure_logging(settings.log_level)

    overrides: dict[str, object] = {}
    if args.batch_capacity is not None:
        if args.batch_capacity < 1:
            logger.error("--batch-capacity must be a positive integer.")
            return 2
        overrides["batch_capacity"] = args.batch_capacity
    if args.failure_log:
        overrides["failure_log_path"] = args.failure_log
    if args.resources_file:
        overrides["resources_path"] = args.resources_file
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    try:
        resources = load_resource_configs(settings.resources_path)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Cannot load resources config: %s", exc)
        return 2

    pipeline = DumpIngestionPipeline(
        settings=settings,
        resources=resources,
        database_url=args.database_url,
        archive_url=args.archive_url,
        archive_path=args.archive_path,
        extracted_dir=args.extracted_dir,
    )
    previous_handler = signal.signal(signal.SIGINT, lambda _signum, _frame: pipeline.request_stop())
    try:
        summary = pipeline.run()
    except (ArchiveFetchError, ValueError) as exc:
        logger.error("Dump ingestion could not start: %s", exc)
        return 2
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    payload = build_run_summary_response(summary)
    print(json.dumps(payload.model_dump(mode="json"), indent=2))
    return 0 if summary.all_completed else 1


if __name__ == "__main__":
    raise SystemExit(main())

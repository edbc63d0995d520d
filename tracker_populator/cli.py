"""CLI entrypoint for the DHIS2 tracker populator."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from tracker_populator.common.config_loader import load_settings
from tracker_populator.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from tracker_populator.common.errors import PipelineError
from tracker_populator.common.http import HttpClient, RetryConfig, TimeoutConfig
from tracker_populator.common.logging import AuditListener, build_logger, log_event
from tracker_populator.common.models import PopulatorSettings
from tracker_populator.common.time_utils import generate_run_id
from tracker_populator.populate.pipeline import RecordPipeline
from tracker_populator.source.reports import run_status, write_run_summary
from tracker_populator.source.runner import run_populator


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", default=None)
    parser.add_argument("--overlay-config", default=None)
    parser.add_argument("--url", default=None)
    parser.add_argument("--tracked-entity-id", default=None)
    parser.add_argument("--program-id", default=None)
    parser.add_argument("--stage-id", default=None)
    parser.add_argument("--duplicate-threshold", type=int, default=None)
    parser.add_argument("--csv-path", default=None)
    parser.add_argument("--done-path", default=None)
    parser.add_argument("--fail-path", default=None)
    parser.add_argument("--log-dir", default="./logs")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--run-id", default=None)
    return parser.parse_args(argv)


def _overrides(args: argparse.Namespace) -> dict:
    return {
        "url": args.url,
        "tracked_entity_id": args.tracked_entity_id,
        "program_id": args.program_id,
        "stage_id": args.stage_id,
        "duplicate_threshold": args.duplicate_threshold,
        "csv_path": args.csv_path,
        "done_path": args.done_path,
        "fail_path": args.fail_path,
    }


def build_client(settings: PopulatorSettings) -> HttpClient:
    return HttpClient(
        settings.url,
        username=settings.username,
        password=settings.password,
        timeout=TimeoutConfig(**settings.timeout),
        retry=RetryConfig(**settings.retry),
    )


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    log_dir = Path(args.log_dir)
    logger = build_logger(run_id, log_dir=log_dir, level=args.log_level)

    settings = load_settings(
        Path(args.config) if args.config else None,
        overlay_path=Path(args.overlay_config) if args.overlay_config else None,
        overrides=_overrides(args),
    )
    log_event(
        logger,
        f"populating {settings.url} (duplicate check {'on' if settings.duplicate_check_enabled else 'off'})",
        run_id=run_id,
        stage="populate",
        event="RUN_START",
        status="ok",
    )

    audit = AuditListener(logger, run_id)
    with build_client(settings) as client:
        pipeline = RecordPipeline(client, settings, listener=audit)
        results = run_populator(settings, pipeline.process, logger=logger, run_id=run_id, audit=audit)

    summary_path = write_run_summary(log_dir, run_id, results)
    partial = run_status(results) == "partial"
    log_event(
        logger,
        f"run complete, summary at {summary_path}",
        run_id=run_id,
        stage="populate",
        event="RUN_END",
        status="partial" if partial else "ok",
    )
    if partial:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError as exc:
        print(f"{exc.error_code}: {exc}", file=sys.stderr)
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())

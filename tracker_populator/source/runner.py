"""Feeds CSV files through the record queue and files away the outcome."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from tracker_populator.common.constants import ERROR_COLUMN
from tracker_populator.common.errors import PipelineError, SourceError
from tracker_populator.common.fs import ensure_dir, write_csv
from tracker_populator.common.logging import AuditListener, log_event
from tracker_populator.common.models import PopulatorSettings, Record
from tracker_populator.populate.row_queue import RowQueue
from tracker_populator.source.csv_source import read_records


def _error_code(error: BaseException) -> str:
    if isinstance(error, PipelineError):
        return error.error_code
    return "UNEXPECTED_ERROR"


def process_file(
    path: Path,
    row_queue: RowQueue,
    *,
    done_dir: Path,
    fail_dir: Path,
    logger: logging.Logger,
    run_id: str,
    audit: AuditListener | None = None,
) -> dict[str, Any]:
    header, pairs = read_records(path)
    if audit is not None:
        audit.file = path.name
    outcomes: list[BaseException | None] = [None] * len(pairs)

    def _on_complete(index: int, record: Record) -> Callable[[BaseException | None, Any], None]:
        def _callback(error: BaseException | None, result: Any) -> None:
            outcomes[index] = error
            if error is None:
                log_event(
                    logger,
                    "record done",
                    run_id=run_id,
                    file=path.name,
                    line=record.line,
                    event="RECORD_DONE",
                    status="ok",
                    entity=result,
                )
                return
            log_event(
                logger,
                f"record failed: {error}",
                level=logging.WARNING,
                run_id=run_id,
                file=path.name,
                line=record.line,
                event="RECORD_FAIL",
                status="error",
                error_code=_error_code(error),
            )

        return _callback

    for index, (_row, record) in enumerate(pairs):
        row_queue.push(record, _on_complete(index, record))
    row_queue.wait_drained()

    done_rows = [row for (row, _record), error in zip(pairs, outcomes) if error is None]
    fail_rows = [
        {**row, ERROR_COLUMN: str(error)}
        for (row, _record), error in zip(pairs, outcomes)
        if error is not None
    ]
    if done_rows:
        write_csv(done_dir / path.name, header, done_rows)
    if fail_rows:
        write_csv(fail_dir / path.name, [*header, ERROR_COLUMN], fail_rows)
    path.unlink()

    return {"file": path.name, "rows": len(pairs), "succeeded": len(done_rows), "failed": len(fail_rows)}


def _reject_file(path: Path, error: SourceError, *, fail_dir: Path, logger: logging.Logger, run_id: str) -> dict[str, Any]:
    """Moves an unreadable file to ``fail_dir`` as it was."""
    ensure_dir(fail_dir)
    path.replace(fail_dir / path.name)
    log_event(
        logger,
        f"file rejected: {error}",
        level=logging.WARNING,
        run_id=run_id,
        stage="source",
        file=path.name,
        event="FILE_FAIL",
        status="error",
        error_code=error.error_code,
    )
    return {"file": path.name, "rows": 0, "succeeded": 0, "failed": 0, "error": str(error)}


def run_populator(
    settings: PopulatorSettings,
    handler: Callable[[Record], Any],
    *,
    logger: logging.Logger,
    run_id: str,
    audit: AuditListener | None = None,
) -> list[dict[str, Any]]:
    csv_dir = Path(settings.csv_path)
    if not csv_dir.is_dir():
        raise SourceError(f"CSV directory not found: {csv_dir}")
    done_dir = Path(settings.done_path)
    fail_dir = Path(settings.fail_path)

    results: list[dict[str, Any]] = []
    with RowQueue(handler, maxsize=settings.queue_size, logger=logger) as row_queue:
        for path in sorted(csv_dir.glob("*.csv")):
            log_event(logger, "file start", run_id=run_id, stage="source", file=path.name, event="FILE_START", status="ok")
            try:
                result = process_file(
                    path,
                    row_queue,
                    done_dir=done_dir,
                    fail_dir=fail_dir,
                    logger=logger,
                    run_id=run_id,
                    audit=audit,
                )
            except SourceError as exc:
                results.append(_reject_file(path, exc, fail_dir=fail_dir, logger=logger, run_id=run_id))
                continue
            log_event(
                logger,
                f"file end: {result['succeeded']} succeeded, {result['failed']} failed",
                run_id=run_id,
                stage="source",
                file=path.name,
                event="FILE_END",
                status="ok" if result["failed"] == 0 else "partial",
            )
            results.append(result)
    return results

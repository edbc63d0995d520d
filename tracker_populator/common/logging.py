"""JSON-lines logging for runs and the per-request audit trail."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from tracker_populator.common.constants import JSON_LOG_FIELDS
from tracker_populator.common.fs import ensure_dir
from tracker_populator.common.time_utils import utc_timestamp_iso


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {"timestamp": utc_timestamp_iso(), "level": record.levelname}
        for field in JSON_LOG_FIELDS:
            if field in ("timestamp", "message"):
                continue
            payload[field] = getattr(record, field, None)
        request = getattr(record, "request", None)
        if request is not None:
            payload["request"] = request
        response = getattr(record, "response", None)
        if response is not None:
            payload["response"] = response
        payload["message"] = record.getMessage()
        return json.dumps(payload, ensure_ascii=False, default=str)


def build_logger(run_id: str, log_dir: Path | None, level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(f"tracker_populator.{run_id}")
    logger.setLevel(level.upper())
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.propagate = False

    stream = logging.StreamHandler()
    stream.setFormatter(JsonLineFormatter())
    logger.addHandler(stream)

    if log_dir is not None:
        log_path = log_dir / f"{run_id}.log.jsonl"
        ensure_dir(log_path.parent)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(JsonLineFormatter())
        logger.addHandler(file_handler)

    return logger


def log_event(logger: logging.Logger, message: str, *, level: int = logging.INFO, **event_fields: Any) -> None:
    logger.log(level, message, extra=event_fields)


class AuditListener:
    """Turns pipeline notifications into log lines.

    Step events are logged at DEBUG, response details at INFO so the audit
    trail survives the default level.
    """

    def __init__(self, logger: logging.Logger, run_id: str) -> None:
        self.logger = logger
        self.run_id = run_id
        self.file: str | None = None
        self.line: int | None = None

    def __call__(self, event: str, **fields: Any) -> None:
        if event == "process_record":
            self.line = fields.get("line")
            log_event(self.logger, "processing record", **self._context(event))
            return

        if event.endswith("_response"):
            request = fields.get("request")
            log_event(
                self.logger,
                f"{event[: -len('_response')]} answered {fields.get('status_code')}",
                **self._context(event),
                status_code=fields.get("status_code"),
                method=getattr(request, "method", None),
                path=getattr(request, "path", None),
                request=request.to_dict() if request is not None else None,
                response=fields.get("response"),
            )
            return

        log_event(self.logger, event.replace("_", " "), level=logging.DEBUG, **{**fields, **self._context(event)})

    def _context(self, event: str) -> dict[str, Any]:
        return {"run_id": self.run_id, "stage": "populate", "file": self.file, "line": self.line, "event": event}

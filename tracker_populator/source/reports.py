"""Run report aggregation."""

from __future__ import annotations

from pathlib import Path

from tracker_populator.common.fs import write_json


def run_status(files: list[dict]) -> str:
    if any(result.get("failed") or result.get("error") for result in files):
        return "partial"
    return "success"


def write_run_summary(log_dir: Path, run_id: str, files: list[dict]) -> Path:
    totals = {"files": len(files), "rejected_files": 0, "rows": 0, "succeeded": 0, "failed": 0}
    for result in files:
        if result.get("error"):
            totals["rejected_files"] += 1
        totals["rows"] += int(result.get("rows", 0))
        totals["succeeded"] += int(result.get("succeeded", 0))
        totals["failed"] += int(result.get("failed", 0))

    summary_path = log_dir / f"{run_id}.summary.json"
    write_json(
        summary_path,
        {
            "run_id": run_id,
            "status": run_status(files),
            "totals": totals,
            "files": files,
        },
    )
    return summary_path

import json
from pathlib import Path

import pytest

from tracker_populator import cli
from tracker_populator.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from tracker_populator.common.models import ApiResponse, RequestDetail


class FakeClient:
    """Answers every call with success; events fail for org unit "bad"."""

    def get(self, path, *, params=None):
        return ApiResponse(200, {"valueType": "TEXT"}, RequestDetail("GET", path, {}, params, "t"))

    def post(self, path, payload):
        detail = RequestDetail("POST", path, {}, payload, "t")
        if path == "api/trackedEntityInstances":
            return ApiResponse(201, {"status": "SUCCESS", "reference": "tei"}, detail)
        if path == "api/events" and payload["orgUnit"] == "bad":
            return ApiResponse(201, {"importSummaries": [{"status": "ERROR"}]}, detail)
        if path == "api/events":
            return ApiResponse(201, {"importSummaries": [{"status": "SUCCESS"}]}, detail)
        return ApiResponse(201, {"status": "SUCCESS"}, detail)

    def __enter__(self):
        return self

    def __exit__(self, *_exc):
        return None


def _args(tmp_path: Path, *extra: str):
    config = tmp_path / "populator.yml"
    config.write_text(
        "url: http://localhost/\ntracked_entity_id: te\nprogram_id: p\nstage_id: s\n"
        f"csv_path: {tmp_path / 'csv'}\ndone_path: {tmp_path / 'done'}\nfail_path: {tmp_path / 'fail'}\n",
        encoding="utf-8",
    )
    return cli.parse_args(["--config", str(config), "--log-dir", str(tmp_path / "logs"), "--run-id", "run-test", *extra])


@pytest.mark.integration
def test_cli_run_writes_outputs_and_audit_log(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(cli, "build_client", lambda _settings: FakeClient())
    (tmp_path / "csv").mkdir()
    (tmp_path / "csv" / "rows.csv").write_text(
        "orgUnit,programDate,eventDate,attribute:a,dataElement:d\n"
        "ok,2020-01-01,2020-01-02,x,y\n"
        "bad,2020-01-01,2020-01-02,x,y\n",
        encoding="utf-8",
    )

    exit_code = cli.run_command(_args(tmp_path))

    assert exit_code == EXIT_PARTIAL
    assert (tmp_path / "done" / "rows.csv").exists()
    assert (tmp_path / "fail" / "rows.csv").exists()
    summary = json.loads((tmp_path / "logs" / "run-test.summary.json").read_text(encoding="utf-8"))
    assert summary["totals"] == {"files": 1, "rejected_files": 0, "rows": 2, "succeeded": 1, "failed": 1}

    lines = [json.loads(line) for line in (tmp_path / "logs" / "run-test.log.jsonl").read_text(encoding="utf-8").splitlines()]
    responses = [line for line in lines if line["event"] == "add_event_response"]
    assert len(responses) == 2
    assert responses[0]["file"] == "rows.csv"
    assert any(line["event"] == "RECORD_FAIL" and line["error_code"] == "EVENT_SUBMISSION_ERROR" for line in lines)


@pytest.mark.integration
def test_cli_success_with_empty_csv_dir(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(cli, "build_client", lambda _settings: FakeClient())
    (tmp_path / "csv").mkdir()

    assert cli.run_command(_args(tmp_path)) == EXIT_SUCCESS


@pytest.mark.integration
def test_cli_main_reports_config_errors(tmp_path: Path):
    assert cli.main(["--config", str(tmp_path / "missing.yml"), "--log-dir", str(tmp_path / "logs")]) == EXIT_HARD_FAIL


@pytest.mark.integration
def test_cli_rejected_file_makes_the_run_partial(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(cli, "build_client", lambda _settings: FakeClient())
    (tmp_path / "csv").mkdir()
    (tmp_path / "csv" / "rows.csv").write_text("orgUnit,programDate\nok,2020-01-01\n", encoding="utf-8")

    assert cli.run_command(_args(tmp_path)) == EXIT_PARTIAL
    assert (tmp_path / "fail" / "rows.csv").exists()

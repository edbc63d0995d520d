from __future__ import annotations

from typing import Any

import pytest

from tracker_populator.common.models import ApiResponse, KnownKeys, PopulatorSettings, Record, RequestDetail


class FakeTrackerApi:
    """Scripted stand-in for HttpClient.

    Routes are keyed by ``(method, path)``; each holds a list of
    ``(status_code, body)`` answers consumed in order, the last one repeating.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[tuple[int, Any]]] = {}
        self.calls: list[tuple[str, str, Any]] = []

    def on(self, method: str, path: str, status_code: int, body: Any = None) -> "FakeTrackerApi":
        self.routes.setdefault((method, path), []).append((status_code, body))
        return self

    def _answer(self, method: str, path: str, sent: Any) -> ApiResponse:
        self.calls.append((method, path, sent))
        answers = self.routes.get((method, path))
        if not answers:
            raise AssertionError(f"Unexpected request {method} {path}")
        status_code, body = answers.pop(0) if len(answers) > 1 else answers[0]
        detail = RequestDetail(method=method, path=path, headers={}, body=sent, timestamp="1970-01-01T00:00:00Z")
        return ApiResponse(status_code=status_code, body=body, request=detail)

    def get(self, path: str, *, params: dict[str, Any] | None = None) -> ApiResponse:
        return self._answer("GET", path, params)

    def post(self, path: str, payload: Any) -> ApiResponse:
        return self._answer("POST", path, payload)

    def put(self, path: str, payload: Any) -> ApiResponse:
        return self._answer("PUT", path, payload)

    def calls_to(self, method: str, path: str) -> list[Any]:
        return [sent for m, p, sent in self.calls if m == method and p == path]

    def close(self) -> None:
        return None


class RecordingListener:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def __call__(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    @property
    def names(self) -> list[str]:
        return [name for name, _fields in self.events]


@pytest.fixture
def api() -> FakeTrackerApi:
    return FakeTrackerApi()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def settings() -> PopulatorSettings:
    return PopulatorSettings(
        url="http://localhost/",
        tracked_entity_id="trackedEntityID",
        program_id="programID",
        stage_id="stageID",
    )


@pytest.fixture
def make_record():
    def _make(
        attributes: dict[str, str] | None = None,
        data_elements: dict[str, str] | None = None,
        org_unit: str = "expectedOrgUnit",
        program_date: str = "1970-01-01",
        event_date: str = "1970-01-02",
        line: int | None = 2,
    ) -> Record:
        return Record(
            parameters=KnownKeys(org_unit=org_unit, program_date=program_date, event_date=event_date),
            attributes=attributes if attributes is not None else {"attributeID": "expectedAttribute"},
            data_elements=data_elements if data_elements is not None else {"dataElementID": "expectedDataElement"},
            line=line,
        )

    return _make

"""Data models used across the populator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

from tracker_populator.common.constants import DEFAULT_STORED_BY, DISABLED_DUPLICATE_THRESHOLD


@dataclass(frozen=True)
class KnownKeys:
    org_unit: str
    program_date: str
    event_date: str


@dataclass(frozen=True)
class Record:
    parameters: KnownKeys
    attributes: Mapping[str, str]
    data_elements: Mapping[str, str]
    line: int | None = None


@dataclass(frozen=True)
class RequestDetail:
    method: str
    path: str
    headers: dict[str, str]
    body: Any
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ApiResponse:
    status_code: int
    body: Any
    request: RequestDetail


@dataclass(frozen=True)
class PopulatorSettings:
    url: str
    tracked_entity_id: str
    program_id: str
    stage_id: str
    duplicate_threshold: int = DISABLED_DUPLICATE_THRESHOLD
    stored_by: str = DEFAULT_STORED_BY
    username: str | None = None
    password: str | None = None
    csv_path: str = "./csv"
    done_path: str = "./done"
    fail_path: str = "./fail"
    queue_size: int = 0
    timeout: dict[str, float] = field(default_factory=dict)
    retry: dict[str, int] = field(default_factory=dict)

    @property
    def duplicate_check_enabled(self) -> bool:
        return self.duplicate_threshold >= 0

"""Observability hook shared by the pipeline stages."""

from __future__ import annotations

from typing import Any, Callable, Protocol

from tracker_populator.common.models import ApiResponse


class Listener(Protocol):
    def __call__(self, event: str, **fields: Any) -> None: ...


def notify(listener: Listener | Callable[..., None] | None, event: str, **fields: Any) -> None:
    if listener is not None:
        listener(event, **fields)


def notify_response(listener: Listener | Callable[..., None] | None, step: str, response: ApiResponse) -> None:
    notify(
        listener,
        f"{step}_response",
        status_code=response.status_code,
        response=response.body,
        request=response.request,
    )

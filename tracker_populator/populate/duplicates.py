"""Rejection of events that repeat a recent one for the same enrollment."""

from __future__ import annotations

from tracker_populator.common.errors import DuplicateEventError
from tracker_populator.common.http import HttpClient
from tracker_populator.common.models import KnownKeys, PopulatorSettings
from tracker_populator.common.time_utils import days_before, parse_strict_date
from tracker_populator.populate.listener import Listener, notify, notify_response


def duplicate_query(settings: PopulatorSettings, known_keys: KnownKeys, entity_id: str) -> dict[str, str]:
    try:
        start_date = days_before(parse_strict_date(known_keys.event_date), settings.duplicate_threshold)
    except (ValueError, OverflowError) as exc:
        raise DuplicateEventError(f"Invalid date {known_keys.event_date}") from exc

    return {
        "program": settings.program_id,
        "programStage": settings.stage_id,
        "trackedEntityInstance": entity_id,
        "orgUnit": known_keys.org_unit,
        "startDate": start_date,
    }


def check_for_duplicate_event(
    client: HttpClient,
    settings: PopulatorSettings,
    known_keys: KnownKeys,
    entity_id: str,
    listener: Listener | None = None,
) -> str:
    notify(listener, "check_for_duplicate_event", entity=entity_id)
    params = duplicate_query(settings, known_keys, entity_id)
    response = client.get("api/events", params=params)
    notify_response(listener, "check_for_duplicate_event", response)
    if response.status_code != 200:
        raise DuplicateEventError(f"Unexpected status code {response.status_code}")

    body = response.body if isinstance(response.body, dict) else {}
    if body.get("events"):
        raise DuplicateEventError(
            f"Duplicate event for {entity_id} on or after {params['startDate']}"
        )
    return entity_id

"""Event submission with typed data values."""

from __future__ import annotations

from typing import Any, Mapping

from tracker_populator.common.constants import SUCCESS
from tracker_populator.common.errors import EventSubmissionError
from tracker_populator.common.http import HttpClient
from tracker_populator.common.models import KnownKeys, PopulatorSettings
from tracker_populator.populate.listener import Listener, notify, notify_response
from tracker_populator.populate.type_cache import TypeCache


def build_event_payload(
    settings: PopulatorSettings,
    cache: TypeCache,
    known_keys: KnownKeys,
    data_elements: Mapping[str, str],
    entity_id: str,
) -> dict[str, Any]:
    return {
        "program": settings.program_id,
        "programStage": settings.stage_id,
        "trackedEntityInstance": entity_id,
        "orgUnit": known_keys.org_unit,
        "storedBy": settings.stored_by,
        "eventDate": known_keys.event_date,
        "dataValues": [cache.create_data_element(key, value) for key, value in data_elements.items()],
    }


def _import_summaries(body: dict) -> list:
    # Newer servers nest the summaries under "response".
    summaries = body.get("importSummaries")
    if summaries is None and isinstance(body.get("response"), dict):
        summaries = body["response"].get("importSummaries")
    return summaries or []


def add_event(
    client: HttpClient,
    settings: PopulatorSettings,
    cache: TypeCache,
    known_keys: KnownKeys,
    data_elements: Mapping[str, str],
    entity_id: str,
    listener: Listener | None = None,
) -> None:
    notify(listener, "add_event", entity=entity_id)
    payload = build_event_payload(settings, cache, known_keys, data_elements, entity_id)
    response = client.post("api/events", payload)
    notify_response(listener, "add_event", response)

    if response.status_code > 203 or not isinstance(response.body, dict):
        raise EventSubmissionError(f"Adding event failed (status {response.status_code})")
    summaries = _import_summaries(response.body)
    if not summaries or summaries[0].get("status") != SUCCESS:
        raise EventSubmissionError("Adding event failed")

"""Program enrollment for a resolved tracked entity instance."""

from __future__ import annotations

from tracker_populator.common.errors import EnrollmentError
from tracker_populator.common.http import HttpClient
from tracker_populator.common.models import KnownKeys, PopulatorSettings
from tracker_populator.populate.listener import Listener, notify, notify_response


def enroll_in_program(
    client: HttpClient,
    settings: PopulatorSettings,
    known_keys: KnownKeys,
    entity_id: str,
    listener: Listener | None = None,
) -> str:
    """Enroll ``entity_id``; an existing or refused enrollment does not block the event."""
    notify(listener, "enroll_in_program", entity=entity_id)
    payload = {
        "program": settings.program_id,
        "trackedEntityInstance": entity_id,
        "dateOfEnrollment": known_keys.program_date,
        "dateOfIncident": known_keys.program_date,
    }
    response = client.post("api/enrollments", payload)
    notify_response(listener, "enroll_in_program", response)

    if response.status_code == 409:
        return entity_id
    if not response.body:
        raise EnrollmentError(f"Invalid response body (status {response.status_code})")
    return entity_id

"""Create-or-update of tracked entity instances.

A create that fails with exactly one "non-unique" conflict means the entity
already exists. The existing instance is then looked up through the first
attribute the server declared unique and updated with the same payload.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from tracker_populator.common.constants import SUCCESS
from tracker_populator.common.errors import EntityUpsertError, LookupNotFoundError, UpsertConflictError
from tracker_populator.common.http import HttpClient
from tracker_populator.common.models import KnownKeys, PopulatorSettings
from tracker_populator.populate.listener import Listener, notify, notify_response
from tracker_populator.populate.type_cache import TypeCache

NON_UNIQUE_PATTERN = re.compile(r"non-unique", re.IGNORECASE)
ENTITY_PATH = "api/trackedEntityInstances"


def build_entity_payload(
    settings: PopulatorSettings,
    cache: TypeCache,
    known_keys: KnownKeys,
    attributes: Mapping[str, str],
) -> dict[str, Any]:
    return {
        "trackedEntity": settings.tracked_entity_id,
        "orgUnit": known_keys.org_unit,
        "attributes": [cache.create_attribute(key, value) for key, value in attributes.items()],
    }


def _is_single_non_unique_conflict(body: dict) -> bool:
    conflicts = body.get("conflicts") or []
    if len(conflicts) != 1 or not isinstance(conflicts[0], dict):
        return False
    return bool(NON_UNIQUE_PATTERN.search(str(conflicts[0].get("value", ""))))


class EntityUpserter:
    def __init__(
        self,
        client: HttpClient,
        cache: TypeCache,
        settings: PopulatorSettings,
        listener: Listener | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.settings = settings
        self.listener = listener

    def upsert(self, known_keys: KnownKeys, attributes: Mapping[str, str]) -> str:
        notify(self.listener, "add_tracked_entity")
        payload = build_entity_payload(self.settings, self.cache, known_keys, attributes)
        response = self.client.post(ENTITY_PATH, payload)
        notify_response(self.listener, "add_tracked_entity", response)

        body = response.body
        if not isinstance(body, dict):
            raise EntityUpsertError(f"Could not parse response body (status {response.status_code})")
        if response.status_code == 201 and body.get("status") == SUCCESS:
            reference = body.get("reference")
            if not reference:
                raise EntityUpsertError("Tracked entity created without a reference")
            return reference

        if body.get("conflicts"):
            if not _is_single_non_unique_conflict(body):
                raise UpsertConflictError(f"Adding tracked entity failed: {body['conflicts']}")
            entity_id = self.lookup_existing(known_keys, attributes)
            return self.update(entity_id, known_keys, attributes)

        if response.status_code != 201:
            raise EntityUpsertError(f"Unexpected status code {response.status_code}")
        raise EntityUpsertError(f"Adding tracked entity failed with status {body.get('status')}")

    def lookup_existing(self, known_keys: KnownKeys, attributes: Mapping[str, str]) -> str:
        notify(self.listener, "get_tracked_entity_instance_id")
        attribute_id = self.cache.first_unique_attribute_id
        value = self.cache.unique_lookup_value(dict(attributes))
        if value is None:
            raise LookupNotFoundError("No unique attributes found")

        response = self.client.get(
            ENTITY_PATH,
            params={"ou": known_keys.org_unit, "attribute": f"{attribute_id}:EQ:{value}"},
        )
        notify_response(self.listener, "get_tracked_entity_instance_id", response)
        body = response.body if isinstance(response.body, dict) else {}
        rows = body.get("rows") or []
        if response.status_code != 200 or not rows or not rows[0]:
            raise LookupNotFoundError("Failed to look up existing tracked entity instance")
        return rows[0][0]

    def update(self, entity_id: str, known_keys: KnownKeys, attributes: Mapping[str, str]) -> str:
        notify(self.listener, "update_tracked_entity_instance", entity=entity_id)
        payload = build_entity_payload(self.settings, self.cache, known_keys, attributes)
        response = self.client.put(f"{ENTITY_PATH}/{entity_id}", payload)
        notify_response(self.listener, "update_tracked_entity_instance", response)

        if response.status_code != 200:
            raise EntityUpsertError(f"Unexpected status code {response.status_code}")
        body = response.body if isinstance(response.body, dict) else {}
        if body.get("status") != SUCCESS:
            raise EntityUpsertError("Updating tracked entity failed")
        return entity_id

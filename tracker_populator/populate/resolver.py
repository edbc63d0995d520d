"""Fetch-once resolution of attribute and data element value types."""

from __future__ import annotations

from typing import Iterable

from tracker_populator.common.errors import MetadataFetchError
from tracker_populator.common.http import HttpClient
from tracker_populator.populate.listener import Listener, notify, notify_response
from tracker_populator.populate.type_cache import TypeCache


class MetadataResolver:
    def __init__(self, client: HttpClient, cache: TypeCache, listener: Listener | None = None) -> None:
        self.client = client
        self.cache = cache
        self.listener = listener

    def resolve_attribute_type(self, attribute_id: str) -> str | None:
        if self.cache.has_attribute(attribute_id):
            return self.cache.attribute_types[attribute_id]

        notify(self.listener, "get_attribute_type", attribute=attribute_id)
        response = self.client.get(f"api/trackedEntityAttributes/{attribute_id}")
        notify_response(self.listener, "get_attribute_type", response)
        if response.status_code != 200:
            raise MetadataFetchError(
                f"Unexpected status code {response.status_code} for attribute {attribute_id}"
            )
        body = response.body if isinstance(response.body, dict) else {}
        return self.cache.add_attribute(attribute_id, body.get("valueType"), unique=body.get("unique") is True)

    def resolve_data_element_type(self, data_element_id: str) -> str | None:
        if self.cache.has_data_element(data_element_id):
            return self.cache.data_element_types[data_element_id]

        notify(self.listener, "get_data_element_type", data_element=data_element_id)
        response = self.client.get(f"api/dataElements/{data_element_id}")
        notify_response(self.listener, "get_data_element_type", response)
        if response.status_code not in (200, 404):
            raise MetadataFetchError(
                f"Unexpected status code {response.status_code} for data element {data_element_id}"
            )
        value_type = None
        if response.status_code == 200 and isinstance(response.body, dict):
            value_type = response.body.get("valueType")
        return self.cache.add_data_element(data_element_id, value_type)

    def resolve_attributes(self, attribute_ids: Iterable[str]) -> None:
        for attribute_id in attribute_ids:
            self.resolve_attribute_type(attribute_id)

    def resolve_data_elements(self, data_element_ids: Iterable[str]) -> None:
        for data_element_id in data_element_ids:
            self.resolve_data_element_type(data_element_id)

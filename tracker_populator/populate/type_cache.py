"""In-memory value types for attributes and data elements."""

from __future__ import annotations

import re
import threading
from typing import Any

from tracker_populator.common.constants import NUMERIC_VALUE_TYPES

_LEADING_INT = re.compile(r"\s*([+-]?\d+)", re.ASCII)


def is_numeric_type(value_type: str | None) -> bool:
    return value_type is not None and value_type.lower() in NUMERIC_VALUE_TYPES


def coerce_value(value: str, value_type: str | None) -> Any:
    """Parse the leading integer of ``value`` when ``value_type`` is numeric.

    A value with no leading integer is sent as written; the server rejects it.
    """
    if not is_numeric_type(value_type) or isinstance(value, int):
        return value
    match = _LEADING_INT.match(value)
    if match is None:
        return value
    return int(match.group(1))


class TypeCache:
    """Grows monotonically for the lifetime of one pipeline.

    A key that is present counts as resolved even if its type is ``None``.
    """

    def __init__(self) -> None:
        self.attribute_types: dict[str, str | None] = {}
        self.data_element_types: dict[str, str | None] = {}
        self.first_unique_attribute_id: str | None = None
        self._lock = threading.Lock()

    def has_attribute(self, attribute_id: str) -> bool:
        return attribute_id in self.attribute_types

    def has_data_element(self, data_element_id: str) -> bool:
        return data_element_id in self.data_element_types

    def add_attribute(self, attribute_id: str, value_type: str | None, unique: bool = False) -> str | None:
        with self._lock:
            self.attribute_types.setdefault(attribute_id, value_type)
            if unique and self.first_unique_attribute_id is None:
                self.first_unique_attribute_id = attribute_id
            return self.attribute_types[attribute_id]

    def add_data_element(self, data_element_id: str, value_type: str | None) -> str | None:
        with self._lock:
            return self.data_element_types.setdefault(data_element_id, value_type)

    def create_attribute(self, key: str, value: str) -> dict[str, Any]:
        return {"attribute": key, "value": coerce_value(value, self.attribute_types.get(key))}

    def create_data_element(self, key: str, value: str) -> dict[str, Any]:
        return {"dataElement": key, "value": coerce_value(value, self.data_element_types.get(key))}

    def unique_lookup_value(self, attributes: dict[str, str]) -> Any:
        """Value of the designated unique attribute in ``attributes``, or None."""
        attribute_id = self.first_unique_attribute_id
        if attribute_id is None:
            return None
        value = attributes.get(attribute_id)
        if value in (None, ""):
            return None
        return coerce_value(value, self.attribute_types.get(attribute_id))

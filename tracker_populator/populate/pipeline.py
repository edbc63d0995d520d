"""Per-record pipeline: types, entity, enrollment, duplicate check, event."""

from __future__ import annotations

from typing import Any, Callable

from tracker_populator.common.http import HttpClient
from tracker_populator.common.models import PopulatorSettings, Record
from tracker_populator.populate.duplicates import check_for_duplicate_event
from tracker_populator.populate.enrollment import enroll_in_program
from tracker_populator.populate.entity import EntityUpserter
from tracker_populator.populate.events import add_event
from tracker_populator.populate.listener import Listener, notify
from tracker_populator.populate.resolver import MetadataResolver
from tracker_populator.populate.type_cache import TypeCache

Stage = Callable[[Any], Any]


class RecordPipeline:
    """Replays records against the tracker API, one dependent call at a time.

    Each stage receives the previous stage's output; the first exception
    aborts the record. Side effects of completed stages are not undone. The
    type cache belongs to this instance and persists across records.
    """

    def __init__(
        self,
        client: HttpClient,
        settings: PopulatorSettings,
        *,
        cache: TypeCache | None = None,
        listener: Listener | None = None,
    ) -> None:
        self.client = client
        self.settings = settings
        self.cache = cache if cache is not None else TypeCache()
        self.listener = listener
        self.resolver = MetadataResolver(client, self.cache, listener)
        self.upserter = EntityUpserter(client, self.cache, settings, listener)

    def stages(self, record: Record) -> list[Stage]:
        keys = record.parameters
        stages: list[Stage] = [
            lambda _: self.resolver.resolve_attributes(record.attributes),
            lambda _: self.resolver.resolve_data_elements(record.data_elements),
            lambda _: self.upserter.upsert(keys, record.attributes),
            lambda entity_id: enroll_in_program(self.client, self.settings, keys, entity_id, self.listener),
        ]
        if self.settings.duplicate_check_enabled:
            stages.append(
                lambda entity_id: check_for_duplicate_event(self.client, self.settings, keys, entity_id, self.listener)
            )
        stages.append(self._add_event_stage(record))
        return stages

    def _add_event_stage(self, record: Record) -> Stage:
        def _stage(entity_id: str) -> str:
            add_event(
                self.client,
                self.settings,
                self.cache,
                record.parameters,
                record.data_elements,
                entity_id,
                self.listener,
            )
            return entity_id

        return _stage

    def process(self, record: Record) -> str:
        notify(self.listener, "process_record", line=record.line)
        value: Any = None
        for stage in self.stages(record):
            value = stage(value)
        return value

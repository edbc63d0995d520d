"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for populator failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class SourceError(PipelineError):
    """Raised when a record source cannot be read."""

    error_code = "SOURCE_ERROR"


class StageError(PipelineError):
    """Raised for failures that abort a single record."""

    error_code = "STAGE_ERROR"


class MetadataFetchError(StageError):
    error_code = "METADATA_FETCH_ERROR"


class EntityUpsertError(StageError):
    error_code = "ENTITY_UPSERT_ERROR"


class UpsertConflictError(EntityUpsertError):
    """Raised when the server reports conflicts that are not a single uniqueness clash."""

    error_code = "UPSERT_CONFLICT_ERROR"


class LookupNotFoundError(StageError):
    error_code = "LOOKUP_NOT_FOUND"


class EnrollmentError(StageError):
    error_code = "ENROLLMENT_ERROR"


class DuplicateEventError(StageError):
    error_code = "DUPLICATE_EVENT"


class EventSubmissionError(StageError):
    error_code = "EVENT_SUBMISSION_ERROR"


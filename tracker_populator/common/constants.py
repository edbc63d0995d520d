"""Application constants."""

USER_AGENT = "tracker-populator/1.0"
DEFAULT_STORED_BY = "admin"
DISABLED_DUPLICATE_THRESHOLD = -1
SUCCESS = "SUCCESS"
NUMERIC_VALUE_TYPES = frozenset(
    {
        "number",
        "int",
        "integer",
        "integer_positive",
        "integer_negative",
        "integer_zero_or_positive",
    }
)
KNOWN_KEY_COLUMNS = {
    "orgUnit": "org_unit",
    "programDate": "program_date",
    "eventDate": "event_date",
}
ATTRIBUTE_COLUMN_PREFIX = "attribute:"
DATA_ELEMENT_COLUMN_PREFIX = "dataElement:"
ERROR_COLUMN = "error"
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "file",
    "line",
    "event",
    "status",
    "status_code",
    "method",
    "path",
    "entity",
    "attribute",
    "data_element",
    "error_code",
    "message",
)

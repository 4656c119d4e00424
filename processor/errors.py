"""Error types raised and collected by the timetable pipeline."""
from typing import Any, Dict, Optional


class TimetableError(Exception):
    """Base class for failures that abort a single render."""

    code = 'timetable_error'

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        return self.message


class FetchFailed(TimetableError):
    """Network failure or timeout while fetching the source page."""

    code = 'fetch_failed'


class EmptyBody(TimetableError):
    """The source responded with an empty body."""

    code = 'empty_body'


class MarkerNotFound(TimetableError):
    """The embedded JSON script tag is missing from the page."""

    code = 'json_not_found'


class DecodeFailed(TimetableError):
    """The embedded data is not valid JSON."""

    code = 'json_decode_error'


class SchemaInvalid(TimetableError):
    """Decoded JSON does not contain the expected timetable path."""

    code = 'data_path_invalid'


class RecordParseFailed(Exception):
    """
    A single event could not be decoded or converted.

    Never raised out of a pipeline stage; stages collect these and keep
    processing the remaining records.
    """

    code = 'record_parse_failed'

    def __init__(self, message: str, record_id: str = '', value: Any = None):
        super().__init__(message)
        self.message = message
        self.record_id = record_id
        self.value = value

    def __str__(self) -> str:
        if self.record_id:
            return f"{self.record_id}: {self.message}"
        return self.message

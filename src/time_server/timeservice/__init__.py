"""Time query component: formats, zones and the time service."""

from __future__ import annotations


class TimeServiceError(RuntimeError):
    code = "TIME_ERROR"

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidTimezoneError(TimeServiceError):
    code = "INVALID_TIMEZONE"


class InvalidFormatError(TimeServiceError):
    code = "INVALID_FORMAT"


class ParseFailureError(TimeServiceError):
    code = "PARSE_FAILURE"

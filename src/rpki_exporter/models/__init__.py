"""Data models for RPKI Exporter."""

from rpki_exporter.models.validation import NOT_FOUND_MAX_LENGTH, ValidationRecord, ValidationState

__all__ = [
    "ValidationRecord",
    "ValidationState",
    "NOT_FOUND_MAX_LENGTH",
]

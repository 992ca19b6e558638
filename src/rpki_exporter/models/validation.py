"""ValidationRecord data model representing one RPKI validation outcome."""

from dataclasses import dataclass
from enum import Enum

# max_length label value when the response carries no matched VRP
NOT_FOUND_MAX_LENGTH = "NOT FOUND"


class ValidationState(str, Enum):
    """RPKI route origin validation states reported by the validator."""

    VALID = "valid"
    INVALID = "invalid"
    NOT_FOUND = "not-found"

    @property
    def code(self) -> int:
        """Numeric value exported on the status gauge."""
        codes = {
            ValidationState.INVALID: 0,
            ValidationState.VALID: 1,
            ValidationState.NOT_FOUND: 2,
        }
        return codes[self]


@dataclass
class ValidationRecord:
    """Normalized result of a single validator lookup.

    Attributes:
        prefix: Prefix as echoed back by the validator (e.g., "192.0.2.0/24")
        origin_asn: Origin AS as echoed back by the validator (e.g., "65001")
        state: Raw validation state string ("valid", "invalid", "not-found")
        max_length: Max length of the first matched VRP, or "NOT FOUND"
        has_unmatched_length: True if any VRP matched the AS but not the length
    """

    prefix: str
    origin_asn: str
    state: str
    max_length: str = NOT_FOUND_MAX_LENGTH
    has_unmatched_length: bool = False

    @property
    def validation_state(self) -> ValidationState | None:
        """Return the state as a ValidationState, or None if unrecognized."""
        try:
            return ValidationState(self.state)
        except ValueError:
            return None

"""Tests for ValidationRecord model."""

import pytest

from rpki_exporter.models.validation import NOT_FOUND_MAX_LENGTH, ValidationRecord, ValidationState


class TestValidationState:
    """Tests for ValidationState enum."""

    @pytest.mark.parametrize(
        "state,code",
        [
            (ValidationState.INVALID, 0),
            (ValidationState.VALID, 1),
            (ValidationState.NOT_FOUND, 2),
        ],
    )
    def test_codes(self, state, code):
        """Test the fixed state to numeric code table."""
        assert state.code == code

    def test_values(self):
        """Test state strings as reported by the validator."""
        assert ValidationState("not-found") == ValidationState.NOT_FOUND
        assert ValidationState.VALID.value == "valid"


class TestValidationRecord:
    """Tests for ValidationRecord dataclass."""

    def test_defaults(self):
        """Test defaults for records without VRP details."""
        record = ValidationRecord(prefix="192.0.2.0/24", origin_asn="65001", state="valid")

        assert record.max_length == NOT_FOUND_MAX_LENGTH == "NOT FOUND"
        assert record.has_unmatched_length is False

    def test_validation_state_known(self):
        """Test mapping a known state string."""
        record = ValidationRecord(prefix="192.0.2.0/24", origin_asn="65001", state="invalid")

        assert record.validation_state == ValidationState.INVALID

    def test_validation_state_unknown(self):
        """Test that an unknown state maps to None."""
        record = ValidationRecord(prefix="192.0.2.0/24", origin_asn="65001", state="unknown")

        assert record.validation_state is None

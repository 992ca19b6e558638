"""Tests for Prometheus metrics."""

import pytest
from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.parser import text_string_to_metric_families

from rpki_exporter.metrics import RpkiMetrics, UnknownStateError
from rpki_exporter.models.validation import ValidationRecord

LABELS = {"prefix": "192.0.2.0/24", "asn": "65001"}


def make_record(state="valid", **kwargs) -> ValidationRecord:
    """Create a record for 192.0.2.0/24 originated by 65001."""
    return ValidationRecord(prefix="192.0.2.0/24", origin_asn="65001", state=state, **kwargs)


class TestRpkiMetrics:
    """Tests for RpkiMetrics."""

    @pytest.fixture
    def metrics(self):
        """Create metrics on a private registry."""
        return RpkiMetrics(registry=CollectorRegistry())

    def sample(self, metrics, name, labels=None):
        return metrics.registry.get_sample_value(name, labels or {})

    def test_initial_state(self, metrics):
        """Test that counters start at zero and the gauge is empty."""
        assert self.sample(metrics, "rpki_queries_success_total") == 0
        assert self.sample(metrics, "rpki_queries_failed_total") == 0
        assert self.sample(metrics, "rpki_status", LABELS) is None

    @pytest.mark.parametrize("state,code", [("valid", 1), ("invalid", 0), ("not-found", 2)])
    def test_record_sets_gauge(self, metrics, state, code):
        """Test gauge values and success counter per state."""
        metrics.record(make_record(state))

        assert self.sample(metrics, "rpki_status", LABELS) == code
        assert self.sample(metrics, "rpki_queries_success_total") == 1
        assert self.sample(metrics, "rpki_queries_failed_total") == 0

    def test_record_twice_is_idempotent(self, metrics):
        """Test that repeating a lookup keeps the gauge and counts twice."""
        metrics.record(make_record("valid"))
        metrics.record(make_record("valid"))

        assert self.sample(metrics, "rpki_status", LABELS) == 1
        assert self.sample(metrics, "rpki_queries_success_total") == 2

    def test_last_write_wins(self, metrics):
        """Test that the latest record for a label set replaces the previous value."""
        metrics.record(make_record("valid"))
        metrics.record(make_record("invalid"))

        assert self.sample(metrics, "rpki_status", LABELS) == 0

    def test_unknown_state(self, metrics):
        """Test that an unknown state updates nothing."""
        metrics.record(make_record("valid"))

        with pytest.raises(UnknownStateError, match="unknown validation state"):
            metrics.record(make_record("bogus"))

        assert self.sample(metrics, "rpki_status", LABELS) == 1
        assert self.sample(metrics, "rpki_queries_success_total") == 1

    def test_record_failure(self, metrics):
        """Test the failure counter."""
        metrics.record_failure()
        metrics.record_failure()

        assert self.sample(metrics, "rpki_queries_failed_total") == 2
        assert self.sample(metrics, "rpki_queries_success_total") == 0

    def test_vrp_detail_labels(self):
        """Test the extended label set when VRP detail is tracked."""
        metrics = RpkiMetrics(track_vrp_detail=True)

        metrics.record(make_record("invalid", max_length="23", has_unmatched_length=True))

        labels = {**LABELS, "max_length": "23", "unmatched_length": "true"}
        assert self.sample(metrics, "rpki_status", labels) == 0

    def test_vrp_detail_not_found_sentinel(self):
        """Test the max_length sentinel when no VRP matched."""
        metrics = RpkiMetrics(track_vrp_detail=True)

        metrics.record(make_record("not-found"))

        labels = {**LABELS, "max_length": "NOT FOUND", "unmatched_length": "false"}
        assert self.sample(metrics, "rpki_status", labels) == 2

    def test_separate_registries(self):
        """Test that two instances do not share state."""
        first = RpkiMetrics()
        second = RpkiMetrics()

        first.record(make_record("valid"))

        assert first.registry is not second.registry
        assert second.registry.get_sample_value("rpki_queries_success_total") == 0

    def test_exposition(self, metrics):
        """Test the text exposition of the registry."""
        metrics.record(make_record("valid"))

        text = generate_latest(metrics.registry).decode()
        families = {family.name: family for family in text_string_to_metric_families(text)}

        status = families["rpki_status"]
        assert status.documentation.startswith("RPKI Status of the prefix")
        assert [(s.labels, s.value) for s in status.samples] == [(LABELS, 1.0)]
        counters = {
            s.name: s.value
            for name in ("rpki_queries_success", "rpki_queries_failed")
            for s in families[name].samples
        }
        assert counters["rpki_queries_success_total"] == 1.0
        assert counters["rpki_queries_failed_total"] == 0.0

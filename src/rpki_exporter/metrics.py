"""Prometheus metrics for RPKI validation results."""

import logging

from prometheus_client import CollectorRegistry, Counter, Gauge

from rpki_exporter.models.validation import ValidationRecord

logger = logging.getLogger(__name__)

BASE_LABELS = ["prefix", "asn"]
VRP_DETAIL_LABELS = ["max_length", "unmatched_length"]


class UnknownStateError(ValueError):
    """Raised when a record carries a state with no numeric code."""

    pass


class RpkiMetrics:
    """Status gauge and query counters bound to one registry.

    The registry is injected so the scheduler and the HTTP endpoint share it
    explicitly; by default a fresh registry is created rather than using the
    process-global one.

    Example:
        metrics = RpkiMetrics()
        metrics.record(record)
        generate_latest(metrics.registry)
    """

    def __init__(
        self,
        registry: CollectorRegistry | None = None,
        track_vrp_detail: bool = False,
    ):
        """Initialize and register the metrics.

        Args:
            registry: Registry to register the metrics in.
            track_vrp_detail: Add max_length and unmatched_length labels to the gauge.
        """
        self.registry = registry if registry is not None else CollectorRegistry()
        self.track_vrp_detail = track_vrp_detail

        labels = BASE_LABELS + (VRP_DETAIL_LABELS if track_vrp_detail else [])
        self.status = Gauge(
            "rpki_status",
            "RPKI Status of the prefix (0 - invalid, 1 - valid, 2 - not found)",
            labels,
            registry=self.registry,
        )
        self.queries_success = Counter(
            "rpki_queries_success",
            "Number of successful queries",
            registry=self.registry,
        )
        self.queries_failed = Counter(
            "rpki_queries_failed",
            "Number of failed queries",
            registry=self.registry,
        )

    def label_values(self, record: ValidationRecord) -> dict[str, str]:
        """Return the gauge label set for a record."""
        values = {"prefix": record.prefix, "asn": record.origin_asn}
        if self.track_vrp_detail:
            values["max_length"] = record.max_length
            values["unmatched_length"] = str(record.has_unmatched_length).lower()
        return values

    def record(self, record: ValidationRecord) -> None:
        """Publish a validation record and count the query as successful.

        Raises:
            UnknownStateError: If the state has no numeric code. Nothing is
                updated in that case.
        """
        state = record.validation_state
        if state is None:
            raise UnknownStateError(f"unknown validation state: {record.state!r}")

        self.status.labels(**self.label_values(record)).set(state.code)
        self.queries_success.inc()
        logger.debug("%s origin %s -> %s (%d)", record.prefix, record.origin_asn, state.value, state.code)

    def record_failure(self) -> None:
        """Count a query that never produced a record."""
        self.queries_failed.inc()

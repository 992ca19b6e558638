"""RPKI Exporter - Prometheus metrics for RPKI route origin validation."""

__version__ = "0.1.0"

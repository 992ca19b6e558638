"""Data source clients for RPKI Exporter."""

"""TTN uplink webhook: dual-write ingestion into MongoDB and roster queries."""

__version__ = "2.0.0"

"""Live transit vehicle ingestion and route-to-vehicle matching."""

__version__ = "0.1.0"

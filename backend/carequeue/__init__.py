"""CareQueue: communication task queue for clinical operations."""

__version__ = "0.1.0"

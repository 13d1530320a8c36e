"""Support services for an external template compiler driver."""

__version__ = "0.1.0"

"""dlbridge - external media tool orchestration with structured progress events."""

__version__ = "0.1.0"

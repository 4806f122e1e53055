"""Authorization-gated lifecycle engine for appointments and clinical notes."""

__version__ = "0.1.0"

"""Gas/latency benchmark for the patient and doctor medical record contracts."""

__version__ = "0.1.0"

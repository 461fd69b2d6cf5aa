"""HTTP edge middleware: request logging, CORS policy adapter and error envelopes."""

__version__ = "0.1.0"

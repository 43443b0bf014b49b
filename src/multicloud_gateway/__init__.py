"""Provider-agnostic object storage, messaging and database access for serverless functions."""

__version__ = "0.1.0"

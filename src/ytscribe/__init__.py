"""ytscribe — Transcript extraction client with resilient auth and retries."""

__version__ = "0.1.0"

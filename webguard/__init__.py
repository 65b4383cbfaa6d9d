"""CORS controls, Redis-backed rate limiting and session identity helpers for web services."""

__version__ = "0.1.0"
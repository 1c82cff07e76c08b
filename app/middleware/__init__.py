"""Middleware package for FastAPI application."""

from .request_logging import RequestLoggingMiddleware, loggable_body, redact

__all__ = ["RequestLoggingMiddleware", "loggable_body", "redact"]

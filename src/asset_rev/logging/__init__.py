"""Structured logging utilities."""

from .audit import AuditEvent, JsonlAuditLogger, rename_event, utc_timestamp

__all__ = ["AuditEvent", "JsonlAuditLogger", "rename_event", "utc_timestamp"]

"""
TagBot Logging — Action and Audit Logging

THIS MODULE DEFINES NO COMMANDS.

Responsibilities:
- Log tags, evictions and served commands
- Log denied or ignored tag attempts
- Log transport errors and unexpected behavior
- Mirror the audit trail into the bot's log file

Used for debugging, audits, and accountability. Operators read this; users
never see these failures.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

DEFAULT_LOGGER_NAME = "tagbot.audit"
DEFAULT_LOG_FILE = "tag-bot.log"

def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

def _json_default(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return "<unserializable>"

def _merge_context(base: Optional[Mapping[str, Any]], extra: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    if base:
        merged.update(base)
    if extra:
        merged.update(extra)
    return merged

@dataclass
class LogContext:
    """Reusable structured context for audit logs."""
    actor_id: Optional[int] = None
    guild_id: Optional[int] = None
    channel_id: Optional[int] = None
    message_id: Optional[int] = None
    command: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        base = {
            "actor_id": self.actor_id,
            "guild_id": self.guild_id,
            "channel_id": self.channel_id,
            "message_id": self.message_id,
            "command": self.command,
        }
        return _merge_context({key: value for key, value in base.items() if value is not None}, self.extra)

class StructuredFormatter(logging.Formatter):
    """Format log records as JSON strings with structured fields."""
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": _utc_now_iso(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "event"):
            payload["event"] = record.event
        if hasattr(record, "data"):
            payload["data"] = record.data
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_json_default, ensure_ascii=False)

def get_audit_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Get or create the structured audit logger (console only until configured)."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    logger.addHandler(handler)
    logger.propagate = False
    return logger

def configure_audit_logger(
    log_file: Optional[str] = DEFAULT_LOG_FILE,
    *,
    name: str = DEFAULT_LOGGER_NAME,
) -> logging.Logger:
    """Attach the append-only log file to the audit logger.

    An unopenable file is reported once and the logger stays console-only.
    """
    logger = get_audit_logger(name)
    if not log_file:
        return logger
    if any(isinstance(handler, logging.FileHandler) for handler in logger.handlers):
        return logger
    try:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    except OSError as exc:
        logger.warning(
            "Could not open log file",
            extra={"event": "log_file_unavailable", "data": {"path": log_file, "error": str(exc)}},
        )
        return logger
    file_handler.setFormatter(StructuredFormatter())
    logger.addHandler(file_handler)
    return logger

def _resolve_context(context: Optional[LogContext | Mapping[str, Any]]) -> Mapping[str, Any]:
    return context.as_dict() if isinstance(context, LogContext) else (context or {})

def _log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    message: str,
    context: Optional[Mapping[str, Any]] = None,
    extra: Optional[Mapping[str, Any]] = None,
    exc_info: Optional[BaseException] = None,
) -> None:
    payload = _merge_context(context, extra)
    logger.log(level, message, extra={"event": event, "data": payload}, exc_info=exc_info)

def log_action(
    message: str,
    *,
    context: Optional[LogContext | Mapping[str, Any]] = None,
    action: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
    **extra: Any,
) -> None:
    """Log a performed action (tag, eviction, command reply)."""
    resolved_logger = logger or get_audit_logger()
    if action:
        extra["action"] = action
    _log_event(resolved_logger, logging.INFO, "action", message, _resolve_context(context), extra or None)

def log_denied(
    message: str,
    *,
    context: Optional[LogContext | Mapping[str, Any]] = None,
    reason: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
    **extra: Any,
) -> None:
    """Log a tag attempt that was refused or ignored."""
    resolved_logger = logger or get_audit_logger()
    if reason:
        extra["reason"] = reason
    _log_event(resolved_logger, logging.INFO, "denied", message, _resolve_context(context), extra or None)

def log_error(
    message: str,
    *,
    context: Optional[LogContext | Mapping[str, Any]] = None,
    error: Optional[BaseException] = None,
    logger: Optional[logging.Logger] = None,
    **extra: Any,
) -> None:
    """Log an error or unexpected behavior."""
    resolved_logger = logger or get_audit_logger()
    if error:
        extra["error"] = repr(error)
    _log_event(resolved_logger, logging.ERROR, "error", message, _resolve_context(context), extra or None, exc_info=error)

"""
Centralized logging module for the tenantgate backend.

Follows Layer 6 rules:
- Structured logging suitable for Grafana/Prometheus/Loki/ELK
- Appropriate log levels (info, warning, error)
- NEVER logs passwords, tokens, secrets, full access codes or request bodies
- Security-sensitive actions emit structured logs with user_id, tenant_id, action, result, timestamp
"""
import logging
import json
from typing import Any, Dict, Optional
from datetime import datetime, timezone
from core.config import settings

# Package logger; modules log through children (get_logger)
logger = logging.getLogger("tenantgate")
logger.setLevel(settings.LOG_LEVEL.upper())

# Console handler with JSON formatter for structured logs
_handler = logging.StreamHandler()
_handler.setLevel(logging.DEBUG)

# Context attached through `extra=`
_EXTRA_FIELDS = ("user_id", "tenant_id", "action", "result", "meta")


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in _EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


_handler.setFormatter(JSONFormatter())
logger.addHandler(_handler)

# Prevent duplicate logs
logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Child logger sharing the JSON handler (e.g. `tenantgate.profiles`)."""
    return logger.getChild(name)


def redact_code(code: str | None) -> str:
    """Keep only the tenant prefix of an access code for logs."""
    if not code:
        return ""
    head, _, _ = code.rpartition("-")
    return f"{head}-****" if head else "****"


def log_security_event(
    action: str,
    result: str,
    user_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
    level: str = "info",
) -> None:
    """
    Log security-sensitive actions (login, signup, code redemption, approvals).

    Emits structured logs with:
    - user_id, tenant_id, action, result, timestamp
    - Additional metadata in meta dict

    Args:
        action: Action name (e.g., "login", "profile_link", "join_request_approve")
        result: Result status (e.g., "success", "failure", "denied")
        user_id: Credential ID (optional)
        tenant_id: Tenant slug (optional)
        meta: Additional metadata dict (optional)
        level: Log level ("info", "warning", "error")
    """
    log_method = getattr(logger, level.lower(), logger.info)
    extra = {
        "action": action,
        "result": result,
    }
    if user_id:
        extra["user_id"] = user_id
    if tenant_id:
        extra["tenant_id"] = tenant_id
    if meta:
        extra["meta"] = meta

    log_method("Security event", extra=extra)

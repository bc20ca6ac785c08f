"""
Structured Logging Configuration

Provides JSON-formatted logging with:
- Request ID tracking
- Tenant / actor context
- Entity references for reservations and ledger operations
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional, Any, Dict
from contextvars import ContextVar

# Context variables for request tracking
request_id_var: ContextVar[str] = ContextVar('request_id', default='')
tenant_var: ContextVar[str] = ContextVar('tenant', default='')
actor_id_var: ContextVar[str] = ContextVar('actor_id', default='')


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    Outputs one JSON object per line for log aggregators.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        tenant = tenant_var.get()
        if tenant:
            log_data["tenant"] = tenant

        actor_id = actor_id_var.get()
        if actor_id:
            log_data["actor_id"] = actor_id

        log_data["module"] = record.module
        log_data["function"] = record.funcName
        log_data["line"] = record.lineno

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_data'):
            log_data["data"] = record.extra_data

        if hasattr(record, 'entity_type'):
            log_data["entity_type"] = record.entity_type
        if hasattr(record, 'entity_id'):
            log_data["entity_id"] = record.entity_id

        return json.dumps(log_data, ensure_ascii=False, default=str)


class StructuredLogger(logging.LoggerAdapter):
    """
    Logger adapter that adds structured context to log messages.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get('extra', {})
        extra.update(self.extra)
        kwargs['extra'] = extra
        return msg, kwargs

    def log_with_context(
        self,
        level: int,
        msg: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        **extra_data
    ):
        """Log with additional structured context."""
        extra = {}
        if entity_type:
            extra['entity_type'] = entity_type
        if entity_id:
            extra['entity_id'] = entity_id
        if extra_data:
            extra['extra_data'] = extra_data

        self.log(level, msg, extra=extra)

    def reservation_created(self, reservation_ref: str, property_id: str, nights: int, total: str):
        self.log_with_context(
            logging.INFO,
            f"Reservation created: {reservation_ref}",
            entity_type="reservation",
            entity_id=reservation_ref,
            property_id=property_id,
            nights=nights,
            total=total
        )

    def reservation_status_changed(self, reservation_ref: str, old_status: str, new_status: str):
        self.log_with_context(
            logging.INFO,
            f"Reservation {reservation_ref}: {old_status} -> {new_status}",
            entity_type="reservation",
            entity_id=reservation_ref,
            old_status=old_status,
            new_status=new_status
        )

    def claim_conflict(self, property_id: str, dates: list):
        self.log_with_context(
            logging.WARNING,
            f"Date claim rejected for property {property_id}",
            entity_type="property",
            entity_id=property_id,
            dates=[d.isoformat() for d in dates]
        )

    def dates_blocked(self, property_id: str, blocked: int, rejected: int, reason: Optional[str]):
        self.log_with_context(
            logging.INFO,
            f"Blocked {blocked} dates for property {property_id} ({rejected} rejected)",
            entity_type="property",
            entity_id=property_id,
            blocked=blocked,
            rejected=rejected,
            reason=reason
        )


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    include_uvicorn: bool = True
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON format (True for production)
        include_uvicorn: Also configure uvicorn loggers
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    logging.getLogger("stayledger").setLevel(log_level)

    if include_uvicorn:
        for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
            logging.getLogger(logger_name).handlers = [handler]

    # Reduce noise from third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for the given module."""
    return StructuredLogger(logging.getLogger(name), {})


def set_request_context(request_id: str, tenant: Optional[str] = None, actor_id: Optional[str] = None):
    """Set context for the current request."""
    request_id_var.set(request_id)
    if tenant:
        tenant_var.set(tenant)
    if actor_id:
        actor_id_var.set(actor_id)


def clear_request_context():
    """Clear request context."""
    request_id_var.set('')
    tenant_var.set('')
    actor_id_var.set('')

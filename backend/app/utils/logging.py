"""
Production logging utility for structured JSON logging.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- object_key
- content_type
- duration_ms

Secrets never reach the log: no passwords, tokens or signed URLs are passed
to these helpers.

Usage:
    from app.utils.logging import configure_logging, log_presign_issued

    configure_logging('image-uploader-api', 'INFO')
    log_presign_issued(logger, object_key='cat.png', content_type='image/png', duration_ms=3.1)
"""
import logging
import sys
from typing import Optional, Dict, Any
from pythonjsonlogger import jsonlogger


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""

    _service_name = None
    _configured = False

    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.

        Args:
            service_name: Service identifier (image-uploader-api or image-uploader-client)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return  # Already configured

        cls._service_name = service_name

        # Remove default handlers
        root_logger = logging.getLogger()
        root_logger.handlers = []

        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        # Add service name to all log records via filter
        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True

        handler.addFilter(ServiceFilter())
        cls._configured = True


def _build_log_extra(
    event: str,
    object_key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.

    Args:
        event: Event name (mandatory)
        object_key: Optional storage object key
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields

    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        **kwargs
    }

    if object_key:
        extra["object_key"] = object_key
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    return extra


# Credential gate events

def log_auth_attempt(
    logger: logging.Logger,
    outcome: str,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a login attempt against the shared-secret gate.

    Args:
        logger: Logger instance
        outcome: "success", "invalid_password", "invalid_input" or "misconfigured"
        duration_ms: Optional duration in milliseconds
    """
    extra = _build_log_extra(
        event="auth_attempt",
        duration_ms=duration_ms,
        outcome=outcome,
        **kwargs
    )

    if outcome == "success":
        logger.info("Login succeeded", extra=extra)
    elif outcome == "misconfigured":
        logger.error("Login rejected: gate is not configured", extra=extra)
    else:
        logger.warning(f"Login rejected: {outcome}", extra=extra)


# Presign events

def log_presign_issued(
    logger: logging.Logger,
    object_key: str,
    content_type: str,
    duration_ms: Optional[float] = None,
    key_policy: Optional[str] = None,
    **kwargs
):
    """Log a successfully issued presigned upload grant."""
    extra = _build_log_extra(
        event="presign_issued",
        object_key=object_key,
        duration_ms=duration_ms,
        content_type=content_type,
        **kwargs
    )
    if key_policy:
        extra["key_policy"] = key_policy

    logger.info(f"Presigned upload issued: {object_key}", extra=extra)


def log_presign_failure(
    logger: logging.Logger,
    error: str,
    object_key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    include_traceback: bool = True,
    **kwargs
):
    """
    Log a failed presign issuance.

    Stack traces are included when an exception is being handled.
    """
    extra = _build_log_extra(
        event="presign_failed",
        object_key=object_key,
        duration_ms=duration_ms,
        error=str(error),
        **kwargs
    )

    message = f"Presign failed - {error}"

    if include_traceback and sys.exc_info()[0] is not None:
        logger.error(message, extra=extra, exc_info=sys.exc_info())
    else:
        logger.error(message, extra=extra)


# Client upload events

def log_upload_completed(
    logger: logging.Logger,
    object_key: str,
    size: int,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a file that reached storage."""
    extra = _build_log_extra(
        event="upload_completed",
        object_key=object_key,
        duration_ms=duration_ms,
        size=size,
        **kwargs
    )

    logger.info(f"File uploaded successfully: {object_key}", extra=extra)


def log_batch_failed(
    logger: logging.Logger,
    error: str,
    file_name: Optional[str] = None,
    completed: int = 0,
    total: int = 0,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log an aborted batch.

    ``completed`` files already reached storage and are not rolled back.
    """
    extra = _build_log_extra(
        event="batch_failed",
        duration_ms=duration_ms,
        error=str(error),
        completed=completed,
        total=total,
        **kwargs
    )
    if file_name:
        extra["file_name"] = file_name

    logger.error(f"Batch upload failed at {completed + 1}/{total} - {error}", extra=extra)


def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)

"""
Logging for ATS Connect.

Loguru carries two streams: operational logs (stderr and a rotating text
file) and the audit trail, a JSON-lines file of sync, webhook and connection
events that downstream tooling can parse. Entry points call
``setup_logging()`` once; until then loguru's default stderr sink is used.
"""

import sys
from typing import Any, Optional

from loguru import logger

from ats_connect.utils.config import AppSettings, get_settings
from ats_connect.utils.constants import SENSITIVE_KEY_FRAGMENTS, AuditType

REDACTED = "***REDACTED***"

_configured = False


def _is_audit(record: dict[str, Any]) -> bool:
    return "audit_type" in record["extra"]


def setup_logging(settings: Optional[AppSettings] = None, force: bool = False) -> None:
    """
    Install the console, file and audit sinks.

    Calling it again is a no-op unless ``force`` is set, so the CLI, the
    server and the API lifespan can each make sure logging is ready.
    """
    global _configured
    if _configured and not force:
        return

    settings = settings or get_settings()
    log_settings = settings.logging

    logger.remove()

    # Variable dumps in tracebacks could expose decrypted credentials
    diagnose = settings.debug and settings.environment == "development"

    if log_settings.console_output:
        logger.add(
            sys.stderr,
            format="<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[name]}</cyan> | "
            "<level>{message}</level>",
            level=log_settings.level,
            filter=lambda record: not _is_audit(record),
            colorize=True,
            diagnose=diagnose,
        )

    log_settings.file_path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_settings.file_path,
        format=log_settings.format,
        level=log_settings.level,
        filter=lambda record: not _is_audit(record),
        rotation=log_settings.rotation,
        retention=log_settings.retention,
        compression="zip",
        diagnose=diagnose,
        enqueue=True,  # sync workers log from several threads
    )

    log_settings.audit_file_path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_settings.audit_file_path,
        level="INFO",
        filter=_is_audit,
        serialize=True,
        rotation="1 week",
        retention="1 year",
        enqueue=True,
    )

    logger.configure(extra={"name": settings.name})
    _configured = True
    logger.bind(name=__name__).info(
        f"Logging initialized ({log_settings.level}); audit trail at {log_settings.audit_file_path}"
    )


def get_logger(name: str) -> Any:
    """Logger bound to a module or class name."""
    return logger.bind(name=name)


def redact(data: Any) -> Any:
    """Copy of ``data`` with the values of credential-like keys masked."""
    if isinstance(data, dict):
        return {
            key: REDACTED
            if any(fragment in str(key).lower() for fragment in SENSITIVE_KEY_FRAGMENTS)
            else redact(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [redact(item) for item in data]
    return data


def audit_log(
    action: str,
    details: dict[str, Any],
    audit_type: AuditType | str = AuditType.SYNC,
) -> None:
    """
    Record an audit event.

    The action and the redacted details travel as structured ``extra``
    fields, so each JSON line of the audit file is self-describing.
    """
    category = AuditType(audit_type).value
    logger.bind(audit_type=category, action=action, details=redact(details)).info(
        f"{category} {action}"
    )


class LoggerMixin:
    """Gives a class a ``self.logger`` bound to its class name."""

    @property
    def logger(self) -> Any:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger

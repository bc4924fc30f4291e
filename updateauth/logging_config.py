"""
Logging configuration for updateauth.

Provides structured JSON logging and an audit logger for authentication
decisions, override use and rejected overrides.

Everything is logged under the ``updateauth`` logger hierarchy. A host
application either lets records propagate to its own handlers, or calls
``configure_from_env()`` to give the package its own handler driven by
``UPDATEAUTH_LOG_LEVEL`` and ``UPDATEAUTH_LOG_JSON``.
"""

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import IO, Iterable, Optional

from . import config

PACKAGE_LOGGER = "updateauth"

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(update_id)s] %(message)s"

# Context variable for the update currently being authenticated
update_id_var: ContextVar[str] = ContextVar('update_id', default='')


class UpdateIdFilter(logging.Filter):
    """Stamps every record with the update under evaluation ("-" outside one)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.update_id = update_id_var.get() or "-"
        return True


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line, keys sorted.

    Each line carries the deployment environment, and the update id when
    the record was emitted while an update was being authenticated.
    Audit events merge their ``extra_fields`` into the top level.
    """

    def __init__(self, env: Optional[str] = None):
        super().__init__()
        self.env = config.ENV if env is None else env

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "env": self.env,
            "message": record.getMessage(),
        }

        update_id = update_id_var.get()
        if update_id:
            log_data["update_id"] = update_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, 'extra_fields', None)
        if extra_fields:
            log_data.update(extra_fields)

        return json.dumps(log_data, default=str, sort_keys=True)


class AuditLogger:
    """
    Specialized logger for authentication audit events.

    Logging never influences a decision; it only records it.
    """

    def __init__(self, name: str = "updateauth.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        if not self._logger.isEnabledFor(level):
            return

        extra = {
            "event_type": event_type,
            "update_id": update_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def strategy_result(self, strategy: str, passed: bool) -> None:
        self._log(
            logging.DEBUG,
            "STRATEGY_RESULT",
            strategy=strategy,
            passed=passed,
            message=f"{strategy} {'passed' if passed else 'failed'}"
        )

    def authentication_decision(
        self,
        path: str,
        status: Optional[str],
        principals: Iterable[str] = (),
        failed: Iterable[str] = ()
    ) -> None:
        """Log the outcome of one authentication."""
        level = logging.INFO if status is None else logging.WARNING
        self._log(
            level,
            "AUTHENTICATION_DECISION",
            path=path,
            status=status,
            principals=sorted(principals),
            failed_authentications=sorted(failed),
            message=f"Authentication {'succeeded' if status is None else status}"
        )

    def override_used(self, username: str, object_type: str) -> None:
        self._log(
            logging.INFO,
            "OVERRIDE_USED",
            username=username,
            object_type=object_type,
            message=f"Override used by {username}"
        )

    def unknown_override_user(self, username: str) -> None:
        self._log(
            logging.INFO,
            "UNKNOWN_OVERRIDE_USER",
            username=username,
            message=f"Unknown override user {username}"
        )

    def override_rejected(self, origin: str, from_address: str, reasons: Iterable[str]) -> None:
        """An override attempt refused before any password was checked."""
        reasons = list(reasons)
        self._log(
            logging.WARNING,
            "OVERRIDE_REJECTED",
            origin=origin,
            from_address=from_address,
            reasons=reasons,
            message=f"Override from {origin} rejected: {'; '.join(reasons)}"
        )

    def override_failed(self, origin: str, from_address: str, usernames: Iterable[str]) -> None:
        """No override candidate matched a known user with a valid password."""
        usernames = list(usernames)
        self._log(
            logging.ERROR,
            "OVERRIDE_FAILED",
            origin=origin,
            from_address=from_address,
            usernames=usernames,
            message=f"Override from {origin} failed for {len(usernames)} candidate(s)"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    stream: Optional[IO[str]] = None
) -> logging.Logger:
    """
    Give the ``updateauth`` logger its own handler.

    Calling it again replaces the handler installed by the previous call.
    Records stop propagating to the root logger so they are not written
    twice.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use StructuredFormatter instead of the plain format
        stream: Output stream, stderr by default

    Raises:
        ValueError: If the level name is unknown
    """
    numeric_level = logging.getLevelName(level.strip().upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(numeric_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.addFilter(UpdateIdFilter())
    handler.setFormatter(StructuredFormatter() if json_format else logging.Formatter(PLAIN_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def configure_from_env(stream: Optional[IO[str]] = None) -> logging.Logger:
    """Configure package logging from UPDATEAUTH_LOG_LEVEL and UPDATEAUTH_LOG_JSON."""
    return configure_logging(config.LOG_LEVEL, config.LOG_JSON, stream)


def set_update_id(update_id: str):
    """Bind the update id for the current context. Returns the reset token."""
    return update_id_var.set(update_id)


def reset_update_id(token) -> None:
    update_id_var.reset(token)


def get_update_id() -> str:
    return update_id_var.get()


audit_log = AuditLogger()

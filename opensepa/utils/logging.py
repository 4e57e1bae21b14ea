"""
structlog setup for OpenSEPA.

Every event passes through the same processor chain: level and logger name,
ISO timestamp, the active correlation id, package version, and a redaction
step that keeps account and card numbers out of log output. The final
renderer depends on the mode: colored console, JSON lines, or key=value.

Events are snake_case verbs in the past tense (``sepa_xml_generated``,
``postal_address_injection_failed``) with the details as keyword fields.
"""

import logging
import re
import sys
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, cast

import structlog
from structlog.types import EventDict, Processor

from opensepa.exceptions import ConfigurationError

_correlation_id: ContextVar[str | None] = ContextVar("opensepa_correlation_id", default=None)

REDACTED = "***REDACTED***"

# Credentials; the whole value is redacted
SECRET_KEYS = frozenset({"password", "api_key", "secret", "token"})

# Account and card identifiers; the last four characters stay readable
IDENTIFIER_KEYS = frozenset(
    {
        "iban",
        "creditor_iban",
        "debtor_iban",
        "counterparty_iban",
        "card_number",
        "ccc",
    }
)

_VISIBLE_TAIL = 4
_NON_SPACE = re.compile(r"\S")


# ---------------------------------------------------------------------------
# Correlation ids
# ---------------------------------------------------------------------------


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind ``correlation_id`` (a fresh UUID4 when omitted) to the current context."""
    value = correlation_id or str(uuid.uuid4())
    _correlation_id.set(value)
    return value


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Correlation id for the duration of a ``with`` block, then the previous one."""
    token = _correlation_id.set(correlation_id or str(uuid.uuid4()))
    try:
        yield cast(str, _correlation_id.get())
    finally:
        _correlation_id.reset(token)


# ---------------------------------------------------------------------------
# Processors
# ---------------------------------------------------------------------------


def mask_identifier(value: Any) -> str:
    """Mask an account or card identifier, keeping the last four characters.

    Example:
        >>> mask_identifier("ES9121000418450200051332")
        '********************1332'
    """
    compact = "".join(str(value).split())
    if len(compact) <= _VISIBLE_TAIL:
        return _NON_SPACE.sub("*", compact)
    hidden = len(compact) - _VISIBLE_TAIL
    return "*" * hidden + compact[hidden:]


def add_correlation_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("correlation_id", _correlation_id.get())
    return event_dict


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    from opensepa import __version__

    event_dict.setdefault("app", "opensepa")
    event_dict.setdefault("version", __version__)
    return event_dict


def filter_sensitive_data(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Redact secrets and mask IBAN, CCC and card-number fields."""
    for key, value in event_dict.items():
        if key in SECRET_KEYS:
            event_dict[key] = REDACTED
        elif key in IDENTIFIER_KEYS and value:
            event_dict[key] = mask_identifier(value)
    return event_dict


def _renderer(json_logs: bool, dev_mode: bool) -> list[Processor]:
    if dev_mode:
        return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]
    if json_logs:
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"])]


def _resolve_level(log_level: str) -> int:
    level = logging.getLevelName(log_level.strip().upper())
    if not isinstance(level, int):
        raise ConfigurationError(
            f"Unknown log level: {log_level}",
            setting="log_level",
            expected="DEBUG, INFO, WARNING, ERROR or CRITICAL",
        )
    return level


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    dev_mode: bool = True,
) -> None:
    """
    Route structlog through the stdlib root logger on stderr.

    stdout is left alone so the CLI can print generated XML there.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_logs: One JSON object per line (ignored when ``dev_mode`` is on)
        dev_mode: Human-readable console output

    Raises:
        ConfigurationError: log_level is not a standard level name
    """
    level = _resolve_level(log_level)

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_correlation_id,
        add_app_context,
        filter_sensitive_data,
        structlog.processors.StackInfoRenderer(),
        *_renderer(json_logs, dev_mode),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger("opensepa").setLevel(level)


def configure_from_settings(settings: Any) -> None:
    """Apply ``log_level``/``json_logs``/``dev_mode`` from :class:`opensepa.utils.config.Settings`."""
    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs,
        dev_mode=settings.dev_mode,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Module logger.

    Usage:
        logger = get_logger(__name__)
        logger.info("sepa_xml_generated", message_id="MSG-001", transactions=2)
    """
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))


class LogPerformance:
    """
    Time a block and log ``{operation}_completed`` or ``{operation}_failed``.

    Exceptions are logged and re-raised, never suppressed.

    Usage:
        with LogPerformance("sepa_xml_generation", logger, message_type="pain.001.001.03"):
            xml = generator.generate(batch)
    """

    def __init__(self, operation: str, logger: structlog.stdlib.BoundLogger, **fields: Any):
        self.operation = operation
        self.logger = logger
        self.fields = fields
        self._started: float | None = None

    @property
    def elapsed_ms(self) -> float:
        if self._started is None:
            return 0.0
        return round((time.perf_counter() - self._started) * 1000, 2)

    def __enter__(self) -> "LogPerformance":
        self._started = time.perf_counter()
        self.logger.debug(f"{self.operation}_started", **self.fields)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is None:
            self.logger.info(
                f"{self.operation}_completed",
                duration_ms=self.elapsed_ms,
                **self.fields,
            )
            return

        self.logger.error(
            f"{self.operation}_failed",
            duration_ms=self.elapsed_ms,
            error=str(exc_val),
            error_type=exc_type.__name__,
            **self.fields,
        )


configure_logging()

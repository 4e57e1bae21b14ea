"""Exception hierarchy for OpenSEPA.

Every error raised by the validators, the CCC converter and the SEPA message
builder/parser derives from :class:`OpenSepaError` and carries a ``context``
dict that can be passed straight to a structlog call.

    OpenSepaError
    ├── ValidationError
    │   ├── InvalidArgumentError (also ValueError)
    │   │   ├── InvalidFormatError     length, characters, unparsable values
    │   │   └── InvalidChecksumError   well-formed identifier, wrong check digits
    │   ├── MissingFieldError          required key absent from a dict payload
    │   └── InvalidFieldTypeError      value of the wrong type
    ├── ConfigurationError
    └── XMLProcessingError             address post-pass only, never escapes

Usage:
    from opensepa.exceptions import InvalidChecksumError

    try:
        validator.validate(iban, field="creditor_iban")
    except InvalidChecksumError as e:
        logger.warning("iban_rejected", error=e.message, **e.context)
"""

from __future__ import annotations

from typing import Any

# Longest value echoed back in an error context
MAX_CONTEXT_VALUE = 100


def _merge_context(kwargs: dict[str, Any], **entries: Any) -> dict[str, Any]:
    """Fold the non-empty ``entries`` into ``kwargs["context"]``."""
    context = dict(kwargs.pop("context", None) or {})
    context.update({key: value for key, value in entries.items() if value not in (None, "")})
    kwargs["context"] = context
    return kwargs


class OpenSepaError(Exception):
    """Root of all OpenSEPA errors.

    Attributes:
        message: Human-readable description, without the context
        context: Structured details (field, value, constraint...)
        original_error: Lower-level exception this one wraps, if any
    """

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context or {})
        self.original_error = original_error

    def __str__(self) -> str:
        parts = [self.message]
        if self.context:
            parts.append("(" + ", ".join(f"{key}={value}" for key, value in self.context.items()) + ")")
        if self.original_error is not None:
            parts.append(f"[caused by: {type(self.original_error).__name__}]")
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, context={self.context!r})"


# =============================================================================
# Input validation
# =============================================================================


class ValidationError(OpenSepaError):
    """Input rejected before any output is produced.

    ``field`` names the offending attribute or payload key; ``value`` is
    truncated to 100 characters in the context; ``constraint`` names the rule
    that failed ("mod97", "pattern", "required"...).
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ) -> None:
        shown = None if value is None else str(value)[:MAX_CONTEXT_VALUE]
        super().__init__(
            message, **_merge_context(kwargs, field=field, value=shown, constraint=constraint)
        )
        self.field = field


class InvalidArgumentError(ValidationError, ValueError):
    """An argument failed validation.

    The SEPA generators raise this (or one of its subclasses) when the
    creditor IBAN or a counterparty IBAN does not validate.
    """


class InvalidFormatError(InvalidArgumentError):
    """Structural mismatch: wrong length, disallowed characters, non-numeric input."""


class InvalidChecksumError(InvalidArgumentError):
    """Identifier is well-formed but its check digits do not verify."""


class MissingFieldError(ValidationError):
    """A required key is absent from a dict-based payload.

    The message names the canonical key, with ``scope="transaction"`` for
    keys expected on each transaction.
    """

    def __init__(self, field: str, *, scope: str | None = None, **kwargs: Any) -> None:
        where = "transaction field" if scope == "transaction" else "field"
        super().__init__(
            f"Missing required {where}: {field}", field=field, constraint="required", **kwargs
        )
        self.scope = scope


class InvalidFieldTypeError(ValidationError):
    """A payload value has an unsupported type (e.g. an int where a date is expected)."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        expected: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, field=field, **_merge_context(kwargs, expected=expected))
        self.expected = expected


# =============================================================================
# Runtime
# =============================================================================


class ConfigurationError(OpenSepaError):
    """A setting holds a value OpenSEPA cannot use."""

    def __init__(
        self,
        message: str,
        *,
        setting: str | None = None,
        expected: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **_merge_context(kwargs, setting=setting, expected=expected))


class XMLProcessingError(OpenSepaError):
    """A generated document cannot be post-processed.

    Raised inside the postal address pass, which catches it and returns the
    document unmodified.
    """

    def __init__(self, message: str, *, element: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **_merge_context(kwargs, element=element))


def wrap_exception(
    error: Exception,
    message: str,
    *,
    exception_class: type[OpenSepaError] = OpenSepaError,
    **context: Any,
) -> OpenSepaError:
    """Wrap a library exception, keeping it as ``original_error``.

    Example:
        try:
            etree.fromstring(data)
        except etree.XMLSyntaxError as e:
            raise wrap_exception(e, "Invalid XML format", exception_class=InvalidFormatError) from e
    """
    return exception_class(message, context=context, original_error=error)


__all__ = [
    "OpenSepaError",
    "ValidationError",
    "InvalidArgumentError",
    "InvalidFormatError",
    "InvalidChecksumError",
    "MissingFieldError",
    "InvalidFieldTypeError",
    "ConfigurationError",
    "XMLProcessingError",
    "wrap_exception",
]

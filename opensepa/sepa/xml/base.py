"""Shared pipeline for the SEPA XML generators.

Every generator runs the same steps::

    validate -> assemble document -> serialize -> inject postal addresses

and either returns a complete XML string or raises; nothing is written
partially. ``try_generate``/``try_generate_from_dict`` return the outcome as
a :class:`GenerationResult` instead of raising.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Generic, TypeVar

from lxml import etree

from ...exceptions import (
    InvalidFieldTypeError,
    InvalidFormatError,
    MissingFieldError,
    OpenSepaError,
    wrap_exception,
)
from ...utils.config import Settings, get_settings
from ...utils.logging import LogPerformance, get_logger
from ...validation.iban import IbanValidator
from ..application.normalizer import FieldNormalizer, NormalizedPayment, NormalizedTransaction
from ..domain.enums import MessageType
from ..domain.models import CENT, PostalAddress, to_amount
from .addresses import AddressTarget, inject_postal_addresses
from .namespaces import qname

logger = get_logger(__name__)

BatchT = TypeVar("BatchT")

NOT_PROVIDED = "NOTPROVIDED"


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of a generation attempt: either ``xml`` or ``error`` is set."""

    xml: str | None = None
    error: OpenSepaError | None = None

    @classmethod
    def success(cls, xml: str) -> "GenerationResult":
        return cls(xml=xml)

    @classmethod
    def failure(cls, error: OpenSepaError) -> "GenerationResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        """Return the XML or re-raise the captured error."""
        if self.error is not None:
            raise self.error
        assert self.xml is not None
        return self.xml


class BaseSepaGenerator(ABC, Generic[BatchT]):
    """Template for pain.001 / pain.008 generators.

    Subclasses assemble the message-specific tree and map dict payloads onto
    their batch model; validation, serialization and the address post-pass
    live here.
    """

    message_type: MessageType

    def __init__(
        self,
        iban_validator: IbanValidator | None = None,
        settings: Settings | None = None,
        normalizer: FieldNormalizer | None = None,
    ) -> None:
        self.iban_validator = iban_validator or IbanValidator()
        self.settings = settings or get_settings()
        self.normalizer = normalizer or FieldNormalizer()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(self, batch: BatchT) -> str:
        """Build the XML document for a batch.

        Raises:
            InvalidFormatError: An IBAN is malformed
            InvalidChecksumError: An IBAN fails mod-97
        """
        self._validate(batch)

        with LogPerformance(
            "sepa_xml_generation",
            logger,
            message_type=self.message_type.value,
            transactions=len(batch.transactions),  # type: ignore[attr-defined]
        ):
            document = self._build_document(batch)
            xml = self._serialize(document)
            xml = inject_postal_addresses(
                xml,
                list(self._address_targets(batch)),
                pretty_print=self.settings.pretty_print_xml,
            )

        logger.info(
            "sepa_xml_generated",
            message_type=self.message_type.value,
            message_id=batch.message_id,  # type: ignore[attr-defined]
            control_sum=str(batch.control_sum),  # type: ignore[attr-defined]
        )
        return xml

    def generate_from_dict(self, data: Mapping[str, Any]) -> str:
        """Normalize a dict payload, build the batch and generate XML."""
        return self.generate(self.build_batch(data))

    def try_generate(self, batch: BatchT) -> GenerationResult:
        try:
            return GenerationResult.success(self.generate(batch))
        except OpenSepaError as e:
            logger.warning("sepa_xml_generation_rejected", error=str(e), error_type=type(e).__name__)
            return GenerationResult.failure(e)

    def try_generate_from_dict(self, data: Mapping[str, Any]) -> GenerationResult:
        try:
            return GenerationResult.success(self.generate_from_dict(data))
        except OpenSepaError as e:
            logger.warning("sepa_xml_generation_rejected", error=str(e), error_type=type(e).__name__)
            return GenerationResult.failure(e)

    @abstractmethod
    def build_batch(self, data: Mapping[str, Any]) -> BatchT:
        """Map a (possibly aliased) dict payload onto the batch model."""

    # ------------------------------------------------------------------
    # Steps implemented per message type
    # ------------------------------------------------------------------

    @abstractmethod
    def _counterparty_ibans(self, batch: BatchT) -> Iterable[tuple[str, str]]:
        """(field name, IBAN) for every transaction counterparty."""

    @abstractmethod
    def _assemble(self, initiation: etree._Element, batch: BatchT) -> None:
        """Append GrpHdr and PmtInf to the initiation element."""

    @abstractmethod
    def _address_targets(self, batch: BatchT) -> Iterable[AddressTarget]:
        """Addresses to inject after serialization."""

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _validate(self, batch: BatchT) -> None:
        self.iban_validator.validate(batch.creditor_iban, field="creditor_iban")  # type: ignore[attr-defined]
        for field_name, iban in self._counterparty_ibans(batch):
            self.iban_validator.validate(iban, field=field_name)

    def _build_document(self, batch: BatchT) -> etree._Element:
        namespace = self.message_type.namespace
        document = etree.Element(qname(namespace, "Document"), nsmap={None: namespace})
        initiation = self.sub(document, self.message_type.root_element)
        self._assemble(initiation, batch)
        return document

    def _serialize(self, document: etree._Element) -> str:
        return etree.tostring(
            document,
            pretty_print=self.settings.pretty_print_xml,
            xml_declaration=True,
            encoding="UTF-8",
        ).decode("utf-8")

    def sub(self, parent: etree._Element, tag: str, text: str | None = None, **attrib: str) -> etree._Element:
        """Append a child in the message namespace."""
        try:
            element = etree.SubElement(parent, qname(self.message_type.namespace, tag), attrib)
            if text is not None:
                element.text = text
        except ValueError as e:
            raise wrap_exception(
                e,
                f"Value not allowed in XML for {tag}",
                exception_class=InvalidFormatError,
                field=tag,
                constraint="xml_text",
            ) from e
        return element

    def group_header(self, initiation: etree._Element, batch: Any) -> etree._Element:
        header = self.sub(initiation, "GrpHdr")
        self.sub(header, "MsgId", batch.message_id)
        self.sub(header, "CreDtTm", batch.creation_date.isoformat(timespec="seconds"))
        self.sub(header, "NbOfTxs", str(batch.number_of_transactions))
        self.sub(header, "CtrlSum", format_amount(batch.control_sum))
        party = self.sub(header, "InitgPty")
        self.sub(party, "Nm", batch.initiating_party_name)
        return header

    def party(self, parent: etree._Element, tag: str, name: str) -> etree._Element:
        element = self.sub(parent, tag)
        self.sub(element, "Nm", name)
        return element

    def account(self, parent: etree._Element, tag: str, iban: str) -> etree._Element:
        element = self.sub(parent, tag)
        identification = self.sub(element, "Id")
        self.sub(identification, "IBAN", self.iban_validator.normalize(iban))
        return element

    def agent(self, parent: etree._Element, tag: str, bic: str | None) -> etree._Element:
        """Financial institution block; ``Othr/Id=NOTPROVIDED`` when the BIC is unknown."""
        element = self.sub(parent, tag)
        institution = self.sub(element, "FinInstnId")
        if bic:
            self.sub(institution, "BIC", "".join(bic.split()).upper())
        else:
            other = self.sub(institution, "Othr")
            self.sub(other, "Id", NOT_PROVIDED)
        return element

    def remittance(self, parent: etree._Element, text: str | None) -> None:
        if text:
            info = self.sub(parent, "RmtInf")
            self.sub(info, "Ustrd", text)

    # ------------------------------------------------------------------
    # Dict payload helpers
    # ------------------------------------------------------------------

    def normalize_payload(
        self,
        data: Mapping[str, Any],
        required: Iterable[str],
        transaction_required: Iterable[str],
    ) -> NormalizedPayment:
        """Normalize ``data`` and check required payment/transaction fields.

        Raises:
            MissingFieldError: A required key is absent
        """
        payment = self.normalizer.normalize_payment(data)
        require_fields(payment, required)
        for transaction in payment.transactions:
            require_fields(transaction, transaction_required, scope="transaction")
        return payment

    def map_amount(self, value: Any) -> Decimal:
        """Amount from a dict payload, with the minor-units heuristic applied.

        Values strictly above ``Settings.minor_units_threshold`` are read as
        cents. Amounts on model objects never pass through here.
        """
        amount = to_amount(value)
        threshold = self.settings.minor_units_threshold
        if threshold is not None and amount > threshold:
            rescaled = (amount / 100).quantize(CENT, rounding=ROUND_HALF_UP)
            logger.debug("amount_rescaled_from_minor_units", original=str(amount), amount=str(rescaled))
            return rescaled
        return amount

    def currency_for(self, transaction: NormalizedTransaction, payment: NormalizedPayment) -> str:
        return str(
            transaction.get("currency") or payment.get("currency") or self.settings.default_currency
        )


def require_fields(
    payload: NormalizedPayment | NormalizedTransaction,
    required: Iterable[str],
    *,
    scope: str | None = None,
) -> None:
    for field_name in required:
        if payload.get(field_name) is None:
            raise MissingFieldError(field_name, scope=scope)


def format_amount(amount: Decimal) -> str:
    """Exactly two fractional digits, no exponent."""
    return f"{amount.quantize(CENT, rounding=ROUND_HALF_UP):.2f}"


def coerce_date(value: Any, field_name: str) -> date:
    """Accept an ISO string, ``date`` or ``datetime``.

    Raises:
        InvalidFieldTypeError: Any other type
        InvalidFormatError: Unparsable string
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return coerce_datetime(value, field_name).date()
    raise InvalidFieldTypeError(
        f"{field_name} must be a string or date, got {type(value).__name__}",
        field=field_name,
        expected="str | date | datetime",
    )


def coerce_datetime(value: Any, field_name: str) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError as e:
            raise InvalidFormatError(
                f"Invalid {field_name}: {value}",
                field=field_name,
                value=value,
                constraint="ISO 8601 date",
                original_error=e,
            ) from e
    raise InvalidFieldTypeError(
        f"{field_name} must be a string or datetime, got {type(value).__name__}",
        field=field_name,
        expected="str | date | datetime",
    )


def coerce_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str) and value.strip().lower() in {"true", "1", "yes"}:
        return True
    if isinstance(value, str) and value.strip().lower() in {"false", "0", "no", ""}:
        return False
    raise InvalidFieldTypeError(
        f"{field_name} must be a boolean, got {value!r}",
        field=field_name,
        expected="bool",
    )


def coerce_address(value: Any, field_name: str) -> PostalAddress | None:
    """Address block from a dict payload; empty blocks yield None."""
    if isinstance(value, PostalAddress):
        return None if value.is_empty else value
    if not value:
        return None
    if not isinstance(value, Mapping):
        raise InvalidFieldTypeError(
            f"{field_name} must be a mapping, got {type(value).__name__}",
            field=field_name,
            expected="mapping",
        )
    return PostalAddress.from_mapping(value)


def optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None

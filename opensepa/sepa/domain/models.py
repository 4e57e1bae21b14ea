"""SEPA message model.

Value objects describing one payment batch and its transactions:
- Immutable (frozen dataclasses), validated in ``__post_init__``
- Amounts are Decimal currency units with two fractional digits
- Transaction order is the caller's order and is preserved in the XML
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Mapping

from ...exceptions import InvalidArgumentError, InvalidFormatError
from .enums import LocalInstrument, SequenceType

CENT = Decimal("0.01")


def to_amount(value: Any, *, field_name: str = "amount") -> Decimal:
    """Coerce a number or numeric string to a positive two-decimal amount.

    Floats go through ``str()`` so that ``100.5`` becomes ``Decimal("100.50")``
    rather than its binary expansion.

    Raises:
        InvalidFormatError: Not a number
        InvalidArgumentError: Zero, negative or non-finite
        InvalidFormatError: Too many digits to round to cents
    """
    if isinstance(value, bool):
        raise InvalidFormatError(
            f"Invalid {field_name}: {value!r}", field=field_name, value=value, constraint="number"
        )
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise InvalidFormatError(
            f"Invalid {field_name}: {value!r}",
            field=field_name,
            value=value,
            constraint="number",
            original_error=e,
        ) from e

    if not amount.is_finite() or amount <= 0:
        raise InvalidArgumentError(
            f"Amount must be positive, got {value}",
            field=field_name,
            value=value,
            constraint="> 0",
        )
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise InvalidFormatError(
            f"Amount out of range: {value}",
            field=field_name,
            value=value,
            constraint="range",
            original_error=e,
        ) from e


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def _frozen_mapping(data: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True)
class PostalAddress:
    """Postal address of a creditor or debtor.

    Only non-empty fields are rendered as ``PstlAdr`` children; an address
    with no non-empty field is not rendered at all.
    """

    street: str | None = None
    city: str | None = None
    postal_code: str | None = None
    country: str | None = None

    @property
    def is_empty(self) -> bool:
        return not any((self.street, self.city, self.postal_code, self.country))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "PostalAddress | None":
        """Build from ``street|address``, ``city``, ``postalCode|postal_code``, ``country``.

        Returns None for a missing or all-empty mapping.
        """
        if not data:
            return None

        address = cls(
            street=_clean(data.get("street") or data.get("address")),
            city=_clean(data.get("city")),
            postal_code=_clean(data.get("postalCode") or data.get("postal_code")),
            country=_clean(data.get("country")),
        )
        return None if address.is_empty else address

    def to_dict(self) -> dict[str, str | None]:
        return {
            "street": self.street,
            "city": self.city,
            "postalCode": self.postal_code,
            "country": self.country,
        }


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class CreditTransferTransaction:
    """One credit transfer instruction (``CdtTrfTxInf``).

    The counterparty is the party receiving the money.
    """

    end_to_end_id: str
    amount: Decimal
    counterparty_iban: str
    counterparty_name: str
    currency: str = "EUR"
    counterparty_bic: str | None = None
    remittance_information: str | None = None
    counterparty_address: PostalAddress | None = None
    additional_data: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_amount(self.amount))
        object.__setattr__(self, "currency", self.currency.upper())
        object.__setattr__(self, "additional_data", _frozen_mapping(self.additional_data))
        if not self.end_to_end_id:
            raise InvalidArgumentError(
                "End-to-end id cannot be empty", field="end_to_end_id", constraint="required"
            )

    def get_additional_field(self, key: str, default: Any = None) -> Any:
        """Caller-supplied data carried alongside the transaction, never serialized."""
        return self.additional_data.get(key, default)


@dataclass(frozen=True)
class DirectDebitTransaction:
    """One direct debit instruction (``DrctDbtTxInf``) under a signed mandate."""

    end_to_end_id: str
    amount: Decimal
    debtor_iban: str
    debtor_name: str
    mandate_id: str
    mandate_sign_date: date
    currency: str = "EUR"
    debtor_bic: str | None = None
    remittance_information: str | None = None
    debtor_address: PostalAddress | None = None
    additional_data: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_amount(self.amount))
        object.__setattr__(self, "currency", self.currency.upper())
        object.__setattr__(self, "mandate_sign_date", _as_date(self.mandate_sign_date))
        object.__setattr__(self, "additional_data", _frozen_mapping(self.additional_data))
        if not self.end_to_end_id:
            raise InvalidArgumentError(
                "End-to-end id cannot be empty", field="end_to_end_id", constraint="required"
            )
        if not self.mandate_id:
            raise InvalidArgumentError(
                "Mandate id cannot be empty", field="mandate_id", constraint="required"
            )

    def get_additional_field(self, key: str, default: Any = None) -> Any:
        return self.additional_data.get(key, default)


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


class _BatchTotals:
    """Aggregates shared by both batch types."""

    transactions: tuple

    @property
    def number_of_transactions(self) -> int:
        return len(self.transactions)

    @property
    def control_sum(self) -> Decimal:
        """Exact sum of the transaction amounts."""
        return sum((tx.amount for tx in self.transactions), Decimal("0.00"))

    def with_transaction(self, transaction: Any) -> Any:
        """Return a copy of the batch with ``transaction`` appended."""
        return replace(self, transactions=(*self.transactions, transaction))


@dataclass(frozen=True)
class CreditTransferBatch(_BatchTotals):
    """Credit transfer initiation (pain.001): one payer account, many payees.

    ``creditor_*`` names the ordering account the money leaves from; each
    transaction names the receiving counterparty.
    """

    message_id: str
    initiating_party_name: str
    payment_info_id: str
    requested_execution_date: date
    creditor_name: str
    creditor_iban: str
    transactions: tuple[CreditTransferTransaction, ...] = ()
    creation_date: datetime = field(default_factory=_now)
    creditor_bic: str | None = None
    batch_booking: bool = False
    creditor_address: PostalAddress | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "transactions", tuple(self.transactions))
        object.__setattr__(
            self, "requested_execution_date", _as_date(self.requested_execution_date)
        )


@dataclass(frozen=True)
class DirectDebitBatch(_BatchTotals):
    """Direct debit initiation (pain.008): one creditor collecting from many debtors."""

    message_id: str
    initiating_party_name: str
    payment_info_id: str
    due_date: date
    creditor_name: str
    creditor_iban: str
    sequence_type: SequenceType
    creditor_id: str
    local_instrument_code: LocalInstrument = LocalInstrument.CORE
    transactions: tuple[DirectDebitTransaction, ...] = ()
    creation_date: datetime = field(default_factory=_now)
    creditor_bic: str | None = None
    batch_booking: bool | None = None
    creditor_address: PostalAddress | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "transactions", tuple(self.transactions))
        object.__setattr__(self, "due_date", _as_date(self.due_date))
        object.__setattr__(
            self,
            "sequence_type",
            _enum_member(SequenceType, self.sequence_type, "sequence_type"),
        )
        object.__setattr__(
            self,
            "local_instrument_code",
            _enum_member(LocalInstrument, self.local_instrument_code, "local_instrument_code"),
        )


def _enum_member(enum_cls: Any, value: Any, field_name: str) -> Any:
    try:
        return enum_cls(str(value).upper())
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidFormatError(
            f"Invalid {field_name.replace('_', ' ')}: {value}",
            field=field_name,
            value=value,
            constraint=f"one of {allowed}",
        ) from e


@dataclass(frozen=True)
class Mandate:
    """SEPA direct debit mandate signed by a debtor.

    Lifecycle:
        FRST → RCUR → ... → FNAL, or OOFF for a single collection.
    """

    mandate_id: str
    signature_date: date
    debtor_iban: str
    debtor_name: str
    mandate_type: LocalInstrument = LocalInstrument.CORE
    sequence_type: SequenceType = SequenceType.FIRST
    debtor_bic: str | None = None
    active: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "signature_date", _as_date(self.signature_date))
        object.__setattr__(
            self, "mandate_type", _enum_member(LocalInstrument, self.mandate_type, "mandate_type")
        )
        object.__setattr__(
            self,
            "sequence_type",
            _enum_member(SequenceType, self.sequence_type, "sequence_type"),
        )

    def with_sequence_type(self, sequence_type: SequenceType | str) -> "Mandate":
        return replace(self, sequence_type=sequence_type)

    def deactivate(self) -> "Mandate":
        return replace(self, active=False)

    def to_transaction(
        self,
        end_to_end_id: str,
        amount: Decimal | int | float | str,
        *,
        currency: str = "EUR",
        remittance_information: str | None = None,
        debtor_address: PostalAddress | None = None,
    ) -> DirectDebitTransaction:
        """Collection instruction drawn on this mandate.

        Raises:
            InvalidArgumentError: If the mandate is no longer active
        """
        if not self.active:
            raise InvalidArgumentError(
                f"Mandate {self.mandate_id} is not active",
                field="mandate_id",
                value=self.mandate_id,
                constraint="active",
            )
        return DirectDebitTransaction(
            end_to_end_id=end_to_end_id,
            amount=amount,
            debtor_iban=self.debtor_iban,
            debtor_name=self.debtor_name,
            mandate_id=self.mandate_id,
            mandate_sign_date=self.signature_date,
            currency=currency,
            debtor_bic=self.debtor_bic,
            remittance_information=remittance_information,
            debtor_address=debtor_address,
        )

"""Field normalization for dict-based SEPA payloads.

Integrations send the same payment in several spellings (camelCase,
snake_case, shorthand). The normalizer rewrites a payload onto the
canonical camelCase keys consumed by the generators and keeps everything
it does not recognize in an ``extra`` mapping.

Rules:
- Applied once, shallowly, to the payment map and once per transaction map
- A canonical key wins over any of its aliases
- Among several aliases of the same key, the first one in input order wins
- Flat ``creditor_street``/``debtor_city``... keys fold into a nested address block
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from ...exceptions import InvalidFieldTypeError
from ...utils.logging import get_logger

logger = get_logger(__name__)

PAYMENT_FIELDS = frozenset(
    {
        "reference",
        "bankAccountOwner",
        "paymentInfoId",
        "dueDate",
        "creditorName",
        "creditorIban",
        "creditorBic",
        "creditorAddress",
        "seqType",
        "creditorId",
        "localInstrumentCode",
        "batchBooking",
        "creationDate",
        "currency",
        "transactions",
    }
)

PAYMENT_FIELD_ALIASES: dict[str, str] = {
    "message_id": "reference",
    "messageId": "reference",
    "initiating_party_name": "bankAccountOwner",
    "initiatingPartyName": "bankAccountOwner",
    "payment_name": "paymentInfoId",
    "payment_info_id": "paymentInfoId",
    "due_date": "dueDate",
    "execution_date": "dueDate",
    "executionDate": "dueDate",
    "requested_execution_date": "dueDate",
    "requestedExecutionDate": "dueDate",
    "creditor_name": "creditorName",
    "creditor_iban": "creditorIban",
    "creditor_bic": "creditorBic",
    "creditor_address": "creditorAddress",
    "sequence_type": "seqType",
    "seq_type": "seqType",
    "sequenceType": "seqType",
    "creditor_id": "creditorId",
    "instrument_code": "localInstrumentCode",
    "local_instrument_code": "localInstrumentCode",
    "batch_booking": "batchBooking",
    "creation_date": "creationDate",
    "items": "transactions",
}

TRANSACTION_FIELDS = frozenset(
    {
        "amount",
        "currency",
        "endToEndId",
        "debtorIban",
        "debtorName",
        "debtorBic",
        "debtorAddress",
        "debtorMandate",
        "debtorMandateSignDate",
        "remittanceInformation",
    }
)

TRANSACTION_FIELD_ALIASES: dict[str, str] = {
    "instruction_id": "endToEndId",
    "end_to_end_id": "endToEndId",
    "information": "remittanceInformation",
    "remittance_information": "remittanceInformation",
    "debtor_iban": "debtorIban",
    "debtor_name": "debtorName",
    "debtor_bic": "debtorBic",
    "debtor_address": "debtorAddress",
    "debtor_mandate": "debtorMandate",
    "mandate_id": "debtorMandate",
    "debtor_mandate_signature_date": "debtorMandateSignDate",
    "debtor_mandate_sign_date": "debtorMandateSignDate",
    "counterpartyIban": "debtorIban",
    "counterparty_iban": "debtorIban",
    "counterpartyName": "debtorName",
    "counterparty_name": "debtorName",
    "counterpartyBic": "debtorBic",
    "counterparty_bic": "debtorBic",
    "counterpartyAddress": "debtorAddress",
    "counterparty_address": "debtorAddress",
}

# Flat address keys: {prefix}_{suffix} -> nested address key
_ADDRESS_SUFFIXES: dict[str, str] = {
    "street": "street",
    "city": "city",
    "postal_code": "postalCode",
    "country": "country",
}


@dataclass(frozen=True)
class NormalizedTransaction:
    """Canonical transaction fields plus unrecognized keys."""

    fields: dict[str, Any]
    extra: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self.fields


@dataclass(frozen=True)
class NormalizedPayment:
    """Canonical payment fields, normalized transactions and unrecognized keys."""

    fields: dict[str, Any]
    transactions: list[NormalizedTransaction] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self.fields


class FieldNormalizer:
    """Rewrite payload keys onto the canonical camelCase spelling.

    Example:
        >>> normalizer = FieldNormalizer()
        >>> payment = normalizer.normalize_payment({"message_id": "MSG-1", "items": []})
        >>> payment.get("reference")
        'MSG-1'
    """

    def normalize_payment(self, data: Mapping[str, Any]) -> NormalizedPayment:
        """Normalize the payment map and each of its transactions.

        Raises:
            InvalidFieldTypeError: ``transactions`` is not a list of mappings
        """
        fields, extra = _canonicalize(
            data,
            PAYMENT_FIELDS,
            PAYMENT_FIELD_ALIASES,
            address_prefix="creditor",
            address_key="creditorAddress",
        )

        raw_transactions = fields.pop("transactions", None)
        transactions = [
            self.normalize_transaction(item) for item in _transaction_list(raw_transactions)
        ]

        logger.debug(
            "payment_fields_normalized",
            canonical=len(fields),
            extra=len(extra),
            transactions=len(transactions),
        )
        return NormalizedPayment(fields=fields, transactions=transactions, extra=extra)

    def normalize_transaction(self, data: Mapping[str, Any]) -> NormalizedTransaction:
        if not isinstance(data, Mapping):
            raise InvalidFieldTypeError(
                f"Transaction must be a mapping, got {type(data).__name__}",
                field="transactions",
                expected="mapping",
            )
        fields, extra = _canonicalize(
            data,
            TRANSACTION_FIELDS,
            TRANSACTION_FIELD_ALIASES,
            address_prefix="debtor",
            address_key="debtorAddress",
        )
        return NormalizedTransaction(fields=fields, extra=extra)


def _transaction_list(value: Any) -> Sequence[Any]:
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise InvalidFieldTypeError(
            f"transactions must be a list, got {type(value).__name__}",
            field="transactions",
            expected="list",
        )
    return value


def _canonicalize(
    data: Mapping[str, Any],
    canonical: frozenset[str],
    aliases: dict[str, str],
    *,
    address_prefix: str,
    address_key: str,
) -> tuple[dict[str, Any], dict[str, Any]]:
    fields: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    flat_address: dict[str, Any] = {}

    # None counts as absent, so an alias can still supply the value
    for key, value in data.items():
        if key in canonical and value is not None:
            fields[key] = value

    for key, value in data.items():
        if key in canonical:
            continue
        target = aliases.get(key)
        if target is not None:
            if target not in fields and value is not None:
                fields[target] = value
            continue

        suffix = _address_suffix(key, address_prefix)
        if suffix is not None:
            flat_address[suffix] = value
        else:
            extra[key] = value

    if flat_address:
        nested = fields.get(address_key)
        merged = dict(flat_address)
        if isinstance(nested, Mapping):
            merged.update({k: v for k, v in nested.items() if v not in (None, "")})
        fields[address_key] = merged

    return fields, extra


def _address_suffix(key: str, prefix: str) -> str | None:
    head = f"{prefix}_"
    if not key.startswith(head):
        return None
    return _ADDRESS_SUFFIXES.get(key[len(head) :])

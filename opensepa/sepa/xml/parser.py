"""Read back pain.001 credit transfers and pain.008 direct debits.

Lookups are namespace-aware (the namespace is taken from the document root)
and descend freely inside each transaction block, so both strictly nested
``PmtId/EndToEndId`` and flattened layouts are understood.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from lxml import etree

from ...exceptions import InvalidFormatError, wrap_exception
from ...utils.logging import get_logger
from ..domain.enums import MessageType
from .namespaces import namespace_of, qname

logger = get_logger(__name__)


@dataclass(frozen=True)
class ParsedTransaction:
    end_to_end_id: str | None = None
    amount: Decimal | None = None
    currency: str | None = None
    iban: str | None = None
    name: str | None = None
    remittance_information: str | None = None
    mandate_id: str | None = None
    mandate_sign_date: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _without_none(
            {
                "endToEndId": self.end_to_end_id,
                "amount": self.amount,
                "currency": self.currency,
                "iban": self.iban,
                "name": self.name,
                "remittanceInformation": self.remittance_information,
                "mandateId": self.mandate_id,
                "mandateSignDate": self.mandate_sign_date,
            }
        )


@dataclass(frozen=True)
class ParsedMessage:
    """Header, payment information and transactions of a parsed message.

    ``creation_date`` is kept as the literal ``CreDtTm`` text.
    """

    message_type: MessageType
    message_id: str | None = None
    creation_date: str | None = None
    initiating_party_name: str | None = None
    payment_info_id: str | None = None
    number_of_transactions: int | None = None
    control_sum: Decimal | None = None
    creditor_id: str | None = None
    sequence_type: str | None = None
    transactions: list[ParsedTransaction] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """camelCase view; absent elements are left out, ``transactions`` is always present."""
        data = _without_none(
            {
                "messageId": self.message_id,
                "creationDate": self.creation_date,
                "initiatingPartyName": self.initiating_party_name,
                "paymentInfoId": self.payment_info_id,
                "numberOfTransactions": self.number_of_transactions,
                "controlSum": self.control_sum,
                "creditorId": self.creditor_id,
                "sequenceType": self.sequence_type,
            }
        )
        data["transactions"] = [transaction.to_dict() for transaction in self.transactions]
        return data


def _without_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


class SepaParser:
    """Parse SEPA initiation messages.

    Example:
        >>> parser = SepaParser()
        >>> message = parser.parse_credit_transfer(xml)
        >>> message.control_sum
        Decimal('301.25')
    """

    def parse_credit_transfer(self, xml: str | bytes) -> ParsedMessage:
        """Extract header, payment info and ``CdtTrfTxInf`` entries.

        Raises:
            InvalidFormatError: The input is not well-formed XML
        """
        root = self._load(xml)
        lookup = _Lookup(root)

        transactions = [
            ParsedTransaction(
                end_to_end_id=lookup.text(tx, "EndToEndId"),
                amount=lookup.decimal(tx, "InstdAmt"),
                currency=lookup.attribute(tx, "InstdAmt", "Ccy"),
                iban=lookup.text(tx, "CdtrAcct", "IBAN") or lookup.text(tx, "IBAN"),
                name=lookup.text(tx, "Cdtr", "Nm") or lookup.text(tx, "Nm"),
                remittance_information=lookup.text(tx, "Ustrd"),
            )
            for tx in lookup.all("CdtTrfTxInf")
        ]

        message = self._message(MessageType.CREDIT_TRANSFER, lookup, transactions)
        logger.debug(
            "credit_transfer_parsed",
            message_id=message.message_id,
            transactions=len(transactions),
        )
        return message

    def parse_direct_debit(self, xml: str | bytes) -> ParsedMessage:
        """Extract header, payment info, scheme data and ``DrctDbtTxInf`` entries.

        Raises:
            InvalidFormatError: The input is not well-formed XML
        """
        root = self._load(xml)
        lookup = _Lookup(root)

        transactions = [
            ParsedTransaction(
                end_to_end_id=lookup.text(tx, "EndToEndId"),
                amount=lookup.decimal(tx, "InstdAmt"),
                currency=lookup.attribute(tx, "InstdAmt", "Ccy"),
                iban=lookup.text(tx, "DbtrAcct", "IBAN") or lookup.text(tx, "IBAN"),
                name=lookup.text(tx, "Dbtr", "Nm") or lookup.text(tx, "Nm"),
                remittance_information=lookup.text(tx, "Ustrd"),
                mandate_id=lookup.text(tx, "MndtId"),
                mandate_sign_date=lookup.text(tx, "DtOfSgntr"),
            )
            for tx in lookup.all("DrctDbtTxInf")
        ]

        message = self._message(
            MessageType.DIRECT_DEBIT,
            lookup,
            transactions,
            creditor_id=lookup.text(root, "CdtrSchmeId", "Othr", "Id"),
            sequence_type=lookup.text(root, "SeqTp"),
        )
        logger.debug(
            "direct_debit_parsed",
            message_id=message.message_id,
            transactions=len(transactions),
        )
        return message

    def is_valid_credit_transfer(self, xml: str | bytes) -> bool:
        """Well-formed, has ``CstmrCdtTrfInitn`` and a ``MsgId``. Never raises."""
        return self._has_initiation(xml, MessageType.CREDIT_TRANSFER)

    def is_valid_direct_debit(self, xml: str | bytes) -> bool:
        return self._has_initiation(xml, MessageType.DIRECT_DEBIT)

    def _has_initiation(self, xml: str | bytes, message_type: MessageType) -> bool:
        try:
            root = self._load(xml)
        except InvalidFormatError:
            return False
        lookup = _Lookup(root)
        return lookup.first(root, message_type.root_element) is not None and (
            lookup.first(root, "MsgId") is not None
        )

    @staticmethod
    def _message(
        message_type: MessageType,
        lookup: "_Lookup",
        transactions: list[ParsedTransaction],
        **extra: Any,
    ) -> ParsedMessage:
        root = lookup.root
        count = lookup.text(root, "NbOfTxs")
        return ParsedMessage(
            message_type=message_type,
            message_id=lookup.text(root, "MsgId"),
            creation_date=lookup.text(root, "CreDtTm"),
            initiating_party_name=lookup.text(root, "InitgPty", "Nm"),
            payment_info_id=lookup.text(root, "PmtInfId"),
            number_of_transactions=int(count) if count and count.isdigit() else None,
            control_sum=lookup.decimal(root, "CtrlSum"),
            transactions=transactions,
            **extra,
        )

    @staticmethod
    def _load(xml: str | bytes) -> etree._Element:
        if not isinstance(xml, (str, bytes)):
            raise InvalidFormatError(
                "Invalid XML format",
                value=type(xml).__name__,
                constraint="str or bytes",
            )
        data = xml.encode("utf-8") if isinstance(xml, str) else xml
        parser = etree.XMLParser(resolve_entities=False, no_network=True)
        try:
            return etree.fromstring(data.strip(), parser)
        except (etree.XMLSyntaxError, ValueError) as e:
            raise wrap_exception(
                e, "Invalid XML format", exception_class=InvalidFormatError
            ) from e


class _Lookup:
    """Descendant lookups in the root element's namespace."""

    def __init__(self, root: etree._Element) -> None:
        self.root = root
        self.namespace = namespace_of(root)

    def _path(self, *names: str) -> str:
        return ".//" + "//".join(qname(self.namespace, name) for name in names)

    def all(self, name: str) -> list[etree._Element]:
        return self.root.findall(self._path(name))

    def first(self, element: etree._Element, *names: str) -> etree._Element | None:
        return element.find(self._path(*names))

    def text(self, element: etree._Element, *names: str) -> str | None:
        found = self.first(element, *names)
        if found is None or found.text is None:
            return None
        return found.text.strip() or None

    def attribute(self, element: etree._Element, name: str, attribute: str) -> str | None:
        found = self.first(element, name)
        return None if found is None else found.get(attribute)

    def decimal(self, element: etree._Element, *names: str) -> Decimal | None:
        value = self.text(element, *names)
        if value is None:
            return None
        try:
            return Decimal(value)
        except InvalidOperation:
            return None

"""SEPA Credit Transfer initiation (pain.001.001.03).

Layout::

    Document/CstmrCdtTrfInitn
      GrpHdr        MsgId, CreDtTm, NbOfTxs, CtrlSum, InitgPty/Nm
      PmtInf        PmtInfId, PmtMtd=TRF, BtchBookg, NbOfTxs, CtrlSum,
                    PmtTpInf/SvcLvl/Cd=SEPA, ReqdExctnDt,
                    Dbtr, DbtrAcct, DbtrAgt, ChrgBr=SLEV
        CdtTrfTxInf PmtId/EndToEndId, Amt/InstdAmt@Ccy, CdtrAgt,
                    Cdtr, CdtrAcct, RmtInf/Ustrd

The batch's ``creditor_*`` account is the ordering account and is written
as ``Dbtr``/``DbtrAcct``; each transaction's counterparty is the ``Cdtr``.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from lxml import etree

from ..domain.enums import MessageType, PaymentMethod
from ..domain.models import CreditTransferBatch, CreditTransferTransaction
from .addresses import AddressTarget
from .base import (
    BaseSepaGenerator,
    coerce_address,
    coerce_bool,
    coerce_date,
    coerce_datetime,
    format_amount,
    optional_text,
)

PAYMENT_REQUIRED_FIELDS = (
    "reference",
    "bankAccountOwner",
    "paymentInfoId",
    "dueDate",
    "creditorName",
    "creditorIban",
)

TRANSACTION_REQUIRED_FIELDS = ("amount", "debtorIban", "debtorName", "endToEndId")


class CreditTransferGenerator(BaseSepaGenerator[CreditTransferBatch]):
    """Generate pain.001.001.03 payment files.

    Example:
        >>> generator = CreditTransferGenerator(IbanValidator())
        >>> xml = generator.generate_from_dict({
        ...     "reference": "MSG-001",
        ...     "bankAccountOwner": "My Company",
        ...     "paymentInfoId": "PMT-001",
        ...     "dueDate": "2024-01-20",
        ...     "creditorName": "My Company",
        ...     "creditorIban": "ES9121000418450200051332",
        ...     "transactions": [{
        ...         "amount": 100.50,
        ...         "debtorIban": "GB82WEST12345698765432",
        ...         "debtorName": "John Doe",
        ...         "endToEndId": "E2E-001",
        ...     }],
        ... })
    """

    message_type = MessageType.CREDIT_TRANSFER

    def build_batch(self, data: Mapping[str, Any]) -> CreditTransferBatch:
        """Map a dict payload onto a :class:`CreditTransferBatch`.

        Raises:
            MissingFieldError: A required payment or transaction key is absent
            InvalidFieldTypeError: A date, flag or address has the wrong type
            InvalidFormatError: A date string or amount cannot be parsed
        """
        payment = self.normalize_payload(data, PAYMENT_REQUIRED_FIELDS, TRANSACTION_REQUIRED_FIELDS)

        transactions = [
            CreditTransferTransaction(
                end_to_end_id=str(tx.get("endToEndId")),
                amount=self.map_amount(tx.get("amount")),
                counterparty_iban=str(tx.get("debtorIban")),
                counterparty_name=str(tx.get("debtorName")),
                currency=self.currency_for(tx, payment),
                counterparty_bic=optional_text(tx.get("debtorBic")),
                remittance_information=optional_text(tx.get("remittanceInformation")),
                counterparty_address=coerce_address(tx.get("debtorAddress"), "debtorAddress"),
                additional_data=tx.extra,
            )
            for tx in payment.transactions
        ]

        optional: dict[str, Any] = {}
        if payment.get("creationDate") is not None:
            optional["creation_date"] = coerce_datetime(payment.get("creationDate"), "creationDate")

        return CreditTransferBatch(
            message_id=str(payment.get("reference")),
            initiating_party_name=str(payment.get("bankAccountOwner")),
            payment_info_id=str(payment.get("paymentInfoId")),
            requested_execution_date=coerce_date(payment.get("dueDate"), "dueDate"),
            creditor_name=str(payment.get("creditorName")),
            creditor_iban=str(payment.get("creditorIban")),
            transactions=tuple(transactions),
            creditor_bic=optional_text(payment.get("creditorBic")),
            batch_booking=coerce_bool(payment.get("batchBooking", False), "batchBooking"),
            creditor_address=coerce_address(payment.get("creditorAddress"), "creditorAddress"),
            **optional,
        )

    def _counterparty_ibans(self, batch: CreditTransferBatch) -> Iterable[tuple[str, str]]:
        for transaction in batch.transactions:
            yield "counterparty_iban", transaction.counterparty_iban

    def _assemble(self, initiation: etree._Element, batch: CreditTransferBatch) -> None:
        self.group_header(initiation, batch)

        info = self.sub(initiation, "PmtInf")
        self.sub(info, "PmtInfId", batch.payment_info_id)
        self.sub(info, "PmtMtd", PaymentMethod.TRANSFER.value)
        self.sub(info, "BtchBookg", "true" if batch.batch_booking else "false")
        self.sub(info, "NbOfTxs", str(batch.number_of_transactions))
        self.sub(info, "CtrlSum", format_amount(batch.control_sum))
        payment_type = self.sub(info, "PmtTpInf")
        service_level = self.sub(payment_type, "SvcLvl")
        self.sub(service_level, "Cd", "SEPA")
        self.sub(info, "ReqdExctnDt", batch.requested_execution_date.isoformat())
        self.party(info, "Dbtr", batch.creditor_name)
        self.account(info, "DbtrAcct", batch.creditor_iban)
        self.agent(info, "DbtrAgt", batch.creditor_bic)
        self.sub(info, "ChrgBr", "SLEV")

        for transaction in batch.transactions:
            self._transaction(info, transaction)

    def _transaction(self, info: etree._Element, transaction: CreditTransferTransaction) -> None:
        element = self.sub(info, "CdtTrfTxInf")
        payment_id = self.sub(element, "PmtId")
        self.sub(payment_id, "EndToEndId", transaction.end_to_end_id)
        amount = self.sub(element, "Amt")
        self.sub(amount, "InstdAmt", format_amount(transaction.amount), Ccy=transaction.currency)
        self.agent(element, "CdtrAgt", transaction.counterparty_bic)
        self.party(element, "Cdtr", transaction.counterparty_name)
        self.account(element, "CdtrAcct", transaction.counterparty_iban)
        self.remittance(element, transaction.remittance_information)

    def _address_targets(self, batch: CreditTransferBatch) -> Iterable[AddressTarget]:
        if batch.creditor_address is not None:
            yield AddressTarget("PmtInf", 0, "Dbtr", batch.creditor_address)
        for index, transaction in enumerate(batch.transactions):
            if transaction.counterparty_address is not None:
                yield AddressTarget("CdtTrfTxInf", index, "Cdtr", transaction.counterparty_address)

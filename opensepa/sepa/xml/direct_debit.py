"""SEPA Direct Debit initiation (pain.008.001.02).

Layout::

    Document/CstmrDrctDbtInitn
      GrpHdr         MsgId, CreDtTm, NbOfTxs, CtrlSum, InitgPty/Nm
      PmtInf         PmtInfId, PmtMtd=DD, [BtchBookg], NbOfTxs, CtrlSum,
                     PmtTpInf(SvcLvl/Cd=SEPA, LclInstrm/Cd, SeqTp),
                     ReqdColltnDt, Cdtr, CdtrAcct, CdtrAgt, ChrgBr=SLEV,
                     CdtrSchmeId/Id/PrvtId/Othr(Id, SchmeNm/Prtry=SEPA)
        DrctDbtTxInf PmtId/EndToEndId, InstdAmt@Ccy,
                     DrctDbtTx/MndtRltdInf(MndtId, DtOfSgntr),
                     DbtrAgt, Dbtr, DbtrAcct, RmtInf/Ustrd
"""

from collections.abc import Iterable, Mapping
from typing import Any

from lxml import etree

from ..domain.enums import MessageType, PaymentMethod
from ..domain.models import DirectDebitBatch, DirectDebitTransaction
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
    "seqType",
    "creditorId",
    "localInstrumentCode",
)

TRANSACTION_REQUIRED_FIELDS = ("amount", "debtorIban", "debtorName", "debtorMandate", "endToEndId")


class DirectDebitGenerator(BaseSepaGenerator[DirectDebitBatch]):
    """Generate pain.008.001.02 collection files.

    A transaction without ``debtorMandateSignDate`` uses the batch due date
    as its mandate signature date.
    """

    message_type = MessageType.DIRECT_DEBIT

    def build_batch(self, data: Mapping[str, Any]) -> DirectDebitBatch:
        payment = self.normalize_payload(data, PAYMENT_REQUIRED_FIELDS, TRANSACTION_REQUIRED_FIELDS)
        due_date = coerce_date(payment.get("dueDate"), "dueDate")

        transactions = []
        for tx in payment.transactions:
            sign_date = tx.get("debtorMandateSignDate")
            transactions.append(
                DirectDebitTransaction(
                    end_to_end_id=str(tx.get("endToEndId")),
                    amount=self.map_amount(tx.get("amount")),
                    debtor_iban=str(tx.get("debtorIban")),
                    debtor_name=str(tx.get("debtorName")),
                    mandate_id=str(tx.get("debtorMandate")),
                    mandate_sign_date=(
                        due_date
                        if sign_date is None
                        else coerce_date(sign_date, "debtorMandateSignDate")
                    ),
                    currency=self.currency_for(tx, payment),
                    debtor_bic=optional_text(tx.get("debtorBic")),
                    remittance_information=optional_text(tx.get("remittanceInformation")),
                    debtor_address=coerce_address(tx.get("debtorAddress"), "debtorAddress"),
                    additional_data=tx.extra,
                )
            )

        optional: dict[str, Any] = {}
        if payment.get("creationDate") is not None:
            optional["creation_date"] = coerce_datetime(payment.get("creationDate"), "creationDate")
        if payment.get("batchBooking") is not None:
            optional["batch_booking"] = coerce_bool(payment.get("batchBooking"), "batchBooking")

        return DirectDebitBatch(
            message_id=str(payment.get("reference")),
            initiating_party_name=str(payment.get("bankAccountOwner")),
            payment_info_id=str(payment.get("paymentInfoId")),
            due_date=due_date,
            creditor_name=str(payment.get("creditorName")),
            creditor_iban=str(payment.get("creditorIban")),
            sequence_type=payment.get("seqType"),
            creditor_id=str(payment.get("creditorId")),
            local_instrument_code=payment.get("localInstrumentCode"),
            transactions=tuple(transactions),
            creditor_bic=optional_text(payment.get("creditorBic")),
            creditor_address=coerce_address(payment.get("creditorAddress"), "creditorAddress"),
            **optional,
        )

    def _counterparty_ibans(self, batch: DirectDebitBatch) -> Iterable[tuple[str, str]]:
        for transaction in batch.transactions:
            yield "debtor_iban", transaction.debtor_iban

    def _assemble(self, initiation: etree._Element, batch: DirectDebitBatch) -> None:
        self.group_header(initiation, batch)

        info = self.sub(initiation, "PmtInf")
        self.sub(info, "PmtInfId", batch.payment_info_id)
        self.sub(info, "PmtMtd", PaymentMethod.DIRECT_DEBIT.value)
        if batch.batch_booking is not None:
            self.sub(info, "BtchBookg", "true" if batch.batch_booking else "false")
        self.sub(info, "NbOfTxs", str(batch.number_of_transactions))
        self.sub(info, "CtrlSum", format_amount(batch.control_sum))

        payment_type = self.sub(info, "PmtTpInf")
        service_level = self.sub(payment_type, "SvcLvl")
        self.sub(service_level, "Cd", "SEPA")
        instrument = self.sub(payment_type, "LclInstrm")
        self.sub(instrument, "Cd", batch.local_instrument_code.value)
        self.sub(payment_type, "SeqTp", batch.sequence_type.value)

        self.sub(info, "ReqdColltnDt", batch.due_date.isoformat())
        self.party(info, "Cdtr", batch.creditor_name)
        self.account(info, "CdtrAcct", batch.creditor_iban)
        self.agent(info, "CdtrAgt", batch.creditor_bic)
        self.sub(info, "ChrgBr", "SLEV")
        self._creditor_scheme_id(info, batch.creditor_id)

        for transaction in batch.transactions:
            self._transaction(info, transaction)

    def _creditor_scheme_id(self, info: etree._Element, creditor_id: str) -> None:
        scheme = self.sub(info, "CdtrSchmeId")
        identification = self.sub(scheme, "Id")
        private = self.sub(identification, "PrvtId")
        other = self.sub(private, "Othr")
        self.sub(other, "Id", creditor_id)
        scheme_name = self.sub(other, "SchmeNm")
        self.sub(scheme_name, "Prtry", "SEPA")

    def _transaction(self, info: etree._Element, transaction: DirectDebitTransaction) -> None:
        element = self.sub(info, "DrctDbtTxInf")
        payment_id = self.sub(element, "PmtId")
        self.sub(payment_id, "EndToEndId", transaction.end_to_end_id)
        self.sub(element, "InstdAmt", format_amount(transaction.amount), Ccy=transaction.currency)

        debit = self.sub(element, "DrctDbtTx")
        mandate = self.sub(debit, "MndtRltdInf")
        self.sub(mandate, "MndtId", transaction.mandate_id)
        self.sub(mandate, "DtOfSgntr", transaction.mandate_sign_date.isoformat())

        self.agent(element, "DbtrAgt", transaction.debtor_bic)
        self.party(element, "Dbtr", transaction.debtor_name)
        self.account(element, "DbtrAcct", transaction.debtor_iban)
        self.remittance(element, transaction.remittance_information)

    def _address_targets(self, batch: DirectDebitBatch) -> Iterable[AddressTarget]:
        if batch.creditor_address is not None:
            yield AddressTarget("PmtInf", 0, "Cdtr", batch.creditor_address)
        for index, transaction in enumerate(batch.transactions):
            if transaction.debtor_address is not None:
                yield AddressTarget("DrctDbtTxInf", index, "Dbtr", transaction.debtor_address)

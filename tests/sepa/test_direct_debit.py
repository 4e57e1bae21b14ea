"""Tests for the pain.008 direct debit generator."""

from dataclasses import replace
from decimal import Decimal

import pytest
from lxml import etree

from opensepa.exceptions import InvalidFieldTypeError, InvalidFormatError, MissingFieldError
from opensepa.sepa.domain import PostalAddress, SequenceType
from opensepa.sepa.xml import DirectDebitGenerator
from opensepa.utils.config import Settings

pytestmark = pytest.mark.unit

NS = {"p": "urn:iso:std:iso:20022:tech:xsd:pain.008.001.02"}


def _tree(xml: str) -> etree._Element:
    return etree.fromstring(xml.encode("utf-8"))


def _text(root: etree._Element, path: str) -> list[str]:
    return [element.text for element in root.xpath(path, namespaces=NS)]


class TestGenerate:
    def test_document_structure(self, dd_generator, direct_debit_batch):
        root = _tree(dd_generator.generate(direct_debit_batch))

        assert root.tag == "{urn:iso:std:iso:20022:tech:xsd:pain.008.001.02}Document"
        assert _text(root, "//p:GrpHdr/p:MsgId") == ["MSG-001"]
        assert _text(root, "//p:GrpHdr/p:CtrlSum") == ["100.50"]
        assert _text(root, "//p:PmtInf/p:PmtMtd") == ["DD"]
        assert _text(root, "//p:PmtTpInf/p:SvcLvl/p:Cd") == ["SEPA"]
        assert _text(root, "//p:PmtTpInf/p:LclInstrm/p:Cd") == ["CORE"]
        assert _text(root, "//p:PmtTpInf/p:SeqTp") == ["FRST"]
        assert _text(root, "//p:PmtInf/p:ReqdColltnDt") == ["2024-01-20"]
        assert _text(root, "//p:PmtInf/p:Cdtr/p:Nm") == ["My Company Name"]
        assert _text(root, "//p:PmtInf/p:ChrgBr") == ["SLEV"]
        assert _text(root, "//p:CdtrSchmeId/p:Id/p:PrvtId/p:Othr/p:Id") == ["ES1234567890123456789012"]
        assert _text(root, "//p:CdtrSchmeId//p:SchmeNm/p:Prtry") == ["SEPA"]

    def test_transaction_block(self, dd_generator, direct_debit_batch):
        root = _tree(dd_generator.generate(direct_debit_batch))

        assert _text(root, "//p:DrctDbtTxInf/p:PmtId/p:EndToEndId") == ["E2E-001"]
        assert _text(root, "//p:DrctDbtTxInf/p:InstdAmt") == ["100.50"]
        assert _text(root, "//p:MndtRltdInf/p:MndtId") == ["MANDATE-001"]
        assert _text(root, "//p:MndtRltdInf/p:DtOfSgntr") == ["2023-12-01"]
        assert _text(root, "//p:DrctDbtTxInf/p:Dbtr/p:Nm") == ["John Doe"]
        assert _text(root, "//p:DrctDbtTxInf/p:DbtrAcct/p:Id/p:IBAN") == ["GB82WEST12345698765432"]
        assert _text(root, "//p:DrctDbtTxInf/p:DbtrAgt//p:Id") == ["NOTPROVIDED"]
        assert _text(root, "//p:RmtInf/p:Ustrd") == ["Invoice 12345"]

    def test_batch_booking_omitted_by_default(self, dd_generator, direct_debit_batch):
        assert "BtchBookg" not in dd_generator.generate(direct_debit_batch)

    def test_batch_booking_written_when_set(self, dd_generator, direct_debit_batch):
        root = _tree(dd_generator.generate(replace(direct_debit_batch, batch_booking=True)))
        assert _text(root, "//p:PmtInf/p:BtchBookg") == ["true"]

    def test_recurring_b2b(self, dd_generator, direct_debit_batch):
        batch = replace(direct_debit_batch, sequence_type="RCUR", local_instrument_code="B2B")
        root = _tree(dd_generator.generate(batch))

        assert batch.sequence_type is SequenceType.RECURRING
        assert _text(root, "//p:SeqTp") == ["RCUR"]
        assert _text(root, "//p:LclInstrm/p:Cd") == ["B2B"]

    def test_empty_batch(self, dd_generator, direct_debit_batch):
        root = _tree(dd_generator.generate(replace(direct_debit_batch, transactions=())))

        assert _text(root, "//p:GrpHdr/p:NbOfTxs") == ["0"]
        assert _text(root, "//p:GrpHdr/p:CtrlSum") == ["0.00"]
        assert root.xpath("//p:DrctDbtTxInf", namespaces=NS) == []


class TestGenerateFromDict:
    def test_basic_payload(self, dd_generator, parser, direct_debit_payload):
        message = parser.parse_direct_debit(dd_generator.generate_from_dict(direct_debit_payload))

        assert message.message_id == "MSG-001"
        assert message.creditor_id == "ES1234567890123456789012"
        assert message.sequence_type == "FRST"
        assert message.transactions[0].mandate_id == "MANDATE-001"
        assert message.transactions[0].mandate_sign_date == "2024-01-15"
        assert message.transactions[0].amount == Decimal("100.50")

    def test_snake_case_payload(self, dd_generator, parser):
        payload = {
            "message_id": "MSG-SNAKE",
            "initiating_party_name": "Snake Co",
            "payment_name": "PMT-SNAKE",
            "due_date": "2024-02-01",
            "creditor_name": "Snake Co",
            "creditor_iban": "ES9121000418450200051332",
            "sequence_type": "RCUR",
            "creditor_id": "ES1234567890123456789012",
            "instrument_code": "CORE",
            "items": [
                {
                    "amount": "42.00",
                    "debtor_iban": "DE89370400440532013000",
                    "debtor_name": "Hans Muster",
                    "debtor_mandate": "MANDATE-042",
                    "debtor_mandate_signature_date": "2023-06-30",
                    "instruction_id": "E2E-042",
                    "information": "Subscription",
                }
            ],
        }
        message = parser.parse_direct_debit(dd_generator.generate_from_dict(payload))

        assert message.message_id == "MSG-SNAKE"
        assert message.payment_info_id == "PMT-SNAKE"
        assert message.sequence_type == "RCUR"
        transaction = message.transactions[0]
        assert transaction.end_to_end_id == "E2E-042"
        assert transaction.mandate_sign_date == "2023-06-30"
        assert transaction.remittance_information == "Subscription"

    def test_additional_data_kept_out_of_xml(self, dd_generator, direct_debit_payload):
        payload = dict(direct_debit_payload)
        payload["transactions"] = [
            dict(direct_debit_payload["transactions"][0], customerNumber="CUST-999", internalNote="vip")
        ]

        batch = dd_generator.build_batch(payload)
        xml = dd_generator.generate(batch)

        assert batch.transactions[0].get_additional_field("customerNumber") == "CUST-999"
        assert "CUST-999" not in xml
        assert "vip" not in xml

    def test_mandate_sign_date_defaults_to_due_date(self, dd_generator, direct_debit_payload):
        payload = dict(direct_debit_payload)
        transaction = dict(direct_debit_payload["transactions"][0])
        del transaction["debtorMandateSignDate"]
        payload["transactions"] = [transaction]

        root = _tree(dd_generator.generate_from_dict(payload))
        assert _text(root, "//p:DtOfSgntr") == ["2024-01-20"]

    def test_minor_units_amount(self, dd_generator, direct_debit_payload):
        payload = dict(direct_debit_payload)
        payload["transactions"] = [dict(direct_debit_payload["transactions"][0], amount=15000)]

        root = _tree(dd_generator.generate_from_dict(payload))
        assert _text(root, "//p:InstdAmt") == ["150.00"]

    def test_minor_units_disabled(self, iban_validator, direct_debit_payload):
        generator = DirectDebitGenerator(
            iban_validator, Settings(_env_file=None, minor_units_threshold=None)
        )
        payload = dict(direct_debit_payload)
        payload["transactions"] = [dict(direct_debit_payload["transactions"][0], amount=15000)]

        root = _tree(generator.generate_from_dict(payload))
        assert _text(root, "//p:InstdAmt") == ["15000.00"]

    def test_missing_payment_field(self, dd_generator, direct_debit_payload):
        payload = dict(direct_debit_payload)
        del payload["reference"]

        with pytest.raises(MissingFieldError, match="Missing required field: reference"):
            dd_generator.generate_from_dict(payload)

    def test_missing_transaction_field(self, dd_generator, direct_debit_payload):
        payload = dict(direct_debit_payload)
        transaction = dict(direct_debit_payload["transactions"][0])
        del transaction["amount"]
        payload["transactions"] = [transaction]

        with pytest.raises(MissingFieldError, match="Missing required transaction field: amount"):
            dd_generator.generate_from_dict(payload)

    def test_missing_mandate(self, dd_generator, direct_debit_payload):
        payload = dict(direct_debit_payload)
        transaction = dict(direct_debit_payload["transactions"][0])
        del transaction["debtorMandate"]
        payload["transactions"] = [transaction]

        with pytest.raises(MissingFieldError) as exc_info:
            dd_generator.generate_from_dict(payload)
        assert exc_info.value.field == "debtorMandate"

    def test_due_date_wrong_type(self, dd_generator, direct_debit_payload):
        with pytest.raises(InvalidFieldTypeError):
            dd_generator.generate_from_dict(dict(direct_debit_payload, dueDate=12345))

    def test_due_date_unparsable(self, dd_generator, direct_debit_payload):
        with pytest.raises(InvalidFormatError):
            dd_generator.generate_from_dict(dict(direct_debit_payload, dueDate="not-a-date"))

    def test_invalid_sequence_type(self, dd_generator, direct_debit_payload):
        with pytest.raises(InvalidFormatError, match="Invalid sequence type: ONCE"):
            dd_generator.generate_from_dict(dict(direct_debit_payload, seqType="ONCE"))

    @pytest.mark.parametrize("transactions", [[], None])
    def test_no_transactions(self, dd_generator, direct_debit_payload, transactions):
        payload = dict(direct_debit_payload, transactions=transactions)
        root = _tree(dd_generator.generate_from_dict(payload))

        assert _text(root, "//p:GrpHdr/p:NbOfTxs") == ["0"]
        assert root.xpath("//p:DrctDbtTxInf", namespaces=NS) == []

    def test_transactions_not_a_list(self, dd_generator, direct_debit_payload):
        with pytest.raises(InvalidFieldTypeError):
            dd_generator.generate_from_dict(dict(direct_debit_payload, transactions="E2E-001"))


class TestAddresses:
    def test_creditor_and_debtor_addresses(self, dd_generator, direct_debit_payload):
        payload = dict(
            direct_debit_payload,
            creditorAddress={
                "street": "123 Business Street",
                "city": "Madrid",
                "postalCode": "28001",
                "country": "ES",
            },
        )
        payload["transactions"] = [
            dict(
                direct_debit_payload["transactions"][0],
                debtorAddress={"address": "456 Customer Ave", "city": "London", "country": "GB"},
            )
        ]
        root = _tree(dd_generator.generate_from_dict(payload))

        creditor = root.xpath("//p:PmtInf/p:Cdtr", namespaces=NS)[0]
        assert [etree.QName(child).localname for child in creditor] == ["Nm", "PstlAdr"]
        assert _text(creditor, "p:PstlAdr/*") == ["123 Business Street", "28001", "Madrid", "ES"]

        debtor = root.xpath("//p:DrctDbtTxInf/p:Dbtr", namespaces=NS)[0]
        assert _text(debtor, "p:PstlAdr/p:StrtNm") == ["456 Customer Ave"]
        assert _text(debtor, "p:PstlAdr/p:PstCd") == []

    def test_each_party_gets_exactly_its_supplied_elements(self, dd_generator, direct_debit_payload):
        payload = dict(direct_debit_payload, creditorAddress={"city": "Madrid", "country": "ES"})
        payload["transactions"] = [
            dict(
                direct_debit_payload["transactions"][0],
                debtorAddress={"street": "456 Customer Ave", "postalCode": "SW1A 1AA"},
            )
        ]
        root = _tree(dd_generator.generate_from_dict(payload))

        assert len(root.xpath("//p:PstlAdr", namespaces=NS)) == 2
        creditor = root.xpath("//p:PmtInf/p:Cdtr", namespaces=NS)[0]
        debtor = root.xpath("//p:DrctDbtTxInf/p:Dbtr", namespaces=NS)[0]
        for party in (creditor, debtor):
            assert [etree.QName(child).localname for child in party] == ["Nm", "PstlAdr"]

        assert [etree.QName(child).localname for child in creditor[1]] == ["TwnNm", "Ctry"]
        assert [etree.QName(child).localname for child in debtor[1]] == ["StrtNm", "PstCd"]
        assert _text(debtor, "p:PstlAdr/*") == ["456 Customer Ave", "SW1A 1AA"]

    def test_unwritable_address_leaves_document_intact(self, dd_generator, direct_debit_payload):
        payload = dict(direct_debit_payload, creditorAddress={"street": "Gran Via\x01 1"})
        xml = dd_generator.generate_from_dict(payload)

        assert "PstlAdr" not in xml
        assert _text(_tree(xml), "//p:PmtInf/p:Cdtr/p:Nm") == ["My Company Name"]

    def test_flat_snake_case_address_keys(self, dd_generator, direct_debit_payload):
        payload = dict(direct_debit_payload, creditor_city="Valencia", creditor_country="ES")
        root = _tree(dd_generator.generate_from_dict(payload))

        assert _text(root, "//p:PmtInf/p:Cdtr/p:PstlAdr/*") == ["Valencia", "ES"]

    def test_single_field_address(self, dd_generator, direct_debit_payload):
        payload = dict(direct_debit_payload, creditorAddress={"country": "ES"})
        root = _tree(dd_generator.generate_from_dict(payload))

        postal = root.xpath("//p:PmtInf/p:Cdtr/p:PstlAdr", namespaces=NS)[0]
        assert len(postal) == 1
        assert _text(postal, "p:Ctry") == ["ES"]

    @pytest.mark.parametrize("address", [{}, {"street": "", "city": None}])
    def test_empty_address_renders_nothing(self, dd_generator, direct_debit_payload, address):
        payload = dict(direct_debit_payload, creditorAddress=address)
        assert "PstlAdr" not in dd_generator.generate_from_dict(payload)

    def test_address_wrong_type(self, dd_generator, direct_debit_payload):
        with pytest.raises(InvalidFieldTypeError):
            dd_generator.generate_from_dict(dict(direct_debit_payload, creditorAddress="Madrid"))

    def test_model_address(self, dd_generator, direct_debit_batch):
        batch = replace(direct_debit_batch, creditor_address=PostalAddress(city="Madrid"))
        root = _tree(dd_generator.generate(batch))

        assert _text(root, "//p:PmtInf/p:Cdtr/p:PstlAdr/p:TwnNm") == ["Madrid"]

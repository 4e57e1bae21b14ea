"""Tests for the postal address post-pass."""

import pytest
from lxml import etree

from opensepa.exceptions import XMLProcessingError
from opensepa.sepa.domain import PostalAddress
from opensepa.sepa.xml.addresses import AddressTarget, build_postal_address, inject_postal_addresses

pytestmark = pytest.mark.unit

NAMESPACE = "urn:iso:std:iso:20022:tech:xsd:pain.008.001.02"

DOCUMENT = f"""<?xml version='1.0' encoding='UTF-8'?>
<Document xmlns="{NAMESPACE}">
  <CstmrDrctDbtInitn>
    <PmtInf>
      <Cdtr><Nm>My Company</Nm></Cdtr>
      <DrctDbtTxInf><Dbtr><Nm>John Doe</Nm></Dbtr></DrctDbtTxInf>
      <DrctDbtTxInf><Dbtr><Nm>Jane Smith</Nm></Dbtr></DrctDbtTxInf>
    </PmtInf>
  </CstmrDrctDbtInitn>
</Document>
"""

FULL_ADDRESS = PostalAddress(street="Gran Via 1", city="Madrid", postal_code="28013", country="ES")


def _local_names(element: etree._Element) -> list[str]:
    return [etree.QName(child).localname for child in element]


def _parse(xml: str) -> etree._Element:
    return etree.fromstring(xml.encode("utf-8"))


class TestInjectPostalAddresses:
    def test_inserted_after_name(self):
        xml = inject_postal_addresses(DOCUMENT, [AddressTarget("PmtInf", 0, "Cdtr", FULL_ADDRESS)])
        creditor = _parse(xml).find(f".//{{{NAMESPACE}}}Cdtr")

        assert _local_names(creditor) == ["Nm", "PstlAdr"]
        postal = creditor[1]
        assert postal.tag == f"{{{NAMESPACE}}}PstlAdr"
        assert _local_names(postal) == ["StrtNm", "PstCd", "TwnNm", "Ctry"]
        assert [child.text for child in postal] == ["Gran Via 1", "28013", "Madrid", "ES"]

    def test_targets_by_position(self):
        xml = inject_postal_addresses(
            DOCUMENT, [AddressTarget("DrctDbtTxInf", 1, "Dbtr", PostalAddress(country="GB"))]
        )
        debtors = _parse(xml).findall(f".//{{{NAMESPACE}}}Dbtr")

        assert _local_names(debtors[0]) == ["Nm"]
        assert _local_names(debtors[1]) == ["Nm", "PstlAdr"]
        assert len(debtors[1][1]) == 1

    def test_no_targets_returns_input(self):
        assert inject_postal_addresses(DOCUMENT, []) is DOCUMENT

    def test_empty_address_skipped(self):
        xml = inject_postal_addresses(DOCUMENT, [AddressTarget("PmtInf", 0, "Cdtr", PostalAddress())])
        assert xml is DOCUMENT

    def test_document_without_namespace(self):
        plain = "<Document><PmtInf><Cdtr><Nm>ACME</Nm></Cdtr></PmtInf></Document>"
        xml = inject_postal_addresses(
            plain, [AddressTarget("PmtInf", 0, "Cdtr", PostalAddress(city="Bilbao"))], pretty_print=False
        )

        assert "<PstlAdr><TwnNm>Bilbao</TwnNm></PstlAdr>" in xml

    def test_party_without_name_gets_address_appended(self):
        plain = "<Document><PmtInf><Cdtr/></PmtInf></Document>"
        xml = inject_postal_addresses(
            plain, [AddressTarget("PmtInf", 0, "Cdtr", PostalAddress(country="ES"))], pretty_print=False
        )

        assert "<Cdtr><PstlAdr><Ctry>ES</Ctry></PstlAdr></Cdtr>" in xml

    def test_malformed_document_returned_unchanged(self):
        broken = "<Document><PmtInf>"
        result = inject_postal_addresses(broken, [AddressTarget("PmtInf", 0, "Cdtr", FULL_ADDRESS)])
        assert result == broken

    @pytest.mark.parametrize(
        "target",
        [
            AddressTarget("PmtInf", 3, "Cdtr", FULL_ADDRESS),
            AddressTarget("PmtInf", 0, "Dbtr", FULL_ADDRESS),
            AddressTarget("CdtTrfTxInf", 0, "Cdtr", FULL_ADDRESS),
        ],
    )
    def test_missing_target_returned_unchanged(self, target):
        assert inject_postal_addresses(DOCUMENT, [target]) == DOCUMENT

    @pytest.mark.parametrize(
        "address",
        [
            PostalAddress(street="Gran Via\x01 1", country="ES"),
            PostalAddress(city="Madrid\x00"),
        ],
    )
    def test_control_characters_returned_unchanged(self, address):
        targets = [
            AddressTarget("PmtInf", 0, "Cdtr", FULL_ADDRESS),
            AddressTarget("DrctDbtTxInf", 0, "Dbtr", address),
        ]
        assert inject_postal_addresses(DOCUMENT, targets) == DOCUMENT


class TestBuildPostalAddress:
    def test_uses_parent_namespace(self):
        parent = etree.Element(f"{{{NAMESPACE}}}Dbtr")
        postal = build_postal_address(parent, PostalAddress(street="Main St", country="IE"))

        assert postal.tag == f"{{{NAMESPACE}}}PstlAdr"
        assert _local_names(postal) == ["StrtNm", "Ctry"]

    def test_blank_fields_skipped(self):
        parent = etree.Element("Dbtr")
        postal = build_postal_address(parent, PostalAddress(street="", city="Lyon"))

        assert _local_names(postal) == ["TwnNm"]

    def test_control_characters_raise_processing_error(self):
        parent = etree.Element(f"{{{NAMESPACE}}}Dbtr")
        with pytest.raises(XMLProcessingError) as exc_info:
            build_postal_address(parent, PostalAddress(street="Main\x02 St"))

        assert exc_info.value.context["element"] == "StrtNm"
        assert isinstance(exc_info.value.original_error, ValueError)

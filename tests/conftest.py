"""
Pytest configuration and global fixtures.

This module provides shared fixtures used across all tests.
"""

from datetime import date
from decimal import Decimal

import pytest

from opensepa.sepa.domain.models import (
    CreditTransferBatch,
    CreditTransferTransaction,
    DirectDebitBatch,
    DirectDebitTransaction,
)
from opensepa.sepa.xml import CreditTransferGenerator, DirectDebitGenerator, SepaParser
from opensepa.utils.config import Settings
from opensepa.validation import IbanValidator

# Reference IBANs from the SWIFT registry examples
ES_IBAN = "ES9121000418450200051332"
GB_IBAN = "GB82WEST12345698765432"
DE_IBAN = "DE89370400440532013000"


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(_env_file=None, pretty_print_xml=True)


@pytest.fixture
def iban_validator() -> IbanValidator:
    return IbanValidator()


@pytest.fixture
def ct_generator(iban_validator: IbanValidator, test_settings: Settings) -> CreditTransferGenerator:
    return CreditTransferGenerator(iban_validator, test_settings)


@pytest.fixture
def dd_generator(iban_validator: IbanValidator, test_settings: Settings) -> DirectDebitGenerator:
    return DirectDebitGenerator(iban_validator, test_settings)


@pytest.fixture
def parser() -> SepaParser:
    return SepaParser()


@pytest.fixture
def credit_transfer_batch() -> CreditTransferBatch:
    """Two-transaction credit transfer (control sum 301.25)."""
    return CreditTransferBatch(
        message_id="MSG-001",
        initiating_party_name="My Company",
        payment_info_id="PMT-001",
        requested_execution_date=date(2024, 1, 20),
        creditor_name="My Company SL",
        creditor_iban=ES_IBAN,
        creditor_bic="CAIXESBBXXX",
        transactions=(
            CreditTransferTransaction(
                end_to_end_id="E2E-001",
                amount=Decimal("100.50"),
                counterparty_iban=GB_IBAN,
                counterparty_name="John Doe",
                remittance_information="Invoice 12345",
            ),
            CreditTransferTransaction(
                end_to_end_id="E2E-002",
                amount=Decimal("200.75"),
                counterparty_iban=DE_IBAN,
                counterparty_name="Jane Smith",
            ),
        ),
    )


@pytest.fixture
def direct_debit_batch() -> DirectDebitBatch:
    return DirectDebitBatch(
        message_id="MSG-001",
        initiating_party_name="My Company",
        payment_info_id="PMT-001",
        due_date=date(2024, 1, 20),
        creditor_name="My Company Name",
        creditor_iban=ES_IBAN,
        sequence_type="FRST",
        creditor_id="ES1234567890123456789012",
        local_instrument_code="CORE",
        transactions=(
            DirectDebitTransaction(
                end_to_end_id="E2E-001",
                amount=Decimal("100.50"),
                debtor_iban=GB_IBAN,
                debtor_name="John Doe",
                mandate_id="MANDATE-001",
                mandate_sign_date=date(2023, 12, 1),
                remittance_information="Invoice 12345",
            ),
        ),
    )


@pytest.fixture
def direct_debit_payload() -> dict:
    """Minimal valid dict payload for the direct debit generator."""
    return {
        "reference": "MSG-001",
        "bankAccountOwner": "My Company",
        "paymentInfoId": "PMT-001",
        "dueDate": "2024-01-20",
        "creditorName": "My Company Name",
        "creditorIban": ES_IBAN,
        "seqType": "FRST",
        "creditorId": "ES1234567890123456789012",
        "localInstrumentCode": "CORE",
        "transactions": [
            {
                "amount": 100.50,
                "debtorIban": GB_IBAN,
                "debtorName": "John Doe",
                "debtorMandate": "MANDATE-001",
                "debtorMandateSignDate": "2024-01-15",
                "endToEndId": "E2E-001",
            }
        ],
    }


@pytest.fixture
def credit_transfer_payload() -> dict:
    return {
        "reference": "MSG-001",
        "bankAccountOwner": "My Company",
        "paymentInfoId": "PMT-001",
        "dueDate": "2024-01-20",
        "creditorName": "My Company SL",
        "creditorIban": ES_IBAN,
        "transactions": [
            {
                "amount": 100.50,
                "debtorIban": GB_IBAN,
                "debtorName": "John Doe",
                "endToEndId": "E2E-001",
                "remittanceInformation": "Invoice 12345",
            },
            {
                "amount": 200.75,
                "debtorIban": DE_IBAN,
                "debtorName": "Jane Smith",
                "endToEndId": "E2E-002",
            },
        ],
    }


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")

"""Tests for the SEPA IBAN country registry."""

from dataclasses import FrozenInstanceError

import pytest

from opensepa.validation import SEPAIBANFormats

pytestmark = pytest.mark.unit


class TestSEPAIBANFormats:
    def test_core_countries_registered(self):
        for code in ("ES", "DE", "FR", "IT", "NL", "BE", "PT", "AT", "IE", "GB", "CH"):
            assert code in SEPAIBANFormats.FORMATS

    def test_format_immutable(self):
        fmt = SEPAIBANFormats.FORMATS["ES"]
        with pytest.raises(FrozenInstanceError):
            fmt.length = 10  # type: ignore[misc]

    def test_matches(self):
        assert SEPAIBANFormats.FORMATS["ES"].matches("ES9121000418450200051332")
        assert not SEPAIBANFormats.FORMATS["ES"].matches("ES91210004184502000513")

    def test_detect_country(self):
        assert SEPAIBANFormats.detect_country("ES9121000418450200051332") == "ES"
        assert SEPAIBANFormats.detect_country("US00") is None
        assert SEPAIBANFormats.detect_country("") is None

    def test_validate_length(self):
        assert SEPAIBANFormats.validate_length("DE89370400440532013000")
        assert not SEPAIBANFormats.validate_length("DE893704004405320130")

    def test_lookup_helpers(self):
        assert SEPAIBANFormats.get_country_name("NL91ABNA0417164300") == "Netherlands"
        assert SEPAIBANFormats.get_format("es").country_code == "ES"
        assert SEPAIBANFormats.get_format("US") is None
        countries = SEPAIBANFormats.list_supported_countries()
        assert countries == sorted(countries)

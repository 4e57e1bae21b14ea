"""Tests for BicValidator."""

import pytest

from opensepa.exceptions import InvalidFormatError
from opensepa.validation import BicValidator

pytestmark = pytest.mark.unit


@pytest.fixture
def validator() -> BicValidator:
    return BicValidator()


class TestBicValidator:
    @pytest.mark.parametrize("bic", ["ESPBESMM", "CAIXESBBXXX", "DEUTDEFF500", "bbva esmm"])
    def test_valid(self, validator, bic):
        assert validator.is_valid(bic)

    @pytest.mark.parametrize("bic", ["", "ESPBESM", "ESPBESMM12", "1SPBESMM", "ESPB1SMM", "ESPBESMM-XX"])
    def test_invalid(self, validator, bic):
        assert not validator.is_valid(bic)

    def test_parts_of_eight_character_bic(self, validator):
        bic = "ESPBESMM"
        assert validator.get_bank_code(bic) == "ESPB"
        assert validator.get_country_code(bic) == "ES"
        assert validator.get_location_code(bic) == "MM"
        assert validator.get_branch_code(bic) is None

    def test_branch_code_of_eleven_character_bic(self, validator):
        assert validator.get_branch_code("CAIXESBBXXX") == "XXX"

    def test_format_normalizes(self, validator):
        assert validator.format(" caix esbb xxx ") == "CAIXESBBXXX"

    def test_validate(self, validator):
        assert validator.validate("espbesmm") == "ESPBESMM"
        with pytest.raises(InvalidFormatError):
            validator.validate("NOPE")

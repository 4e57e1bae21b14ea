"""Spanish CCC (Código Cuenta Cliente) validation and IBAN conversion.

A CCC is 20 digits: bank (4) + branch (4) + control digits (2) + account (10).
The Spanish IBAN is ``"ES" + iban_check_digits + ccc``.
"""

import re

from ..exceptions import InvalidChecksumError, InvalidFormatError
from ..utils.logging import get_logger
from ..validation.checksum import ccc_control_pair
from ..validation.iban import IbanValidator

logger = get_logger(__name__)

CCC_PATTERN = re.compile(r"^[0-9]{20}$")
SPANISH_IBAN_LENGTH = 24

_WHITESPACE = re.compile(r"\s+")


class CccConverter:
    """Convert and validate Spanish domestic account codes.

    Args:
        iban_validator: Validator used for IBAN check-digit calculation

    Example:
        >>> converter = CccConverter()
        >>> converter.ccc_to_iban("2100 0418 45 0200051332")
        'ES9121000418450200051332'
    """

    def __init__(self, iban_validator: IbanValidator | None = None) -> None:
        self.iban_validator = iban_validator or IbanValidator()

    @staticmethod
    def normalize(ccc: str) -> str:
        return _WHITESPACE.sub("", ccc)

    def is_valid_ccc(self, ccc: str) -> bool:
        """Format check plus recomputation of both control digits."""
        normalized = self.normalize(ccc)
        if not CCC_PATTERN.match(normalized):
            return False

        expected = ccc_control_pair(normalized[0:4], normalized[4:8], normalized[10:20])
        return normalized[8:10] == expected

    def ccc_to_iban(self, ccc: str) -> str:
        """Build the Spanish IBAN for a CCC.

        Only the 20-digit format is enforced; the CCC's own control digits
        are not verified, so accounts with wrong control digits still convert.

        Raises:
            InvalidFormatError: If the input is not exactly 20 digits
        """
        normalized = self.normalize(ccc)
        if not CCC_PATTERN.match(normalized):
            raise InvalidFormatError(
                "Invalid CCC format. Expected 20 digits.",
                field="ccc",
                value=ccc,
                constraint="20 digits",
            )

        if not self.is_valid_ccc(normalized):
            logger.debug("ccc_control_digits_mismatch", ccc=normalized)

        check_digits = self.iban_validator.calculate_check_digits("ES00" + normalized)
        return "ES" + check_digits + normalized

    def iban_to_ccc(self, iban: str) -> str:
        """Extract the CCC from a Spanish IBAN.

        Raises:
            InvalidFormatError: Not a 24-character ES IBAN
            InvalidChecksumError: IBAN check digits do not verify
        """
        normalized = self.iban_validator.normalize(iban)
        if (
            len(normalized) != SPANISH_IBAN_LENGTH
            or not normalized.startswith("ES")
            or not CCC_PATTERN.match(normalized[4:])
        ):
            raise InvalidFormatError(
                "Not a Spanish IBAN",
                field="iban",
                value=iban,
                constraint="ES + 22 digits",
            )
        if not self.iban_validator.is_valid(normalized):
            raise InvalidChecksumError(
                f"Invalid iban: {iban}",
                field="iban",
                value=iban,
                constraint="mod97",
            )
        return normalized[4:]

    def calculate_check_digits(self, ccc: str) -> str:
        """Control digits (positions 8-9) a CCC should carry."""
        normalized = self.normalize(ccc)
        if not CCC_PATTERN.match(normalized):
            raise InvalidFormatError(
                "Invalid CCC format. Expected 20 digits.",
                field="ccc",
                value=ccc,
                constraint="20 digits",
            )
        return ccc_control_pair(normalized[0:4], normalized[4:8], normalized[10:20])

    def get_bank_code(self, ccc: str) -> str:
        return self.normalize(ccc)[0:4]

    def get_branch_code(self, ccc: str) -> str:
        return self.normalize(ccc)[4:8]

    def get_check_digits(self, ccc: str) -> str:
        return self.normalize(ccc)[8:10]

    def get_account_number(self, ccc: str) -> str:
        return self.normalize(ccc)[10:20]

"""IBAN validation, normalization and check-digit calculation (ISO 13616)."""

import re

from ..exceptions import InvalidChecksumError, InvalidFormatError
from .checksum import iban_to_digits, mod97
from .iban_formats import SEPAIBANFormats

IBAN_MIN_LENGTH = 15
IBAN_MAX_LENGTH = 34
IBAN_PATTERN = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z0-9]+$")

_WHITESPACE = re.compile(r"\s+")


class IbanValidator:
    """Validate and decompose International Bank Account Numbers.

    All operations normalize their input first (whitespace removed,
    uppercased), so ``"es91 2100 0418 4502 0005 1332"`` and
    ``"ES9121000418450200051332"`` are interchangeable.

    Example:
        >>> validator = IbanValidator()
        >>> validator.is_valid("ES91 2100 0418 4502 0005 1332")
        True
        >>> validator.get_bban("ES9121000418450200051332")
        '21000418450200051332'
    """

    def normalize(self, iban: str) -> str:
        """Strip all whitespace and uppercase."""
        return _WHITESPACE.sub("", iban).upper()

    def is_valid(self, iban: str) -> bool:
        """Structural check followed by mod-97 verification."""
        normalized = self.normalize(iban)
        if not self._is_well_formed(normalized):
            return False
        return self._verify_check_digits(normalized)

    def validate(self, iban: str, *, field: str = "iban") -> str:
        """Validate an IBAN, raising on failure.

        Args:
            iban: IBAN in any spacing/case
            field: Field name reported in the error (e.g. "creditor_iban")

        Returns:
            The normalized IBAN

        Raises:
            InvalidFormatError: Wrong length or characters
            InvalidChecksumError: Well-formed but mod-97 != 1
        """
        normalized = self.normalize(iban)
        label = field.replace("_", " ")

        if not IBAN_MIN_LENGTH <= len(normalized) <= IBAN_MAX_LENGTH:
            raise InvalidFormatError(
                f"Invalid {label}: {iban}",
                field=field,
                value=iban,
                constraint=f"length {IBAN_MIN_LENGTH}-{IBAN_MAX_LENGTH}",
            )
        if not IBAN_PATTERN.match(normalized):
            raise InvalidFormatError(
                f"Invalid {label}: {iban}",
                field=field,
                value=iban,
                constraint="pattern",
            )
        if not self._verify_check_digits(normalized):
            raise InvalidChecksumError(
                f"Invalid {label}: {iban}",
                field=field,
                value=iban,
                constraint="mod97",
            )
        return normalized

    def format(self, iban: str) -> str:
        """Group the normalized IBAN in blocks of four characters."""
        normalized = self.normalize(iban)
        return " ".join(normalized[i : i + 4] for i in range(0, len(normalized), 4))

    def get_country_code(self, iban: str) -> str:
        return self.normalize(iban)[0:2]

    def get_check_digits(self, iban: str) -> str:
        return self.normalize(iban)[2:4]

    def get_bban(self, iban: str) -> str:
        return self.normalize(iban)[4:]

    def calculate_check_digits(self, iban: str) -> str:
        """Compute the two IBAN check digits.

        Whatever sits in positions 2-3 is replaced by ``"00"`` before the
        calculation, so both ``"ES00..."`` placeholders and complete IBANs work.

        Returns:
            Zero-padded string ``98 - mod97(rearranged)``
        """
        normalized = self.normalize(iban)
        if len(normalized) < 5 or not normalized.isalnum() or not normalized.isascii():
            raise InvalidFormatError(
                f"Cannot calculate check digits for: {iban}",
                field="iban",
                value=iban,
                constraint="alphanumeric",
            )

        placeholder = normalized[:2] + "00" + normalized[4:]
        remainder = mod97(iban_to_digits(placeholder[4:] + placeholder[:4]))
        return f"{98 - remainder:02d}"

    def get_country_name(self, iban: str) -> str | None:
        """English country name when the IBAN belongs to a SEPA country."""
        return SEPAIBANFormats.get_country_name(self.normalize(iban))

    def is_sepa_country(self, iban: str) -> bool:
        return SEPAIBANFormats.detect_country(self.normalize(iban)) is not None

    def has_expected_length(self, iban: str) -> bool:
        """Whether the length matches the SEPA registry entry for its country."""
        return SEPAIBANFormats.validate_length(self.normalize(iban))

    def matches_national_format(self, iban: str) -> bool:
        """Whether the BBAN fits the registered pattern for its SEPA country."""
        normalized = self.normalize(iban)
        entry = SEPAIBANFormats.for_iban(normalized)
        return entry is not None and entry.matches(normalized)

    @staticmethod
    def _is_well_formed(normalized: str) -> bool:
        if not IBAN_MIN_LENGTH <= len(normalized) <= IBAN_MAX_LENGTH:
            return False
        return IBAN_PATTERN.match(normalized) is not None

    @staticmethod
    def _verify_check_digits(normalized: str) -> bool:
        rearranged = normalized[4:] + normalized[:4]
        return mod97(iban_to_digits(rearranged)) == 1

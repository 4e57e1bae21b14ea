"""BIC (ISO 9362 Business Identifier Code) validation."""

import re

from ..exceptions import InvalidFormatError

BIC_PATTERN = re.compile(r"^[A-Z]{4}[A-Z]{2}[A-Z0-9]{2}([A-Z0-9]{3})?$")

_WHITESPACE = re.compile(r"\s+")


class BicValidator:
    """Validate and decompose BIC/SWIFT codes.

    Layout: 4-letter bank code, 2-letter country code, 2-character location
    code and an optional 3-character branch code.

    Example:
        >>> validator = BicValidator()
        >>> validator.get_branch_code("ESPBESMM") is None
        True
        >>> validator.get_branch_code("CAIXESBBXXX")
        'XXX'
    """

    def normalize(self, bic: str) -> str:
        return _WHITESPACE.sub("", bic).upper()

    def is_valid(self, bic: str) -> bool:
        normalized = self.normalize(bic)
        if len(normalized) not in (8, 11):
            return False
        return BIC_PATTERN.match(normalized) is not None

    def validate(self, bic: str, *, field: str = "bic") -> str:
        """Return the normalized BIC or raise :class:`InvalidFormatError`."""
        if not self.is_valid(bic):
            raise InvalidFormatError(
                f"Invalid {field.replace('_', ' ')}: {bic}",
                field=field,
                value=bic,
                constraint="8 or 11 characters, AAAACCLL[BBB]",
            )
        return self.normalize(bic)

    def format(self, bic: str) -> str:
        return self.normalize(bic)

    def get_bank_code(self, bic: str) -> str:
        return self.normalize(bic)[0:4]

    def get_country_code(self, bic: str) -> str:
        return self.normalize(bic)[4:6]

    def get_location_code(self, bic: str) -> str:
        return self.normalize(bic)[6:8]

    def get_branch_code(self, bic: str) -> str | None:
        """Branch code for 11-character BICs, None for the 8-character form."""
        normalized = self.normalize(bic)
        if len(normalized) != 11:
            return None
        return normalized[8:11]

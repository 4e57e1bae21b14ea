"""SEPA IBAN country registry.

Country name, total IBAN length and BBAN pattern for every SEPA country. Used
to enrich IBAN lookups (country name, SEPA membership, expected length); the
structural/mod-97 validity check does not depend on it.

Source: SWIFT IBAN Registry.

Note: GB and CH issue IBANs that pass mod-97 but are listed here only when
they are SEPA scheme members (both are, as non-EEA participants).
"""

import re
from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class IBANFormat:
    """IBAN format specification for one country.

    Attributes:
        country_code: ISO 3166-1 alpha-2 code (e.g., "ES", "DE")
        country_name: Full country name in English
        length: Total IBAN length including country code and check digits
        bban_pattern: Regex for the part after the country code
    """

    country_code: str
    country_name: str
    length: int
    bban_pattern: str

    @property
    def full_pattern(self) -> str:
        """Complete regex including the country code."""
        return f"{self.country_code}{self.bban_pattern}"

    def matches(self, iban: str) -> bool:
        """Whether a normalized IBAN fits this country's length and pattern."""
        return len(iban) == self.length and re.fullmatch(self.full_pattern, iban) is not None


def _fmt(code: str, name: str, length: int, pattern: str) -> IBANFormat:
    return IBANFormat(code, name, length, pattern)


class SEPAIBANFormats:
    """Registry of SEPA IBAN formats.

    Usage:
        >>> SEPAIBANFormats.detect_country("ES9121000418450200051332")
        'ES'
        >>> SEPAIBANFormats.validate_length("DE89370400440532013000")
        True
    """

    FORMATS: ClassVar[dict[str, IBANFormat]] = {
        # Southern Europe
        "ES": _fmt("ES", "Spain", 24, r"\d{22}"),
        "IT": _fmt("IT", "Italy", 27, r"\d{2}[A-Z]\d{10}[0-9A-Z]{12}"),
        "PT": _fmt("PT", "Portugal", 25, r"\d{23}"),
        "GR": _fmt("GR", "Greece", 27, r"\d{9}[A-Z0-9]{16}"),
        "MT": _fmt("MT", "Malta", 31, r"\d{2}[A-Z]{4}\d{5}[A-Z0-9]{18}"),
        "CY": _fmt("CY", "Cyprus", 28, r"\d{10}[A-Z0-9]{16}"),
        "SI": _fmt("SI", "Slovenia", 19, r"\d{17}"),
        "HR": _fmt("HR", "Croatia", 21, r"\d{19}"),
        # Western Europe
        "FR": _fmt("FR", "France", 27, r"\d{12}[A-Z0-9]{11}\d{2}"),
        "DE": _fmt("DE", "Germany", 22, r"\d{20}"),
        "NL": _fmt("NL", "Netherlands", 18, r"\d{2}[A-Z]{4}\d{10}"),
        "BE": _fmt("BE", "Belgium", 16, r"\d{14}"),
        "LU": _fmt("LU", "Luxembourg", 20, r"\d{5}[A-Z0-9]{13}"),
        "AT": _fmt("AT", "Austria", 20, r"\d{18}"),
        "LI": _fmt("LI", "Liechtenstein", 21, r"\d{7}[A-Z0-9]{12}"),
        "MC": _fmt("MC", "Monaco", 27, r"\d{12}[A-Z0-9]{11}\d{2}"),
        "SM": _fmt("SM", "San Marino", 27, r"\d{2}[A-Z]\d{10}[A-Z0-9]{12}"),
        "AD": _fmt("AD", "Andorra", 24, r"\d{10}[A-Z0-9]{12}"),
        "VA": _fmt("VA", "Vatican City", 22, r"\d{20}"),
        "CH": _fmt("CH", "Switzerland", 21, r"\d{7}[A-Z0-9]{12}"),
        "GB": _fmt("GB", "United Kingdom", 22, r"\d{2}[A-Z]{4}\d{14}"),
        # Northern Europe
        "IE": _fmt("IE", "Ireland", 22, r"\d{2}[A-Z]{4}\d{14}"),
        "DK": _fmt("DK", "Denmark", 18, r"\d{16}"),
        "FI": _fmt("FI", "Finland", 18, r"\d{16}"),
        "SE": _fmt("SE", "Sweden", 24, r"\d{22}"),
        "NO": _fmt("NO", "Norway", 15, r"\d{13}"),
        "IS": _fmt("IS", "Iceland", 26, r"\d{24}"),
        # Eastern Europe
        "PL": _fmt("PL", "Poland", 28, r"\d{26}"),
        "CZ": _fmt("CZ", "Czech Republic", 24, r"\d{22}"),
        "SK": _fmt("SK", "Slovakia", 24, r"\d{22}"),
        "HU": _fmt("HU", "Hungary", 28, r"\d{26}"),
        "RO": _fmt("RO", "Romania", 24, r"\d{2}[A-Z]{4}[A-Z0-9]{16}"),
        "BG": _fmt("BG", "Bulgaria", 22, r"\d{2}[A-Z]{4}\d{6}[A-Z0-9]{8}"),
        # Baltic States
        "EE": _fmt("EE", "Estonia", 20, r"\d{18}"),
        "LV": _fmt("LV", "Latvia", 21, r"\d{2}[A-Z]{4}[A-Z0-9]{13}"),
        "LT": _fmt("LT", "Lithuania", 20, r"\d{18}"),
    }

    @classmethod
    def for_iban(cls, iban: str) -> IBANFormat | None:
        """Registry entry selected by the IBAN's first two characters."""
        return cls.FORMATS.get(iban[:2].upper()) if len(iban) >= 2 else None

    @classmethod
    def detect_country(cls, iban: str) -> str | None:
        entry = cls.for_iban(iban)
        return entry.country_code if entry else None

    @classmethod
    def validate_length(cls, iban: str) -> bool:
        """True when ``iban`` (normalized) has its SEPA country's registered length.

        Non-SEPA countries always give False.
        """
        entry = cls.for_iban(iban)
        return entry is not None and entry.length == len(iban)

    @classmethod
    def get_country_name(cls, iban: str) -> str | None:
        entry = cls.for_iban(iban)
        return entry.country_name if entry else None

    @classmethod
    def get_format(cls, country_code: str) -> IBANFormat | None:
        return cls.FORMATS.get(country_code.upper())

    @classmethod
    def list_supported_countries(cls) -> list[str]:
        return sorted(cls.FORMATS)

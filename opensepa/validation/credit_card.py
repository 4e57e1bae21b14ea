"""Payment card number validation (Luhn + brand detection)."""

import re
from enum import Enum

from ..exceptions import InvalidChecksumError, InvalidFormatError
from .checksum import luhn_valid

CARD_MIN_LENGTH = 13
CARD_MAX_LENGTH = 19

_NON_DIGITS = re.compile(r"[^0-9]")


class CardType(str, Enum):
    """Card brand detected from the number's prefix and length."""

    VISA = "visa"
    MASTERCARD = "mastercard"
    AMEX = "amex"
    DISCOVER = "discover"
    DINERS_CLUB = "diners_club"
    JCB = "jcb"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        """Human-readable brand name."""
        return _CARD_LABELS[self]


_CARD_LABELS = {
    CardType.VISA: "Visa",
    CardType.MASTERCARD: "Mastercard",
    CardType.AMEX: "American Express",
    CardType.DISCOVER: "Discover",
    CardType.DINERS_CLUB: "Diners Club",
    CardType.JCB: "JCB",
    CardType.UNKNOWN: "Unknown",
}

# Checked in order; first match wins.
CARD_TYPE_PATTERNS: tuple[tuple[CardType, tuple[re.Pattern[str], ...]], ...] = (
    (CardType.VISA, (re.compile(r"^4\d{12}(\d{3})?$"),)),
    (
        CardType.MASTERCARD,
        (re.compile(r"^5[1-5]\d{14}$"), re.compile(r"^2[2-7]\d{14}$")),
    ),
    (CardType.AMEX, (re.compile(r"^3[47]\d{13}$"),)),
    (
        CardType.DISCOVER,
        (
            re.compile(
                r"^6(?:011\d{12}|5\d{14}|4[4-9]\d{13}"
                r"|22(?:12[6-9]|1[3-9]\d|[2-8]\d{2}|9[01]\d|92[0-5])\d{10})$"
            ),
        ),
    ),
    (
        CardType.DINERS_CLUB,
        (re.compile(r"^3[0689]\d{12}$"), re.compile(r"^30[0-5]\d{11}$")),
    ),
    (CardType.JCB, (re.compile(r"^35\d{14}$"),)),
)


class CreditCardValidator:
    """Validate, classify and mask payment card numbers.

    Example:
        >>> validator = CreditCardValidator()
        >>> validator.is_valid("4532 0151 1283 0366")
        True
        >>> validator.mask("4532015112830366")
        '************0366'
    """

    def normalize(self, card_number: str) -> str:
        """Keep digits only."""
        return _NON_DIGITS.sub("", card_number)

    def is_valid(self, card_number: str) -> bool:
        normalized = self.normalize(card_number)
        if not CARD_MIN_LENGTH <= len(normalized) <= CARD_MAX_LENGTH:
            return False
        return luhn_valid(normalized)

    def validate(self, card_number: str) -> str:
        """Return the normalized number or raise.

        Raises:
            InvalidFormatError: Fewer than 13 or more than 19 digits
            InvalidChecksumError: Luhn check fails
        """
        normalized = self.normalize(card_number)
        if not CARD_MIN_LENGTH <= len(normalized) <= CARD_MAX_LENGTH:
            raise InvalidFormatError(
                "Invalid card number length",
                field="card_number",
                value=self.mask(normalized),
                constraint=f"{CARD_MIN_LENGTH}-{CARD_MAX_LENGTH} digits",
            )
        if not luhn_valid(normalized):
            raise InvalidChecksumError(
                "Card number fails the Luhn check",
                field="card_number",
                value=self.mask(normalized),
                constraint="luhn",
            )
        return normalized

    def get_card_type(self, card_number: str) -> CardType:
        normalized = self.normalize(card_number)
        if not normalized:
            return CardType.UNKNOWN

        for card_type, patterns in CARD_TYPE_PATTERNS:
            if any(pattern.match(normalized) for pattern in patterns):
                return card_type
        return CardType.UNKNOWN

    def is_valid_for_type(self, card_number: str, card_type: CardType | str) -> bool:
        """Valid number whose detected brand equals ``card_type``."""
        if not self.is_valid(card_number):
            return False
        return self.get_card_type(card_number) == CardType(card_type)

    def get_bin(self, card_number: str) -> str:
        """Bank Identification Number: the first six digits."""
        return self.normalize(card_number)[:6]

    def get_last_four(self, card_number: str) -> str:
        return self.normalize(card_number)[-4:]

    def mask(self, card_number: str, mask_char: str = "*") -> str:
        """Replace all but the last four digits with ``mask_char``.

        Numbers shorter than four digits are masked entirely.
        """
        normalized = self.normalize(card_number)
        if len(normalized) < 4:
            return mask_char * len(normalized)
        return mask_char * (len(normalized) - 4) + normalized[-4:]

    def format(self, card_number: str) -> str:
        """Group digits in blocks of four."""
        normalized = self.normalize(card_number)
        return " ".join(normalized[i : i + 4] for i in range(0, len(normalized), 4))

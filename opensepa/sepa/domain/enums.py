"""Domain enums for SEPA payment messages."""

from enum import Enum


class SequenceType(str, Enum):
    """Direct debit sequence type (pain.008 ``SeqTp``).

    Lifecycle of a recurring mandate:
        FRST → RCUR → ... → FNAL
    One-off mandates use OOFF.
    """

    FIRST = "FRST"  # First collection of a recurring series
    RECURRING = "RCUR"  # Subsequent collection
    ONE_OFF = "OOFF"  # Single collection
    FINAL = "FNAL"  # Last collection of a series

    def __str__(self) -> str:
        return self.value


class LocalInstrument(str, Enum):
    """Direct debit scheme (pain.008 ``LclInstrm/Cd``)."""

    CORE = "CORE"  # Consumer scheme
    B2B = "B2B"  # Business-to-business scheme

    def __str__(self) -> str:
        return self.value


class PaymentMethod(str, Enum):
    """Payment method (``PmtMtd``)."""

    TRANSFER = "TRF"
    DIRECT_DEBIT = "DD"

    def __str__(self) -> str:
        return self.value


class MessageType(str, Enum):
    """ISO 20022 message definitions produced and consumed."""

    CREDIT_TRANSFER = "pain.001.001.03"
    DIRECT_DEBIT = "pain.008.001.02"

    def __str__(self) -> str:
        return self.value

    @property
    def namespace(self) -> str:
        """XML namespace of the message definition."""
        return f"urn:iso:std:iso:20022:tech:xsd:{self.value}"

    @property
    def root_element(self) -> str:
        """Initiation element directly under ``Document``."""
        if self is MessageType.CREDIT_TRANSFER:
            return "CstmrCdtTrfInitn"
        return "CstmrDrctDbtInitn"

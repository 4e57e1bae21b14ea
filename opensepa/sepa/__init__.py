"""SEPA payment messages: domain model, payload normalization and ISO 20022 XML.

Usage:
    >>> from opensepa.sepa import CreditTransferGenerator
    >>> xml = CreditTransferGenerator().generate_from_dict(payload)
"""

__all__ = [
    "CreditTransferBatch",
    "CreditTransferGenerator",
    "CreditTransferTransaction",
    "DirectDebitBatch",
    "DirectDebitGenerator",
    "DirectDebitTransaction",
    "FieldNormalizer",
    "GenerationResult",
    "IdentifierGenerator",
    "Mandate",
    "PostalAddress",
    "SepaParser",
]

from .application import FieldNormalizer, IdentifierGenerator
from .domain import (
    CreditTransferBatch,
    CreditTransferTransaction,
    DirectDebitBatch,
    DirectDebitTransaction,
    Mandate,
    PostalAddress,
)
from .xml import CreditTransferGenerator, DirectDebitGenerator, GenerationResult, SepaParser

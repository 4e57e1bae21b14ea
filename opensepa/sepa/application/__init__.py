"""Application services around the SEPA model: payload normalization and identifiers."""

__all__ = [
    "FieldNormalizer",
    "IdentifierGenerator",
    "NormalizedPayment",
    "NormalizedTransaction",
]

from .identifiers import IdentifierGenerator
from .normalizer import FieldNormalizer, NormalizedPayment, NormalizedTransaction

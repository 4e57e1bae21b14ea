"""SEPA domain model: batches, transactions, mandates and their enums."""

__all__ = [
    "CreditTransferBatch",
    "CreditTransferTransaction",
    "DirectDebitBatch",
    "DirectDebitTransaction",
    "LocalInstrument",
    "Mandate",
    "MessageType",
    "PaymentMethod",
    "PostalAddress",
    "SequenceType",
]

from .enums import LocalInstrument, MessageType, PaymentMethod, SequenceType
from .models import (
    CreditTransferBatch,
    CreditTransferTransaction,
    DirectDebitBatch,
    DirectDebitTransaction,
    Mandate,
    PostalAddress,
)

"""ISO 20022 XML generation and parsing.

- CreditTransferGenerator: pain.001.001.03 credit transfers
- DirectDebitGenerator: pain.008.001.02 direct debits
- SepaParser: read both back into :class:`ParsedMessage`
"""

__all__ = [
    "CreditTransferGenerator",
    "DirectDebitGenerator",
    "GenerationResult",
    "ParsedMessage",
    "ParsedTransaction",
    "SepaParser",
]

from .base import GenerationResult
from .credit_transfer import CreditTransferGenerator
from .direct_debit import DirectDebitGenerator
from .parser import ParsedMessage, ParsedTransaction, SepaParser

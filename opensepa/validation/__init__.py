"""Banking identifier validators.

- IbanValidator: ISO 13616 structure + mod-97 check digits
- BicValidator: ISO 9362 business identifier codes
- CreditCardValidator: Luhn check, brand detection and masking

Usage:
    >>> from opensepa.validation import IbanValidator
    >>> IbanValidator().is_valid("ES9121000418450200051332")
    True
"""

__all__ = [
    "BicValidator",
    "CardType",
    "CreditCardValidator",
    "IbanValidator",
    "SEPAIBANFormats",
]

from .bic import BicValidator
from .credit_card import CardType, CreditCardValidator
from .iban import IbanValidator
from .iban_formats import SEPAIBANFormats

"""OpenSEPA - European banking identifier validation and SEPA payment messages.

Validators for IBAN, BIC, payment cards and Spanish CCC account codes, plus
ISO 20022 generators and parsers for SEPA Credit Transfer (pain.001) and
Direct Debit (pain.008).
"""

__version__ = "0.3.0"

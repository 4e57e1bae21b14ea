"""Unique identifiers for SEPA messages, payment blocks, transactions and mandates.

Shape: ``PREFIX-yyyyMMddHHmmss-xxxxxxxx`` (8 lowercase hex characters from
4 random bytes). All identifiers stay well below the 35-character limit of
``MsgId``/``PmtInfId``/``EndToEndId`` for prefixes up to 10 characters.
"""

import secrets
from collections.abc import Callable
from datetime import datetime

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


class IdentifierGenerator:
    """Generate timestamped random identifiers.

    Args:
        clock: Returns the current time; injectable for tests

    Example:
        >>> generator = IdentifierGenerator()
        >>> generator.generate_message_id()  # doctest: +SKIP
        'MSG-20240120143015-9f2c41ab'
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock

    def generate_message_id(self, prefix: str = "MSG") -> str:
        return self.generate_custom_id(prefix)

    def generate_payment_info_id(self, prefix: str = "PMT") -> str:
        return self.generate_custom_id(prefix)

    def generate_end_to_end_id(self, prefix: str = "E2E") -> str:
        return self.generate_custom_id(prefix)

    def generate_mandate_id(self, prefix: str = "MANDATE") -> str:
        return self.generate_custom_id(prefix)

    def generate_custom_id(self, prefix: str) -> str:
        timestamp = self._clock().strftime(TIMESTAMP_FORMAT)
        return f"{prefix}-{timestamp}-{secrets.token_hex(4)}"

"""Checksum algorithms shared by the identifier validators.

- mod-97 (ISO 7064) used by IBAN validation and check-digit calculation
- Luhn used by payment card numbers
- Weighted mod-11 used by the two Spanish CCC control digits

All functions are pure and operate on plain digit strings.
"""

from collections.abc import Sequence

from ..exceptions import InvalidFormatError

# Spanish CCC weights: first digit covers bank + branch, second covers the account
CCC_BANK_BRANCH_WEIGHTS: tuple[int, ...] = (4, 8, 5, 10, 9, 7, 3, 6)
CCC_ACCOUNT_WEIGHTS: tuple[int, ...] = (1, 2, 4, 8, 5, 10, 9, 7, 3, 6)


def _require_digits(value: str, field: str) -> None:
    if not value or not value.isascii() or not value.isdigit():
        raise InvalidFormatError(
            f"{field} must contain only digits",
            field=field,
            value=value,
            constraint="digits",
        )


def mod97(digits: str) -> int:
    """Compute ``digits mod 97`` without building a big integer.

    The remainder is carried digit by digit, so the working value never
    exceeds ``96 * 10 + 9``.

    Args:
        digits: Numeric string of any length

    Returns:
        Remainder in the range 0..96

    Raises:
        InvalidFormatError: If the input is empty or contains non-digits

    Example:
        >>> mod97("3214282912345698765432161182")
        1
    """
    _require_digits(digits, "digits")

    remainder = 0
    for char in digits:
        remainder = (remainder * 10 + ord(char) - 48) % 97
    return remainder


def iban_to_digits(value: str) -> str:
    """Expand letters to their numeric IBAN value (A=10 ... Z=35).

    Digits are kept as-is. The input is expected to be uppercase alphanumeric.
    """
    parts = []
    for char in value:
        if "A" <= char <= "Z":
            parts.append(str(ord(char) - 55))
        else:
            parts.append(char)
    return "".join(parts)


def luhn_valid(digits: str) -> bool:
    """Check a digit string with the Luhn algorithm.

    Starting from the rightmost digit, every digit at an odd distance from the
    end is doubled (9 subtracted when the result exceeds 9). The string is valid
    when the total is a multiple of 10.

    Returns:
        False for empty or non-numeric input instead of raising.
    """
    if not digits or not digits.isascii() or not digits.isdigit():
        return False

    total = 0
    for distance, char in enumerate(reversed(digits)):
        digit = ord(char) - 48
        if distance % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit

    return total % 10 == 0


def weighted_mod11(digits: str, weights: Sequence[int]) -> int:
    """Weighted mod-11 control digit as used by the Spanish CCC.

    ``11 - (sum % 11)``, with 11 mapped to 0 and 10 mapped to 1.
    """
    if len(digits) != len(weights):
        raise InvalidFormatError(
            f"Expected {len(weights)} digits, got {len(digits)}",
            value=digits,
            constraint="length",
        )
    _require_digits(digits, "digits")

    weighted_sum = sum((ord(char) - 48) * weight for char, weight in zip(digits, weights))
    check = 11 - (weighted_sum % 11)
    if check == 11:
        return 0
    if check == 10:
        return 1
    return check


def ccc_check_digits(bank_code: str, branch_code: str, account_number: str) -> tuple[str, str]:
    """Compute the two control digits of a Spanish CCC.

    Args:
        bank_code: 4-digit entity code
        branch_code: 4-digit office code
        account_number: 10-digit account number

    Returns:
        Tuple of two zero-padded strings ``(bank_branch_digit, account_digit)``.
        Each value is a single control digit 0-9; the CCC stores them side by
        side, see :func:`ccc_control_pair`.

    Example:
        >>> ccc_check_digits("2100", "0418", "0200051332")
        ('04', '05')
    """
    if len(bank_code) != 4 or len(branch_code) != 4 or len(account_number) != 10:
        raise InvalidFormatError(
            "CCC parts must be 4 (bank), 4 (branch) and 10 (account) digits",
            value=f"{bank_code}{branch_code}{account_number}",
            constraint="length",
        )

    first = weighted_mod11(bank_code + branch_code, CCC_BANK_BRANCH_WEIGHTS)
    second = weighted_mod11(account_number, CCC_ACCOUNT_WEIGHTS)
    return f"{first:02d}", f"{second:02d}"


def ccc_control_pair(bank_code: str, branch_code: str, account_number: str) -> str:
    """Return the two CCC control digits as they appear in positions 8-9.

    Example:
        >>> ccc_control_pair("2100", "0418", "0200051332")
        '45'
    """
    first, second = ccc_check_digits(bank_code, branch_code, account_number)
    return f"{int(first)}{int(second)}"

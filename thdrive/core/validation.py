"""
Input Validation Utilities

Money is handled as Decimal with two places from the API boundary inward.
"""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def to_money(value: Any) -> Decimal:
    """
    Convert a float/int/str/Decimal into a Decimal rounded to cents.

    Floats go through str() first so 0.1 becomes Decimal("0.10") and not
    Decimal("0.1000000000000000055511151231257827...").

    Raises:
        ValueError: value is None, not numeric, NaN or infinite
    """
    if value is None:
        raise ValueError("Amount is required")
    if isinstance(value, bool):
        raise ValueError("Amount must be a number")
    try:
        decimal_value = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"Amount is not a number: {value!r}")
    if not decimal_value.is_finite():
        raise ValueError(f"Amount is not a finite number: {value!r}")
    return decimal_value.quantize(CENT, rounding=ROUND_HALF_UP)


class AmountValidator:
    """Monetary amount validation"""

    @staticmethod
    def validate(
        amount: Any,
        min_value: Decimal | float = Decimal("0.00"),
        max_value: Decimal | float = Decimal("100000.00")
    ) -> tuple[bool, str | None]:
        """
        Validate monetary amount.

        Args:
            amount: Amount to validate
            min_value: Minimum allowed value (inclusive)
            max_value: Maximum allowed value (inclusive)

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            raw = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        except (InvalidOperation, ValueError):
            return False, "Amount must be a number"

        if not raw.is_finite():
            return False, "Amount must be a finite number"

        if raw != raw.quantize(CENT, rounding=ROUND_HALF_UP):
            return False, "Amount cannot have more than 2 decimal places"

        if raw < to_money(min_value):
            return False, f"Amount must be at least {to_money(min_value)}"

        if raw > to_money(max_value):
            return False, f"Amount cannot exceed {to_money(max_value)}"

        return True, None


class EmailValidator:
    """E-mail validation for payout addresses"""

    @staticmethod
    def validate(email: str | None) -> bool:
        if not email:
            return False
        return bool(_EMAIL_RE.match(email.strip()))

    @staticmethod
    def mask(email: str) -> str:
        """Mask an address for logs: j***@example.com"""
        local, _, domain = email.partition("@")
        if not domain:
            return "***"
        return f"{local[:1]}***@{domain}"

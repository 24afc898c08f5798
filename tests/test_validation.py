"""
Tests for thdrive/core/validation.py
"""
from decimal import Decimal

import pytest

from thdrive.core.validation import AmountValidator, EmailValidator, to_money


class TestToMoney:

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value,expected",
        [
            (0.1, Decimal("0.10")),
            (40, Decimal("40.00")),
            ("12.345", Decimal("12.35")),
            ("12.344", Decimal("12.34")),
            (Decimal("2.5"), Decimal("2.50")),
        ],
    )
    def test_rounds_half_up_to_cents(self, value, expected):
        assert to_money(value) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [None, True, "abc", "NaN", float("inf")])
    def test_rejects_non_numeric(self, value):
        with pytest.raises(ValueError):
            to_money(value)


class TestAmountValidator:

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "amount,min_val,max_val,valid",
        [
            ("40.00", 0, 1000, True),
            ("0.01", "0.01", 1000, True),
            ("0.00", "0.01", 1000, False),
            ("-1", 0, 1000, False),
            ("1000.01", 0, 1000, False),
            ("1.005", 0, 1000, False),
            ("abc", 0, 1000, False),
            ("Infinity", 0, 1000, False),
        ],
    )
    def test_validate_amount(self, amount, min_val, max_val, valid):
        is_valid, error = AmountValidator.validate(amount, min_val, max_val)
        assert is_valid is valid
        assert (error is None) is valid

    @pytest.mark.unit
    def test_error_message_names_minimum(self):
        _, error = AmountValidator.validate("0.50", min_value=Decimal("1.00"))
        assert error == "Amount must be at least 1.00"


class TestEmailValidator:

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "email,valid",
        [
            ("driver@example.com", True),
            ("  driver@example.com ", True),
            ("driver@example", False),
            ("not-an-email", False),
            ("", False),
            (None, False),
        ],
    )
    def test_validate_email(self, email, valid):
        assert EmailValidator.validate(email) is valid

    @pytest.mark.unit
    def test_mask_email(self):
        assert EmailValidator.mask("driver@example.com") == "d***@example.com"
        assert EmailValidator.mask("nodomain") == "***"

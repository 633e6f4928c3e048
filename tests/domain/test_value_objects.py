"""Unit tests for domain value objects."""

import pytest

from spiceworld.domain.exceptions import ValidationError
from spiceworld.domain.model.value_objects import Money, Quantity, new_id


# ── Money ────────────────────────────────────────────────────────────────────


class TestMoney:

    def test_creation(self):
        m = Money(1050)
        assert m.amount == 1050
        assert m.currency == "EUR"

    def test_of_factory_from_string(self):
        assert Money.of("25.99").amount == 2599

    def test_of_factory_from_int(self):
        assert Money.of(10).amount == 1000

    def test_of_rounds_half_up_to_minor_units(self):
        assert Money.of("0.005").amount == 1

    def test_of_rejects_garbage(self):
        with pytest.raises(ValidationError, match="Invalid money amount"):
            Money.of("three")

    def test_float_amount_rejected(self):
        with pytest.raises(ValidationError, match="integer number of minor units"):
            Money(3.99)

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            Money(-1)

    def test_addition(self):
        assert Money.of("10") + Money.of("5.50") == Money.of("15.50")

    def test_subtraction_going_negative_rejected(self):
        with pytest.raises(ValidationError, match="negative amount"):
            Money.of("5") - Money.of("10")

    def test_multiplication_by_int(self):
        assert Money.of("7.50") * 3 == Money.of("22.50")

    def test_currency_mismatch_rejected(self):
        with pytest.raises(ValidationError, match="Cannot combine"):
            Money(1000, "USD") + Money(500, "EUR")

    def test_str_formatting(self):
        assert str(Money.of("15")) == "15.00 EUR"
        assert str(Money(905, "USD")) == "9.05 USD"

    def test_comparison_operators(self):
        assert Money.of("5") < Money.of("10")
        assert Money.of("10") > Money.of("5")
        assert Money.of("10") >= Money.of("10")
        assert Money.of("10") <= Money.of("10")

    def test_zero_is_not_positive(self):
        assert not Money.zero().is_positive
        assert Money(1).is_positive


# ── Quantity ─────────────────────────────────────────────────────────────────


class TestQuantity:

    def test_valid_quantity(self):
        assert Quantity(5).value == 5

    def test_zero_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity(0)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity(-3)

    def test_non_integer_rejected(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            Quantity("2")


# ── Identifiers ──────────────────────────────────────────────────────────────


class TestNewId:

    def test_new_id_is_unique(self):
        assert new_id() != new_id()

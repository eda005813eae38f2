import math

from app.services.costing_engine import round_half_up
from app.services.formatting import format_currency


def test_format_currency_rounds_and_groups_thousands():
    assert format_currency(1234.6) == "€1,235"
    assert format_currency(1234.5) == "€1,235"
    assert format_currency(1234567) == "€1,234,567"
    assert format_currency(999.4) == "€999"


def test_format_currency_zero_and_missing():
    assert format_currency(0) == "€0"
    assert format_currency(None) == "€0"


def test_format_currency_negative():
    assert format_currency(-1234.6) == "€-1,235"


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_half_up(2.4999) == 2
    assert math.isnan(round_half_up(float("nan")))
    assert round_half_up(float("inf")) == float("inf")
    assert round_half_up(0.49999999999999994) == 0
    assert round_half_up(-0.5000000000000001) == -1


def test_format_currency_non_finite():
    assert format_currency(float("nan")) == "€NaN"
    assert format_currency(float("inf")) == "€∞"
    assert format_currency(float("-inf")) == "€-∞"

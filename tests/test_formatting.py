from __future__ import annotations

from datetime import date

from ads_manager.services.formatting import (
    format_audience_size,
    format_currency,
    format_date,
    format_number,
    format_percentage,
)


def test_format_currency():
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(10, "EUR") == "€10.00"
    assert format_currency(-3, "USD") == "-$3.00"
    assert format_currency(5, "CHF") == "5.00 CHF"
    assert format_currency(None) == "-"


def test_format_number_abbreviates():
    assert format_number(999) == "999"
    assert format_number(1500) == "1.5K"
    assert format_number(2_500_000) == "2.5M"
    assert format_number(0.256) == "0.26"


def test_format_percentage_and_audience():
    assert format_percentage(3.14159) == "3.14%"
    assert format_audience_size(0) == "0"
    assert format_audience_size(903846) == "903.8K"


def test_format_date():
    assert format_date(date(2026, 3, 5)) == "Mar 05, 2026"
    assert format_date(None) == "-"

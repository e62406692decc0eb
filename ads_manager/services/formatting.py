"""
Display formatting helpers, registered as Jinja filters
"""
from datetime import date, datetime
from typing import Optional, Union

Number = Union[int, float]

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "THB": "฿",
    "INR": "₹",
    "AUD": "A$",
    "CAD": "C$",
}


def format_currency(amount: Optional[Number], currency: str = "USD") -> str:
    if amount is None:
        return "-"
    symbol = CURRENCY_SYMBOLS.get((currency or "USD").upper())
    if symbol is None:
        return f"{amount:,.2f} {currency}"
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_number(value: Optional[Number]) -> str:
    """1234 -> 1.2K, 2500000 -> 2.5M"""
    if value is None:
        return "-"
    if abs(value) >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if abs(value) >= 1_000:
        return f"{value / 1_000:.1f}K"
    if isinstance(value, float) and not value.is_integer():
        return f"{value:.2f}"
    return str(int(value))


def format_percentage(value: Optional[Number], digits: int = 2) -> str:
    if value is None:
        return "-"
    return f"{value:.{digits}f}%"


def format_audience_size(value: Optional[int]) -> str:
    if not value:
        return "0"
    return format_number(value)


def format_date(value: Union[date, datetime, None], fmt: str = "%b %d, %Y") -> str:
    if value is None:
        return "-"
    return value.strftime(fmt)


JINJA_FILTERS = {
    "currency": format_currency,
    "number": format_number,
    "percentage": format_percentage,
    "audience": format_audience_size,
    "date": format_date,
}

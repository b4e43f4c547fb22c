"""Money formatting helpers.

Amounts are kept as floats everywhere in the core; rounding only happens here,
at display time, so repeated summation never compounds rounding error.
"""

from decimal import ROUND_HALF_UP, Decimal

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
}

_CENT = Decimal("0.01")


def _quantize(amount: float) -> Decimal:
    # str() keeps the shortest repr, so 2.675 rounds as written, not as stored
    return Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)


def currency_symbol(currency: str) -> str:
    """Symbol prefix for a currency code, falling back to the code itself."""
    code = currency.upper()
    return CURRENCY_SYMBOLS.get(code, f"{code} ")


def to_cents(amount: float) -> int:
    """
    Convert a float amount to integer cents.
    Uses ROUND_HALF_UP for consistency with display formatting.

    Args:
        amount: Amount in major currency units

    Returns:
        Amount in cents (integer)
    """
    return int(_quantize(amount) * 100)


def format_currency(amount: float, currency: str = "EUR") -> str:
    """
    Format an amount as a display string in a fixed currency.

    Examples:
        format_currency(1234.5) -> "€1,234.50"
        format_currency(-3, "USD") -> "-$3.00"
    """
    value = _quantize(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{currency_symbol(currency)}{abs(value):,.2f}"


def format_money(amount: float, currency: str = "EUR", use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: (€85.02)
    Positive amounts have spaces:      €85.02
    The spaces ensure decimal points align in tables.
    """
    symbol = currency_symbol(currency)
    value = _quantize(amount)
    abs_amount = abs(value)
    if value < 0:
        if use_color:
            formatted = f"({symbol}[red]{abs_amount:,.2f}[/red])"
        else:
            formatted = f"({symbol}{abs_amount:,.2f})"
    else:
        if use_color:
            formatted = f" [green]{symbol}{abs_amount:,.2f}[/green] "
        else:
            formatted = f" {symbol}{abs_amount:,.2f} "
    return formatted

from decimal import Decimal, InvalidOperation


def parse_amount(text) -> Decimal:
    """Parse user input like '1,234.5' into a 2-place Decimal. Raises ValueError."""
    try:
        value = Decimal(str(text).replace(",", "").strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {text!r}.") from None
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {text!r}.")
    return value.quantize(Decimal("0.01"))


def format_currency(amount, symbol: str = "$", type_: str | None = None) -> str:
    """Format an amount as '$1,234.56'; expenses get a leading '-' when type_ is given."""
    sign = "-" if type_ == "expense" else ""
    return f"{sign}{symbol}{Decimal(amount):,.2f}"

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")


def format_amount(value: Decimal) -> str:
    """Format a currency amount with two decimals: Decimal('250') -> '250.00'"""
    return f"{Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP):f}"


def format_quantity(value: Decimal) -> str:
    """Format a quantity without trailing zeros: Decimal('2.00') -> '2'"""
    normalized = Decimal(value).normalize()
    if normalized == normalized.to_integral_value():
        return f"{normalized.quantize(Decimal(1)):f}"
    return f"{normalized:f}"


def parse_amount(text: str) -> Decimal | None:
    """Parse an amount string into a Decimal. Returns None on invalid input.

    Accepts formats like '250', '250.00', "1'250.50" and '250,50'.
    """
    text = text.strip().replace("'", "").replace(" ", "")
    if not text:
        return None
    if "," in text and "." not in text:
        text = text.replace(",", ".")
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value.quantize(CENT, rounding=ROUND_HALF_UP)

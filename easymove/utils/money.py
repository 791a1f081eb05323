from decimal import Decimal, ROUND_HALF_UP

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value) -> Decimal:
    """Round half away from zero to pennies."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_minor_units(amount) -> int:
    return int(round_money(amount) * 100)


def format_price(amount, symbol: str = "£") -> str:
    return f"{symbol}{round_money(amount):,.2f}"


def format_duration(hours) -> str:
    total_minutes = int((to_decimal(hours) * 60).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    whole_hours, minutes = divmod(total_minutes, 60)

    if minutes == 0:
        return "1 hour" if whole_hours == 1 else f"{whole_hours} hours"
    if whole_hours == 0:
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    return (
        f"{whole_hours} hour{'s' if whole_hours != 1 else ''} "
        f"and {minutes} minute{'s' if minutes != 1 else ''}"
    )

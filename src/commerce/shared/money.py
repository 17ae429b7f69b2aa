"""Integer-cent money helpers.

All amounts are integers in minor currency units. Floats only appear as
inputs (configured discount values, exchange rates) and are rounded half-up
to the nearest cent before being stored or compared.
"""

from decimal import ROUND_HALF_UP, Decimal


def round_cents(value) -> int:
    """Round a numeric value half-up to a whole number of cents."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_cents(amount) -> int:
    """Convert a whole-currency amount (e.g. 12.5) to cents (1250)."""
    return round_cents(Decimal(str(amount)) * 100)


def from_cents(cents: int) -> float:
    return cents / 100


def apply_percentage(amount: int, percentage) -> int:
    """Return ``percentage`` percent of ``amount`` cents, rounded to the cent."""
    return round_cents(Decimal(amount) * Decimal(str(percentage)) / 100)


def convert(amount: int, from_rate, to_rate) -> int:
    """Convert cents between two currencies given their rates against a common base."""
    return round_cents(Decimal(amount) / Decimal(str(from_rate)) * Decimal(str(to_rate)))

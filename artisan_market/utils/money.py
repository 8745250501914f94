# artisan_market/utils/money.py

from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP

Money = Decimal
ZERO = Decimal("0")


def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))


def round_money(x: Money) -> Money:
    return D(x).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def floor_money(x: Money) -> Money:
    """Whole currency units, rounded down."""
    return D(x).to_integral_value(rounding=ROUND_FLOOR)


def to_minor_units(x: Money) -> int:
    return int(round_money(x) * 100)


def as_number(x):
    """JSON number for a money value: int when whole, float otherwise."""
    if x is None:
        return None
    d = D(x)
    return int(d) if d == d.to_integral_value() else float(d)

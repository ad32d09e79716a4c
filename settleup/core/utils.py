from decimal import Decimal, ROUND_HALF_UP, getcontext

getcontext().prec = 28
CENTS = Decimal("0.01")
ZERO = Decimal("0")

# one cent
EPSILON = Decimal("0.01")


def qround(d: Decimal) -> Decimal:
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    """
    Converts a DB aggregate or user supplied number into a Decimal.
    Floats go through str() so 0.1 stays 0.1 instead of its binary expansion.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money_str(d: Decimal) -> str:
    return str(qround(d))

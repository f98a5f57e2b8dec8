import re
from decimal import Context, Decimal, Inexact, InvalidOperation, localcontext

from errors import DecodeError

DECIMAL_PLACES = 4
PRECISION = Decimal("0.0001")
ZERO = Decimal("0")

# 28 significant digits: 24 integer digits plus 4 fractional digits
MAX_DIGITS = 28
MAX_AMOUNT = Decimal(10) ** (MAX_DIGITS - DECIMAL_PLACES)

_AMOUNT_PATTERN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")
_EXACT_CONTEXT = Context(prec=MAX_DIGITS, traps=[InvalidOperation, Inexact])


class InvalidAmountError(DecodeError):
    """Amount is not a plain decimal literal with at most 4 fractional digits."""


class AmountOverflowError(ArithmeticError):
    """A balance would leave the representable range or need rounding."""


def has_valid_precision(value: Decimal) -> bool:
    if not value.is_finite():
        return False
    return value.as_tuple().exponent >= -DECIMAL_PLACES


def within_limit(value: Decimal) -> bool:
    return value.is_finite() and abs(value) < MAX_AMOUNT


def parse_amount(text: str) -> Decimal:
    """
    Parse a decimal literal into an amount.
    Never rounds: more than 4 fractional digits is an error, even trailing zeros.
    Only ASCII digits, an optional sign and a decimal point are accepted.
    """
    stripped = text.strip()
    if not _AMOUNT_PATTERN.fullmatch(stripped):
        raise InvalidAmountError(f"not a decimal amount: {text!r}")

    value = Decimal(stripped)
    if not has_valid_precision(value):
        raise InvalidAmountError(f"amount has more than {DECIMAL_PLACES} decimal places: {text!r}")
    if not within_limit(value):
        raise InvalidAmountError(f"amount too large: {text!r}")
    return value


def add(left: Decimal, right: Decimal) -> Decimal:
    """Exact sum. Raises AmountOverflowError instead of rounding or exceeding MAX_AMOUNT."""
    with localcontext(_EXACT_CONTEXT):
        try:
            result = left + right
        except Inexact:
            raise AmountOverflowError(f"{left} + {right} cannot be represented exactly") from None
    if not within_limit(result):
        raise AmountOverflowError(f"{left} + {right} exceeds {MAX_AMOUNT}")
    return result


def subtract(left: Decimal, right: Decimal) -> Decimal:
    return add(left, right.copy_negate())


def format_amount(value: Decimal) -> str:
    """Render with exactly 4 decimal places."""
    quantized = value.quantize(PRECISION)
    if quantized.is_zero():
        quantized = abs(quantized)
    return f"{quantized:f}"

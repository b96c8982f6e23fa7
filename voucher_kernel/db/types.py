"""
Module: voucher_kernel.db.types
Responsibility: Conversion between user-facing Decimal amounts and the
    integer minor units stored in the database.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - Amounts carry exactly AMOUNT_DECIMAL_PLACES places.  An input with more
      places is rejected, never silently rounded.
    - Storage-side SUMs run over integers, so aggregate balances are exact on
      every backend (SQLite included).
    - |minor units| never exceeds MAX_MINOR_UNITS, the signed 64-bit column
      range.
    - No floats.  to_minor_units() rejects float input outright.

Failure modes:
    - InvalidAmountError on non-numeric input, float input, excess
      precision, or a magnitude outside the storable range.
"""

from decimal import Decimal, InvalidOperation

from voucher_kernel.exceptions import InvalidAmountError

AMOUNT_DECIMAL_PLACES = 2
AMOUNT_QUANTUM = Decimal(1).scaleb(-AMOUNT_DECIMAL_PLACES)
ZERO = Decimal("0").quantize(AMOUNT_QUANTUM)
MAX_MINOR_UNITS = 2**63 - 1


def parse_amount(value: str | int | Decimal) -> Decimal:
    """
    Coerce a user- or file-supplied amount to a Decimal.

    Preconditions: value is a str, int, or Decimal.  Thousands separators
        (",") in strings are accepted.
    Postconditions: Returns the exact Decimal value, unrounded.

    Raises:
        InvalidAmountError: float input, or a string that is not a number.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmountError(value, "amounts must be str, int, or Decimal")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    else:
        try:
            result = Decimal(value.replace(",", "").strip())
        except (InvalidOperation, AttributeError):
            raise InvalidAmountError(value, "not a number") from None
    if not result.is_finite():
        raise InvalidAmountError(value, "not a finite number")
    return result


def to_minor_units(value: str | int | Decimal) -> int:
    """
    Convert an amount to integer minor units.

    Raises:
        InvalidAmountError: if the amount has more than AMOUNT_DECIMAL_PLACES
            decimal places, or does not fit in MAX_MINOR_UNITS.
    """
    amount = parse_amount(value)
    try:
        quantized = amount.quantize(AMOUNT_QUANTUM)
    except InvalidOperation:
        raise InvalidAmountError(value, "amount is too large") from None
    if quantized != amount:
        raise InvalidAmountError(
            value,
            f"at most {AMOUNT_DECIMAL_PLACES} decimal places are allowed",
        )
    minor = int(quantized.scaleb(AMOUNT_DECIMAL_PLACES))
    if abs(minor) > MAX_MINOR_UNITS:
        raise InvalidAmountError(value, "amount is too large")
    return minor


def from_minor_units(minor: int) -> Decimal:
    """Convert stored minor units back to a Decimal with fixed places."""
    return Decimal(int(minor)).scaleb(-AMOUNT_DECIMAL_PLACES).quantize(AMOUNT_QUANTUM)

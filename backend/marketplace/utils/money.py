from decimal import Decimal, InvalidOperation

from marketplace.exceptions import InvalidArgument

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value, field: str = "amount") -> Decimal:
    """
    Parse a monetary value into an exact 2-place Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary
    expansion. More than 2 decimal places is rejected rather than rounded.
    """
    if isinstance(value, bool):
        raise InvalidArgument(f"Invalid {field}: {value!r}")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidArgument(f"Invalid {field}: {value!r}")
    if not amount.is_finite():
        raise InvalidArgument(f"Invalid {field}: {value!r}")
    if amount != amount.quantize(CENT):
        raise InvalidArgument(f"{field.capitalize()} must have at most 2 decimal places")
    return amount.quantize(CENT)

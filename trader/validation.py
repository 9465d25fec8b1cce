"""
Argument validation for trading sub-commands.

Quantities are parsed into exact decimals; binary floats are never used
for order sizes.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from .config import TraderError
from .logging_config import get_logger

logger = get_logger(__name__)

# Plain decimal literal: optional sign, digits, optional fraction. No exponent,
# digit separators or surrounding whitespace.
QUANTITY_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)", re.ASCII)


class ValidationError(TraderError):
    """Custom exception for validation errors"""
    pass


class InvalidQuantity(ValidationError):
    def __init__(self, text: str, reason: str):
        self.text = text
        self.reason = reason
        super().__init__(f"QUANTITY {text!r} is not a valid decimal: {reason}")


class InvalidSymbol(ValidationError):
    pass


def parse_quantity(text: str) -> Decimal:
    """
    Parse a quantity argument into an exact Decimal.

    Args:
        text: Quantity as typed by the user, e.g. "0.01"

    Returns:
        Finite Decimal with the precision given in ``text``

    Raises:
        InvalidQuantity: If ``text`` is not a finite decimal literal
    """
    try:
        quantity = Decimal(text)
    except InvalidOperation as e:
        # decimal signals carry no message, name the condition instead
        reasons = [c.__name__ for c in e.args[0]] if e.args and isinstance(e.args[0], list) else []
        raise InvalidQuantity(text, ", ".join(reasons) or str(e) or "invalid decimal literal") from e
    except TypeError as e:
        raise InvalidQuantity(str(text), str(e)) from e

    if not quantity.is_finite():
        raise InvalidQuantity(text, "value is not finite")
    if not QUANTITY_PATTERN.fullmatch(text):
        raise InvalidQuantity(text, "exponents, digit separators and surrounding whitespace are not accepted")

    logger.debug(f"Parsed quantity {text!r} -> {quantity}")
    return quantity


def parse_symbol(text: str) -> str:
    """Trim a SYMBOL argument; an empty symbol is rejected."""
    symbol = text.strip()
    if not symbol:
        raise InvalidSymbol("SYMBOL must not be empty")
    return symbol

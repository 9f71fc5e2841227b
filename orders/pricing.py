"""
Line price resolution.

A line is priced from its base price with exactly one discount source:
an active wholesaler agreement wins over the store-wide discount, and the
two are never stacked. Amounts are rounded half-up to the currency's minor
unit and never go below zero.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from main.exceptions import InvalidInput
from wholesalers.resolver import Active

# Digits after the decimal point for each supported currency
MINOR_UNITS = {
    'ILS': 2,
    'USD': 2,
    'EUR': 2,
    'JOD': 3,
}
DEFAULT_MINOR_UNITS = 2

ZERO = Decimal('0')
ONE = Decimal('1')


class DiscountSource:
    WHOLESALER = 'wholesaler'
    STORE = 'store'
    NONE = 'none'


@dataclass(frozen=True)
class LineItem:
    product_id: Optional[int]
    base_price: Decimal
    quantity: int


@dataclass(frozen=True)
class FinalPrice:
    """
    Priced line. ``unit_price`` and ``line_total`` are each rounded from the
    unrounded discounted amount, so ``line_total`` may differ from
    ``unit_price * quantity`` by a minor unit (10.005 x 2 gives 10.01 and 20.01).
    Orders sum ``line_total``.
    """
    base_price: Decimal
    quantity: int
    discount_rate: Decimal
    discount_source: str
    unit_price: Decimal
    line_total: Decimal
    currency: Optional[str] = None

    @property
    def gross_total(self):
        return round_minor(self.base_price * self.quantity, self.currency)

    @property
    def discount_amount(self):
        return max(self.gross_total - self.line_total, ZERO)


def to_decimal(value, name):
    """Exact Decimal from ints, strings, Decimals or floats (via their repr)."""
    if isinstance(value, bool) or value is None:
        raise InvalidInput(f"{name} must be a number.")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise InvalidInput(f"{name} must be a number.")
    if not result.is_finite():
        raise InvalidInput(f"{name} must be a finite number.")
    return result


def round_minor(amount, currency=None):
    digits = MINOR_UNITS.get((currency or '').upper(), DEFAULT_MINOR_UNITS)
    return amount.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)


def price_for(line_item, wholesaler_status, store_discount_rate=None, currency=None) -> FinalPrice:
    """
    Resolve the final price of ``line_item``.

    Raises InvalidInput when the base price is negative, the quantity is not a
    positive integer or the chosen discount rate is negative. A missing
    discount is the normal zero-discount path.
    """
    base_price = to_decimal(line_item.base_price, 'base_price')
    if base_price < ZERO:
        raise InvalidInput("base_price cannot be negative.")

    quantity = line_item.quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidInput("quantity must be an integer.")
    if quantity < 1:
        raise InvalidInput("quantity must be at least 1.")

    if isinstance(wholesaler_status, Active):
        rate = to_decimal(wholesaler_status.discount_rate, 'wholesaler discount_rate')
        source = DiscountSource.WHOLESALER
    elif store_discount_rate is not None:
        rate = to_decimal(store_discount_rate, 'store discount_rate')
        source = DiscountSource.STORE
    else:
        rate = ZERO
        source = DiscountSource.NONE

    if rate < ZERO:
        raise InvalidInput("discount_rate cannot be negative.")

    multiplier = max(ONE - rate, ZERO)

    return FinalPrice(
        base_price=base_price,
        quantity=quantity,
        discount_rate=rate,
        discount_source=source,
        unit_price=max(round_minor(base_price * multiplier, currency), ZERO),
        line_total=max(round_minor(base_price * quantity * multiplier, currency), ZERO),
        currency=currency,
    )

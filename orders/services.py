"""
Quotes and order placement on top of the price resolver.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

from django.db import transaction
from django.utils import timezone

from main.exceptions import InvalidInput
from wholesalers.resolver import INACTIVE, WholesalerStatus, resolve
from .models import Order, OrderItem
from .pricing import FinalPrice, LineItem, ZERO, DiscountSource, price_for, round_minor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuoteLine:
    product: object
    price: FinalPrice


@dataclass(frozen=True)
class Quote:
    currency: str
    wholesaler_status: WholesalerStatus
    lines: Tuple[QuoteLine, ...]

    @property
    def is_wholesale(self):
        return self.wholesaler_status.is_active

    @property
    def discount_source(self):
        sources = {line.price.discount_source for line in self.lines}
        return sources.pop() if len(sources) == 1 else DiscountSource.NONE

    @property
    def subtotal(self):
        return round_minor(sum((line.price.gross_total for line in self.lines), ZERO), self.currency)

    @property
    def total(self):
        return round_minor(sum((line.price.line_total for line in self.lines), ZERO), self.currency)

    @property
    def discount_total(self):
        return max(self.subtotal - self.total, ZERO)


def _merge_items(items):
    """Collapse repeated products into one line, keeping first-seen order."""
    merged = {}
    for product, quantity in items:
        if product.pk in merged:
            merged[product.pk] = (product, merged[product.pk][1] + quantity)
        else:
            merged[product.pk] = (product, quantity)
    return list(merged.values())


def quote(store, items, customer=None, as_of=None) -> Quote:
    """
    Price ``items`` (pairs of product and quantity) for ``customer`` in ``store``.

    The wholesaler status is resolved once per quote; guests are never
    wholesalers.
    """
    if not items:
        raise InvalidInput("At least one item is required.")

    status = resolve(customer, store, as_of=as_of) if customer is not None else INACTIVE

    lines = []
    for product, quantity in _merge_items(items):
        if product.store_id != store.pk:
            raise InvalidInput(f"Product {product.pk} does not belong to this store.")
        if not product.is_active:
            raise InvalidInput(f"Product {product.sku} is not available.")
        line_item = LineItem(product_id=product.pk, base_price=product.price, quantity=quantity)
        lines.append(QuoteLine(
            product=product,
            price=price_for(line_item, status, store.discount_rate, currency=store.currency),
        ))

    return Quote(currency=store.currency, wholesaler_status=status, lines=tuple(lines))


def generate_order_number():
    timestamp = timezone.now().strftime('%Y%m%d%H%M%S')
    return f"ORD-{timestamp}-{str(uuid.uuid4())[:4].upper()}"


def place_order(store, items, customer=None, notes=None, order_number: Optional[str] = None) -> Order:
    """Quote ``items`` and persist the result as an order in one transaction."""
    priced = quote(store, items, customer=customer)

    with transaction.atomic():
        order = Order.objects.create(
            store=store,
            customer=customer,
            order_number=order_number or generate_order_number(),
            currency=priced.currency,
            is_wholesale=priced.is_wholesale,
            discount_source=priced.discount_source,
            subtotal=priced.subtotal,
            discount_total=priced.discount_total,
            total=priced.total,
            notes=notes,
        )
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                product=line.product,
                quantity=line.price.quantity,
                base_price=line.price.base_price,
                discount_rate=line.price.discount_rate,
                unit_price=line.price.unit_price,
                line_total=line.price.line_total,
            )
            for line in priced.lines
        ])

    logger.info(
        f"Order {order.order_number} placed in store {store.slug}: {order.total} {order.currency}"
        f"{' (wholesale)' if order.is_wholesale else ''}"
    )
    return order

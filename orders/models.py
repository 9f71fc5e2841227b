from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal


class Order(models.Model):
    """Order placed in a store; totals are frozen at placement time"""

    class DiscountSource(models.TextChoices):
        WHOLESALER = 'wholesaler', 'Wholesaler'
        STORE = 'store', 'Store'
        NONE = 'none', 'None'

    store = models.ForeignKey(
        'stores.Store',
        on_delete=models.PROTECT,
        related_name='orders',
        help_text='Store this order belongs to'
    )
    customer = models.ForeignKey(
        'users.User',
        on_delete=models.PROTECT,
        related_name='orders',
        null=True,
        blank=True
    )
    order_number = models.CharField(max_length=50)
    currency = models.CharField(max_length=3)
    is_wholesale = models.BooleanField(
        default=False,
        help_text='Whether this order used wholesaler pricing'
    )
    discount_source = models.CharField(
        max_length=20,
        choices=DiscountSource.choices,
        default=DiscountSource.NONE
    )
    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    discount_total = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    total = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['store', '-created_at'], name='orders_store_created_idx'),
            models.Index(fields=['customer'], name='orders_customer_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['store', 'order_number'],
                name='unique_order_number_per_store'
            )
        ]

    def __str__(self):
        return f"{self.order_number} - {self.total} {self.currency}"


class OrderItem(models.Model):
    """Priced line of an order"""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('inventory.Product', on_delete=models.PROTECT, related_name='order_items')
    quantity = models.IntegerField(validators=[MinValueValidator(1)])
    base_price = models.DecimalField(max_digits=10, decimal_places=3)
    discount_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal('0'))
    unit_price = models.DecimalField(max_digits=10, decimal_places=3)
    line_total = models.DecimalField(max_digits=12, decimal_places=3)

    class Meta:
        db_table = 'order_items'
        constraints = [
            models.UniqueConstraint(fields=['order', 'product'], name='unique_product_per_order'),
        ]

    def __str__(self):
        return f"{self.order.order_number} - {self.product.name} x {self.quantity}"

from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal


class Product(models.Model):
    """Store catalog entry; ``price`` is the base price before any discount"""

    store = models.ForeignKey(
        'stores.Store',
        on_delete=models.CASCADE,
        related_name='products',
        help_text='Store this product belongs to'
    )
    sku = models.CharField(max_length=100, help_text='Stock Keeping Unit, unique within the store')
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        validators=[MinValueValidator(Decimal('0.000'))],
        help_text='Base price in the store currency'
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(
                fields=['store', 'sku'],
                name='unique_sku_per_store'
            ),
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name='product_price_non_negative'
            ),
        ]
        indexes = [
            models.Index(fields=['store', 'is_active'], name='products_store_active_idx'),
        ]

    def __str__(self):
        return f"{self.sku} - {self.name}"

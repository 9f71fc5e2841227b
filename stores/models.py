from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models


class Store(models.Model):
    """
    Tenant model. Every customer, product, wholesaler agreement and order
    references exactly one store; the slug is the public lookup key.
    """

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        INACTIVE = 'inactive', 'Inactive'
        SUSPENDED = 'suspended', 'Suspended'

    name = models.CharField(max_length=100)
    slug = models.SlugField(
        max_length=100,
        unique=True,
        help_text='Globally unique store identifier used in public URLs'
    )
    description = models.TextField(blank=True, null=True)
    contact_email = models.EmailField(blank=True, null=True)
    contact_phone = models.CharField(max_length=20, blank=True, null=True)
    currency = models.CharField(max_length=3, default=settings.DEFAULT_CURRENCY)
    discount_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('1'))],
        help_text='Store-wide discount as a fraction (0.10 = 10%). Ignored for active wholesalers.'
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'stores'
        ordering = ['name']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(discount_rate__isnull=True)
                | models.Q(discount_rate__gte=0, discount_rate__lte=1),
                name='store_discount_rate_range',
            ),
        ]
        indexes = [
            models.Index(fields=['status'], name='stores_status_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.slug})"

    def save(self, *args, **kwargs):
        if self.slug:
            self.slug = self.slug.strip().lower()
        super().save(*args, **kwargs)

    @property
    def is_active(self):
        return self.status == self.Status.ACTIVE

from decimal import Decimal
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone


class WholesalerAgreementQuerySet(models.QuerySet):

    def for_identity(self, user_id, store_id):
        return self.filter(user_id=user_id, store_id=store_id)

    def active_at(self, as_of):
        """Agreements whose half-open window [active_from, active_to) contains ``as_of``"""
        return self.filter(active_from__lte=as_of).filter(
            Q(active_to__isnull=True) | Q(active_to__gt=as_of)
        )

    def overlapping(self, active_from, active_to=None):
        """Agreements whose window intersects [active_from, active_to)"""
        queryset = self.filter(Q(active_to__isnull=True) | Q(active_to__gt=active_from))
        if active_to is not None:
            queryset = queryset.filter(active_from__lt=active_to)
        return queryset


class WholesalerAgreement(models.Model):
    """
    Time-bounded discount arrangement between a user and a store.

    Windows of one (user, store) never overlap: granting a new agreement
    closes whatever is still running (see ``wholesalers.resolver.grant``) and
    the database rejects overlapping rows (see migration 0002).
    """

    user = models.ForeignKey(
        'users.User',
        on_delete=models.PROTECT,
        related_name='wholesaler_agreements'
    )
    store = models.ForeignKey(
        'stores.Store',
        on_delete=models.PROTECT,
        related_name='wholesaler_agreements',
        help_text='Store granting the discount'
    )
    discount_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('1'))],
        help_text='Discount as a fraction of the base price (0.20 = 20%)'
    )
    active_from = models.DateTimeField(default=timezone.now)
    active_to = models.DateTimeField(
        null=True,
        blank=True,
        help_text='Exclusive end of the agreement; empty means open-ended'
    )

    # Business details
    business_name = models.CharField(max_length=100, blank=True, null=True)
    tax_number = models.CharField(max_length=50, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    is_verified = models.BooleanField(default=False)
    verified_by = models.ForeignKey(
        'users.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='verified_agreements'
    )
    verified_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = WholesalerAgreementQuerySet.as_manager()

    class Meta:
        db_table = 'wholesaler_agreements'
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'store'],
                condition=Q(active_to__isnull=True),
                name='unique_open_agreement_per_store_user',
            ),
            models.CheckConstraint(
                condition=Q(active_to__isnull=True) | Q(active_to__gt=models.F('active_from')),
                name='agreement_window_ordered',
            ),
            models.CheckConstraint(
                condition=Q(discount_rate__gte=0, discount_rate__lte=1),
                name='agreement_discount_rate_range',
            ),
        ]
        indexes = [
            models.Index(fields=['store', 'user', 'active_from'], name='agreement_window_idx'),
        ]

    def __str__(self):
        return f"{self.user.email} @ {self.store.slug}: {self.discount_rate * 100:.2f}%"

    def clean(self):
        super().clean()
        if self.active_from and self.active_to is not None and self.active_to <= self.active_from:
            raise ValidationError({'active_to': 'Agreement must end after it starts.'})
        if self.user_id and self.store_id and self.active_from:
            clashes = (
                WholesalerAgreement.objects
                .for_identity(self.user_id, self.store_id)
                .overlapping(self.active_from, self.active_to)
                .exclude(pk=self.pk)
            )
            if clashes.exists():
                raise ValidationError('This window overlaps another agreement of the same user in this store.')

    def is_active_at(self, as_of):
        return self.active_from <= as_of and (self.active_to is None or as_of < self.active_to)

    def verify(self, verified_by):
        self.is_verified = True
        self.verified_at = timezone.now()
        self.verified_by = verified_by
        self.save(update_fields=['is_verified', 'verified_at', 'verified_by', 'updated_at'])

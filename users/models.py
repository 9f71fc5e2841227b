import uuid
from django.contrib.auth.models import AbstractUser, UserManager as BaseUserManager
from django.db import models


def normalize_email_address(email):
    """Lower-case and trim an email so identity lookups are case-insensitive."""
    return (email or '').strip().lower()


class UserManager(BaseUserManager):
    """
    Usernames are internal: identities are addressed by (email, store, role),
    so a random username is generated when none is given.
    """

    def create_user(self, username=None, email=None, password=None, **extra_fields):
        username = username or uuid.uuid4().hex
        return super().create_user(username, normalize_email_address(email), password, **extra_fields)

    def create_superuser(self, username=None, email=None, password=None, **extra_fields):
        username = username or uuid.uuid4().hex
        extra_fields.setdefault('role', User.Role.SUPERADMIN)
        return super().create_superuser(username, normalize_email_address(email), password, **extra_fields)


class User(AbstractUser):
    """
    Store-scoped identity.

    The same email may hold several identities: a client in one store and an
    admin in another, or a client and an admin of the same store. Only one
    *active* identity may exist per (email, store, role).

    Identity Types:
    - Platform: role=superadmin, store=None (manages every store)
    - Store identity: store=Store (admin, client, affiliate, wholesaler)
    """

    class Role(models.TextChoices):
        SUPERADMIN = 'superadmin', 'Super Admin'
        ADMIN = 'admin', 'Admin'
        CLIENT = 'client', 'Client'
        AFFILIATE = 'affiliate', 'Affiliate'
        WHOLESALER = 'wholesaler', 'Wholesaler'

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        INACTIVE = 'inactive', 'Inactive'
        BANNED = 'banned', 'Banned'

    email = models.EmailField(max_length=254)
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.CLIENT,
        help_text='Role within the store'
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        help_text='Soft status flag; identities are never hard-deleted'
    )
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_email_verified = models.BooleanField(default=False)

    # Multi-tenancy fields
    store = models.ForeignKey(
        'stores.Store',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='users',
        help_text='Store this identity belongs to. Null for platform super admins.'
    )

    objects = UserManager()

    class Meta:
        db_table = 'users'
        ordering = ['-date_joined']
        constraints = [
            models.UniqueConstraint(
                fields=['email', 'store', 'role'],
                condition=models.Q(status='active'),
                name='unique_active_identity_per_store_role',
            ),
            models.UniqueConstraint(
                fields=['email', 'role'],
                condition=models.Q(store__isnull=True, status='active'),
                name='unique_active_platform_identity',
            ),
        ]
        indexes = [
            models.Index(fields=['store', 'role'], name='users_store_role_idx'),
            models.Index(fields=['store', 'status'], name='users_store_status_idx'),
        ]

    def __str__(self):
        return f"{self.email} ({self.get_role_display()})"

    def save(self, *args, **kwargs):
        self.email = normalize_email_address(self.email)
        if not self.username:
            self.username = uuid.uuid4().hex
        super().save(*args, **kwargs)

    @property
    def is_superadmin(self):
        return self.role == self.Role.SUPERADMIN

    @property
    def is_store_admin(self):
        return self.role == self.Role.ADMIN

    @property
    def is_client(self):
        return self.role == self.Role.CLIENT

    @property
    def is_active_identity(self):
        return self.status == self.Status.ACTIVE

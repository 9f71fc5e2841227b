"""
Store-scoped identity keys and the uniqueness enforcer.

An identity is unique per (email, store, role) among *active* identities.
The compound partial unique index on ``users`` is the only arbiter: ``reserve``
performs the write and interprets an ``IntegrityError`` as a conflict, so two
concurrent registrations for the same key can never both succeed.
"""
import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional

from django.db import IntegrityError, transaction

from main.exceptions import InvalidInput
from .models import User, normalize_email_address

logger = logging.getLogger(__name__)


class ScopeKey(NamedTuple):
    email: str
    store_id: int
    role: str


@dataclass(frozen=True)
class Reserved:
    user: User


@dataclass(frozen=True)
class Conflict:
    scope_key: ScopeKey
    existing_user_id: int


def derive_key(email, store_id, role) -> ScopeKey:
    """
    Build the canonical uniqueness key for an identity.

    Email is trimmed and lower-cased, role is lower-cased. Accepts a Store
    instance or its id. Raises InvalidInput when any part is empty.
    """
    email = normalize_email_address(email)
    role = (role or '').strip().lower()
    store_id = getattr(store_id, 'pk', store_id)

    missing = [
        name for name, value in (('email', email), ('store', store_id), ('role', role))
        if value is None or str(value).strip() == ''
    ]
    if missing:
        raise InvalidInput(f"Identity key requires {', '.join(missing)}.")

    if isinstance(store_id, str):
        try:
            store_id = int(store_id.strip())
        except ValueError:
            raise InvalidInput(f"Invalid store id: {store_id!r}.")

    return ScopeKey(email=email, store_id=store_id, role=role)


def _active_holder(scope_key: ScopeKey, exclude_pk=None) -> Optional[User]:
    queryset = User.objects.filter(
        email=scope_key.email,
        store_id=scope_key.store_id,
        role=scope_key.role,
        status=User.Status.ACTIVE,
    )
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    return queryset.first()


def reserve(scope_key: ScopeKey, *, instance: Optional[User] = None, password=None, **fields):
    """
    Create (or, with ``instance``, update) the identity holding ``scope_key``.

    Returns ``Reserved(user)`` when the write is admitted and
    ``Conflict(scope_key, existing_user_id)`` when another active identity
    already holds the key. Any other integrity failure is re-raised.
    No retries: a true duplicate would fail again.
    """
    user = instance if instance is not None else User()
    user.email = scope_key.email
    user.store_id = scope_key.store_id
    user.role = scope_key.role
    for name, value in fields.items():
        setattr(user, name, value)

    if password:
        user.set_password(password)
    elif instance is None:
        user.set_unusable_password()

    try:
        with transaction.atomic():
            user.save()
    except IntegrityError:
        holder = _active_holder(scope_key, exclude_pk=user.pk)
        if holder is None:
            raise
        if instance is not None:
            instance.refresh_from_db()
        logger.info(
            f"Identity conflict for {scope_key.email} in store {scope_key.store_id} "
            f"as {scope_key.role} (held by user {holder.pk})"
        )
        return Conflict(scope_key=scope_key, existing_user_id=holder.pk)

    if instance is None:
        logger.info(f"Registered {scope_key.role} {scope_key.email} in store {scope_key.store_id}")
    return Reserved(user=user)

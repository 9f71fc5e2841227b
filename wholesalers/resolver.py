"""
Wholesaler status resolution and agreement lifecycle.

``resolve`` is a pure read: "not a wholesaler" is the normal ``INACTIVE``
outcome, never an error. ``grant`` and ``terminate`` keep the
no-overlapping-windows-per-(user, store) invariant at write time;
the database enforces the same rule (migration 0002).
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from django.db import IntegrityError, transaction
from django.utils import timezone

from main.exceptions import AgreementConflict, InvalidInput
from .models import WholesalerAgreement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Active:
    discount_rate: Decimal
    agreement_id: Optional[int] = None

    is_active = True


@dataclass(frozen=True)
class Inactive:
    is_active = False


INACTIVE = Inactive()

WholesalerStatus = Union[Active, Inactive]


def resolve(user_id, store_id, as_of=None, clock=timezone.now) -> WholesalerStatus:
    """
    Return the wholesaler status of ``user_id`` in ``store_id`` at ``as_of``.

    ``as_of`` defaults to ``clock()``. Should several windows overlap anyway
    (rows written before the overlap guard existed), the most recently
    created agreement wins.
    """
    user_id = getattr(user_id, 'pk', user_id)
    store_id = getattr(store_id, 'pk', store_id)
    if user_id is None or store_id is None:
        return INACTIVE

    as_of = as_of or clock()
    matches = list(
        WholesalerAgreement.objects
        .for_identity(user_id, store_id)
        .active_at(as_of)
        .order_by('-created_at', '-id')[:2]
    )
    if not matches:
        return INACTIVE

    if len(matches) > 1:
        logger.warning(
            f"Overlapping wholesaler agreements for user {user_id} in store {store_id} "
            f"at {as_of.isoformat()}; using agreement {matches[0].pk}"
        )
    return Active(discount_rate=matches[0].discount_rate, agreement_id=matches[0].pk)


def grant(user, store, discount_rate, active_from=None, active_to=None, **details):
    """
    Create a wholesaler agreement, closing any agreement that is still
    running at ``active_from``.

    Raises InvalidInput for a user outside the store, an empty window or an
    agreement scheduled to start after the new one; AgreementConflict when a
    concurrent write already took part of the window.
    """
    active_from = active_from or timezone.now()
    discount_rate = Decimal(str(discount_rate))

    if user.store_id != store.pk:
        raise InvalidInput("User does not belong to this store.")
    if not Decimal('0') <= discount_rate <= Decimal('1'):
        raise InvalidInput("Discount rate must be between 0 and 1.")
    if active_to is not None and active_to <= active_from:
        raise InvalidInput("Agreement must end after it starts.")

    try:
        with transaction.atomic():
            # Serialises grants for one user even when no agreement row exists yet
            type(user).objects.select_for_update().get(pk=user.pk)
            running = (
                WholesalerAgreement.objects
                .select_for_update()
                .for_identity(user.pk, store.pk)
                .overlapping(active_from, active_to)
            )
            for agreement in running:
                if agreement.active_from >= active_from:
                    raise InvalidInput(
                        f"Agreement {agreement.pk} starts at or after the new agreement; terminate it first."
                    )
                agreement.active_to = active_from
                agreement.save(update_fields=['active_to', 'updated_at'])
                logger.info(f"Closed wholesaler agreement {agreement.pk} at {active_from.isoformat()}")

            agreement = WholesalerAgreement.objects.create(
                user=user,
                store=store,
                discount_rate=discount_rate,
                active_from=active_from,
                active_to=active_to,
                **details
            )
    except IntegrityError as e:
        raise AgreementConflict() from e

    logger.info(
        f"Granted wholesaler agreement {agreement.pk} to user {user.pk} in store {store.slug} "
        f"at {discount_rate}"
    )
    return agreement


def terminate(agreement, at=None):
    """
    End ``agreement`` at ``at`` (default now). An agreement that has not
    started yet is removed, since it never applied to any price.
    """
    at = at or timezone.now()

    if agreement.active_to is not None and agreement.active_to <= at:
        return agreement

    if at <= agreement.active_from:
        logger.info(f"Cancelled wholesaler agreement {agreement.pk} before it started")
        agreement.delete()
        return None

    agreement.active_to = at
    agreement.save(update_fields=['active_to', 'updated_at'])
    logger.info(f"Terminated wholesaler agreement {agreement.pk} at {at.isoformat()}")
    return agreement


def resume(agreement, at=None):
    """
    Start a new open-ended agreement carrying the rate and business details
    of an ended ``agreement``. Suspending is ``terminate``; resuming never
    reopens the old row, so its history stays as it was.
    """
    at = at or timezone.now()

    if agreement.active_to is None or agreement.active_to > at:
        raise InvalidInput("Agreement is still running; nothing to resume.")
    if WholesalerAgreement.objects.for_identity(agreement.user_id, agreement.store_id).overlapping(at).exists():
        raise InvalidInput("User already has a running or scheduled agreement in this store.")

    renewed = grant(
        agreement.user,
        agreement.store,
        agreement.discount_rate,
        active_from=at,
        business_name=agreement.business_name,
        tax_number=agreement.tax_number,
        notes=agreement.notes,
    )
    logger.info(f"Resumed wholesaler agreement {agreement.pk} as {renewed.pk}")
    return renewed

"""
Tests for the wholesalers module.
Covers status resolution over agreement windows, the agreement lifecycle
and the wholesaler endpoints.
"""
import pytest
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework import status
from main.exceptions import InvalidInput
from wholesalers.models import WholesalerAgreement
from wholesalers.resolver import Active, INACTIVE, grant, resolve, resume, terminate


T0 = datetime(2026, 1, 1, tzinfo=dt_timezone.utc)


def make_agreement(user, store, rate='0.20', start=T0, end=None, **extra):
    return WholesalerAgreement.objects.create(
        user=user,
        store=store,
        discount_rate=Decimal(rate),
        active_from=start,
        active_to=end,
        **extra
    )


# ============== Resolver Tests ==============

@pytest.mark.django_db
class TestResolve:

    def test_no_agreement_is_inactive(self, wholesaler_user, store):
        assert resolve(wholesaler_user.pk, store.pk) == INACTIVE

    def test_inside_window(self, wholesaler_user, store):
        agreement = make_agreement(wholesaler_user, store, end=T0 + timedelta(days=30))

        result = resolve(wholesaler_user.pk, store.pk, as_of=T0 + timedelta(days=1))

        assert result == Active(discount_rate=Decimal('0.2000'), agreement_id=agreement.pk)
        assert result.is_active

    def test_window_start_is_inclusive(self, wholesaler_user, store):
        make_agreement(wholesaler_user, store, end=T0 + timedelta(days=30))

        assert resolve(wholesaler_user.pk, store.pk, as_of=T0).is_active

    def test_window_end_is_exclusive(self, wholesaler_user, store):
        end = T0 + timedelta(days=30)
        make_agreement(wholesaler_user, store, end=end)

        assert resolve(wholesaler_user.pk, store.pk, as_of=end) == INACTIVE
        assert resolve(wholesaler_user.pk, store.pk, as_of=end - timedelta(microseconds=1)).is_active

    def test_before_start_is_inactive(self, wholesaler_user, store):
        make_agreement(wholesaler_user, store)

        assert resolve(wholesaler_user.pk, store.pk, as_of=T0 - timedelta(seconds=1)) == INACTIVE

    def test_open_ended_runs_forever(self, wholesaler_user, store):
        make_agreement(wholesaler_user, store)

        assert resolve(wholesaler_user.pk, store.pk, as_of=T0 + timedelta(days=3650)).is_active

    def test_agreement_is_store_scoped(self, wholesaler_user, store, store2):
        make_agreement(wholesaler_user, store)

        assert resolve(wholesaler_user.pk, store2.pk, as_of=T0 + timedelta(days=1)) == INACTIVE

    def test_other_user_not_affected(self, wholesaler_user, client_user, store):
        make_agreement(wholesaler_user, store)

        assert resolve(client_user.pk, store.pk, as_of=T0 + timedelta(days=1)) == INACTIVE

    def test_accepts_instances(self, wholesaler_user, store):
        make_agreement(wholesaler_user, store)

        assert resolve(wholesaler_user, store, as_of=T0 + timedelta(days=1)).is_active

    def test_missing_user_is_inactive(self, store):
        assert resolve(None, store.pk) == INACTIVE

    def test_clock_is_used_when_as_of_missing(self, wholesaler_user, store):
        make_agreement(wholesaler_user, store, end=T0 + timedelta(days=1))

        assert resolve(wholesaler_user.pk, store.pk, clock=lambda: T0 + timedelta(hours=1)).is_active
        assert resolve(wholesaler_user.pk, store.pk, clock=lambda: T0 + timedelta(days=2)) == INACTIVE

    def test_overlapping_windows_rejected_by_database(self, wholesaler_user, store):
        make_agreement(wholesaler_user, store, rate='0.10', end=T0 + timedelta(days=10))

        with pytest.raises(IntegrityError), transaction.atomic():
            make_agreement(wholesaler_user, store, rate='0.25', end=T0 + timedelta(days=10))

        assert WholesalerAgreement.objects.count() == 1
        assert resolve(wholesaler_user.pk, store.pk, as_of=T0 + timedelta(days=5)).discount_rate == Decimal('0.10')

    def test_widening_into_neighbour_rejected_by_database(self, wholesaler_user, store):
        switch = T0 + timedelta(days=10)
        first = make_agreement(wholesaler_user, store, rate='0.10', end=switch)
        make_agreement(wholesaler_user, store, rate='0.30', start=switch, end=switch + timedelta(days=10))

        first.active_to = switch + timedelta(days=1)
        with pytest.raises(IntegrityError), transaction.atomic():
            first.save()

    def test_full_clean_reports_overlap(self, wholesaler_user, store):
        make_agreement(wholesaler_user, store, end=T0 + timedelta(days=30))
        clash = WholesalerAgreement(
            user=wholesaler_user,
            store=store,
            discount_rate=Decimal('0.15'),
            active_from=T0 + timedelta(days=5),
            active_to=T0 + timedelta(days=40),
        )

        with pytest.raises(ValidationError):
            clash.full_clean()

    def test_full_clean_accepts_own_window(self, wholesaler_user, store):
        agreement = make_agreement(wholesaler_user, store, end=T0 + timedelta(days=30))
        agreement.notes = 'Renegotiated terms'

        agreement.full_clean()

    def test_same_window_in_other_store_allowed(self, wholesaler_user, store, store2):
        make_agreement(wholesaler_user, store, end=T0 + timedelta(days=10))
        other = make_agreement(wholesaler_user, store2, end=T0 + timedelta(days=10))

        assert other.pk is not None

    def test_consecutive_windows(self, wholesaler_user, store):
        switch = T0 + timedelta(days=10)
        make_agreement(wholesaler_user, store, rate='0.10', end=switch)
        make_agreement(wholesaler_user, store, rate='0.30', start=switch)

        assert resolve(wholesaler_user.pk, store.pk, as_of=switch - timedelta(seconds=1)).discount_rate == Decimal('0.10')
        assert resolve(wholesaler_user.pk, store.pk, as_of=switch).discount_rate == Decimal('0.30')


# ============== Agreement Lifecycle Tests ==============

@pytest.mark.django_db
class TestGrant:

    def test_grant_creates_open_agreement(self, wholesaler_user, store):
        agreement = grant(wholesaler_user, store, '0.15', active_from=T0, business_name='Acme')

        assert agreement.active_to is None
        assert agreement.discount_rate == Decimal('0.15')
        assert agreement.business_name == 'Acme'

    def test_grant_closes_running_agreement(self, wholesaler_user, store):
        first = grant(wholesaler_user, store, Decimal('0.10'), active_from=T0)
        switch = T0 + timedelta(days=7)
        second = grant(wholesaler_user, store, Decimal('0.20'), active_from=switch)

        first.refresh_from_db()
        assert first.active_to == switch
        assert second.active_to is None
        assert resolve(wholesaler_user.pk, store.pk, as_of=switch).agreement_id == second.pk

    def test_grant_rejects_user_from_other_store(self, store2_admin, store):
        with pytest.raises(InvalidInput):
            grant(store2_admin, store, '0.10')

    @pytest.mark.parametrize('rate', ['-0.01', '1.01'])
    def test_grant_rejects_rate_out_of_range(self, wholesaler_user, store, rate):
        with pytest.raises(InvalidInput):
            grant(wholesaler_user, store, rate)

    def test_grant_rejects_empty_window(self, wholesaler_user, store):
        with pytest.raises(InvalidInput):
            grant(wholesaler_user, store, '0.10', active_from=T0, active_to=T0)

    def test_grant_rejects_backdating_before_running_agreement(self, wholesaler_user, store):
        grant(wholesaler_user, store, '0.10', active_from=T0)

        with pytest.raises(InvalidInput):
            grant(wholesaler_user, store, '0.20', active_from=T0 - timedelta(days=1))

    def test_bounded_grant_before_scheduled_agreement(self, wholesaler_user, store):
        scheduled = grant(wholesaler_user, store, '0.30', active_from=T0 + timedelta(days=60))

        trial = grant(wholesaler_user, store, '0.10', active_from=T0, active_to=T0 + timedelta(days=30))

        scheduled.refresh_from_db()
        assert scheduled.active_from == T0 + timedelta(days=60)
        assert scheduled.active_to is None
        assert resolve(wholesaler_user.pk, store.pk, as_of=T0 + timedelta(days=1)).agreement_id == trial.pk
        assert resolve(wholesaler_user.pk, store.pk, as_of=T0 + timedelta(days=45)) == INACTIVE
        assert resolve(wholesaler_user.pk, store.pk, as_of=T0 + timedelta(days=60)).agreement_id == scheduled.pk

    def test_bounded_grant_reaching_into_scheduled_agreement_rejected(self, wholesaler_user, store):
        grant(wholesaler_user, store, '0.30', active_from=T0 + timedelta(days=60))

        with pytest.raises(InvalidInput):
            grant(wholesaler_user, store, '0.10', active_from=T0, active_to=T0 + timedelta(days=90))

        assert WholesalerAgreement.objects.count() == 1

    def test_database_allows_one_open_agreement(self, wholesaler_user, store):
        make_agreement(wholesaler_user, store)

        with pytest.raises(IntegrityError), transaction.atomic():
            make_agreement(wholesaler_user, store, start=T0 + timedelta(days=1))

    def test_database_rejects_inverted_window(self, wholesaler_user, store):
        with pytest.raises(IntegrityError), transaction.atomic():
            make_agreement(wholesaler_user, store, end=T0 - timedelta(days=1))


@pytest.mark.django_db
class TestTerminate:

    def test_terminate_sets_end(self, wholesaler_user, store):
        agreement = make_agreement(wholesaler_user, store)
        at = T0 + timedelta(days=3)

        result = terminate(agreement, at=at)

        assert result.active_to == at
        assert resolve(wholesaler_user.pk, store.pk, as_of=at) == INACTIVE
        assert resolve(wholesaler_user.pk, store.pk, as_of=at - timedelta(seconds=1)).is_active

    def test_terminate_before_start_deletes(self, wholesaler_user, store):
        agreement = make_agreement(wholesaler_user, store)

        assert terminate(agreement, at=T0 - timedelta(days=1)) is None
        assert not WholesalerAgreement.objects.exists()

    def test_terminate_ended_agreement_is_noop(self, wholesaler_user, store):
        end = T0 + timedelta(days=1)
        agreement = make_agreement(wholesaler_user, store, end=end)

        result = terminate(agreement, at=T0 + timedelta(days=5))

        assert result.active_to == end


@pytest.mark.django_db
class TestResume:

    def test_resume_copies_rate_and_details(self, wholesaler_user, store):
        suspended = make_agreement(
            wholesaler_user, store, rate='0.25', end=T0 + timedelta(days=10),
            business_name='Acme', tax_number='TX-1'
        )
        at = T0 + timedelta(days=20)

        renewed = resume(suspended, at=at)

        assert renewed.pk != suspended.pk
        assert renewed.active_from == at
        assert renewed.active_to is None
        assert renewed.discount_rate == Decimal('0.2500')
        assert renewed.business_name == 'Acme'
        assert renewed.tax_number == 'TX-1'
        suspended.refresh_from_db()
        assert suspended.active_to == T0 + timedelta(days=10)

    def test_suspend_then_resume(self, wholesaler_user, store):
        agreement = grant(wholesaler_user, store, '0.20', active_from=T0)
        terminate(agreement, at=T0 + timedelta(days=5))

        renewed = resume(agreement, at=T0 + timedelta(days=8))

        assert resolve(wholesaler_user.pk, store.pk, as_of=T0 + timedelta(days=6)) == INACTIVE
        assert resolve(wholesaler_user.pk, store.pk, as_of=T0 + timedelta(days=8)).agreement_id == renewed.pk

    def test_resume_running_agreement_rejected(self, wholesaler_user, store):
        agreement = make_agreement(wholesaler_user, store)

        with pytest.raises(InvalidInput):
            resume(agreement, at=T0 + timedelta(days=1))

    def test_resume_refused_when_newer_agreement_exists(self, wholesaler_user, store):
        old = make_agreement(wholesaler_user, store, rate='0.25', end=T0 + timedelta(days=10))
        newer = make_agreement(wholesaler_user, store, rate='0.05', start=T0 + timedelta(days=15))

        with pytest.raises(InvalidInput):
            resume(old, at=T0 + timedelta(days=20))

        newer.refresh_from_db()
        assert newer.active_to is None


# ============== Wholesaler View Tests ==============

@pytest.mark.django_db
class TestWholesalerViews:

    base = '/api/stores/test-store/wholesalers/'

    def test_admin_grants_agreement(self, admin_client, wholesaler_user):
        response = admin_client.post(self.base, {
            'user': wholesaler_user.pk,
            'discount_rate': '0.20',
            'business_name': 'Wholesale Ltd',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['discount_rate'] == '0.2000'
        assert response.data['is_running'] is True

    def test_grant_for_user_of_other_store_rejected(self, admin_client, store2_admin):
        response = admin_client.post(self.base, {
            'user': store2_admin.pk,
            'discount_rate': '0.20',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'user' in response.data

    def test_grant_rate_out_of_range(self, admin_client, wholesaler_user):
        response = admin_client.post(self.base, {
            'user': wholesaler_user.pk,
            'discount_rate': '1.50',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_client_cannot_grant(self, customer_client, wholesaler_user):
        response = customer_client.post(self.base, {
            'user': wholesaler_user.pk,
            'discount_rate': '0.20',
        }, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_is_store_scoped(self, admin_client, agreement, store2_admin, store2):
        make_agreement(store2_admin, store2)

        response = admin_client.get(self.base)

        assert response.status_code == status.HTTP_200_OK
        assert [a['id'] for a in response.data['results']] == [agreement.pk]

    def test_terminate_endpoint(self, admin_client, agreement):
        response = admin_client.post(f'{self.base}{agreement.pk}/terminate/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['active_to'] is not None
        assert response.data['is_running'] is False

    def test_terminate_future_agreement_cancels(self, admin_client, wholesaler_user, store):
        future = make_agreement(wholesaler_user, store, start=timezone.now() + timedelta(days=5))

        response = admin_client.post(f'{self.base}{future.pk}/terminate/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['message'] == 'Agreement cancelled'
        assert not WholesalerAgreement.objects.filter(pk=future.pk).exists()

    def test_verify_endpoint(self, admin_client, admin_user, agreement):
        response = admin_client.post(f'{self.base}{agreement.pk}/verify/')

        assert response.status_code == status.HTTP_200_OK
        agreement.refresh_from_db()
        assert agreement.is_verified
        assert agreement.verified_by == admin_user

    def test_status_for_self(self, wholesaler_client, wholesaler_user, agreement):
        response = wholesaler_client.get(f'{self.base}status/{wholesaler_user.pk}/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_wholesaler'] is True
        assert response.data['discount_rate'] == Decimal('0.20')
        assert response.data['agreement'] == agreement.pk

    def test_status_as_of_before_agreement(self, wholesaler_client, wholesaler_user, agreement):
        as_of = (agreement.active_from - timedelta(days=1)).isoformat()

        response = wholesaler_client.get(f'{self.base}status/{wholesaler_user.pk}/', {'as_of': as_of})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_wholesaler'] is False
        assert response.data['discount_rate'] is None

    def test_non_wholesaler_status_is_not_an_error(self, customer_client, client_user):
        response = customer_client.get(f'{self.base}status/{client_user.pk}/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_wholesaler'] is False

    def test_client_cannot_query_others(self, customer_client, wholesaler_user):
        response = customer_client.get(f'{self.base}status/{wholesaler_user.pk}/')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_queries_any_store_identity(self, admin_client, wholesaler_user, agreement):
        response = admin_client.get(f'{self.base}status/{wholesaler_user.pk}/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_wholesaler'] is True

    def test_status_of_identity_in_other_store_404(self, admin_client, store2_admin):
        response = admin_client.get(f'{self.base}status/{store2_admin.pk}/')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_patch_updates_business_details_only(self, admin_client, agreement):
        window = (agreement.active_from, agreement.active_to)

        response = admin_client.patch(f'{self.base}{agreement.pk}/', {
            'business_name': 'Renamed Trading',
            'tax_number': 'TX-99',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['business_name'] == 'Renamed Trading'
        assert response.data['is_running'] is True
        agreement.refresh_from_db()
        assert agreement.tax_number == 'TX-99'
        assert (agreement.active_from, agreement.active_to) == window
        assert agreement.discount_rate == Decimal('0.20')

    def test_patch_rejects_window_and_rate(self, admin_client, agreement):
        response = admin_client.patch(f'{self.base}{agreement.pk}/', {
            'discount_rate': '0.90',
            'active_to': timezone.now().isoformat(),
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert set(response.data) == {'discount_rate', 'active_to'}
        agreement.refresh_from_db()
        assert agreement.active_to is None

    def test_put_not_allowed(self, admin_client, agreement):
        response = admin_client.put(f'{self.base}{agreement.pk}/', {'business_name': 'X'}, format='json')

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED

    def test_client_cannot_patch(self, customer_client, agreement):
        response = customer_client.patch(f'{self.base}{agreement.pk}/', {'notes': 'mine'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_resume_endpoint(self, admin_client, agreement, wholesaler_user, store):
        admin_client.post(f'{self.base}{agreement.pk}/terminate/')

        response = admin_client.post(f'{self.base}{agreement.pk}/resume/')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['id'] != agreement.pk
        assert response.data['business_name'] == 'Wholesale Ltd'
        assert resolve(wholesaler_user.pk, store.pk).agreement_id == response.data['id']

    def test_resume_running_agreement_400(self, admin_client, agreement):
        response = admin_client.post(f'{self.base}{agreement.pk}/resume/')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_stats(self, admin_client, agreement, client_user, store, store2_admin, store2):
        now = timezone.now()
        agreement.verify(client_user)
        make_agreement(client_user, store, rate='0.40', start=now - timedelta(days=10), end=now - timedelta(days=5))
        make_agreement(client_user, store, rate='0.10', start=now - timedelta(days=2), end=now + timedelta(days=2))
        make_agreement(client_user, store, rate='0.50', start=now + timedelta(days=5))
        make_agreement(store2_admin, store2, rate='0.90', start=now - timedelta(days=1))

        response = admin_client.get(f'{self.base}stats/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['store'] == 'test-store'
        assert response.data['total'] == 4
        assert response.data['running'] == 2
        assert response.data['scheduled'] == 1
        assert response.data['ended'] == 1
        assert response.data['verified'] == 1
        assert Decimal(response.data['average_discount_rate']).quantize(Decimal('0.0001')) == Decimal('0.1500')

    def test_stats_empty_store(self, admin_client):
        response = admin_client.get(f'{self.base}stats/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total'] == 0
        assert response.data['average_discount_rate'] is None

    def test_client_cannot_read_stats(self, customer_client):
        response = customer_client.get(f'{self.base}stats/')

        assert response.status_code == status.HTTP_403_FORBIDDEN

"""
Tests for the stores module.
"""
import pytest
from decimal import Decimal
from django.db import IntegrityError, transaction
from rest_framework import status
from stores.models import Store


@pytest.mark.django_db
class TestStoreModel:

    def test_slug_lower_cased_on_save(self):
        store = Store.objects.create(name='Caps', slug='Caps-Store')

        assert store.slug == 'caps-store'

    def test_default_currency(self, settings):
        store = Store.objects.create(name='Plain', slug='plain')

        assert store.currency == settings.DEFAULT_CURRENCY

    def test_discount_rate_above_one_rejected_by_database(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            Store.objects.create(name='Bad', slug='bad', discount_rate=Decimal('1.5'))

    def test_is_active(self, store, inactive_store):
        assert store.is_active
        assert not inactive_store.is_active


@pytest.mark.django_db
class TestStoreViews:

    def test_superadmin_lists_stores(self, super_admin_client, store, store2):
        response = super_admin_client.get('/api/stores/')

        assert response.status_code == status.HTTP_200_OK
        slugs = [s['slug'] for s in response.data['results']]
        assert slugs == ['second-store', 'test-store']

    def test_store_admin_cannot_list_stores(self, admin_client):
        response = admin_client.get('/api/stores/')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_superadmin_creates_store(self, super_admin_client):
        response = super_admin_client.post('/api/stores/', {
            'name': 'New Store',
            'slug': 'New-Store',
            'currency': 'usd',
            'discount_rate': '0.05',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['slug'] == 'new-store'
        assert response.data['currency'] == 'USD'
        assert Store.objects.filter(slug='new-store').exists()

    def test_duplicate_slug_rejected(self, super_admin_client, store):
        response = super_admin_client.post('/api/stores/', {
            'name': 'Copy',
            'slug': 'test-store',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_field_rejected(self, super_admin_client):
        response = super_admin_client.post('/api/stores/', {
            'name': 'Odd',
            'slug': 'odd',
            'owner': 'me',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'owner' in response.data

    def test_admin_reads_own_store(self, admin_client, store):
        response = admin_client.get('/api/stores/test-store/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['name'] == 'Test Store'

    def test_admin_updates_discount(self, admin_client, store):
        response = admin_client.patch('/api/stores/test-store/', {'discount_rate': '0.15'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        store.refresh_from_db()
        assert store.discount_rate == Decimal('0.15')

    def test_admin_cannot_change_status(self, admin_client, store):
        response = admin_client.patch('/api/stores/test-store/', {'status': 'suspended'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        store.refresh_from_db()
        assert store.is_active

    def test_admin_of_other_store_refused(self, store2_client, store):
        response = store2_client.get('/api/stores/test-store/')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_client_refused(self, customer_client, store):
        response = customer_client.get('/api/stores/test-store/')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_public_view(self, api_client, store):
        response = api_client.get('/api/stores/test-store/public/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['slug'] == 'test-store'
        assert 'contact_email' not in response.data

    def test_public_view_hides_inactive_store(self, api_client, inactive_store):
        response = api_client.get('/api/stores/inactive-store/public/')

        assert response.status_code == status.HTTP_404_NOT_FOUND

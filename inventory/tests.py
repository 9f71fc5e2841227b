"""
Tests for the store catalog.
"""
import pytest
from decimal import Decimal
from django.db import IntegrityError, transaction
from rest_framework import status
from inventory.models import Product


@pytest.mark.django_db
class TestProductModel:

    def test_sku_unique_per_store(self, product):
        with pytest.raises(IntegrityError), transaction.atomic():
            Product.objects.create(store=product.store, sku=product.sku, name='Copy', price=Decimal('1'))

    def test_same_sku_in_two_stores(self, product, store2):
        other = Product.objects.create(store=store2, sku=product.sku, name='Twin', price=Decimal('1'))

        assert other.pk != product.pk

    def test_negative_price_rejected_by_database(self, store):
        with pytest.raises(IntegrityError), transaction.atomic():
            Product.objects.create(store=store, sku='NEG', name='Negative', price=Decimal('-1'))


@pytest.mark.django_db
class TestProductViews:

    url = '/api/stores/test-store/products/'

    def test_anonymous_browses_active_catalog(self, api_client, product, inactive_product, store2_product):
        response = api_client.get(self.url)

        assert response.status_code == status.HTTP_200_OK
        skus = [p['sku'] for p in response.data['results']]
        assert skus == [product.sku]

    def test_admin_sees_inactive_products(self, admin_client, product, inactive_product):
        response = admin_client.get(self.url)

        skus = {p['sku'] for p in response.data['results']}
        assert skus == {product.sku, inactive_product.sku}

    def test_other_store_admin_sees_active_only(self, store2_client, product, inactive_product):
        response = store2_client.get(self.url)

        assert response.status_code == status.HTTP_200_OK
        assert [p['sku'] for p in response.data['results']] == [product.sku]

    def test_search(self, api_client, product, product2):
        response = api_client.get(self.url, {'search': 'Second'})

        assert [p['sku'] for p in response.data['results']] == [product2.sku]

    def test_inactive_store_catalog_refused(self, api_client, inactive_store):
        response = api_client.get('/api/stores/inactive-store/products/')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_creates_product(self, admin_client, store):
        response = admin_client.post(self.url, {
            'sku': 'NEW-001',
            'name': 'New Product',
            'price': '12.50',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        product = Product.objects.get(sku='NEW-001')
        assert product.store == store
        assert product.price == Decimal('12.50')

    def test_duplicate_sku_rejected(self, admin_client, product):
        response = admin_client.post(self.url, {
            'sku': product.sku,
            'name': 'Copy',
            'price': '1.00',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'sku' in response.data

    def test_negative_price_rejected(self, admin_client, store):
        response = admin_client.post(self.url, {
            'sku': 'NEG-001',
            'name': 'Negative',
            'price': '-1.00',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_client_cannot_create(self, customer_client, store):
        response = customer_client.post(self.url, {
            'sku': 'NOPE',
            'name': 'Nope',
            'price': '1.00',
        }, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_other_store_admin_cannot_create(self, store2_client, store):
        response = store2_client.post(self.url, {
            'sku': 'NOPE',
            'name': 'Nope',
            'price': '1.00',
        }, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_deactivates_product(self, admin_client, product):
        response = admin_client.patch(f'{self.url}{product.pk}/', {'is_active': False}, format='json')

        assert response.status_code == status.HTTP_200_OK
        product.refresh_from_db()
        assert not product.is_active

    def test_product_of_other_store_404(self, admin_client, store2_product):
        response = admin_client.get(f'{self.url}{store2_product.pk}/')

        assert response.status_code == status.HTTP_404_NOT_FOUND

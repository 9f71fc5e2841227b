"""
End-to-end flow through the public API: sign-up, wholesaler grant and
pricing, plus the demo data command.
"""
from decimal import Decimal

import pytest
from django.core.management import call_command
from rest_framework import status
from rest_framework.test import APIClient


def test_health_check():
    response = APIClient().get('/api/health/')

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {'status': 'healthy', 'service': 'storefront-api'}


@pytest.mark.django_db
def test_wholesaler_flow(admin_client, store, product):
    visitor = APIClient()

    response = visitor.post('/api/auth/register/', {
        'first_name': 'Dana',
        'last_name': 'Buyer',
        'email': 'Dana@Example.com',
        'password': 'secret123',
        'store': 'test-store',
        'role': 'wholesaler',
    }, format='json')
    assert response.status_code == status.HTTP_201_CREATED
    user_id = response.data['user']['id']
    visitor.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access_token']}")

    # Not a wholesaler until an agreement is granted
    response = visitor.post('/api/stores/test-store/calculate-price/', {
        'items': [{'product': product.pk, 'quantity': 1}],
    }, format='json')
    assert response.data['total'] == Decimal('90.00')

    response = admin_client.post('/api/stores/test-store/wholesalers/', {
        'user': user_id,
        'discount_rate': '0.20',
    }, format='json')
    assert response.status_code == status.HTTP_201_CREATED
    agreement_id = response.data['id']

    response = visitor.post('/api/stores/test-store/orders/', {
        'items': [{'product': product.pk, 'quantity': 2}],
    }, format='json')
    assert response.status_code == status.HTTP_201_CREATED
    assert response.data['is_wholesale'] is True
    assert Decimal(response.data['total']) == Decimal('160.00')

    response = admin_client.post(f'/api/stores/test-store/wholesalers/{agreement_id}/terminate/')
    assert response.status_code == status.HTTP_200_OK

    response = visitor.get(f'/api/stores/test-store/wholesalers/status/{user_id}/')
    assert response.data['is_wholesaler'] is False

    # Same email again as a wholesaler of this store is a duplicate
    response = APIClient().post('/api/auth/register/', {
        'first_name': 'Dana',
        'last_name': 'Again',
        'email': 'dana@example.com',
        'password': 'secret123',
        'store': 'test-store',
        'role': 'wholesaler',
    }, format='json')
    assert response.status_code == status.HTTP_409_CONFLICT


@pytest.mark.django_db
def test_load_demo_data_is_idempotent():
    from inventory.models import Product
    from users.models import User
    from wholesalers.models import WholesalerAgreement
    from wholesalers.resolver import resolve

    call_command('load_demo_data', store='demo')
    call_command('load_demo_data', store='demo')

    assert User.objects.filter(store__slug='demo').count() == 3
    assert Product.objects.filter(store__slug='demo').count() == 4
    assert WholesalerAgreement.objects.count() == 1

    wholesaler = User.objects.get(store__slug='demo', role=User.Role.WHOLESALER)
    assert resolve(wholesaler.pk, wholesaler.store_id).discount_rate == Decimal('0.20')

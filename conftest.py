"""
Pytest fixtures for storefront API tests.
Provides common test data and utilities for all test modules.
"""
import pytest
from decimal import Decimal
from datetime import timedelta
from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from oauth2_provider.models import Application, AccessToken
from oauthlib.common import generate_token
from django.utils import timezone

User = get_user_model()


# ============== OAuth2 Application Fixture ==============

@pytest.fixture
def oauth_application(db):
    """Create OAuth2 application for testing - must match the name tokens are issued against"""
    return Application.objects.create(
        name=settings.OAUTH_APPLICATION_NAME,
        client_type=Application.CLIENT_PUBLIC,
        authorization_grant_type=Application.GRANT_PASSWORD,
    )


# ============== Store Fixtures ==============

@pytest.fixture
def store(db):
    """Create a test store with a 10% store-wide discount"""
    from stores.models import Store
    return Store.objects.create(
        name='Test Store',
        slug='test-store',
        contact_email='store@test.com',
        currency='ILS',
        discount_rate=Decimal('0.10'),
    )


@pytest.fixture
def store2(db):
    """Create a second test store for isolation tests"""
    from stores.models import Store
    return Store.objects.create(
        name='Second Store',
        slug='second-store',
        currency='USD',
    )


@pytest.fixture
def inactive_store(db):
    """Create an inactive store"""
    from stores.models import Store
    return Store.objects.create(
        name='Inactive Store',
        slug='inactive-store',
        status=Store.Status.INACTIVE,
    )


# ============== User Fixtures ==============

@pytest.fixture
def super_admin(db, oauth_application):
    """Create a platform super admin (no store)"""
    return User.objects.create_user(
        email='superadmin@test.com',
        password='testpass123',
        role=User.Role.SUPERADMIN,
        store=None
    )


@pytest.fixture
def admin_user(db, store, oauth_application):
    """Create an admin of the test store"""
    return User.objects.create_user(
        email='admin@test.com',
        password='testpass123',
        role=User.Role.ADMIN,
        store=store
    )


@pytest.fixture
def client_user(db, store, oauth_application):
    """Create a client of the test store"""
    return User.objects.create_user(
        email='client@test.com',
        password='testpass123',
        role=User.Role.CLIENT,
        store=store
    )


@pytest.fixture
def wholesaler_user(db, store, oauth_application):
    """Create a wholesaler identity in the test store"""
    return User.objects.create_user(
        email='wholesaler@test.com',
        password='testpass123',
        role=User.Role.WHOLESALER,
        store=store
    )


@pytest.fixture
def store2_admin(db, store2, oauth_application):
    """Create an admin of the second store"""
    return User.objects.create_user(
        email='admin2@test.com',
        password='testpass123',
        role=User.Role.ADMIN,
        store=store2
    )


# ============== Token Fixtures ==============

def create_access_token(user, application, scope='read write'):
    """Helper function to create access token"""
    expires = timezone.now() + timedelta(hours=1)
    return AccessToken.objects.create(
        user=user,
        application=application,
        token=generate_token(),
        expires=expires,
        scope=scope
    )


def authenticated_client(token):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token.token}')
    return client


@pytest.fixture
def super_admin_token(super_admin, oauth_application):
    return create_access_token(super_admin, oauth_application)


@pytest.fixture
def admin_token(admin_user, oauth_application):
    return create_access_token(admin_user, oauth_application)


@pytest.fixture
def client_token(client_user, oauth_application):
    return create_access_token(client_user, oauth_application)


@pytest.fixture
def wholesaler_token(wholesaler_user, oauth_application):
    return create_access_token(wholesaler_user, oauth_application)


@pytest.fixture
def store2_admin_token(store2_admin, oauth_application):
    return create_access_token(store2_admin, oauth_application)


# ============== API Client Fixtures ==============

@pytest.fixture
def api_client():
    """Create unauthenticated API test client"""
    return APIClient()


@pytest.fixture
def super_admin_client(super_admin_token):
    """API client authenticated as super admin"""
    return authenticated_client(super_admin_token)


@pytest.fixture
def admin_client(admin_token):
    """API client authenticated as the test store admin"""
    return authenticated_client(admin_token)


@pytest.fixture
def customer_client(client_token):
    """API client authenticated as the test store client"""
    return authenticated_client(client_token)


@pytest.fixture
def wholesaler_client(wholesaler_token):
    """API client authenticated as the test store wholesaler"""
    return authenticated_client(wholesaler_token)


@pytest.fixture
def store2_client(store2_admin_token):
    """API client authenticated as the second store admin"""
    return authenticated_client(store2_admin_token)


# ============== Catalog Fixtures ==============

@pytest.fixture
def product(db, store):
    """Create a test product priced 100.00"""
    from inventory.models import Product
    return Product.objects.create(
        store=store,
        sku='TEST-SKU-001',
        name='Test Product',
        description='Test product description',
        price=Decimal('100.00'),
    )


@pytest.fixture
def product2(db, store):
    """Create a second test product"""
    from inventory.models import Product
    return Product.objects.create(
        store=store,
        sku='TEST-SKU-002',
        name='Second Product',
        price=Decimal('25.50'),
    )


@pytest.fixture
def inactive_product(db, store):
    from inventory.models import Product
    return Product.objects.create(
        store=store,
        sku='OLD-SKU-001',
        name='Discontinued Product',
        price=Decimal('10.00'),
        is_active=False,
    )


@pytest.fixture
def store2_product(db, store2):
    """Create a product for store2"""
    from inventory.models import Product
    return Product.objects.create(
        store=store2,
        sku='S2-SKU-001',
        name='Store2 Product',
        price=Decimal('40.00'),
    )


# ============== Wholesaler Fixtures ==============

@pytest.fixture
def agreement(db, wholesaler_user, store):
    """Open-ended 20% agreement that started a day ago"""
    from wholesalers.models import WholesalerAgreement
    return WholesalerAgreement.objects.create(
        user=wholesaler_user,
        store=store,
        discount_rate=Decimal('0.20'),
        active_from=timezone.now() - timedelta(days=1),
        business_name='Wholesale Ltd',
    )

"""
Tests for the users module.
Covers identity keys, the uniqueness enforcer, authentication and store
identity management.
"""
import threading

import pytest
from django.db import IntegrityError, connection, transaction
from django.db.models.signals import pre_save
from rest_framework import status
from main.exceptions import DuplicateIdentity, InvalidInput
from users.identity import Conflict, Reserved, ScopeKey, derive_key, reserve
from users.models import User
from users.serializers import RegisterSerializer


# ============== Identity Key Tests ==============

@pytest.mark.django_db
class TestDeriveKey:

    def test_email_is_case_and_whitespace_insensitive(self, store):
        first = derive_key('  Alice@Example.COM ', store.pk, 'client')
        second = derive_key('alice@example.com', store.pk, 'client')

        assert first == second
        assert first == ScopeKey(email='alice@example.com', store_id=store.pk, role='client')

    def test_role_is_lower_cased(self, store):
        assert derive_key('a@b.com', store.pk, 'ADMIN').role == 'admin'

    def test_accepts_store_instance(self, store):
        assert derive_key('a@b.com', store, 'client').store_id == store.pk

    def test_string_store_id_is_converted(self, store):
        assert derive_key('a@b.com', str(store.pk), 'client').store_id == store.pk

    @pytest.mark.parametrize('email,store_id,role', [
        ('', 1, 'client'),
        ('   ', 1, 'client'),
        ('a@b.com', None, 'client'),
        ('a@b.com', '', 'client'),
        ('a@b.com', 1, ''),
        (None, 1, None),
    ])
    def test_empty_parts_are_rejected(self, email, store_id, role):
        with pytest.raises(InvalidInput):
            derive_key(email, store_id, role)

    def test_error_names_missing_parts(self):
        with pytest.raises(InvalidInput) as exc_info:
            derive_key('', None, 'client')

        assert 'email' in str(exc_info.value.detail)
        assert 'store' in str(exc_info.value.detail)

    def test_different_roles_give_different_keys(self, store):
        assert derive_key('a@b.com', store.pk, 'client') != derive_key('a@b.com', store.pk, 'admin')


# ============== Uniqueness Enforcer Tests ==============

@pytest.mark.django_db
class TestReserve:

    def test_first_reservation_succeeds(self, store):
        result = reserve(derive_key('new@test.com', store.pk, 'client'), password='secret123')

        assert isinstance(result, Reserved)
        assert result.user.pk is not None
        assert result.user.email == 'new@test.com'
        assert result.user.store_id == store.pk
        assert result.user.check_password('secret123')

    def test_duplicate_key_returns_conflict(self, store):
        first = reserve(derive_key('dup@test.com', store.pk, 'client'))
        second = reserve(derive_key('DUP@test.com', store.pk, 'client'))

        assert isinstance(second, Conflict)
        assert second.existing_user_id == first.user.pk
        assert second.scope_key == derive_key('dup@test.com', store.pk, 'client')
        assert User.objects.filter(email='dup@test.com', store=store, role='client').count() == 1

    def test_many_email_variants_exactly_one_wins(self, store):
        variants = ['Race@Test.com', 'race@test.com', ' RACE@TEST.COM', 'race@TEST.com ', 'rAcE@test.COM']
        results = [reserve(derive_key(email, store.pk, 'client')) for email in variants]

        reserved = [r for r in results if isinstance(r, Reserved)]
        conflicts = [r for r in results if isinstance(r, Conflict)]
        assert len(reserved) == 1
        assert len(conflicts) == len(variants) - 1
        assert all(c.existing_user_id == reserved[0].user.pk for c in conflicts)

    def test_same_email_different_roles_in_one_store(self, store):
        client = reserve(derive_key('both@test.com', store.pk, 'client'))
        admin = reserve(derive_key('both@test.com', store.pk, 'admin'))

        assert isinstance(client, Reserved)
        assert isinstance(admin, Reserved)
        assert client.user.pk != admin.user.pk

    def test_same_email_and_role_in_two_stores(self, store, store2):
        first = reserve(derive_key('multi@test.com', store.pk, 'client'))
        second = reserve(derive_key('multi@test.com', store2.pk, 'client'))

        assert isinstance(first, Reserved)
        assert isinstance(second, Reserved)

    def test_banned_identity_frees_the_key(self, store):
        old = reserve(derive_key('again@test.com', store.pk, 'client')).user
        old.status = User.Status.BANNED
        old.save()

        result = reserve(derive_key('again@test.com', store.pk, 'client'))

        assert isinstance(result, Reserved)
        assert result.user.pk != old.pk

    def test_reactivation_conflicts_with_new_holder(self, store):
        old = reserve(derive_key('back@test.com', store.pk, 'client')).user
        old.status = User.Status.INACTIVE
        old.save()
        new = reserve(derive_key('back@test.com', store.pk, 'client')).user

        result = reserve(derive_key(old.email, store.pk, 'client'), instance=old, status=User.Status.ACTIVE)

        assert isinstance(result, Conflict)
        assert result.existing_user_id == new.pk
        old.refresh_from_db()
        assert old.status == User.Status.INACTIVE

    def test_update_onto_taken_key_conflicts_and_leaves_row(self, store):
        alice = reserve(derive_key('alice@test.com', store.pk, 'client')).user
        bob = reserve(derive_key('bob@test.com', store.pk, 'client')).user

        result = reserve(derive_key('ALICE@test.com', store.pk, 'client'), instance=bob)

        assert isinstance(result, Conflict)
        assert result.existing_user_id == alice.pk
        bob.refresh_from_db()
        assert bob.email == 'bob@test.com'

    def test_update_keeping_own_key_succeeds(self, store):
        user = reserve(derive_key('self@test.com', store.pk, 'client')).user

        result = reserve(derive_key('self@test.com', store.pk, 'client'), instance=user, first_name='Renamed')

        assert isinstance(result, Reserved)
        user.refresh_from_db()
        assert user.first_name == 'Renamed'

    def test_database_enforces_uniqueness_without_reserve(self, store):
        User.objects.create(email='raw@test.com', store=store, role='client', username='raw1')

        with pytest.raises(IntegrityError), transaction.atomic():
            User.objects.create(email='raw@test.com', store=store, role='client', username='raw2')

    def test_database_allows_duplicate_when_one_is_inactive(self, store):
        User.objects.create(
            email='hist@test.com', store=store, role='client', username='hist1',
            status=User.Status.INACTIVE
        )
        User.objects.create(email='hist@test.com', store=store, role='client', username='hist2')

        assert User.objects.filter(email='hist@test.com').count() == 2


@pytest.mark.django_db(transaction=True)
class TestReserveConcurrency:
    """Writers interleaved on real connections, each committing on its own"""

    def test_writer_committing_between_check_and_insert_wins(self, store):
        key = derive_key('race@test.com', store.pk, 'client')
        results = []
        writers = []

        def competing_writer():
            try:
                results.append(reserve(derive_key('RACE@test.com', store.pk, 'client')))
            finally:
                connection.close()

        def commit_competitor_first(sender, instance, **kwargs):
            # First save of the key only; the competitor's own save re-enters here
            if writers or instance.email != key.email:
                return
            writer = threading.Thread(target=competing_writer)
            writers.append(writer)
            writer.start()
            writer.join()

        pre_save.connect(commit_competitor_first, sender=User, dispatch_uid='commit_competitor_first')
        try:
            results.append(reserve(key))
            for email in [' Race@Test.com', 'race@TEST.com ', 'rAcE@test.COM']:
                results.append(reserve(derive_key(email, store.pk, 'client')))
        finally:
            pre_save.disconnect(sender=User, dispatch_uid='commit_competitor_first')

        reserved = [r for r in results if isinstance(r, Reserved)]
        conflicts = [r for r in results if isinstance(r, Conflict)]
        assert len(writers) == 1
        assert len(results) == 5
        assert len(reserved) == 1
        assert results[0] is reserved[0]
        assert len(conflicts) == 4
        assert all(c.existing_user_id == reserved[0].user.pk for c in conflicts)
        assert User.objects.filter(email='race@test.com', store=store, role='client').count() == 1


# ============== User Model Tests ==============

@pytest.mark.django_db
class TestUserModel:

    def test_email_normalized_on_save(self, store):
        user = User.objects.create_user(email='  Mixed@Case.COM ', password='x', store=store)

        assert user.email == 'mixed@case.com'
        assert user.username

    def test_create_superuser_defaults_to_superadmin(self):
        user = User.objects.create_superuser(email='root@test.com', password='x')

        assert user.is_superadmin
        assert user.store is None
        assert user.is_staff

    def test_platform_identity_unique(self):
        User.objects.create_superuser(email='root@test.com', password='x')

        with pytest.raises(IntegrityError), transaction.atomic():
            User.objects.create_superuser(email='ROOT@test.com', password='x')

    def test_role_properties(self, admin_user, client_user, super_admin):
        assert admin_user.is_store_admin
        assert not admin_user.is_superadmin
        assert client_user.is_client
        assert super_admin.is_superadmin


# ============== Serializer Tests ==============

@pytest.mark.django_db
class TestRegisterSerializer:

    def payload(self, **overrides):
        data = {
            'first_name': 'New',
            'last_name': 'Client',
            'email': 'new@test.com',
            'password': 'secret123',
            'store': 'test-store',
        }
        data.update(overrides)
        return data

    def test_defaults_to_client(self, store):
        serializer = RegisterSerializer(data=self.payload())
        assert serializer.is_valid(), serializer.errors

        user = serializer.save()
        assert user.role == User.Role.CLIENT
        assert user.store == store

    def test_admin_role_not_self_service(self, store):
        serializer = RegisterSerializer(data=self.payload(role='admin'))

        assert not serializer.is_valid()
        assert 'role' in serializer.errors

    def test_unknown_field_rejected(self, store):
        serializer = RegisterSerializer(data=self.payload(is_staff=True))

        assert not serializer.is_valid()
        assert 'is_staff' in serializer.errors

    def test_inactive_store_rejected(self, inactive_store):
        serializer = RegisterSerializer(data=self.payload(store='inactive-store'))

        assert not serializer.is_valid()
        assert 'store' in serializer.errors

    def test_duplicate_raises_duplicate_identity(self, client_user):
        serializer = RegisterSerializer(data=self.payload(email='Client@Test.com'))
        assert serializer.is_valid(), serializer.errors

        with pytest.raises(DuplicateIdentity) as exc_info:
            serializer.save()
        assert exc_info.value.existing_role == 'client'


# ============== Authentication View Tests ==============

@pytest.mark.django_db
class TestAuthViews:

    def test_register_returns_tokens(self, api_client, store):
        response = api_client.post('/api/auth/register/', {
            'first_name': 'New',
            'last_name': 'Client',
            'email': 'New@Test.com',
            'password': 'secret123',
            'store': 'test-store',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['access_token']
        assert response.data['user']['email'] == 'new@test.com'
        assert response.data['user']['role'] == 'client'

    def test_register_duplicate_returns_409(self, api_client, client_user):
        response = api_client.post('/api/auth/register/', {
            'first_name': 'Dup',
            'last_name': 'Client',
            'email': 'CLIENT@test.com',
            'password': 'secret123',
            'store': 'test-store',
        }, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert 'as client' in response.data['detail']

    def test_register_same_email_as_wholesaler_succeeds(self, api_client, client_user):
        response = api_client.post('/api/auth/register/', {
            'first_name': 'Dup',
            'last_name': 'Client',
            'email': 'client@test.com',
            'password': 'secret123',
            'store': 'test-store',
            'role': 'wholesaler',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED

    def test_login_success(self, api_client, client_user):
        response = api_client.post('/api/auth/login/', {
            'email': 'Client@Test.com',
            'password': 'testpass123',
            'store': 'test-store',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['token_type'] == 'Bearer'
        assert response.data['user']['id'] == client_user.pk

    def test_login_picks_identity_by_role(self, api_client, store, client_user):
        admin = User.objects.create_user(
            email='client@test.com', password='adminpass123', role=User.Role.ADMIN, store=store
        )

        response = api_client.post('/api/auth/login/', {
            'email': 'client@test.com',
            'password': 'adminpass123',
            'store': 'test-store',
            'role': 'admin',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['user']['id'] == admin.pk

    def test_login_wrong_store(self, api_client, client_user, store2):
        response = api_client.post('/api/auth/login/', {
            'email': 'client@test.com',
            'password': 'testpass123',
            'store': 'second-store',
        }, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_wrong_password(self, api_client, client_user):
        response = api_client.post('/api/auth/login/', {
            'email': 'client@test.com',
            'password': 'wrong',
            'store': 'test-store',
        }, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_banned_identity(self, api_client, client_user):
        client_user.status = User.Status.BANNED
        client_user.save()

        response = api_client.post('/api/auth/login/', {
            'email': 'client@test.com',
            'password': 'testpass123',
            'store': 'test-store',
        }, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_login_requires_store_for_store_roles(self, api_client, client_user):
        response = api_client.post('/api/auth/login/', {
            'email': 'client@test.com',
            'password': 'testpass123',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_superadmin_login_without_store(self, api_client, super_admin):
        response = api_client.post('/api/auth/login/', {
            'email': 'superadmin@test.com',
            'password': 'testpass123',
            'role': 'superadmin',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK

    def test_me(self, customer_client, client_user):
        response = customer_client.get('/api/auth/me/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == client_user.email
        assert response.data['store']['slug'] == 'test-store'

    def test_me_requires_authentication(self, api_client):
        response = api_client.get('/api/auth/me/')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_revokes_token(self, customer_client):
        response = customer_client.post('/api/auth/logout/')
        assert response.status_code == status.HTTP_200_OK

        response = customer_client.get('/api/auth/me/')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_change_password(self, customer_client, client_user):
        response = customer_client.post('/api/auth/change-password/', {
            'old_password': 'testpass123',
            'new_password': 'newpass456',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        client_user.refresh_from_db()
        assert client_user.check_password('newpass456')

    def test_change_password_wrong_old(self, customer_client):
        response = customer_client.post('/api/auth/change-password/', {
            'old_password': 'nope',
            'new_password': 'newpass456',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# ============== Store Identity Management Tests ==============

@pytest.mark.django_db
class TestStoreUserViews:

    url = '/api/stores/test-store/users/'

    def test_admin_lists_store_users(self, admin_client, client_user, store2_admin):
        response = admin_client.get(self.url)

        assert response.status_code == status.HTTP_200_OK
        emails = {u['email'] for u in response.data['results']}
        assert 'client@test.com' in emails
        assert 'admin2@test.com' not in emails

    def test_filter_by_role(self, admin_client, client_user):
        response = admin_client.get(self.url, {'role': 'client'})

        assert response.status_code == status.HTTP_200_OK
        assert all(u['role'] == 'client' for u in response.data['results'])

    def test_client_cannot_list(self, customer_client):
        response = customer_client.get(self.url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_other_store_admin_is_refused(self, store2_client, store):
        response = store2_client.get(self.url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_superadmin_can_list_any_store(self, super_admin_client, client_user):
        response = super_admin_client.get(self.url)

        assert response.status_code == status.HTTP_200_OK

    def test_unknown_store_404(self, admin_client):
        response = admin_client.get('/api/stores/nope/users/')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_admin_creates_identity(self, admin_client, store):
        response = admin_client.post(self.url, {
            'first_name': 'Staff',
            'last_name': 'Member',
            'email': 'staff@test.com',
            'password': 'secret123',
            'role': 'admin',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['role'] == 'admin'
        assert User.objects.get(pk=response.data['id']).store == store

    def test_create_duplicate_returns_409(self, admin_client, client_user):
        response = admin_client.post(self.url, {
            'first_name': 'Dup',
            'last_name': 'Client',
            'email': 'client@test.com',
            'password': 'secret123',
        }, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_role_change_onto_taken_key_returns_409(self, admin_client, store, client_user):
        other = User.objects.create_user(
            email='client@test.com', password='x', role=User.Role.AFFILIATE, store=store
        )

        response = admin_client.patch(f'{self.url}{other.pk}/', {'role': 'client'}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        other.refresh_from_db()
        assert other.role == User.Role.AFFILIATE

    def test_update_names(self, admin_client, client_user):
        response = admin_client.patch(f'{self.url}{client_user.pk}/', {'first_name': 'Changed'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['first_name'] == 'Changed'

    def test_delete_deactivates(self, admin_client, client_user):
        response = admin_client.delete(f'{self.url}{client_user.pk}/')

        assert response.status_code == status.HTTP_204_NO_CONTENT
        client_user.refresh_from_db()
        assert client_user.status == User.Status.INACTIVE

    def test_cannot_reach_other_store_identity(self, admin_client, store2_admin):
        response = admin_client.get(f'{self.url}{store2_admin.pk}/')

        assert response.status_code == status.HTTP_404_NOT_FOUND

import logging
from datetime import timedelta
from django.conf import settings
from django.utils import timezone
from rest_framework import status, generics
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from oauth2_provider.models import Application, AccessToken, RefreshToken
from oauth2_provider.settings import oauth2_settings
from oauthlib.common import generate_token
from .mixins import StoreScopedMixin
from .models import User
from .permissions import IsActiveIdentity, IsStoreAdminOrSuperAdmin
from .serializers import (
    UserSerializer, RegisterSerializer, LoginSerializer, StoreUserCreateSerializer,
    StoreUserUpdateSerializer, ChangePasswordSerializer
)

logger = logging.getLogger(__name__)


def _get_application():
    application, _ = Application.objects.get_or_create(
        name=settings.OAUTH_APPLICATION_NAME,
        defaults={
            'client_type': Application.CLIENT_PUBLIC,
            'authorization_grant_type': Application.GRANT_PASSWORD,
        }
    )
    return application


def issue_tokens(user):
    """Create an access/refresh token pair for ``user``"""
    application = _get_application()
    expires = timezone.now() + timedelta(
        seconds=oauth2_settings.ACCESS_TOKEN_EXPIRE_SECONDS
    )
    access_token = AccessToken.objects.create(
        user=user,
        application=application,
        token=generate_token(),
        expires=expires,
        scope='read write'
    )
    refresh_token = RefreshToken.objects.create(
        user=user,
        application=application,
        token=generate_token(),
        access_token=access_token
    )
    return {
        'access_token': access_token.token,
        'refresh_token': refresh_token.token,
        'expires_in': oauth2_settings.ACCESS_TOKEN_EXPIRE_SECONDS,
        'token_type': 'Bearer',
    }


@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    """
    Register an identity inside a store.
    Returns 409 when the email already holds this role in the store.
    """
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()

    return Response({
        **issue_tokens(user),
        'user': UserSerializer(user).data
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    OAuth2 login endpoint that returns access and refresh tokens.
    Identities are looked up by (email, store, role).
    """
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    lookup = {
        'email': data['email'].strip().lower(),
        'role': data['role'],
    }
    if data['role'] == User.Role.SUPERADMIN:
        lookup['store__isnull'] = True
    else:
        lookup['store__slug'] = data['store'].lower()

    # Inactive identities are kept for history, so prefer the active one
    candidates = User.objects.filter(**lookup)
    user = candidates.filter(status=User.Status.ACTIVE).first() or candidates.first()

    if user is None or not user.check_password(data['password']):
        return Response(
            {'error': 'Invalid credentials'},
            status=status.HTTP_401_UNAUTHORIZED
        )

    if not user.is_active or not user.is_active_identity:
        return Response(
            {'error': 'User account is disabled'},
            status=status.HTTP_403_FORBIDDEN
        )

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    logger.info(f"Login: {user.email} as {user.role} in store {user.store_id}")

    return Response({
        **issue_tokens(user),
        'user': UserSerializer(user).data
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """Logout by revoking tokens"""
    auth_header = request.META.get('HTTP_AUTHORIZATION', '')
    if auth_header.startswith('Bearer '):
        token_string = auth_header.split(' ')[1]
        access_token = AccessToken.objects.filter(token=token_string).first()
        if access_token is not None:
            RefreshToken.objects.filter(access_token=access_token).delete()
            access_token.delete()
            return Response({'message': 'Successfully logged out'})

    return Response({'message': 'Logged out'})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_user_view(request):
    """Get current authenticated user details"""
    serializer = UserSerializer(request.user)
    return Response(serializer.data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsActiveIdentity])
def change_password_view(request):
    """Change user password"""
    serializer = ChangePasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = request.user
    if not user.check_password(serializer.validated_data['old_password']):
        return Response(
            {'error': 'Old password is incorrect'},
            status=status.HTTP_400_BAD_REQUEST
        )

    user.set_password(serializer.validated_data['new_password'])
    user.save()

    return Response({'message': 'Password changed successfully'})


# ============== Store identity management ==============

class StoreUserListCreateView(StoreScopedMixin, generics.ListCreateAPIView):
    """List identities of a store or create one (Store Admin only)"""
    queryset = User.objects.select_related('store').all()
    permission_classes = [IsAuthenticated, IsActiveIdentity, IsStoreAdminOrSuperAdmin]
    filterset_fields = ['role', 'status']

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return StoreUserCreateSerializer
        return UserSerializer


class StoreUserDetailView(StoreScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    Retrieve or update an identity of a store (Store Admin only).
    DELETE deactivates the identity instead of removing it.
    """
    queryset = User.objects.select_related('store').all()
    permission_classes = [IsAuthenticated, IsActiveIdentity, IsStoreAdminOrSuperAdmin]

    def get_serializer_class(self):
        if self.request.method in ['PUT', 'PATCH']:
            return StoreUserUpdateSerializer
        return UserSerializer

    def perform_destroy(self, instance):
        instance.status = User.Status.INACTIVE
        instance.save(update_fields=['status'])
        logger.info(f"Deactivated user {instance.pk} in store {instance.store_id}")

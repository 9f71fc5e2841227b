from rest_framework import serializers
from main.exceptions import DuplicateIdentity
from stores.models import Store
from .identity import Conflict, derive_key, reserve
from .mixins import StrictFieldsMixin
from .models import User


# Roles a visitor may pick when signing up on a storefront
SELF_SERVICE_ROLES = [User.Role.CLIENT, User.Role.AFFILIATE, User.Role.WHOLESALER]

# Roles a store admin may hand out inside their store
STORE_ROLES = [User.Role.ADMIN, User.Role.CLIENT, User.Role.AFFILIATE, User.Role.WHOLESALER]


def _reserve_or_conflict(scope_key, **kwargs):
    result = reserve(scope_key, **kwargs)
    if isinstance(result, Conflict):
        raise DuplicateIdentity(existing_role=result.scope_key.role)
    return result.user


class StoreMinimalSerializer(serializers.ModelSerializer):
    """Minimal serializer for Store (used in nested representations)"""

    class Meta:
        model = Store
        fields = ['id', 'name', 'slug']


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model"""
    store = StoreMinimalSerializer(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'role', 'status',
            'phone', 'is_email_verified', 'store', 'date_joined', 'last_login'
        ]
        read_only_fields = fields


class RegisterSerializer(StrictFieldsMixin, serializers.Serializer):
    """Public sign-up inside a store"""
    first_name = serializers.CharField(max_length=50)
    last_name = serializers.CharField(max_length=50)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    store = serializers.SlugRelatedField(
        slug_field='slug',
        queryset=Store.objects.filter(status=Store.Status.ACTIVE)
    )
    role = serializers.ChoiceField(choices=SELF_SERVICE_ROLES, default=User.Role.CLIENT)

    def create(self, validated_data):
        scope_key = derive_key(validated_data['email'], validated_data['store'].pk, validated_data['role'])
        return _reserve_or_conflict(
            scope_key,
            password=validated_data['password'],
            first_name=validated_data['first_name'],
            last_name=validated_data['last_name'],
            phone=validated_data.get('phone') or None,
        )


class LoginSerializer(StrictFieldsMixin, serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    store = serializers.SlugField(required=False)
    role = serializers.ChoiceField(choices=User.Role.choices, default=User.Role.CLIENT)

    def validate(self, data):
        if data['role'] != User.Role.SUPERADMIN and not data.get('store'):
            raise serializers.ValidationError({'store': 'Store is required for this role.'})
        return data


class StoreUserCreateSerializer(StrictFieldsMixin, serializers.Serializer):
    """Store admin creates an identity inside their store"""
    first_name = serializers.CharField(max_length=50)
    last_name = serializers.CharField(max_length=50)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=STORE_ROLES, default=User.Role.CLIENT)

    def create(self, validated_data):
        store = validated_data['store']
        scope_key = derive_key(validated_data['email'], store.pk, validated_data['role'])
        return _reserve_or_conflict(
            scope_key,
            password=validated_data['password'],
            first_name=validated_data['first_name'],
            last_name=validated_data['last_name'],
            phone=validated_data.get('phone') or None,
        )

    def to_representation(self, instance):
        return UserSerializer(instance).data


class StoreUserUpdateSerializer(StrictFieldsMixin, serializers.Serializer):
    """
    Role, status and email changes move the identity to a new scope key,
    so every update goes back through the uniqueness enforcer.
    """
    first_name = serializers.CharField(max_length=50, required=False)
    last_name = serializers.CharField(max_length=50, required=False)
    email = serializers.EmailField(required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=STORE_ROLES, required=False)
    status = serializers.ChoiceField(choices=User.Status.choices, required=False)

    def update(self, instance, validated_data):
        scope_key = derive_key(
            validated_data.pop('email', instance.email),
            instance.store_id,
            validated_data.pop('role', instance.role),
        )
        if 'phone' in validated_data:
            validated_data['phone'] = validated_data['phone'] or None
        return _reserve_or_conflict(scope_key, instance=instance, **validated_data)

    def to_representation(self, instance):
        return UserSerializer(instance).data


class ChangePasswordSerializer(StrictFieldsMixin, serializers.Serializer):
    """Serializer for password change"""
    old_password = serializers.CharField(required=True)
    new_password = serializers.CharField(required=True, min_length=6)

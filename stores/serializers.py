from rest_framework import serializers
from users.mixins import StrictFieldsMixin
from .models import Store


class StoreSerializer(serializers.ModelSerializer):
    user_count = serializers.SerializerMethodField()

    class Meta:
        model = Store
        fields = [
            'id', 'name', 'slug', 'description', 'contact_email', 'contact_phone',
            'currency', 'discount_rate', 'status', 'user_count', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_user_count(self, obj):
        return obj.users.count()


class StorePublicSerializer(serializers.ModelSerializer):
    """What an anonymous storefront visitor may see"""

    class Meta:
        model = Store
        fields = ['id', 'name', 'slug', 'description', 'currency', 'discount_rate']
        read_only_fields = fields


class StoreCreateUpdateSerializer(StrictFieldsMixin, serializers.ModelSerializer):
    class Meta:
        model = Store
        fields = [
            'name', 'slug', 'description', 'contact_email', 'contact_phone',
            'currency', 'discount_rate', 'status'
        ]

    def validate_slug(self, value):
        return value.strip().lower()

    def validate_currency(self, value):
        return value.strip().upper()

    def to_representation(self, instance):
        return StoreSerializer(instance).data

from decimal import Decimal
from django.utils import timezone
from rest_framework import serializers
from users.mixins import StrictFieldsMixin
from users.models import User
from .models import WholesalerAgreement
from .resolver import grant


class WholesalerAgreementSerializer(serializers.ModelSerializer):
    user_email = serializers.CharField(source='user.email', read_only=True)
    store_slug = serializers.CharField(source='store.slug', read_only=True)
    is_running = serializers.SerializerMethodField()

    class Meta:
        model = WholesalerAgreement
        fields = [
            'id', 'user', 'user_email', 'store', 'store_slug', 'discount_rate',
            'active_from', 'active_to', 'is_running', 'business_name', 'tax_number',
            'notes', 'is_verified', 'verified_by', 'verified_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_is_running(self, obj):
        now = self.context.get('now')
        return obj.is_active_at(now) if now else None


class WholesalerAgreementCreateSerializer(StrictFieldsMixin, serializers.Serializer):
    user = serializers.PrimaryKeyRelatedField(queryset=User.objects.none())
    discount_rate = serializers.DecimalField(
        max_digits=5,
        decimal_places=4,
        min_value=Decimal('0'),
        max_value=Decimal('1')
    )
    active_from = serializers.DateTimeField(required=False)
    active_to = serializers.DateTimeField(required=False, allow_null=True)
    business_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    tax_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        store = self.context.get('store')
        if store is not None:
            self.fields['user'].queryset = User.objects.filter(store=store, status=User.Status.ACTIVE)

    def validate(self, data):
        active_from = data.get('active_from')
        active_to = data.get('active_to')
        if active_from and active_to and active_to <= active_from:
            raise serializers.ValidationError({'active_to': 'Agreement must end after it starts.'})
        return data

    def create(self, validated_data):
        return grant(**validated_data)

    def to_representation(self, instance):
        return WholesalerAgreementSerializer(instance, context={**self.context, 'now': timezone.now()}).data


class WholesalerStatusQuerySerializer(StrictFieldsMixin, serializers.Serializer):
    as_of = serializers.DateTimeField(required=False)


class WholesalerAgreementUpdateSerializer(StrictFieldsMixin, serializers.ModelSerializer):
    """Business details only; rate and window change through grant/terminate"""

    class Meta:
        model = WholesalerAgreement
        fields = ['business_name', 'tax_number', 'notes']

    def to_representation(self, instance):
        return WholesalerAgreementSerializer(instance, context={**self.context, 'now': timezone.now()}).data

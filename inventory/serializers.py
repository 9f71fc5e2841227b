from rest_framework import serializers
from users.mixins import StrictFieldsMixin
from .models import Product


class ProductSerializer(serializers.ModelSerializer):

    class Meta:
        model = Product
        fields = [
            'id', 'sku', 'name', 'description', 'price', 'is_active',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ProductCreateUpdateSerializer(StrictFieldsMixin, serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ['sku', 'name', 'description', 'price', 'is_active']

    def validate_sku(self, value):
        store = self.context['store']
        queryset = Product.objects.filter(store=store, sku=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('A product with this SKU already exists in this store.')
        return value

    def to_representation(self, instance):
        return ProductSerializer(instance).data

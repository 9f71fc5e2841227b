from rest_framework import serializers
from inventory.models import Product
from users.mixins import StrictFieldsMixin
from users.models import User
from .models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'product', 'product_name', 'product_sku', 'quantity',
            'base_price', 'discount_rate', 'unit_price', 'line_total'
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    customer_email = serializers.CharField(source='customer.email', read_only=True, default=None)
    store_slug = serializers.CharField(source='store.slug', read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'store', 'store_slug', 'customer', 'customer_email',
            'currency', 'is_wholesale', 'discount_source', 'subtotal', 'discount_total',
            'total', 'notes', 'items', 'created_at'
        ]
        read_only_fields = fields


class StoreProductField(serializers.PrimaryKeyRelatedField):
    """Active products of the store in the serializer context"""

    def get_queryset(self):
        store = self.context.get('store')
        if store is None:
            return Product.objects.none()
        return Product.objects.filter(store=store, is_active=True)


class LineRequestSerializer(StrictFieldsMixin, serializers.Serializer):
    product = StoreProductField()
    quantity = serializers.IntegerField(min_value=1)


class PriceRequestSerializer(StrictFieldsMixin, serializers.Serializer):
    """
    Body of calculate-price and order placement.
    ``customer`` lets a store admin price or order on a customer's behalf.
    """
    items = LineRequestSerializer(many=True, allow_empty=False)
    customer = serializers.PrimaryKeyRelatedField(queryset=User.objects.none(), required=False)
    notes = serializers.CharField(required=False, allow_blank=True)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        store = self.context.get('store')
        if store is not None:
            self.fields['customer'].queryset = User.objects.filter(store=store, status=User.Status.ACTIVE)

    def get_items(self):
        return [(line['product'], line['quantity']) for line in self.validated_data['items']]


def serialize_quote(priced):
    return {
        'currency': priced.currency,
        'is_wholesale': priced.is_wholesale,
        'wholesaler_discount_rate': getattr(priced.wholesaler_status, 'discount_rate', None),
        'items': [
            {
                'product': line.product.pk,
                'product_name': line.product.name,
                'quantity': line.price.quantity,
                'base_price': line.price.base_price,
                'discount_rate': line.price.discount_rate,
                'discount_source': line.price.discount_source,
                'unit_price': line.price.unit_price,
                'line_total': line.price.line_total,
            }
            for line in priced.lines
        ],
        'subtotal': priced.subtotal,
        'discount_total': priced.discount_total,
        'total': priced.total,
    }

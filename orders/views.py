from rest_framework import generics, status
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from users.mixins import StoreScopedMixin
from users.permissions import IsActiveIdentity
from .models import Order
from .serializers import OrderSerializer, PriceRequestSerializer, serialize_quote
from .services import place_order, quote


def resolve_customer(request, store, requested):
    """
    Who the prices are for: store admins may name any customer of the
    store, everyone else is priced as themselves (or as a guest).
    """
    user = request.user
    is_admin = user.is_authenticated and (
        user.is_superadmin or (user.is_store_admin and user.store_id == store.id)
    )
    if requested is not None:
        if not is_admin and requested.pk != getattr(user, 'pk', None):
            raise PermissionDenied("You may only price orders for yourself.")
        return requested
    if user.is_authenticated and user.store_id == store.id and user.is_active_identity:
        return user
    return None


class CalculatePriceView(StoreScopedMixin, generics.GenericAPIView):
    """Price a basket without placing an order (public)"""
    serializer_class = PriceRequestSerializer
    permission_classes = [AllowAny]
    require_membership = False

    def post(self, request, *args, **kwargs):
        store = self.get_store()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        customer = resolve_customer(request, store, serializer.validated_data.get('customer'))
        priced = quote(store, serializer.get_items(), customer=customer)
        return Response(serialize_quote(priced))


class OrderListCreateView(StoreScopedMixin, generics.ListCreateAPIView):
    """List orders of a store (admins) or of the caller, or place an order"""
    queryset = Order.objects.select_related('customer', 'store').prefetch_related('items__product').all()
    permission_classes = [IsAuthenticated, IsActiveIdentity]
    filterset_fields = ['is_wholesale', 'customer']

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return PriceRequestSerializer
        return OrderSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user
        if not (user.is_superadmin or user.is_store_admin):
            queryset = queryset.filter(customer=user)
        return queryset

    def create(self, request, *args, **kwargs):
        store = self.get_store()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        customer = resolve_customer(request, store, serializer.validated_data.get('customer'))
        order = place_order(
            store,
            serializer.get_items(),
            customer=customer,
            notes=serializer.validated_data.get('notes') or None,
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class OrderDetailView(StoreScopedMixin, generics.RetrieveAPIView):
    queryset = Order.objects.select_related('customer', 'store').prefetch_related('items__product').all()
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated, IsActiveIdentity]

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user
        if not (user.is_superadmin or user.is_store_admin):
            queryset = queryset.filter(customer=user)
        return queryset

import logging
from django.shortcuts import get_object_or_404
from rest_framework import generics, filters
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated, AllowAny
from users.permissions import IsActiveIdentity, IsSuperAdmin, IsStoreAdminOrSuperAdmin
from .models import Store
from .serializers import StoreSerializer, StorePublicSerializer, StoreCreateUpdateSerializer

logger = logging.getLogger(__name__)


class StoreListCreateView(generics.ListCreateAPIView):
    """List all stores or create a new one (Super Admin only)"""
    queryset = Store.objects.all()
    permission_classes = [IsAuthenticated, IsActiveIdentity, IsSuperAdmin]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'slug', 'contact_email']
    ordering_fields = ['name', 'created_at']
    ordering = ['name']

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return StoreCreateUpdateSerializer
        return StoreSerializer

    def perform_create(self, serializer):
        store = serializer.save()
        logger.info(f"Store created: {store.slug}")


class StoreDetailView(generics.RetrieveUpdateAPIView):
    """
    Retrieve a store by slug or update it.
    Store admins may only update their own store; status is super admin only.
    """
    queryset = Store.objects.all()
    lookup_field = 'slug'
    lookup_url_kwarg = 'store_slug'
    permission_classes = [IsAuthenticated, IsActiveIdentity, IsStoreAdminOrSuperAdmin]

    def get_serializer_class(self):
        if self.request.method in ['PUT', 'PATCH']:
            return StoreCreateUpdateSerializer
        return StoreSerializer

    def get_object(self):
        store = super().get_object()
        user = self.request.user
        if not user.is_superadmin and user.store_id != store.id:
            raise PermissionDenied("You do not have access to this store.")
        return store

    def perform_update(self, serializer):
        user = self.request.user
        if not user.is_superadmin and ('status' in serializer.validated_data or 'slug' in serializer.validated_data):
            raise PermissionDenied("Only super admins may change a store's slug or status.")
        store = serializer.save()
        logger.info(f"Store updated: {store.slug} by user {user.pk}")


class StorePublicView(generics.RetrieveAPIView):
    """Public storefront lookup by slug; only active stores are visible"""
    serializer_class = StorePublicSerializer
    permission_classes = [AllowAny]
    authentication_classes = []

    def get_object(self):
        return get_object_or_404(
            Store,
            slug=self.kwargs['store_slug'].lower(),
            status=Store.Status.ACTIVE
        )

from rest_framework import generics, filters
from rest_framework.permissions import SAFE_METHODS
from users.mixins import StoreScopedMixin
from users.permissions import ReadOnlyOrStoreAdmin
from .models import Product
from .serializers import ProductSerializer, ProductCreateUpdateSerializer


class StoreCatalogMixin(StoreScopedMixin):
    """The catalog is public; writes need an admin of the store"""
    permission_classes = [ReadOnlyOrStoreAdmin]

    @property
    def require_membership(self):
        return self.request.method not in SAFE_METHODS

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user
        is_admin = user.is_authenticated and (
            user.is_superadmin or (user.is_store_admin and user.store_id == self.get_store().id)
        )
        if not is_admin:
            queryset = queryset.filter(is_active=True)
        return queryset


class ProductListCreateView(StoreCatalogMixin, generics.ListCreateAPIView):
    """List a store's products or create a new product"""
    queryset = Product.objects.all()
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['sku', 'name']
    ordering_fields = ['name', 'price', 'created_at']
    ordering = ['name']

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return ProductCreateUpdateSerializer
        return ProductSerializer


class ProductDetailView(StoreCatalogMixin, generics.RetrieveUpdateAPIView):
    """Retrieve or update a product; deactivate instead of deleting"""
    queryset = Product.objects.all()

    def get_serializer_class(self):
        if self.request.method in ['PUT', 'PATCH']:
            return ProductCreateUpdateSerializer
        return ProductSerializer

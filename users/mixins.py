"""
Store scoping mixins for multi-tenant data isolation.
"""
from django.shortcuts import get_object_or_404
from rest_framework import serializers
from rest_framework.exceptions import PermissionDenied
from stores.models import Store


STORE_MEMBERSHIP_MESSAGE = "You do not have access to this store."
STORE_INACTIVE_MESSAGE = "Store is not active."


def get_store_for_request(request, store_slug, *, require_membership=True):
    """
    Resolve the store addressed by the URL and check the caller may use it.

    Logic:
    1. Unknown slug -> 404
    2. Super admins may act in any store, active or not
    3. Everyone else needs an active store
    4. With require_membership, the caller's identity must belong to the store

    Returns:
        Store instance
    """
    store = get_object_or_404(Store, slug=(store_slug or '').lower())
    user = getattr(request, 'user', None)
    is_superadmin = bool(user and user.is_authenticated and user.is_superadmin)

    if is_superadmin:
        return store

    if not store.is_active:
        raise PermissionDenied(STORE_INACTIVE_MESSAGE)

    if require_membership:
        if not (user and user.is_authenticated) or user.store_id != store.id:
            raise PermissionDenied(STORE_MEMBERSHIP_MESSAGE)

    return store


class StoreScopedMixin:
    """
    Mixin for views nested under ``api/stores/<store_slug>/``.

    Usage:
        class ProductListCreateView(StoreScopedMixin, generics.ListCreateAPIView):
            queryset = Product.objects.all()
            ...

    The mixin will:
    1. Filter querysets to rows belonging to the addressed store
    2. Auto-assign the store on create
    3. Raise PermissionDenied when the caller is outside the store
    """

    store_field = 'store'  # Override if the FK field has a different name
    require_membership = True

    def get_store(self):
        if not hasattr(self, '_store'):
            self._store = get_store_for_request(
                self.request,
                self.kwargs.get('store_slug'),
                require_membership=self.require_membership,
            )
        return self._store

    def get_queryset(self):
        queryset = super().get_queryset()
        return queryset.filter(**{self.store_field: self.get_store()})

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['store'] = self.get_store()
        return context

    def perform_create(self, serializer):
        serializer.save(**{self.store_field: self.get_store()})


class StrictFieldsMixin:
    """
    Serializer mixin rejecting request keys that are not declared fields,
    so loosely shaped bodies never reach the domain code.
    """

    def to_internal_value(self, data):
        if hasattr(data, 'keys'):
            unknown = sorted(set(data.keys()) - set(self.fields.keys()))
            if unknown:
                raise serializers.ValidationError({name: 'Unknown field.' for name in unknown})
        return super().to_internal_value(data)

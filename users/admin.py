from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


class StoreScopedAdmin(admin.ModelAdmin):
    """Restrict queryset to request user's store unless super admin."""

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if getattr(request.user, 'is_superadmin', False):
            return qs
        store = getattr(request.user, 'store', None)
        if store:
            return qs.filter(store=store)
        return qs.none()

    def save_model(self, request, obj, form, change):
        if not getattr(request.user, 'is_superadmin', False):
            if hasattr(obj, 'store') and not obj.store_id:
                obj.store = getattr(request.user, 'store', None)
        super().save_model(request, obj, form, change)

    def get_readonly_fields(self, request, obj=None):
        readonly = tuple(super().get_readonly_fields(request, obj))
        if getattr(request.user, 'is_superadmin', False):
            return readonly
        return readonly + ("store",) if hasattr(self.model, 'store') else readonly


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'role', 'status', 'store', 'is_email_verified', 'date_joined']
    list_filter = ['role', 'status', 'store', 'is_email_verified', 'is_staff']
    search_fields = ['email', 'first_name', 'last_name', 'phone']
    ordering = ['-date_joined']

    fieldsets = BaseUserAdmin.fieldsets + (
        ('Store Identity', {
            'fields': ('role', 'status', 'store', 'phone', 'is_email_verified')
        }),
    )

    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Store Identity', {
            'fields': ('email', 'role', 'status', 'store', 'phone')
        }),
    )

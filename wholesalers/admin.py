from django.contrib import admin
from users.admin import StoreScopedAdmin
from .models import WholesalerAgreement


@admin.register(WholesalerAgreement)
class WholesalerAgreementAdmin(StoreScopedAdmin):
    list_display = ['user', 'store', 'discount_rate', 'active_from', 'active_to', 'is_verified', 'created_at']
    list_filter = ['store', 'is_verified', 'active_from']
    search_fields = ['user__email', 'business_name', 'tax_number']
    readonly_fields = ['verified_by', 'verified_at', 'created_at', 'updated_at']

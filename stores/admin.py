from django.contrib import admin
from .models import Store


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'currency', 'discount_rate', 'status', 'created_at']
    list_filter = ['status', 'currency', 'created_at']
    search_fields = ['name', 'slug', 'contact_email', 'contact_phone']
    readonly_fields = ['created_at', 'updated_at']

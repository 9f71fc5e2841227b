from django.contrib import admin
from users.admin import StoreScopedAdmin
from .models import Product


@admin.register(Product)
class ProductAdmin(StoreScopedAdmin):
    list_display = ['sku', 'name', 'store', 'price', 'is_active', 'created_at']
    list_filter = ['store', 'is_active', 'created_at']
    search_fields = ['sku', 'name']
    readonly_fields = ['created_at', 'updated_at']

from django.contrib import admin
from users.admin import StoreScopedAdmin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['base_price', 'discount_rate', 'unit_price', 'line_total']


@admin.register(Order)
class OrderAdmin(StoreScopedAdmin):
    list_display = ['order_number', 'store', 'customer', 'total', 'currency', 'is_wholesale', 'created_at']
    list_filter = ['store', 'is_wholesale', 'discount_source', 'created_at']
    search_fields = ['order_number', 'customer__email']
    readonly_fields = ['subtotal', 'discount_total', 'total', 'created_at']
    inlines = [OrderItemInline]

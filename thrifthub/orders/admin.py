from django.contrib import admin
from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer_email', 'total_amount', 'currency', 'status', 'order_date']
    list_filter = ['status', 'currency', 'order_date']
    search_fields = ['order_number', 'customer_email', 'shopify_order_id']
    ordering = ['-order_date']
    readonly_fields = ['shopify_order_id', 'order_data', 'created_at', 'updated_at']

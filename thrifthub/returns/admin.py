from django.contrib import admin
from .models import Return, ReturnItem


class ReturnItemInline(admin.TabularInline):
    model = ReturnItem
    extra = 0


@admin.register(Return)
class ReturnAdmin(admin.ModelAdmin):
    list_display = ['return_number', 'status', 'customer', 'order', 'shopify_return_name', 'refund_status', 'created_at']
    list_filter = ['status', 'refund_status', 'return_reason', 'priority']
    search_fields = ['return_number', 'shopify_return_name', 'tracking_number', 'customer__email']
    ordering = ['-created_at']
    readonly_fields = ['shopify_return_id', 'synced_at', 'created_at', 'updated_at']
    inlines = [ReturnItemInline]

from django.contrib import admin
from .models import Supplier, PurchaseOrder, PurchaseOrderItem


class PurchaseOrderItemInline(admin.TabularInline):
    model = PurchaseOrderItem
    extra = 1
    fields = ['sku', 'product_name', 'quantity', 'unit_price']


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['supplier_number', 'name', 'contact_person', 'email', 'is_active']
    search_fields = ['supplier_number', 'name', 'email']


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ['po_number', 'title', 'supplier', 'purchase_date', 'get_amount', 'status', 'created_by']
    list_filter = ['status', 'supplier', 'purchase_date']
    search_fields = ['po_number', 'title', 'notes']
    ordering = ['-purchase_date', '-created_at']
    inlines = [PurchaseOrderItemInline]
    readonly_fields = ['created_at', 'updated_at']

    def get_amount(self, obj):
        return f"€{obj.amount / 100:.2f}"
    get_amount.short_description = 'Amount'

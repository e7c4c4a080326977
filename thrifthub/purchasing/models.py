from django.db import models
from thrifthub.core.models import User


class Supplier(models.Model):
    """Supplier we buy stock from"""
    supplier_number = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=200)
    contact_person = models.CharField(max_length=200, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    address = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.supplier_number} - {self.name}"

    class Meta:
        db_table = 'suppliers'
        ordering = ['name']


class PurchaseOrder(models.Model):
    """Purchase order placed with a supplier"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('ordered', 'Ordered'),
        ('received', 'Received'),
        ('cancelled', 'Cancelled'),
    ]

    po_number = models.CharField(max_length=30, unique=True)
    title = models.CharField(max_length=255)
    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name='purchase_orders')
    purchase_date = models.DateField()
    amount = models.IntegerField(default=0, help_text="Amount in cents")
    currency = models.CharField(max_length=3, default='EUR')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='purchase_orders')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.po_number

    def get_items_total(self):
        return sum(item.get_line_total() for item in self.items.all())

    class Meta:
        db_table = 'purchase_orders'
        ordering = ['-purchase_date', '-created_at']
        indexes = [
            models.Index(fields=['status'], name='idx_po_status'),
            models.Index(fields=['supplier', 'status'], name='idx_po_supplier_status'),
        ]


class PurchaseOrderItem(models.Model):
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name='items')
    sku = models.CharField(max_length=100, blank=True)
    product_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.IntegerField(default=0, help_text="Amount in cents")

    def get_line_total(self):
        return self.quantity * self.unit_price

    class Meta:
        db_table = 'purchase_order_items'
        ordering = ['id']

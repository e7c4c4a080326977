from django.db import models
from thrifthub.core.models import User, PRIORITY_CHOICES


class Return(models.Model):
    """Customer merchandise return"""
    STATUS_CHOICES = [
        ('nieuw', 'Nieuw'),
        ('onderweg', 'Onderweg'),
        ('ontvangen_controle', 'Ontvangen - controle'),
        ('akkoord_terugbetaling', 'Akkoord terugbetaling'),
        ('vermiste_pakketten', 'Vermiste pakketten'),
        ('wachten_klant', 'Wachten op klant'),
        ('opnieuw_versturen', 'Opnieuw versturen'),
        ('klaar', 'Klaar'),
        ('niet_ontvangen', 'Niet ontvangen'),
    ]

    REASON_CHOICES = [
        ('wrong_item', 'Wrong Item'),
        ('damaged', 'Damaged'),
        ('defective', 'Defective'),
        ('size_issue', 'Size Issue'),
        ('changed_mind', 'Changed Mind'),
        ('other', 'Other'),
    ]

    REFUND_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('processing', 'Processing'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
    ]

    REFUND_METHOD_CHOICES = [
        ('original_payment', 'Original Payment'),
        ('store_credit', 'Store Credit'),
        ('exchange', 'Exchange'),
    ]

    return_number = models.CharField(max_length=30, unique=True)
    customer = models.ForeignKey('customers.Customer', on_delete=models.SET_NULL, null=True, blank=True, related_name='returns')
    order = models.ForeignKey('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='returns')
    case = models.ForeignKey('cases.Case', on_delete=models.SET_NULL, null=True, blank=True, related_name='returns')
    assigned_user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_returns')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_returns')
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='nieuw')
    return_reason = models.CharField(max_length=20, choices=REASON_CHOICES, blank=True, null=True)
    other_reason = models.TextField(blank=True)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    tracking_number = models.CharField(max_length=100, blank=True)
    tracking_carrier = models.CharField(max_length=50, blank=True)
    tracking_url = models.URLField(max_length=500, blank=True)
    requested_at = models.DateTimeField(null=True, blank=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    received_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    refund_amount = models.IntegerField(default=0, help_text="Amount in cents")
    refund_status = models.CharField(max_length=20, choices=REFUND_STATUS_CHOICES, default='pending')
    refund_method = models.CharField(max_length=20, choices=REFUND_METHOD_CHOICES, blank=True, null=True)
    shopify_return_id = models.CharField(max_length=100, unique=True, blank=True, null=True)
    shopify_return_name = models.CharField(max_length=50, blank=True)
    shopify_status = models.CharField(max_length=30, blank=True)
    synced_at = models.DateTimeField(null=True, blank=True)
    customer_notes = models.TextField(blank=True)
    internal_notes = models.TextField(blank=True)
    condition_notes = models.TextField(blank=True)
    tags = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.return_number

    def get_total_value(self):
        return sum(item.get_line_total() for item in self.items.all())

    class Meta:
        db_table = 'returns'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='returns_status_4d2a67_idx'),
            models.Index(fields=['-created_at'], name='returns_created_8e5b02_idx'),
            models.Index(fields=['tracking_number'], name='returns_trackin_1c9f38_idx'),
        ]


class ReturnItem(models.Model):
    """Line item of a return"""
    CONDITION_CHOICES = [
        ('new', 'New'),
        ('like_new', 'Like New'),
        ('used', 'Used'),
        ('damaged', 'Damaged'),
        ('defective', 'Defective'),
    ]

    return_request = models.ForeignKey(Return, on_delete=models.CASCADE, related_name='items')
    sku = models.CharField(max_length=100, blank=True)
    product_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.IntegerField(default=0, help_text="Price in cents")
    condition = models.CharField(max_length=20, choices=CONDITION_CHOICES, blank=True, null=True)
    restockable = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"

    def get_line_total(self):
        return self.quantity * self.unit_price

    class Meta:
        db_table = 'return_items'
        ordering = ['id']

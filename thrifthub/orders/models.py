from django.db import models


class Order(models.Model):
    """E-commerce order mirrored from Shopify"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('processing', 'Processing'),
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
        ('refunded', 'Refunded'),
    ]

    shopify_order_id = models.CharField(max_length=50, unique=True)
    # Stored without the leading '#'
    order_number = models.CharField(max_length=50, db_index=True)
    customer = models.ForeignKey('customers.Customer', on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    customer_email = models.EmailField(blank=True)
    total_amount = models.IntegerField(default=0, help_text="Amount in cents")
    currency = models.CharField(max_length=3, default='EUR')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    fulfillment_status = models.CharField(max_length=30, blank=True, null=True)
    payment_status = models.CharField(max_length=30, blank=True, null=True)
    order_data = models.JSONField(default=dict, blank=True)
    order_date = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"#{self.order_number}"

    class Meta:
        db_table = 'orders'
        ordering = ['-order_date', '-created_at']
        indexes = [
            models.Index(fields=['customer_email'], name='orders_custome_3b9e21_idx'),
            models.Index(fields=['status'], name='orders_status_7f1c42_idx'),
            models.Index(fields=['-order_date'], name='orders_order_d_5a8d13_idx'),
        ]

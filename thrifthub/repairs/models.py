from django.db import models
from django.utils import timezone
from thrifthub.core.models import User, PRIORITY_CHOICES


class Repair(models.Model):
    """Device repair ticket"""
    STATUS_CHOICES = [
        ('new', 'New'),
        ('in_progress', 'In Progress'),
        ('waiting_customer', 'Waiting for Customer'),
        ('waiting_part', 'Waiting for Part'),
        ('ready', 'Ready'),
        ('closed', 'Closed'),
    ]

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    customer = models.ForeignKey('customers.Customer', on_delete=models.SET_NULL, null=True, blank=True, related_name='repairs')
    order = models.ForeignKey('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='repairs')
    case = models.ForeignKey('cases.Case', on_delete=models.SET_NULL, null=True, blank=True, related_name='repairs')
    assigned_user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_repairs')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_repairs')
    customer_name = models.CharField(max_length=200, blank=True)
    customer_email = models.EmailField(blank=True)
    customer_phone = models.CharField(max_length=30, blank=True)
    product_name = models.CharField(max_length=200, blank=True)
    serial_number = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='new')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    estimated_cost = models.IntegerField(null=True, blank=True, help_text="Amount in cents")
    actual_cost = models.IntegerField(null=True, blank=True, help_text="Amount in cents")
    parts_needed = models.JSONField(default=list, blank=True)
    # [{'status': ..., 'changed_at': ISO timestamp, 'user': username}]
    timeline = models.JSONField(default=list, blank=True)
    sla_deadline = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Repair #{self.pk} - {self.title}"

    def record_status(self, status, user=None, changed_at=None):
        """Append a status entry to the timeline"""
        changed_at = changed_at or timezone.now()
        self.timeline = list(self.timeline or []) + [{
            'status': status,
            'changed_at': changed_at.isoformat(),
            'user': user.username if user and user.is_authenticated else None,
        }]
        if status == 'closed' and not self.completed_at:
            self.completed_at = changed_at

    class Meta:
        db_table = 'repairs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='repairs_status_5b3e70_idx'),
            models.Index(fields=['assigned_user', 'status'], name='repairs_assigne_9a4c16_idx'),
        ]

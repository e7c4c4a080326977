from django.db import models
from thrifthub.core.models import User, PRIORITY_CHOICES


class Case(models.Model):
    """Customer case grouping orders, emails, repairs, returns and todos"""
    STATUS_CHOICES = [
        ('new', 'New'),
        ('in_progress', 'In Progress'),
        ('waiting_customer', 'Waiting for Customer'),
        ('waiting_part', 'Waiting for Part'),
        ('resolved', 'Resolved'),
        ('closed', 'Closed'),
    ]

    TYPE_CHOICES = [
        ('return_request', 'Return Request'),
        ('complaint', 'Complaint'),
        ('shipping_issue', 'Shipping Issue'),
        ('payment_issue', 'Payment Issue'),
        ('general', 'General'),
        ('other', 'Other'),
    ]

    SOURCE_CHOICES = [
        ('email', 'Email'),
        ('shopify', 'Shopify'),
        ('manual', 'Manual'),
    ]

    case_number = models.CharField(max_length=20, unique=True)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    customer = models.ForeignKey('customers.Customer', on_delete=models.SET_NULL, null=True, blank=True, related_name='cases')
    customer_email = models.EmailField(blank=True)
    assigned_user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_cases')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_cases')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='new')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    case_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='general')
    source = models.CharField(max_length=10, choices=SOURCE_CHOICES, default='manual')
    sla_deadline = models.DateTimeField(null=True, blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)
    archived = models.BooleanField(default=False)
    archived_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.case_number

    class Meta:
        db_table = 'cases'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='cases_status_2e8b51_idx'),
            models.Index(fields=['archived', '-created_at'], name='cases_archive_6c1f93_idx'),
        ]


class CaseLink(models.Model):
    """Link from a case to another record"""
    LINK_TYPE_CHOICES = [
        ('order', 'Order'),
        ('email', 'Email Thread'),
        ('repair', 'Repair'),
        ('return', 'Return'),
        ('todo', 'Todo'),
    ]

    case = models.ForeignKey(Case, on_delete=models.CASCADE, related_name='links')
    link_type = models.CharField(max_length=10, choices=LINK_TYPE_CHOICES)
    linked_id = models.PositiveBigIntegerField()
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.case.case_number} -> {self.link_type}:{self.linked_id}"

    class Meta:
        db_table = 'case_links'
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(fields=['case', 'link_type', 'linked_id'], name='unique_case_link'),
        ]

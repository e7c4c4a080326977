from django.db import models
from thrifthub.core.models import User, PRIORITY_CHOICES


class Todo(models.Model):
    """Personal or team task"""
    CATEGORY_CHOICES = [
        ('orders', 'Orders'),
        ('purchasing', 'Purchasing'),
        ('marketing', 'Marketing'),
        ('admin', 'Admin'),
        ('other', 'Other'),
    ]

    STATUS_CHOICES = [
        ('todo', 'To Do'),
        ('in_progress', 'In Progress'),
        ('done', 'Done'),
    ]

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other')
    assigned_user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='todos')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_todos')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='todo')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    due_date = models.DateTimeField(null=True, blank=True)
    customer = models.ForeignKey('customers.Customer', on_delete=models.SET_NULL, null=True, blank=True, related_name='todos')
    order = models.ForeignKey('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='todos')
    repair = models.ForeignKey('repairs.Repair', on_delete=models.SET_NULL, null=True, blank=True, related_name='todos')
    email_thread = models.ForeignKey('mail.EmailThread', on_delete=models.SET_NULL, null=True, blank=True, related_name='todos')
    case = models.ForeignKey('cases.Case', on_delete=models.SET_NULL, null=True, blank=True, related_name='todos')
    return_request = models.ForeignKey('returns.Return', on_delete=models.SET_NULL, null=True, blank=True, related_name='todos')
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'todos'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['assigned_user', 'status'], name='todos_assigne_7e2c41_idx'),
            models.Index(fields=['due_date'], name='todos_due_dat_3a9f18_idx'),
        ]


class Subtask(models.Model):
    todo = models.ForeignKey(Todo, on_delete=models.CASCADE, related_name='subtasks')
    title = models.CharField(max_length=255)
    completed = models.BooleanField(default=False)
    position = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'subtasks'
        ordering = ['position', 'id']

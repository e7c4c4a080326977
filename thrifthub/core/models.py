from django.contrib.auth.models import AbstractUser
from django.db import models

PRIORITY_CHOICES = [
    ('low', 'Low'),
    ('medium', 'Medium'),
    ('high', 'High'),
    ('urgent', 'Urgent'),
]


class User(AbstractUser):
    """Back-office user with an application role"""
    ROLE_CHOICES = [
        ('admin', 'Admin'),
        ('agent', 'Agent'),
        ('repair_tech', 'Repair Technician'),
        ('viewer', 'Viewer'),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='agent')
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'

    @property
    def is_admin_role(self):
        return self.role == 'admin' or self.is_superuser


class Setting(models.Model):
    """System settings and sync cursors"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class Activity(models.Model):
    """Team activity feed entry"""
    type = models.CharField(max_length=50)
    description = models.TextField()
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='activities')
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.type}: {self.description[:50]}"

    class Meta:
        db_table = 'activities'
        ordering = ['-created_at']
        verbose_name_plural = 'activities'
        indexes = [
            models.Index(fields=['-created_at'], name='activities_created_9b1f2e_idx'),
            models.Index(fields=['type'], name='activities_type_4c7a1d_idx'),
        ]


class AuditLog(models.Model):
    """Audit log for write operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('link', 'Link'),
        ('unlink', 'Unlink'),
        ('sync', 'Sync'),
        ('status_change', 'Status Change'),
        ('send', 'Send'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order number, case number, return number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_5e2b8a_idx'),
            models.Index(fields=['action'], name='audit_logs_action_7d3c9f_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_1a6e4b_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__8f2d7c_idx'),
        ]

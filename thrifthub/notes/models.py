from django.db import models
from thrifthub.core.models import User


class NoteQuerySet(models.QuerySet):
    def active(self):
        return self.filter(deleted_at__isnull=True)


class Note(models.Model):
    """Internal note attached to any record"""
    ENTITY_TYPE_CHOICES = [
        ('customer', 'Customer'),
        ('order', 'Order'),
        ('repair', 'Repair'),
        ('email_thread', 'Email Thread'),
        ('case', 'Case'),
        ('return', 'Return'),
        ('purchase_order', 'Purchase Order'),
        ('todo', 'Todo'),
    ]

    entity_type = models.CharField(max_length=20, choices=ENTITY_TYPE_CHOICES)
    entity_id = models.PositiveBigIntegerField()
    content = models.TextField()
    author = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='notes')
    # User ids mentioned as @username
    mentions = models.JSONField(default=list, blank=True)
    is_pinned = models.BooleanField(default=False)
    pinned_at = models.DateTimeField(null=True, blank=True)
    pinned_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = NoteQuerySet.as_manager()

    def __str__(self):
        return f"Note on {self.entity_type}:{self.entity_id}"

    class Meta:
        db_table = 'notes'
        ordering = ['-is_pinned', '-created_at']
        indexes = [
            models.Index(fields=['entity_type', 'entity_id'], name='notes_entity_5f3b28_idx'),
        ]

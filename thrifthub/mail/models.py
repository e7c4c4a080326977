from django.db import models
from thrifthub.core.models import User, PRIORITY_CHOICES


class EmailThread(models.Model):
    """Conversation grouping the messages exchanged with one customer"""
    STATUS_CHOICES = [
        ('open', 'Open'),
        ('closed', 'Closed'),
        ('archived', 'Archived'),
    ]

    # Conversation key built from subject and participants
    thread_id = models.CharField(max_length=500, unique=True)
    subject = models.CharField(max_length=500, blank=True)
    customer = models.ForeignKey('customers.Customer', on_delete=models.SET_NULL, null=True, blank=True, related_name='email_threads')
    customer_email = models.EmailField(blank=True)
    assigned_user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_threads')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='open')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    has_attachment = models.BooleanField(default=False)
    is_unread = models.BooleanField(default=True)
    is_starred = models.BooleanField(default=False)
    last_activity = models.DateTimeField(null=True, blank=True)
    order = models.ForeignKey('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='email_threads')
    case = models.ForeignKey('cases.Case', on_delete=models.SET_NULL, null=True, blank=True, related_name='email_threads')
    repair = models.ForeignKey('repairs.Repair', on_delete=models.SET_NULL, null=True, blank=True, related_name='email_threads')
    return_request = models.ForeignKey('returns.Return', on_delete=models.SET_NULL, null=True, blank=True, related_name='email_threads')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.subject or self.thread_id

    class Meta:
        db_table = 'email_threads'
        ordering = ['-last_activity', '-created_at']
        indexes = [
            models.Index(fields=['customer_email'], name='email_th_custome_4d2a17_idx'),
            models.Index(fields=['status', '-last_activity'], name='email_th_status_8e6b30_idx'),
        ]


class EmailMessage(models.Model):
    """Single message stored in a thread"""
    FOLDER_CHOICES = [
        ('inbox', 'Inbox'),
        ('sent', 'Sent'),
    ]

    message_id = models.CharField(max_length=500, unique=True)
    thread = models.ForeignKey(EmailThread, on_delete=models.CASCADE, related_name='messages')
    from_email = models.EmailField(blank=True)
    from_name = models.CharField(max_length=200, blank=True)
    to_email = models.CharField(max_length=500, blank=True)
    subject = models.CharField(max_length=500, blank=True)
    body = models.TextField(blank=True)
    is_html = models.BooleanField(default=False)
    is_outbound = models.BooleanField(default=False)
    folder = models.CharField(max_length=10, choices=FOLDER_CHOICES, default='inbox')
    imap_uid = models.PositiveBigIntegerField(null=True, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.from_email}: {self.subject}"

    class Meta:
        db_table = 'email_messages'
        ordering = ['sent_at', 'created_at']
        indexes = [
            models.Index(fields=['folder', 'imap_uid'], name='email_me_folder_1c7f52_idx'),
        ]


class EmailAttachment(models.Model):
    message = models.ForeignKey(EmailMessage, on_delete=models.CASCADE, related_name='attachments')
    filename = models.CharField(max_length=255)
    content_type = models.CharField(max_length=100, blank=True)
    size = models.PositiveIntegerField(default=0)
    content_id = models.CharField(max_length=255, blank=True)
    is_inline = models.BooleanField(default=False)
    storage_path = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.filename

    class Meta:
        db_table = 'email_attachments'
        ordering = ['created_at']

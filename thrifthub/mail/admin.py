from django.contrib import admin
from .models import EmailThread, EmailMessage, EmailAttachment


class EmailMessageInline(admin.TabularInline):
    model = EmailMessage
    extra = 0
    fields = ['from_email', 'to_email', 'subject', 'folder', 'is_outbound', 'sent_at']
    readonly_fields = fields


@admin.register(EmailThread)
class EmailThreadAdmin(admin.ModelAdmin):
    list_display = ['id', 'subject', 'customer_email', 'status', 'is_unread', 'order', 'case', 'last_activity']
    list_filter = ['status', 'is_unread', 'is_starred']
    search_fields = ['subject', 'customer_email', 'thread_id']
    ordering = ['-last_activity']
    inlines = [EmailMessageInline]


@admin.register(EmailMessage)
class EmailMessageAdmin(admin.ModelAdmin):
    list_display = ['id', 'subject', 'from_email', 'to_email', 'folder', 'sent_at']
    list_filter = ['folder', 'is_outbound']
    search_fields = ['subject', 'from_email', 'to_email', 'message_id']


admin.site.register(EmailAttachment)

from rest_framework import serializers
from .models import EmailThread, EmailMessage, EmailAttachment


class EmailAttachmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = EmailAttachment
        fields = ['id', 'filename', 'content_type', 'size', 'content_id', 'is_inline', 'created_at']


class EmailMessageSerializer(serializers.ModelSerializer):
    attachments = EmailAttachmentSerializer(many=True, read_only=True)

    class Meta:
        model = EmailMessage
        fields = [
            'id', 'message_id', 'thread', 'from_email', 'from_name', 'to_email', 'subject',
            'body', 'is_html', 'is_outbound', 'folder', 'imap_uid', 'sent_at', 'attachments',
            'created_at'
        ]


class EmailThreadListSerializer(serializers.ModelSerializer):
    assigned_user_name = serializers.CharField(source='assigned_user.username', read_only=True)
    order_number = serializers.CharField(source='order.order_number', read_only=True)
    case_number = serializers.CharField(source='case.case_number', read_only=True)
    message_count = serializers.SerializerMethodField()

    class Meta:
        model = EmailThread
        fields = [
            'id', 'thread_id', 'subject', 'customer', 'customer_email', 'assigned_user',
            'assigned_user_name', 'status', 'priority', 'has_attachment', 'is_unread', 'is_starred',
            'last_activity', 'order', 'order_number', 'case', 'case_number', 'repair',
            'return_request', 'message_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['thread_id', 'has_attachment', 'last_activity', 'created_at', 'updated_at']

    def get_message_count(self, obj):
        count = getattr(obj, 'message_count', None)
        return count if count is not None else obj.messages.count()


class EmailThreadSerializer(EmailThreadListSerializer):
    messages = EmailMessageSerializer(many=True, read_only=True)

    class Meta(EmailThreadListSerializer.Meta):
        fields = EmailThreadListSerializer.Meta.fields + ['messages']


class SendEmailSerializer(serializers.Serializer):
    thread = serializers.PrimaryKeyRelatedField(queryset=EmailThread.objects.all())
    body = serializers.CharField()
    to_email = serializers.EmailField(required=False)
    subject = serializers.CharField(required=False, allow_blank=True)
    is_html = serializers.BooleanField(default=False)

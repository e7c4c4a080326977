from rest_framework import serializers
from .models import Case, CaseLink


class CaseLinkSerializer(serializers.ModelSerializer):
    class Meta:
        model = CaseLink
        fields = ['id', 'case', 'link_type', 'linked_id', 'created_by', 'created_at']
        read_only_fields = ['case', 'created_by', 'created_at']


class CaseSerializer(serializers.ModelSerializer):
    assigned_user_name = serializers.CharField(source='assigned_user.username', read_only=True)
    customer_name = serializers.SerializerMethodField()
    links = CaseLinkSerializer(many=True, read_only=True)

    class Meta:
        model = Case
        fields = [
            'id', 'case_number', 'title', 'description', 'customer', 'customer_name', 'customer_email',
            'assigned_user', 'assigned_user_name', 'created_by', 'status', 'priority', 'case_type',
            'source', 'sla_deadline', 'resolved_at', 'closed_at', 'archived', 'archived_at',
            'links', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'case_number', 'created_by', 'resolved_at', 'closed_at', 'archived', 'archived_at',
            'created_at', 'updated_at'
        ]

    def get_customer_name(self, obj):
        if obj.customer_id:
            return obj.customer.full_name or obj.customer.email
        return None

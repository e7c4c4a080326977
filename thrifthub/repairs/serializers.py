from rest_framework import serializers
from .models import Repair


class RepairSerializer(serializers.ModelSerializer):
    assigned_user_name = serializers.CharField(source='assigned_user.username', read_only=True)
    order_number = serializers.CharField(source='order.order_number', read_only=True)

    class Meta:
        model = Repair
        fields = [
            'id', 'title', 'description', 'customer', 'order', 'order_number', 'case',
            'assigned_user', 'assigned_user_name', 'created_by', 'customer_name', 'customer_email',
            'customer_phone', 'product_name', 'serial_number', 'status', 'priority',
            'estimated_cost', 'actual_cost', 'parts_needed', 'timeline', 'sla_deadline',
            'completed_at', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'timeline', 'completed_at', 'created_at', 'updated_at']

    def validate_parts_needed(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Expected a list of parts.')
        return value

    def validate(self, attrs):
        for field in ('estimated_cost', 'actual_cost'):
            if attrs.get(field) is not None and attrs[field] < 0:
                raise serializers.ValidationError({field: 'Must not be negative.'})
        return attrs

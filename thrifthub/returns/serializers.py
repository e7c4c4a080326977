from rest_framework import serializers
from .models import Return, ReturnItem
from .services import create_return_with_items


class ReturnItemSerializer(serializers.ModelSerializer):
    line_total = serializers.SerializerMethodField()

    class Meta:
        model = ReturnItem
        fields = ['id', 'return_request', 'sku', 'product_name', 'quantity', 'unit_price',
                  'condition', 'restockable', 'line_total', 'created_at']
        read_only_fields = ['return_request', 'created_at']

    def get_line_total(self, obj):
        return obj.get_line_total()


class ReturnListSerializer(serializers.ModelSerializer):
    customer_name = serializers.SerializerMethodField()
    order_number = serializers.CharField(source='order.order_number', read_only=True)
    assigned_user_name = serializers.CharField(source='assigned_user.username', read_only=True)

    class Meta:
        model = Return
        fields = [
            'id', 'return_number', 'customer', 'customer_name', 'order', 'order_number', 'case',
            'assigned_user', 'assigned_user_name', 'status', 'return_reason', 'priority',
            'tracking_number', 'tracking_carrier', 'shopify_return_name', 'shopify_status',
            'refund_status', 'requested_at', 'accepted_at', 'created_at', 'updated_at'
        ]

    def get_customer_name(self, obj):
        if obj.customer_id:
            return obj.customer.full_name or obj.customer.email
        return None


class ReturnSerializer(ReturnListSerializer):
    items = ReturnItemSerializer(many=True, required=False)
    total_value = serializers.SerializerMethodField()

    class Meta(ReturnListSerializer.Meta):
        fields = ReturnListSerializer.Meta.fields + [
            'other_reason', 'tracking_url', 'received_at', 'completed_at', 'refund_amount',
            'refund_method', 'shopify_return_id', 'synced_at', 'customer_notes', 'internal_notes',
            'condition_notes', 'tags', 'created_by', 'items', 'total_value'
        ]
        read_only_fields = [
            'return_number', 'shopify_return_id', 'shopify_return_name', 'shopify_status', 'synced_at',
            'accepted_at', 'received_at', 'completed_at', 'created_by', 'created_at', 'updated_at'
        ]

    def get_total_value(self, obj):
        return obj.get_total_value()

    def validate(self, attrs):
        if attrs.get('return_reason') == 'other' and not attrs.get('other_reason', getattr(self.instance, 'other_reason', '')):
            raise serializers.ValidationError({'other_reason': 'Describe the reason when return_reason is "other".'})
        return attrs

    def create(self, validated_data):
        items = validated_data.pop('items', [])
        if validated_data.get('order') and not validated_data.get('customer'):
            validated_data['customer'] = validated_data['order'].customer
        return create_return_with_items(validated_data, items)

    def update(self, instance, validated_data):
        # Items are edited through their own endpoints
        validated_data.pop('items', None)
        return super().update(instance, validated_data)

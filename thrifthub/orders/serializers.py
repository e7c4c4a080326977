from rest_framework import serializers
from .models import Order


class OrderListSerializer(serializers.ModelSerializer):
    customer_name = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'shopify_order_id', 'order_number', 'customer', 'customer_name', 'customer_email',
            'total_amount', 'currency', 'status', 'fulfillment_status', 'payment_status',
            'order_date', 'created_at', 'updated_at'
        ]

    def get_customer_name(self, obj):
        if obj.customer_id:
            return obj.customer.full_name or obj.customer.email
        return None


class OrderSerializer(OrderListSerializer):
    line_items = serializers.SerializerMethodField()
    shipping_address = serializers.SerializerMethodField()

    class Meta(OrderListSerializer.Meta):
        fields = OrderListSerializer.Meta.fields + ['line_items', 'shipping_address', 'order_data']
        read_only_fields = ['shopify_order_id', 'order_data', 'created_at', 'updated_at']

    def get_line_items(self, obj):
        return [
            {
                'title': item.get('title'),
                'sku': item.get('sku'),
                'quantity': item.get('quantity'),
                'price': item.get('price'),
            }
            for item in (obj.order_data or {}).get('line_items', [])
        ]

    def get_shipping_address(self, obj):
        return (obj.order_data or {}).get('shipping_address')

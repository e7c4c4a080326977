from django.db import transaction
from django.utils import timezone
from rest_framework import serializers

from thrifthub.core.utils import next_sequence_number
from .models import Supplier, PurchaseOrder, PurchaseOrderItem


def generate_po_number(year=None):
    year = year or timezone.now().year
    return next_sequence_number(PurchaseOrder, 'po_number', f"PO-{year}-", width=3)


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = ['id', 'supplier_number', 'name', 'contact_person', 'email', 'phone', 'address',
                  'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class PurchaseOrderItemSerializer(serializers.ModelSerializer):
    line_total = serializers.SerializerMethodField()

    class Meta:
        model = PurchaseOrderItem
        fields = ['id', 'sku', 'product_name', 'quantity', 'unit_price', 'line_total']

    def get_line_total(self, obj):
        return obj.get_line_total()

    def validate_unit_price(self, value):
        if value < 0:
            raise serializers.ValidationError('Must not be negative.')
        return value


class PurchaseOrderListSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source='supplier.name', read_only=True)
    supplier_number = serializers.CharField(source='supplier.supplier_number', read_only=True)

    class Meta:
        model = PurchaseOrder
        fields = [
            'id', 'po_number', 'title', 'supplier', 'supplier_name', 'supplier_number',
            'purchase_date', 'amount', 'currency', 'status', 'created_at', 'updated_at'
        ]


class PurchaseOrderSerializer(PurchaseOrderListSerializer):
    """
    Purchase order with items.

    Items are passed through context['items_data']; on update a list
    replaces the existing items, None leaves them alone. When no amount
    is given the item totals are used.
    """
    items = PurchaseOrderItemSerializer(many=True, read_only=True)
    created_by_name = serializers.CharField(source='created_by.username', read_only=True)

    class Meta(PurchaseOrderListSerializer.Meta):
        fields = PurchaseOrderListSerializer.Meta.fields + ['notes', 'created_by', 'created_by_name', 'items']
        read_only_fields = ['po_number', 'created_by', 'created_at', 'updated_at']
        extra_kwargs = {'amount': {'required': False}}

    def validate_amount(self, value):
        if value < 0:
            raise serializers.ValidationError('Must not be negative.')
        return value

    def _validated_items(self):
        items_data = self.context.get('items_data')
        if items_data is None:
            return None
        item_serializer = PurchaseOrderItemSerializer(data=items_data, many=True)
        item_serializer.is_valid(raise_exception=True)
        return item_serializer.validated_data

    def _replace_items(self, purchase_order, items):
        purchase_order.items.all().delete()
        for item in items:
            PurchaseOrderItem.objects.create(purchase_order=purchase_order, **item)

    @transaction.atomic
    def create(self, validated_data):
        items = self._validated_items() or []
        validated_data.setdefault('po_number', generate_po_number(validated_data['purchase_date'].year))
        if 'amount' not in validated_data:
            validated_data['amount'] = sum(item['quantity'] * item['unit_price'] for item in items)
        purchase_order = PurchaseOrder.objects.create(**validated_data)
        self._replace_items(purchase_order, items)
        return purchase_order

    @transaction.atomic
    def update(self, instance, validated_data):
        items = self._validated_items()
        instance = super().update(instance, validated_data)
        if items is not None:
            self._replace_items(instance, items)
            if 'amount' not in validated_data:
                instance.amount = instance.get_items_total()
                instance.save(update_fields=['amount', 'updated_at'])
        return instance

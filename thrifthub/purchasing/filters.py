import django_filters
from django.db.models import Q
from .models import PurchaseOrder


class PurchaseOrderFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    date_from = django_filters.DateFilter(field_name='purchase_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='purchase_date', lookup_expr='lte')

    class Meta:
        model = PurchaseOrder
        fields = ['status', 'supplier']

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(po_number__icontains=value) |
            Q(title__icontains=value) |
            Q(notes__icontains=value) |
            Q(supplier__name__icontains=value) |
            Q(items__product_name__icontains=value) |
            Q(items__sku__icontains=value)
        ).distinct()

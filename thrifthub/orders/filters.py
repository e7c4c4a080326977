import django_filters
from django.db.models import Q
from .models import Order


class OrderFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    status = django_filters.ChoiceFilter(choices=Order.STATUS_CHOICES)
    customer = django_filters.NumberFilter(field_name='customer_id')
    date_from = django_filters.DateFilter(field_name='order_date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='order_date', lookup_expr='date__lte')

    class Meta:
        model = Order
        fields = ['search', 'status', 'customer', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        value = value.strip().lstrip('#')
        if not value:
            return queryset
        return queryset.filter(
            Q(order_number__icontains=value) |
            Q(customer_email__icontains=value) |
            Q(customer__first_name__icontains=value) |
            Q(customer__last_name__icontains=value)
        )

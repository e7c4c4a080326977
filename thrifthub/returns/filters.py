import django_filters
from django.db.models import Q
from .models import Return


class ReturnFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    status = django_filters.ChoiceFilter(choices=Return.STATUS_CHOICES)
    customer = django_filters.NumberFilter(field_name='customer_id')
    order = django_filters.NumberFilter(field_name='order_id')
    case = django_filters.NumberFilter(field_name='case_id')
    assigned_user = django_filters.NumberFilter(field_name='assigned_user_id')

    class Meta:
        model = Return
        fields = ['search', 'status', 'customer', 'order', 'case', 'assigned_user']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        search = (
            Q(return_number__icontains=value) |
            Q(shopify_return_name__icontains=value) |
            Q(tracking_number__icontains=value) |
            Q(customer__email__icontains=value)
        )
        if value.lstrip('#'):
            search |= Q(order__order_number__icontains=value.lstrip('#'))
        return queryset.filter(search)

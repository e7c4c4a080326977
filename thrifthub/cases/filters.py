import django_filters
from django.db.models import Q
from thrifthub.core.models import PRIORITY_CHOICES
from .models import Case


class CaseFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    status = django_filters.ChoiceFilter(choices=Case.STATUS_CHOICES)
    priority = django_filters.ChoiceFilter(choices=PRIORITY_CHOICES)
    case_type = django_filters.ChoiceFilter(choices=Case.TYPE_CHOICES)
    assigned_user = django_filters.NumberFilter(field_name='assigned_user_id')
    customer = django_filters.NumberFilter(field_name='customer_id')
    archived = django_filters.BooleanFilter(field_name='archived')

    class Meta:
        model = Case
        fields = ['search', 'status', 'priority', 'case_type', 'assigned_user', 'customer', 'archived']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(case_number__icontains=value) |
            Q(title__icontains=value) |
            Q(customer_email__icontains=value)
        )

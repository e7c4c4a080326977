import django_filters
from django.db.models import Q
from .models import EmailThread


class EmailThreadFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    folder = django_filters.ChoiceFilter(
        choices=[('inbox', 'Inbox'), ('sent', 'Sent')],
        method='filter_folder',
    )
    unread = django_filters.BooleanFilter(field_name='is_unread')
    starred = django_filters.BooleanFilter(field_name='is_starred')

    class Meta:
        model = EmailThread
        fields = ['status', 'priority', 'assigned_user', 'customer', 'order', 'case']

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(subject__icontains=value) |
            Q(customer_email__icontains=value) |
            Q(messages__body__icontains=value)
        ).distinct()

    def filter_folder(self, queryset, name, value):
        return queryset.filter(messages__folder=value).distinct()

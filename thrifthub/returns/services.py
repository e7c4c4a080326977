"""Return numbering, creation and status bookkeeping"""
from django.db import transaction
from django.utils import timezone

from thrifthub.core.utils import next_sequence_number
from .models import Return, ReturnItem

# Date field stamped the first time a return enters a status
STATUS_DATE_FIELDS = {
    'onderweg': 'accepted_at',
    'ontvangen_controle': 'received_at',
    'klaar': 'completed_at',
}


def generate_return_number(year=None):
    year = year or timezone.now().year
    return next_sequence_number(Return, 'return_number', f"RET-{year}-", width=3)


@transaction.atomic
def create_return_with_items(return_data, items=None):
    """Create a return and its items in one transaction"""
    return_data = dict(return_data)
    return_data.setdefault('return_number', generate_return_number())
    return_data.setdefault('requested_at', timezone.now())
    return_request = Return.objects.create(**return_data)
    for item in items or []:
        ReturnItem.objects.create(return_request=return_request, **item)
    return return_request


def apply_status_dates(return_request, old_status):
    """Stamp accepted/received/completed dates when the status moves forward"""
    if return_request.status == old_status:
        return []
    field = STATUS_DATE_FIELDS.get(return_request.status)
    if field and getattr(return_request, field) is None:
        setattr(return_request, field, timezone.now())
        return [field]
    return []

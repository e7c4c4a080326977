"""Case numbering, lifecycle timestamps and linking"""
from django.db import transaction
from django.utils import timezone

from thrifthub.core.utils import next_sequence_number
from .models import Case, CaseLink

CASE_PREFIX = 'CASE-'


def generate_case_number():
    return next_sequence_number(Case, 'case_number', CASE_PREFIX, width=3)


def apply_status_timestamps(case, old_status):
    """Stamp resolved_at/closed_at when a case enters those states"""
    if case.status == old_status:
        return
    now = timezone.now()
    if case.status == 'resolved' and not case.resolved_at:
        case.resolved_at = now
    if case.status == 'closed' and not case.closed_at:
        case.closed_at = now


@transaction.atomic
def create_case(**fields):
    fields.setdefault('case_number', generate_case_number())
    return Case.objects.create(**fields)


def link_case(case, link_type, linked_id, user=None):
    link, _ = CaseLink.objects.get_or_create(
        case=case,
        link_type=link_type,
        linked_id=linked_id,
        defaults={'created_by': user if user and user.is_authenticated else None},
    )
    return link

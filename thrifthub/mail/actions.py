"""Creating and linking records from an email thread"""
import logging

from django.db import transaction

from thrifthub.cases.services import create_case, link_case
from thrifthub.repairs.services import create_repair
from thrifthub.returns.services import create_return_with_items
from .content_parser import extract_customer_info, extract_product_info
from .thread_parser import html_to_text

logger = logging.getLogger(__name__)


def first_inbound_message(thread):
    return thread.messages.filter(is_outbound=False).order_by('sent_at', 'created_at').first()


def message_text(message):
    if message is None:
        return ''
    return html_to_text(message.body) if message.is_html else message.body


@transaction.atomic
def create_case_from_thread(thread, user, data=None):
    """Open a case for the thread's customer and link the thread (and its order) to it"""
    data = data or {}
    case = create_case(
        title=data.get('title') or thread.subject or 'Email case',
        description=data.get('description') or message_text(first_inbound_message(thread))[:2000],
        priority=data.get('priority') or thread.priority,
        case_type=data.get('case_type') or 'general',
        source='email',
        customer=thread.customer,
        customer_email=thread.customer_email,
        created_by=user if user and user.is_authenticated else None,
    )
    link_case(case, 'email', thread.id, user=user)
    if thread.order_id:
        link_case(case, 'order', thread.order_id, user=user)

    thread.case = case
    thread.save(update_fields=['case', 'updated_at'])
    logger.info(f"Created case {case.case_number} from thread {thread.id}")
    return case


@transaction.atomic
def create_return_from_thread(thread, user, return_data, items=None):
    return_data = dict(return_data)
    return_data.setdefault('customer', thread.customer)
    return_data.setdefault('order', thread.order)
    return_data.setdefault('case', thread.case)
    if return_data.get('order') is not None and return_data.get('customer') is None:
        return_data['customer'] = return_data['order'].customer
    return_data['created_by'] = user if user and user.is_authenticated else None

    return_request = create_return_with_items(return_data, items)
    if return_request.case_id:
        link_case(return_request.case, 'return', return_request.id, user=user)

    thread.return_request = return_request
    thread.save(update_fields=['return_request', 'updated_at'])
    logger.info(f"Created return {return_request.return_number} from thread {thread.id}")
    return return_request


@transaction.atomic
def create_repair_from_thread(thread, user, fields):
    """
    Open a repair from a thread.

    Customer name, phone and product are filled in from the first
    customer message when the caller leaves them empty.
    """
    fields = dict(fields)
    text = message_text(first_inbound_message(thread))
    info = extract_customer_info(text, thread.customer_email)

    fields.setdefault('customer', thread.customer)
    fields.setdefault('order', thread.order)
    fields.setdefault('case', thread.case)
    fields['customer_email'] = fields.get('customer_email') or thread.customer_email
    fields['customer_name'] = fields.get('customer_name') or info['name'] or ''
    fields['customer_phone'] = fields.get('customer_phone') or info['phone'] or ''
    fields['product_name'] = fields.get('product_name') or extract_product_info(text) or ''
    fields.setdefault('title', thread.subject or 'Repair')

    repair = create_repair(user=user, **fields)
    if repair.case_id:
        link_case(repair.case, 'repair', repair.id, user=user)

    thread.repair = repair
    thread.save(update_fields=['repair', 'updated_at'])
    logger.info(f"Created repair {repair.id} from thread {thread.id}")
    return repair


def link_thread_to_order(thread, order):
    thread.order = order
    if thread.customer_id is None and order.customer_id:
        thread.customer = order.customer
    thread.save(update_fields=['order', 'customer', 'updated_at'])
    if thread.case_id:
        link_case(thread.case, 'order', order.id)
    return thread

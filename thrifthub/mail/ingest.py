"""Storing fetched messages and grouping them into threads"""
import hashlib
import logging
import re

from django.db import transaction
from django.utils import timezone

from thrifthub.customers.models import Customer
from thrifthub.orders.matching import OrderMatcher
from .models import EmailThread, EmailMessage, EmailAttachment
from .thread_parser import html_to_text

logger = logging.getLogger(__name__)

REPLY_PREFIX_RE = re.compile(r'^\s*(re|fw|fwd)\s*:\s*', re.IGNORECASE)
MAX_KEY_LENGTH = EmailThread._meta.get_field('thread_id').max_length
MAX_SUBJECT_LENGTH = EmailThread._meta.get_field('subject').max_length


def normalize_subject(subject):
    """Drop one leading reply/forward prefix and lowercase"""
    return REPLY_PREFIX_RE.sub('', subject or '', count=1).strip().lower()


def build_conversation_id(subject, from_email, to_email):
    """
    Stable key shared by every message of a conversation.

    'Re: Broken camera', a@x.nl, b@y.nl -> 'broken_camera|a@x.nl|b@y.nl'

    Keys longer than the thread_id column are cut and suffixed with a
    sha1 of the full key.
    """
    participants = sorted(email.strip().lower() for email in (from_email or '', to_email or ''))
    conversation = f"{normalize_subject(subject)}|{'|'.join(participants)}"
    conversation = re.sub(r'\s+', '_', conversation)
    if len(conversation) > MAX_KEY_LENGTH:
        digest = hashlib.sha1(conversation.encode('utf-8')).hexdigest()
        conversation = f"{conversation[:MAX_KEY_LENGTH - len(digest) - 1]}#{digest}"
    return conversation


def _auto_link_order(thread, body, subject):
    order = OrderMatcher().get_order_for_auto_link(body, thread.customer_email, subject)
    if order is not None:
        thread.order = order
        logger.info(f"Auto-linked thread {thread.id} to order #{order.order_number}")
    return order


@transaction.atomic
def ingest_message(message_id, subject, from_email, to_email, body, is_html=False,
                   folder='inbox', sent_at=None, from_name='', imap_uid=None,
                   is_outbound=None, attachments=None):
    """
    Store one message, creating or updating its thread.

    Returns (message, created). Messages already stored under message_id
    are returned untouched.
    """
    existing = EmailMessage.objects.filter(message_id=message_id).select_related('thread').first()
    if existing is not None:
        return existing, False

    from_email = (from_email or '').strip().lower()
    to_email = (to_email or '').strip().lower()
    if is_outbound is None:
        is_outbound = folder == 'sent'
    customer_email = to_email if is_outbound else from_email
    sent_at = sent_at or timezone.now()

    thread, thread_created = EmailThread.objects.get_or_create(
        thread_id=build_conversation_id(subject, from_email, to_email),
        defaults={
            'subject': (subject or '')[:MAX_SUBJECT_LENGTH],
            'customer_email': customer_email,
            'is_unread': not is_outbound,
            'last_activity': sent_at,
        },
    )

    if thread_created:
        thread.customer = Customer.objects.filter(email__iexact=customer_email).first()
    if thread.order_id is None:
        _auto_link_order(thread, html_to_text(body or '') if is_html else body, subject)

    message = EmailMessage.objects.create(
        message_id=message_id,
        thread=thread,
        from_email=from_email,
        from_name=from_name or '',
        to_email=to_email,
        subject=(subject or '')[:MAX_SUBJECT_LENGTH],
        body=body or '',
        is_html=is_html,
        is_outbound=is_outbound,
        folder=folder,
        imap_uid=imap_uid,
        sent_at=sent_at,
    )

    for attachment in attachments or []:
        EmailAttachment.objects.create(message=message, **attachment)
        thread.has_attachment = True

    if not thread.last_activity or sent_at > thread.last_activity:
        thread.last_activity = sent_at
    if not thread_created and not is_outbound:
        thread.is_unread = True
    thread.save()

    logger.debug(f"Stored message {message_id} in thread {thread.thread_id}")
    return message, True

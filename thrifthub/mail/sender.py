"""Outbound replies over SMTP"""
import logging
import smtplib

from django.conf import settings
from django.core.mail import EmailMessage as OutgoingEmail, make_msgid
from django.utils import timezone
from django.utils.html import strip_tags

from .models import EmailMessage

logger = logging.getLogger(__name__)


class EmailSendError(Exception):
    """Raised when the SMTP server rejects or cannot accept a message"""


def reply_subject(subject):
    subject = subject or ''
    return subject if subject.lower().startswith('re:') else f"Re: {subject}".strip()


def send_reply(thread, body, user=None, to_email=None, subject=None, is_html=False):
    """
    Send a reply on a thread and store it as an outbound message.

    In-Reply-To points at the newest stored message; References lists
    the whole chain so the customer's client threads the reply.
    """
    to_email = to_email or thread.customer_email
    if not to_email:
        raise EmailSendError('Thread has no recipient address')
    subject = reply_subject(subject or thread.subject)

    previous_ids = list(thread.messages.order_by('sent_at', 'created_at').values_list('message_id', flat=True))
    message_id = make_msgid(domain=settings.SUPPORT_MAILBOX.split('@')[-1])
    headers = {'Message-ID': message_id}
    if previous_ids:
        headers['In-Reply-To'] = previous_ids[-1]
        headers['References'] = ' '.join(previous_ids)

    outgoing = OutgoingEmail(
        subject=subject,
        body=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[to_email],
        headers=headers,
    )
    if is_html:
        outgoing.content_subtype = 'html'

    try:
        outgoing.send(fail_silently=False)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send reply on thread {thread.id}: {e}")
        raise EmailSendError(f"Failed to send email: {e}")

    now = timezone.now()
    message = EmailMessage.objects.create(
        message_id=message_id,
        thread=thread,
        from_email=settings.SUPPORT_MAILBOX,
        from_name=user.get_full_name() or user.username if user else '',
        to_email=to_email,
        subject=subject[:EmailMessage._meta.get_field('subject').max_length],
        body=body,
        is_html=is_html,
        is_outbound=True,
        folder='sent',
        sent_at=now,
    )
    thread.is_unread = False
    thread.last_activity = now
    thread.save(update_fields=['is_unread', 'last_activity', 'updated_at'])

    logger.info(f"Sent reply to {to_email} on thread {thread.id} ({len(strip_tags(body))} chars)")
    return message

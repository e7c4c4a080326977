"""
Incremental IMAP sync.

Each configured folder keeps the highest IMAP UID already stored in the
imap_last_uid_<folder> setting; a run only fetches UIDs above it.
"""
import email
import imaplib
import logging
from email import policy
from email.utils import parseaddr, parsedate_to_datetime, getaddresses

from django.conf import settings
from django.utils import timezone

from thrifthub.core.utils import get_setting, set_setting
from .ingest import ingest_message

logger = logging.getLogger(__name__)

LAST_UID_KEY = 'imap_last_uid_{folder}'


class MailboxError(Exception):
    """Raised when the IMAP server cannot be reached or rejects a command"""


class Mailbox:
    """Minimal imaplib wrapper exposing the calls the sync needs"""

    def __init__(self, host=None, port=None, user=None, password=None):
        self.host = host or settings.IMAP_HOST
        self.port = port or settings.IMAP_PORT
        self.user = user or settings.IMAP_USER
        self.password = password or settings.IMAP_PASSWORD
        self.connection = None

    @property
    def is_configured(self):
        return bool(self.host and self.user and self.password)

    def connect(self):
        if not self.is_configured:
            raise MailboxError('IMAP credentials are not configured')
        try:
            self.connection = imaplib.IMAP4_SSL(self.host, self.port)
            self.connection.login(self.user, self.password)
        except (imaplib.IMAP4.error, OSError) as e:
            self.connection = None
            raise MailboxError(f"IMAP connection failed: {e}")

    def logout(self):
        if self.connection is None:
            return
        try:
            self.connection.logout()
        except (imaplib.IMAP4.error, OSError) as e:
            logger.debug(f"IMAP logout failed: {e}")
        self.connection = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.logout()

    def _command(self, *args):
        try:
            typ, data = self.connection.uid(*args)
        except (imaplib.IMAP4.error, OSError) as e:
            raise MailboxError(f"IMAP {args[0]} failed: {e}")
        if typ != 'OK':
            raise MailboxError(f"IMAP {args[0]} returned {typ}")
        return data

    def select(self, folder):
        try:
            typ, data = self.connection.select(f'"{folder}"', readonly=True)
        except (imaplib.IMAP4.error, OSError) as e:
            raise MailboxError(f"Cannot open folder {folder}: {e}")
        if typ != 'OK':
            raise MailboxError(f"Cannot open folder {folder}: {data}")

    def uids_after(self, last_uid):
        """UIDs above last_uid in the selected folder, ascending"""
        criteria = f'UID {last_uid + 1}:*' if last_uid else 'ALL'
        data = self._command('SEARCH', None, criteria)
        uids = [int(uid) for uid in (data[0] or b'').split()]
        # "n:*" always matches the newest message, even below n
        return sorted(uid for uid in uids if uid > last_uid)

    def fetch(self, uid):
        """Raw RFC822 bytes of one message"""
        data = self._command('FETCH', str(uid), '(RFC822)')
        for part in data:
            if isinstance(part, tuple):
                return part[1]
        raise MailboxError(f"Message {uid} has no body")


def parse_mime_message(raw):
    """
    Pull the fields ingest_message needs out of a raw message.

    The HTML part is preferred over plain text.
    """
    message = email.message_from_bytes(raw, policy=policy.default)

    body_part = message.get_body(preferencelist=('html', 'plain'))
    body = body_part.get_content() if body_part is not None else ''
    is_html = body_part is not None and body_part.get_content_subtype() == 'html'

    attachments = []
    for part in message.iter_attachments():
        payload = part.get_payload(decode=True) or b''
        attachments.append({
            'filename': part.get_filename() or 'attachment',
            'content_type': part.get_content_type(),
            'size': len(payload),
            'content_id': (part.get('Content-ID') or '').strip('<>'),
            'is_inline': part.get_content_disposition() == 'inline',
        })

    from_name, from_email = parseaddr(str(message.get('From', '')))
    recipients = getaddresses([str(message.get('To', ''))])
    to_email = recipients[0][1] if recipients else ''

    sent_at = None
    if message.get('Date'):
        try:
            sent_at = parsedate_to_datetime(str(message['Date']))
        except (TypeError, ValueError):
            sent_at = None
        if sent_at is not None and timezone.is_naive(sent_at):
            sent_at = timezone.make_aware(sent_at)

    return {
        'message_id': str(message.get('Message-ID', '')).strip(),
        'subject': str(message.get('Subject', '')) or '(No Subject)',
        'from_email': from_email,
        'from_name': from_name or from_email.split('@')[0],
        'to_email': to_email,
        'body': body,
        'is_html': is_html,
        'sent_at': sent_at,
        'attachments': attachments,
    }


def get_last_uid(folder):
    value = get_setting(LAST_UID_KEY.format(folder=folder))
    return int(value) if value and str(value).isdigit() else 0


def sync_folder(mailbox, imap_folder, local_folder):
    """Ingest new messages of one folder. Returns the number stored."""
    mailbox.select(imap_folder)
    last_uid = get_last_uid(local_folder)
    uids = mailbox.uids_after(last_uid)
    if not uids:
        return 0

    logger.info(f"Found {len(uids)} new message(s) in {imap_folder}")
    synced = 0
    for uid in uids:
        try:
            fields = parse_mime_message(mailbox.fetch(uid))
            if not fields['message_id']:
                fields['message_id'] = f"imap-{local_folder}-{uid}"
            _, created = ingest_message(folder=local_folder, imap_uid=uid, **fields)
            # Advance per message so a crash never refetches stored mail
            set_setting(LAST_UID_KEY.format(folder=local_folder), uid)
            if created:
                synced += 1
        except MailboxError:
            raise
        except Exception as e:
            logger.error(f"Error processing message {uid} in {imap_folder}: {e}")
    return synced


def incremental_email_sync(mailbox=None):
    """Fetch new mail from every configured folder. Returns {'synced', 'errors'}."""
    mailbox = mailbox or Mailbox()
    errors = []
    synced = 0

    try:
        mailbox.connect()
    except MailboxError as e:
        logger.error(str(e))
        return {'synced': 0, 'errors': [str(e)]}

    try:
        for imap_folder, local_folder in settings.IMAP_FOLDERS:
            try:
                synced += sync_folder(mailbox, imap_folder, local_folder)
            except MailboxError as e:
                message = f"Failed to sync {imap_folder}: {e}"
                logger.error(message)
                errors.append(message)
    finally:
        mailbox.logout()

    logger.info(f"Email sync completed: {synced} new message(s), {len(errors)} error(s)")
    return {'synced': synced, 'errors': errors}

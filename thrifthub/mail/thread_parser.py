"""
Quoted-reply splitter.

A single stored email body usually carries the whole conversation below
the new reply. parse_email_thread cuts it at the quote headers mail
clients insert ("On Mon ... wrote:", "Le ... a écrit :", Outlook's
"Van: / Verzonden:") and returns the pieces oldest first.
"""
import logging
import re
from dataclasses import dataclass, asdict
from typing import List, Optional

from dateutil import parser as date_parser
from django.conf import settings

logger = logging.getLogger(__name__)

EMPTY_BODY = '(Geen inhoud)'

EMAIL_RE = re.compile(r'[\w.+-]+@[\w-]+\.[\w.-]+')

ON_WROTE_RE = re.compile(
    r'On\s+(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun)[^<\n]*(?:<([^>]+)>)?\s*wrote:',
    re.IGNORECASE,
)
FRENCH_WROTE_RE = re.compile(
    r'Le\s+\w+\.?\s+\d+\s+\w+\.?\s+\d{4}\s+à\s+[\d:]+,?\s*([\w.+-]+@[\w-]+\.[\w.-]+)\s*(?:<[^>]+>)?\s*a\s+écrit\s*:',
    re.IGNORECASE,
)
OUTLOOK_VAN_RE = re.compile(r'Van:\s*([^\n<]+)(?:<([^>]+)>)?\s*\nVerzonden:\s*([^\n]+)', re.IGNORECASE)
SIMPLE_VAN_RE = re.compile(r'Van:\s*[^\n<]*<([^>]+)>', re.IGNORECASE)

# Minimum distance between two headers before the simple "Van:" form counts
HEADER_PROXIMITY = 10

DATE_PATTERNS = [
    re.compile(r'(\d{1,2}\s+\w+\.?\s+\d{4})'),
    re.compile(r'(\w+\s+\d{1,2},?\s+\d{4})'),
    re.compile(r'(\d{4}-\d{2}-\d{2})'),
]

# dateutil only knows English month names
MONTH_NAMES = {
    'januari': 'january', 'februari': 'february', 'maart': 'march', 'mei': 'may',
    'juni': 'june', 'juli': 'july', 'augustus': 'august', 'oktober': 'october',
    'janvier': 'january', 'février': 'february', 'fevrier': 'february', 'mars': 'march',
    'avril': 'april', 'juin': 'june', 'juillet': 'july', 'août': 'august',
    'aout': 'august', 'septembre': 'september', 'octobre': 'october',
    'novembre': 'november', 'décembre': 'december', 'decembre': 'december',
}


@dataclass
class ParsedMessage:
    id: str
    from_email: str
    to_email: str
    body: str
    is_html: bool
    sent_at: Optional[str]
    is_quoted: bool
    original_index: int

    def to_dict(self):
        return asdict(self)


@dataclass
class _QuoteHeader:
    index: int
    end: int
    email: str
    date: Optional[str] = None


def extract_email(text):
    match = EMAIL_RE.search(text or '')
    return match.group(0) if match else None


def extract_date(text):
    """Parse the first recognisable date in text into an ISO-8601 string"""
    if not text:
        return None
    for pattern in DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        candidate = match.group(1).replace('.', '')
        words = [MONTH_NAMES.get(word.lower(), word) for word in candidate.split()]
        try:
            return date_parser.parse(' '.join(words)).isoformat()
        except (ValueError, OverflowError):
            continue
    return None


def html_to_text(html):
    """Flatten an HTML body to plain text, keeping line structure"""
    text = re.sub(r'<br\s*/?>', '\n', html, flags=re.IGNORECASE)
    text = re.sub(r'</p>', '\n\n', text, flags=re.IGNORECASE)
    text = re.sub(r'</div>', '\n', text, flags=re.IGNORECASE)
    text = re.sub(r'<[^>]+>', '', text)
    text = (text.replace('&nbsp;', ' ')
                .replace('&lt;', '<')
                .replace('&gt;', '>')
                .replace('&amp;', '&'))
    text = re.sub(r'[ \t\r\f\v]+', ' ', text)
    text = re.sub(r'\n\s+', '\n', text)
    return text.strip()


def find_quote_headers(text) -> List[_QuoteHeader]:
    headers = []

    for match in ON_WROTE_RE.finditer(text):
        email = match.group(1) or extract_email(match.group(0))
        if email:
            headers.append(_QuoteHeader(match.start(), match.end(), email.strip(), extract_date(match.group(0))))

    for match in FRENCH_WROTE_RE.finditer(text):
        headers.append(_QuoteHeader(match.start(), match.end(), match.group(1).strip(), extract_date(match.group(0))))

    for match in OUTLOOK_VAN_RE.finditer(text):
        email = match.group(2) or extract_email(match.group(1))
        if email:
            headers.append(_QuoteHeader(match.start(), match.end(), email.strip(), extract_date(match.group(3))))

    for match in SIMPLE_VAN_RE.finditer(text):
        if any(abs(header.index - match.start()) < HEADER_PROXIMITY for header in headers):
            continue
        headers.append(_QuoteHeader(match.start(), match.end(), match.group(1).strip()))

    headers.sort(key=lambda header: header.index)
    return headers


def parse_email_thread(body, is_html=False, original_email='', support_mailbox=None) -> List[ParsedMessage]:
    """
    Split an email body into the messages quoted inside it.

    Args:
        body: Raw body as stored
        is_html: Whether body is HTML; it is flattened before splitting
        original_email: Sender of the stored message, used for the newest part
        support_mailbox: Recipient recorded on every part; defaults to SUPPORT_MAILBOX

    Returns:
        List of ParsedMessage, oldest first.
    """
    to_email = support_mailbox or settings.SUPPORT_MAILBOX

    if not body or not body.strip():
        return [ParsedMessage('msg-0', original_email, to_email, EMPTY_BODY, False, None, False, 0)]

    text = html_to_text(body) if is_html else body
    headers = find_quote_headers(text)

    if not headers:
        return [ParsedMessage('msg-0', original_email, to_email, text, False, None, False, 0)]

    messages = []
    main_reply = text[:headers[0].index].strip()
    if main_reply:
        messages.append(ParsedMessage('msg-0', original_email, to_email, main_reply, False, None, False, 0))

    for position, header in enumerate(headers):
        next_index = headers[position + 1].index if position + 1 < len(headers) else len(text)
        segment = text[header.end:next_index].strip()
        if not segment:
            continue
        index = len(messages)
        messages.append(ParsedMessage(f'msg-{index}', header.email, to_email, segment,
                                      False, header.date, True, index))

    logger.debug(f"Split email body into {len(messages)} message(s)")
    messages.reverse()
    return messages

"""
Order auto-linking heuristics for inbound email.

Order numbers are pulled out of subject and body text and looked up
locally; when none of them resolve, the customer's most recent order is
used instead.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from .models import Order

logger = logging.getLogger(__name__)

# Highest priority first
ORDER_NUMBER_PATTERNS = [
    re.compile(r'#(\d{3,6})\b'),
    re.compile(r'\border\s*#?(\d{3,6})\b', re.IGNORECASE),
    re.compile(r'return\s+request\s*#?(\d{3,6})\b', re.IGNORECASE),
    re.compile(r'\b(\d{4,6})\b'),
]

MATCH_ORDER_NUMBER = 'order_number'
MATCH_EMAIL_FALLBACK = 'email_fallback'
MATCH_NONE = 'none'


@dataclass
class MatchResult:
    primary_match: Optional[Order] = None
    all_matches: List[Order] = field(default_factory=list)
    match_method: str = MATCH_NONE


def extract_order_numbers(text: str) -> List[str]:
    """All candidate order numbers in text, de-duplicated, in pattern priority order"""
    if not text:
        return []
    numbers = []
    for pattern in ORDER_NUMBER_PATTERNS:
        for match in pattern.finditer(text):
            number = match.group(1)
            if number not in numbers:
                numbers.append(number)
    return numbers


class OrderMatcher:
    """Resolves email content to local orders"""

    def match_by_order_number(self, number: str) -> Optional[Order]:
        order = Order.objects.filter(order_number=number).first()
        if order is None and len(number) < 4:
            order = Order.objects.filter(order_number=number.zfill(4)).first()
        return order

    def match_by_email(self, customer_email: str) -> List[Order]:
        if not customer_email:
            return []
        return list(
            Order.objects.filter(customer_email__iexact=customer_email.strip())
            .order_by('-order_date', '-created_at')
        )

    def match_orders(self, content: str, customer_email: str, subject: Optional[str] = None) -> MatchResult:
        search_text = f"{subject or ''}\n{content or ''}"
        numbers = extract_order_numbers(search_text)

        matches = []
        for number in numbers:
            order = self.match_by_order_number(number)
            if order is not None and order not in matches:
                matches.append(order)

        if matches:
            logger.debug(f"Matched {len(matches)} order(s) by number for {customer_email}: {numbers}")
            return MatchResult(primary_match=matches[0], all_matches=matches, match_method=MATCH_ORDER_NUMBER)

        email_matches = self.match_by_email(customer_email)
        if email_matches:
            logger.debug(f"Matched {len(email_matches)} order(s) by email for {customer_email}")
            return MatchResult(primary_match=email_matches[0], all_matches=email_matches, match_method=MATCH_EMAIL_FALLBACK)

        return MatchResult()

    def get_order_for_auto_link(self, content: str, customer_email: str, subject: Optional[str] = None) -> Optional[Order]:
        return self.match_orders(content, customer_email, subject).primary_match

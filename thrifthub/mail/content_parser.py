"""Regex extractors for customer details mentioned in email bodies"""
import re

ORDER_NUMBER_PATTERNS = [
    re.compile(r'#(\d{4,})'),
    re.compile(r'order[:\s#]+(\d{4,})', re.IGNORECASE),
    re.compile(r'bestelling[:\s#]+(\d{4,})', re.IGNORECASE),
    re.compile(r'ordernummer[:\s#]+(\d{4,})', re.IGNORECASE),
    re.compile(r'order\s+number[:\s#]+(\d{4,})', re.IGNORECASE),
]

NAME_PATTERNS = [
    re.compile(r'met\s+vriendelijke\s+groet,?\s*\n\s*([A-Z][a-zäöüß]+(?:[ \t]+[A-Z][a-zäöüß]+)+)', re.IGNORECASE),
    re.compile(r'best\s+regards,?\s*\n\s*([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)+)', re.IGNORECASE),
    re.compile(r'mvg,?\s*\n\s*([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)+)', re.IGNORECASE),
]

PHONE_PATTERNS = [
    re.compile(r'(\+31\s?[0-9]{1,2}\s?[0-9]{7,8})'),
    re.compile(r'(\+31\s?\([0-9]{1,2}\)\s?[0-9]{7,8})'),
    re.compile(r'(0[0-9]{1,2}[\s-]?[0-9]{7,8})'),
    re.compile(r'tel[:\s]+(\+?[0-9\s()-]+)', re.IGNORECASE),
    re.compile(r'phone[:\s]+(\+?[0-9\s()-]+)', re.IGNORECASE),
]

ADDRESS_PATTERNS = [
    re.compile(r'([A-Z][a-zäöüß]+(?:\s+[A-Z][a-zäöüß]+)*\s+\d+[a-z]?,?\s+\d{4}\s?[A-Z]{2}\s+[A-Z][a-zäöüß]+)', re.IGNORECASE),
    re.compile(r'adres[:\s]+(.+?\d{4}\s?[A-Z]{2})', re.IGNORECASE),
]

PRODUCT_PATTERNS = [
    re.compile(r'product[:\s]+(.+?)(?:\n|$)', re.IGNORECASE),
    re.compile(r'artikel[:\s]+(.+?)(?:\n|$)', re.IGNORECASE),
    re.compile(r'item[:\s]+(.+?)(?:\n|$)', re.IGNORECASE),
]


def _first_match(patterns, content):
    if not content:
        return None
    for pattern in patterns:
        match = pattern.search(content)
        if match and match.group(1) and match.group(1).strip():
            return match.group(1).strip()
    return None


def extract_order_number(content):
    return _first_match(ORDER_NUMBER_PATTERNS, content)


def extract_customer_name(email_body, from_email):
    """Name from the signature block, else the mailbox user name title-cased"""
    name = _first_match(NAME_PATTERNS, email_body)
    if name:
        return name
    if not from_email:
        return None
    username = from_email.split('@')[0]
    parts = [part for part in re.split(r'[._-]', username) if part]
    return ' '.join(part[:1].upper() + part[1:] for part in parts) or None


def extract_phone_number(content):
    return _first_match(PHONE_PATTERNS, content)


def extract_address(content):
    return _first_match(ADDRESS_PATTERNS, content)


def extract_product_info(content):
    return _first_match(PRODUCT_PATTERNS, content)


def extract_customer_info(email_body, from_email):
    return {
        'name': extract_customer_name(email_body, from_email),
        'phone': extract_phone_number(email_body),
        'address': extract_address(email_body),
    }

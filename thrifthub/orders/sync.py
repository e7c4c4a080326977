"""Incremental Shopify order sync"""
import logging
from datetime import timedelta, timezone as dt_timezone
from decimal import Decimal, ROUND_HALF_UP

from dateutil import parser as date_parser
from django.db import transaction
from django.utils import timezone

from thrifthub.core.utils import get_setting, set_setting, delete_setting
from thrifthub.customers.models import Customer
from .models import Order
from .shopify import ShopifyClient

logger = logging.getLogger(__name__)

ORDERS_LAST_SYNC_KEY = 'shopify_orders_last_sync'
INITIAL_SYNC_DAYS = 90


def map_shopify_status(financial_status, fulfillment_status):
    """Map Shopify financial/fulfillment status to a local order status"""
    if fulfillment_status == 'fulfilled':
        return 'delivered'
    if fulfillment_status == 'partial':
        return 'shipped'
    if financial_status in ('paid', 'authorized'):
        return 'processing' if fulfillment_status is None else 'shipped'
    if financial_status == 'pending':
        return 'pending'
    if financial_status == 'refunded':
        return 'refunded'
    if financial_status == 'voided':
        return 'cancelled'
    return 'pending'


def to_cents(amount):
    if amount in (None, ''):
        return 0
    return int((Decimal(str(amount)) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def parse_datetime(value):
    if not value:
        return None
    parsed = date_parser.parse(value)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def upsert_customer(shopify_customer):
    """Find or create the local customer for a Shopify customer payload"""
    if not shopify_customer or not shopify_customer.get('email'):
        return None

    email = shopify_customer['email'].strip().lower()
    shopify_id = str(shopify_customer['id']) if shopify_customer.get('id') else None
    first_name = shopify_customer.get('first_name') or ''
    last_name = shopify_customer.get('last_name') or ''

    customer = Customer.objects.filter(email__iexact=email).first()
    if customer is None:
        customer, _ = Customer.objects.get_or_create(
            email=email,
            defaults={
                'first_name': first_name,
                'last_name': last_name,
                'shopify_customer_id': shopify_id,
            },
        )
        return customer

    if shopify_id and customer.shopify_customer_id != shopify_id:
        customer.shopify_customer_id = shopify_id
        customer.first_name = first_name or customer.first_name
        customer.last_name = last_name or customer.last_name
        customer.save(update_fields=['shopify_customer_id', 'first_name', 'last_name', 'updated_at'])
    return customer


def upsert_order(shopify_order):
    """Create or update the local order for a Shopify order payload. Returns (order, created)."""
    customer = upsert_customer(shopify_order.get('customer'))
    order_number = str(shopify_order.get('name') or shopify_order.get('order_number') or '').lstrip('#')

    defaults = {
        'order_number': order_number,
        'customer': customer,
        'customer_email': (shopify_order.get('email') or (customer.email if customer else '') or ''),
        'total_amount': to_cents(shopify_order.get('total_price')),
        'currency': shopify_order.get('currency') or 'EUR',
        'status': map_shopify_status(shopify_order.get('financial_status'), shopify_order.get('fulfillment_status')),
        'fulfillment_status': shopify_order.get('fulfillment_status'),
        'payment_status': shopify_order.get('financial_status'),
        'order_data': shopify_order,
        'order_date': parse_datetime(shopify_order.get('created_at')),
    }
    return Order.objects.update_or_create(
        shopify_order_id=str(shopify_order['id']),
        defaults=defaults,
    )


def get_orders_cursor():
    value = get_setting(ORDERS_LAST_SYNC_KEY)
    if value:
        return parse_datetime(value)
    return timezone.now() - timedelta(days=INITIAL_SYNC_DAYS)


def reset_orders_cursor():
    delete_setting(ORDERS_LAST_SYNC_KEY)


def sync_shopify_orders(client=None, on_progress=None):
    """
    Pull orders updated since the last sync and upsert them locally.

    The cursor is set to the time the sync started so orders updated
    while the sync was running are picked up next time.
    """
    client = client or ShopifyClient()
    since = get_orders_cursor()
    sync_started = timezone.now()

    logger.info(f"Starting Shopify orders sync since {since.isoformat()}")
    shopify_orders = client.get_orders_since(since)

    created = 0
    updated = 0
    skipped = 0
    total = len(shopify_orders)

    for index, shopify_order in enumerate(shopify_orders, start=1):
        if on_progress:
            on_progress(index, total, f"Processing order {index}/{total}")
        try:
            with transaction.atomic():
                order, was_created = upsert_order(shopify_order)
            if was_created:
                created += 1
            else:
                updated += 1
            logger.debug(f"{'Created' if was_created else 'Updated'} order #{order.order_number}")
        except Exception as e:
            skipped += 1
            logger.error(f"Error processing Shopify order {shopify_order.get('name') or shopify_order.get('id')}: {e}")

    set_setting(ORDERS_LAST_SYNC_KEY, sync_started.isoformat())

    summary = {'total': total, 'created': created, 'updated': updated, 'skipped': skipped}
    logger.info(f"Shopify orders sync completed: {summary}")
    return summary

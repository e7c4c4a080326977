"""
Shopify returns sync.

New Shopify returns are created locally. Existing local returns keep
their local state; the only automatic transition is nieuw -> onderweg
once Shopify reports the return as OPEN.
"""
import logging
from datetime import timedelta

from django.utils import timezone

from thrifthub.core.utils import set_setting
from thrifthub.orders.models import Order
from thrifthub.orders.shopify import ShopifyClient, gid_tail
from thrifthub.orders.sync import to_cents, parse_datetime
from .models import Return
from .services import create_return_with_items

logger = logging.getLogger(__name__)

RETURNS_LAST_SYNC_KEY = 'shopify_returns_last_sync'
RETURNS_LOOKBACK_DAYS = 365

SHOPIFY_STATUS_MAP = {
    'REQUESTED': 'nieuw',
    'OPEN': 'onderweg',
    'INSPECTION': 'ontvangen_controle',
    'CLOSED': 'klaar',
    'CANCELLED': 'niet_ontvangen',
    'CANCELED': 'niet_ontvangen',
    'DECLINED': 'niet_ontvangen',
}

INACTIVE_SHOPIFY_STATUSES = ('CLOSED', 'CANCELLED', 'CANCELED', 'DECLINED')


def map_return_status(shopify_status):
    normalized = (shopify_status or '').upper()
    status = SHOPIFY_STATUS_MAP.get(normalized)
    if status is None:
        logger.warning(f"Unknown Shopify return status '{shopify_status}', defaulting to 'nieuw'")
        return 'nieuw'
    return status


def map_shopify_return(shopify_return):
    """Build (return_data, items) for a normalized Shopify return"""
    order = None
    shopify_order_id = gid_tail((shopify_return.get('order') or {}).get('id'))
    if shopify_order_id:
        order = Order.objects.filter(shopify_order_id=shopify_order_id).select_related('customer').first()
        if order is None:
            logger.info(f"Order {shopify_return['order'].get('name')} (Shopify ID {shopify_order_id}) not found locally; "
                        f"return {shopify_return.get('name')} will be created without order link")

    shopify_status = (shopify_return.get('status') or '').upper()
    return_data = {
        'shopify_return_id': shopify_return['id'],
        'shopify_return_name': shopify_return.get('name') or '',
        'shopify_status': shopify_status,
        'synced_at': timezone.now(),
        'order': order,
        'customer': order.customer if order else None,
        'status': map_return_status(shopify_status),
        'requested_at': parse_datetime(shopify_return.get('order_created_at')) or timezone.now(),
        'refund_status': 'completed' if shopify_status in ('CLOSED', 'COMPLETE') else 'pending',
    }

    items = []
    notes = []
    for line_item in shopify_return.get('line_items', []):
        quantity = line_item.get('quantity') or 1
        items.append({
            'sku': line_item.get('sku') or '',
            'product_name': line_item.get('title') or f"Retour item ({quantity}x)",
            'quantity': quantity,
            'unit_price': to_cents(line_item.get('unit_price')),
            'restockable': (line_item.get('refundable_quantity') or 0) > 0,
        })
        if line_item.get('customer_note'):
            notes.append(line_item['customer_note'])
        if line_item.get('return_reason_note'):
            notes.append(f"Reden: {line_item['return_reason_note']}")

    return_data['customer_notes'] = '\n'.join(notes)
    return return_data, items


def sync_shopify_returns(client=None, on_progress=None):
    """Pull returns for orders updated in the last year and reconcile them"""
    client = client or ShopifyClient()
    since = timezone.now() - timedelta(days=RETURNS_LOOKBACK_DAYS)

    logger.info(f"Starting Shopify returns sync since {since.isoformat()}")
    shopify_returns = client.get_returns_since(since)

    created = 0
    updated = 0
    skipped = 0
    total = len(shopify_returns)

    for index, shopify_return in enumerate(shopify_returns, start=1):
        if on_progress:
            on_progress(index, total, f"Processing return {index}/{total}")
        try:
            shopify_status = (shopify_return.get('status') or '').upper()
            existing = Return.objects.filter(shopify_return_id=shopify_return['id']).first()

            if existing:
                if existing.status == 'nieuw' and shopify_status == 'OPEN':
                    now = timezone.now()
                    existing.status = 'onderweg'
                    existing.accepted_at = now
                    existing.shopify_status = shopify_status
                    existing.synced_at = now
                    existing.save(update_fields=['status', 'accepted_at', 'shopify_status', 'synced_at', 'updated_at'])
                    updated += 1
                    logger.info(f"Updated {existing.return_number}: nieuw -> onderweg (Shopify: OPEN)")
                else:
                    skipped += 1
                    logger.debug(f"Skipping {existing.return_number}: local status '{existing.status}' preserved")
                continue

            if shopify_status in INACTIVE_SHOPIFY_STATUSES:
                skipped += 1
                logger.debug(f"Skipping {shopify_status} return {shopify_return.get('name')}: not active")
                continue

            return_data, items = map_shopify_return(shopify_return)
            new_return = create_return_with_items(return_data, items)
            created += 1
            logger.info(f"Created return {new_return.return_number} from Shopify {shopify_return.get('name')} "
                        f"with {len(items)} items")
        except Exception as e:
            skipped += 1
            logger.error(f"Error processing Shopify return {shopify_return.get('name')}: {e}")

    set_setting(RETURNS_LAST_SYNC_KEY, timezone.now().isoformat())

    summary = {'total': total, 'created': created, 'updated': updated, 'skipped': skipped}
    logger.info(f"Shopify returns sync completed: {summary}")
    return summary

"""Shopify return webhooks: signature validation and processing"""
import base64
import hashlib
import hmac
import logging

from django.utils import timezone

from thrifthub.orders.shopify import ShopifyClient, ShopifyAPIError
from .models import Return
from .services import create_return_with_items
from .sync import map_shopify_return, map_return_status

logger = logging.getLogger(__name__)

HMAC_HEADER = 'HTTP_X_SHOPIFY_HMAC_SHA256'
TOPIC_HEADER = 'HTTP_X_SHOPIFY_TOPIC'
SHOP_HEADER = 'HTTP_X_SHOPIFY_SHOP_DOMAIN'


def validate_shopify_webhook(raw_body, hmac_header, secret):
    """True when hmac_header is the base64 HMAC-SHA256 of raw_body under secret"""
    if not hmac_header:
        logger.error("Missing X-Shopify-Hmac-Sha256 header")
        return False
    if isinstance(raw_body, str):
        raw_body = raw_body.encode('utf-8')
    digest = hmac.new(secret.encode('utf-8'), raw_body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode('ascii')
    valid = hmac.compare_digest(expected.encode('ascii'), hmac_header.strip().encode('ascii', 'ignore'))
    if not valid:
        logger.error(f"Invalid webhook HMAC signature (received {hmac_header[:10]}...)")
    return valid


def get_webhook_topic(request):
    return request.META.get(TOPIC_HEADER)


def get_webhook_shop(request):
    return request.META.get(SHOP_HEADER)


def return_gid_from_payload(payload):
    """Webhook payloads carry either the GraphQL id or the numeric id"""
    gid = payload.get('admin_graphql_api_id')
    if gid:
        return gid
    return_id = payload.get('id')
    if return_id is None:
        return None
    return_id = str(return_id)
    return return_id if return_id.startswith('gid://') else f"gid://shopify/Return/{return_id}"


def process_return_webhook(return_gid, client=None):
    """Fetch a return by id and create or update it locally"""
    client = client or ShopifyClient()
    try:
        shopify_return = client.get_return(return_gid)
        logger.info(f"Processing return webhook for {shopify_return.get('name')} ({shopify_return.get('status')})")

        existing = Return.objects.filter(shopify_return_id=shopify_return['id']).first()
        if existing:
            existing.status = map_return_status(shopify_return.get('status'))
            existing.shopify_status = (shopify_return.get('status') or '').upper()
            existing.synced_at = timezone.now()
            existing.save(update_fields=['status', 'shopify_status', 'synced_at', 'updated_at'])
            logger.info(f"Updated return {existing.return_number} from webhook")
            return {'success': True, 'return_number': existing.return_number}

        return_data, items = map_shopify_return(shopify_return)
        new_return = create_return_with_items(return_data, items)
        logger.info(f"Created return {new_return.return_number} from webhook with {len(items)} items")
        return {'success': True, 'return_number': new_return.return_number}
    except ShopifyAPIError as e:
        logger.error(f"Error processing return webhook {return_gid}: {e}")
        return {'success': False, 'error': str(e)}

"""
Shopify Admin API client.

REST is used for orders and customers, GraphQL for returns (the REST API
does not expose them). Every call raises ShopifyAPIError on failure.
"""
import logging
import re

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

ORDERS_PAGE_SIZE = 250
RETURN_ORDERS_PAGE_SIZE = 50

NEXT_LINK_RE = re.compile(r'<([^>]+)>;\s*rel="next"')

RETURN_FIELDS = """
    id
    name
    status
    order { id name createdAt }
    returnLineItems(first: 50) {
      nodes {
        ... on ReturnLineItem {
          id
          quantity
          refundableQuantity
          customerNote
          returnReasonNote
          fulfillmentLineItem {
            lineItem {
              title
              sku
              originalUnitPriceSet { shopMoney { amount } }
            }
          }
        }
      }
    }
"""

RETURNS_SINCE_QUERY = """
query ordersWithReturns($first: Int!, $after: String, $query: String) {
  orders(first: $first, after: $after, query: $query) {
    pageInfo { hasNextPage endCursor }
    nodes {
      id
      name
      createdAt
      returns(first: 20) {
        nodes {
%s
        }
      }
    }
  }
}
""" % RETURN_FIELDS

RETURN_BY_ID_QUERY = """
query getReturn($id: ID!) {
  return(id: $id) {
%s
  }
}
""" % RETURN_FIELDS


class ShopifyAPIError(Exception):
    """Raised when the Shopify API returns an error or cannot be reached"""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


def gid_tail(gid):
    """'gid://shopify/Order/123' -> '123'"""
    if not gid:
        return None
    return str(gid).rstrip('/').split('/')[-1]


def normalize_return(node, order_node=None):
    """Flatten a GraphQL Return node into the dict shape the sync code consumes"""
    order = node.get('order') or order_node or {}
    line_items = []
    for item in (node.get('returnLineItems') or {}).get('nodes', []):
        if not item:
            continue
        line_item = (item.get('fulfillmentLineItem') or {}).get('lineItem') or {}
        price_set = line_item.get('originalUnitPriceSet') or {}
        line_items.append({
            'id': item.get('id'),
            'quantity': item.get('quantity') or 0,
            'refundable_quantity': item.get('refundableQuantity') or 0,
            'customer_note': item.get('customerNote'),
            'return_reason_note': item.get('returnReasonNote'),
            'title': line_item.get('title'),
            'sku': line_item.get('sku'),
            'unit_price': (price_set.get('shopMoney') or {}).get('amount'),
        })
    return {
        'id': node.get('id'),
        'name': node.get('name'),
        'status': (node.get('status') or '').upper(),
        'order': {'id': order.get('id'), 'name': order.get('name')},
        'order_created_at': order.get('createdAt'),
        'line_items': line_items,
    }


class ShopifyClient:
    """Thin wrapper around the Shopify Admin REST and GraphQL APIs"""

    def __init__(self, shop_domain=None, access_token=None, api_version=None, timeout=None):
        self.shop_domain = shop_domain or settings.SHOPIFY_SHOP_DOMAIN
        self.access_token = access_token or settings.SHOPIFY_ACCESS_TOKEN
        self.api_version = api_version or settings.SHOPIFY_API_VERSION
        self.timeout = timeout or settings.SHOPIFY_REQUEST_TIMEOUT
        self.session = requests.Session()
        self.session.headers.update({
            'X-Shopify-Access-Token': self.access_token,
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        })

    @property
    def is_configured(self):
        return bool(self.shop_domain and self.access_token)

    @property
    def base_url(self):
        domain = self.shop_domain
        if not domain.endswith('.myshopify.com'):
            domain = f"{domain}.myshopify.com"
        return f"https://{domain}/admin/api/{self.api_version}"

    def _request(self, method, url, **kwargs):
        if not self.is_configured:
            raise ShopifyAPIError('Shopify credentials are not configured')
        if not url.startswith('http'):
            url = f"{self.base_url}{url}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ShopifyAPIError(f"Shopify request failed: {e}")
        if not response.ok:
            raise ShopifyAPIError(
                f"Shopify API error: {response.status_code} {response.reason}",
                status_code=response.status_code,
            )
        return response

    def get_shop(self):
        return self._request('GET', '/shop.json').json().get('shop', {})

    def get_orders_since(self, since, on_progress=None):
        """All orders updated since the given datetime, following Link pagination"""
        params = {
            'status': 'any',
            'limit': ORDERS_PAGE_SIZE,
            'updated_at_min': since.isoformat(),
        }
        orders = []
        url = '/orders.json'
        while url:
            response = self._request('GET', url, params=params)
            orders.extend(response.json().get('orders', []))
            if on_progress:
                on_progress(len(orders))
            match = NEXT_LINK_RE.search(response.headers.get('Link', ''))
            url = match.group(1) if match else None
            # The next-page URL already carries page_info; Shopify rejects extra filters
            params = None
        logger.info(f"Fetched {len(orders)} orders from Shopify since {since.isoformat()}")
        return orders

    def get_order(self, order_id):
        return self._request('GET', f'/orders/{order_id}.json').json().get('order')

    def get_customers(self, limit=ORDERS_PAGE_SIZE):
        return self._request('GET', '/customers.json', params={'limit': limit}).json().get('customers', [])

    def graphql(self, query, variables=None):
        response = self._request('POST', '/graphql.json', json={'query': query, 'variables': variables or {}})
        payload = response.json()
        if payload.get('errors'):
            messages = '; '.join(str(e.get('message', e)) for e in payload['errors'])
            raise ShopifyAPIError(f"Shopify GraphQL error: {messages}")
        return payload.get('data') or {}

    def get_returns_since(self, since, on_progress=None):
        """Returns attached to orders updated since the given datetime"""
        returns = []
        cursor = None
        search = f"updated_at:>='{since.strftime('%Y-%m-%dT%H:%M:%SZ')}'"
        while True:
            data = self.graphql(RETURNS_SINCE_QUERY, {
                'first': RETURN_ORDERS_PAGE_SIZE,
                'after': cursor,
                'query': search,
            })
            orders = data.get('orders') or {}
            for order_node in orders.get('nodes', []):
                for return_node in (order_node.get('returns') or {}).get('nodes', []):
                    returns.append(normalize_return(return_node, order_node))
            if on_progress:
                on_progress(len(returns))
            page_info = orders.get('pageInfo') or {}
            if not page_info.get('hasNextPage'):
                break
            cursor = page_info.get('endCursor')
        logger.info(f"Fetched {len(returns)} returns from Shopify since {since.isoformat()}")
        return returns

    def get_return(self, return_gid):
        data = self.graphql(RETURN_BY_ID_QUERY, {'id': return_gid})
        node = data.get('return')
        if not node:
            raise ShopifyAPIError(f"Return {return_gid} not found", status_code=404)
        return normalize_return(node)

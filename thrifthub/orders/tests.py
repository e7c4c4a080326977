"""
Test suite for Orders module
Tests: Shopify status mapping, order matching, incremental sync, Shopify client, order API
"""
from unittest.mock import MagicMock, patch

from django.core.cache import cache
from django.test import TestCase, SimpleTestCase, override_settings
from django.utils import timezone
from rest_framework import status
from thrifthub.core.models import AuditLog
from thrifthub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from thrifthub.core.utils import get_setting
from thrifthub.customers.models import Customer
from thrifthub.orders.matching import OrderMatcher, extract_order_numbers
from thrifthub.orders.models import Order
from thrifthub.orders.shopify import ShopifyClient, ShopifyAPIError, gid_tail
from thrifthub.orders.sync import (
    map_shopify_status, to_cents, sync_shopify_orders, ORDERS_LAST_SYNC_KEY
)


def shopify_order(order_id, name, email='klant@example.com', total='149.95',
                  financial_status='paid', fulfillment_status=None):
    return {
        'id': order_id,
        'name': name,
        'email': email,
        'total_price': total,
        'currency': 'EUR',
        'financial_status': financial_status,
        'fulfillment_status': fulfillment_status,
        'created_at': '2025-03-01T12:00:00+01:00',
        'customer': {'id': 555, 'email': email, 'first_name': 'Jan', 'last_name': 'Jansen'},
        'line_items': [{'title': 'Canon AE-1', 'sku': 'CAM-1', 'quantity': 1, 'price': total}],
    }


class FakeShopifyClient:
    def __init__(self, orders=None, error=None):
        self.orders = orders or []
        self.error = error
        self.since = None

    def get_orders_since(self, since, on_progress=None):
        self.since = since
        if self.error:
            raise self.error
        return self.orders


class StatusMappingTests(SimpleTestCase):
    """Test Shopify to local status mapping"""

    def test_fulfilled_is_delivered(self):
        """Test fulfilled orders are delivered regardless of payment"""
        self.assertEqual(map_shopify_status('paid', 'fulfilled'), 'delivered')

    def test_partial_is_shipped(self):
        """Test partially fulfilled orders are shipped"""
        self.assertEqual(map_shopify_status('paid', 'partial'), 'shipped')

    def test_paid_unfulfilled_is_processing(self):
        """Test paid orders without fulfillment are processing"""
        self.assertEqual(map_shopify_status('paid', None), 'processing')
        self.assertEqual(map_shopify_status('authorized', None), 'processing')

    def test_financial_states(self):
        """Test pending, refunded and voided"""
        self.assertEqual(map_shopify_status('pending', None), 'pending')
        self.assertEqual(map_shopify_status('refunded', None), 'refunded')
        self.assertEqual(map_shopify_status('voided', None), 'cancelled')
        self.assertEqual(map_shopify_status('something_new', None), 'pending')

    def test_to_cents(self):
        """Test decimal strings are converted to integer cents"""
        self.assertEqual(to_cents('149.95'), 14995)
        self.assertEqual(to_cents('0.1'), 10)
        self.assertEqual(to_cents(None), 0)

    def test_to_cents_is_exact(self):
        """Test half-cent amounts round up instead of drifting through floats"""
        self.assertEqual(to_cents('1.005'), 101)
        self.assertEqual(to_cents('19999999.99'), 1999999999)
        self.assertEqual(to_cents(12.5), 1250)

    def test_gid_tail(self):
        """Test numeric ids are taken from GraphQL ids"""
        self.assertEqual(gid_tail('gid://shopify/Order/123'), '123')
        self.assertIsNone(gid_tail(None))


class OrderMatcherTests(TestCase):
    """Test order number extraction and matching"""

    def test_extract_order_numbers_priority(self):
        """Test candidates are de-duplicated in pattern priority order"""
        text = 'Re: order #10935 and return request 4521'
        self.assertEqual(extract_order_numbers(text), ['10935', '4521'])

    def test_extract_no_numbers(self):
        """Test empty input yields no candidates"""
        self.assertEqual(extract_order_numbers(''), [])

    def test_match_by_order_number(self):
        """Test a number in the body resolves to the order"""
        order = TestDataFactory.create_order(order_number='10935')
        result = OrderMatcher().match_orders('Waar blijft #10935?', 'klant@example.com')
        self.assertEqual(result.primary_match, order)
        self.assertEqual(result.match_method, 'order_number')

    def test_short_numbers_are_zero_padded(self):
        """Test three digit numbers also match zero-padded order numbers"""
        order = TestDataFactory.create_order(order_number='0123')
        self.assertEqual(OrderMatcher().match_by_order_number('123'), order)

    def test_email_fallback_uses_latest_order(self):
        """Test the customer's newest order is used when no number matches"""
        TestDataFactory.create_order(customer_email='klant@example.com', order_date='2025-01-01T10:00:00Z')
        newest = TestDataFactory.create_order(customer_email='klant@example.com', order_date='2025-03-01T10:00:00Z')
        result = OrderMatcher().match_orders('Hallo', 'Klant@Example.com', 'Vraag')
        self.assertEqual(result.primary_match, newest)
        self.assertEqual(result.match_method, 'email_fallback')
        self.assertEqual(len(result.all_matches), 2)

    def test_no_match(self):
        """Test nothing matches for unknown senders"""
        result = OrderMatcher().match_orders('Hallo', 'onbekend@example.com')
        self.assertIsNone(result.primary_match)
        self.assertEqual(result.match_method, 'none')


class OrderSyncTests(TestCase):
    """Test incremental Shopify order sync"""

    def test_sync_creates_orders_and_customers(self):
        """Test new Shopify orders and customers are created locally"""
        client = FakeShopifyClient([shopify_order(1001, '#1001'), {'name': '#broken'}])
        summary = sync_shopify_orders(client=client)

        self.assertEqual(summary, {'total': 2, 'created': 1, 'updated': 0, 'skipped': 1})
        order = Order.objects.get(shopify_order_id='1001')
        self.assertEqual(order.order_number, '1001')
        self.assertEqual(order.total_amount, 14995)
        self.assertEqual(order.status, 'processing')
        self.assertEqual(order.customer.shopify_customer_id, '555')
        self.assertIsNotNone(get_setting(ORDERS_LAST_SYNC_KEY))

    def test_sync_updates_existing_orders(self):
        """Test re-synced orders are updated in place"""
        sync_shopify_orders(client=FakeShopifyClient([shopify_order(1001, '#1001')]))
        summary = sync_shopify_orders(client=FakeShopifyClient(
            [shopify_order(1001, '#1001', fulfillment_status='fulfilled')]
        ))
        self.assertEqual(summary['updated'], 1)
        self.assertEqual(Order.objects.get(shopify_order_id='1001').status, 'delivered')
        self.assertEqual(Customer.objects.count(), 1)

    def test_sync_uses_saved_cursor(self):
        """Test the next sync starts from the stored cursor"""
        sync_shopify_orders(client=FakeShopifyClient())
        cursor = get_setting(ORDERS_LAST_SYNC_KEY)
        client = FakeShopifyClient()
        sync_shopify_orders(client=client)
        self.assertEqual(client.since.isoformat(), cursor)

    def test_sync_error_propagates(self):
        """Test API failures propagate and leave the cursor untouched"""
        with self.assertRaises(ShopifyAPIError):
            sync_shopify_orders(client=FakeShopifyClient(error=ShopifyAPIError('boom', 500)))
        self.assertIsNone(get_setting(ORDERS_LAST_SYNC_KEY))


class ShopifyClientTests(SimpleTestCase):
    """Test the Shopify REST client"""

    def make_response(self, payload, link=''):
        response = MagicMock()
        response.ok = True
        response.json.return_value = payload
        response.headers = {'Link': link} if link else {}
        return response

    def test_unconfigured_client_raises(self):
        """Test calls fail cleanly without credentials"""
        client = ShopifyClient(shop_domain='', access_token='')
        client.shop_domain = ''
        client.access_token = ''
        with self.assertRaises(ShopifyAPIError):
            client.get_shop()

    def test_base_url(self):
        """Test bare shop names get the myshopify domain"""
        client = ShopifyClient(shop_domain='dutchthrift', access_token='token', api_version='2024-10')
        self.assertEqual(client.base_url, 'https://dutchthrift.myshopify.com/admin/api/2024-10')

    def test_orders_follow_link_pagination(self):
        """Test Link rel=next pages are followed"""
        client = ShopifyClient(shop_domain='dutchthrift', access_token='token')
        next_url = 'https://dutchthrift.myshopify.com/admin/api/2024-10/orders.json?page_info=abc'
        responses = [
            self.make_response({'orders': [{'id': 1}]}, link=f'<{next_url}>; rel="next"'),
            self.make_response({'orders': [{'id': 2}]}),
        ]
        with patch.object(client.session, 'request', side_effect=responses) as mock_request:
            orders = client.get_orders_since(timezone.now())
        self.assertEqual([o['id'] for o in orders], [1, 2])
        self.assertEqual(mock_request.call_args_list[1].args[1], next_url)
        self.assertIsNone(mock_request.call_args_list[1].kwargs['params'])

    def test_http_error_raises(self):
        """Test non-2xx responses raise ShopifyAPIError with the status code"""
        client = ShopifyClient(shop_domain='dutchthrift', access_token='token')
        response = MagicMock(ok=False, status_code=401, reason='Unauthorized')
        with patch.object(client.session, 'request', return_value=response):
            with self.assertRaises(ShopifyAPIError) as ctx:
                client.get_shop()
        self.assertEqual(ctx.exception.status_code, 401)

    def test_graphql_errors_raise(self):
        """Test GraphQL error payloads raise"""
        client = ShopifyClient(shop_domain='dutchthrift', access_token='token')
        response = self.make_response({'errors': [{'message': 'Access denied'}]})
        with patch.object(client.session, 'request', return_value=response):
            with self.assertRaises(ShopifyAPIError):
                client.graphql('{ shop { name } }')


class OrderAPITests(TestCase):
    """Test Order API endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_list_and_search(self):
        """Test searching orders with a leading #"""
        TestDataFactory.create_order(order_number='1001')
        TestDataFactory.create_order(order_number='2002')
        response = self.client.get('/api/v1/orders/', {'search': '#1001'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_filter_by_status(self):
        """Test status filter"""
        TestDataFactory.create_order(status='shipped')
        TestDataFactory.create_order(status='processing')
        response = self.client.get('/api/v1/orders/', {'status': 'shipped'})
        self.assertEqual(response.data['count'], 1)

    def test_detail_line_items(self):
        """Test detail exposes line items from the Shopify payload"""
        order = TestDataFactory.create_order(order_data={'line_items': [{'title': 'Lens', 'sku': 'L1', 'quantity': 1, 'price': '50.00'}]})
        response = self.client.get(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['line_items'][0]['title'], 'Lens')

    def test_patch_status_audited(self):
        """Test status changes are written to the audit log"""
        order = TestDataFactory.create_order(status='processing')
        response = self.client.patch(f'/api/v1/orders/{order.id}/', {'status': 'shipped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(AuditLog.objects.filter(model_name='Order', action='status_change').exists())

    def test_viewer_cannot_patch(self):
        """Test viewers cannot change orders"""
        order = TestDataFactory.create_order()
        self.client.authenticate_user(TestDataFactory.create_user(role='viewer'))
        response = self.client.patch(f'/api/v1/orders/{order.id}/', {'status': 'shipped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_stats(self):
        """Test counts per status and total amount"""
        TestDataFactory.create_order(status='shipped', total_amount=1000)
        TestDataFactory.create_order(status='processing', total_amount=2500)
        response = self.client.get('/api/v1/orders/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['total_amount'], 3500)
        self.assertEqual(response.data['shipped'], 1)
        self.assertEqual(response.data['cancelled'], 0)

    def test_stats_invalidated_on_new_order(self):
        """Test cached stats are dropped when orders change"""
        self.client.get('/api/v1/orders/stats/')
        TestDataFactory.create_order()
        response = self.client.get('/api/v1/orders/stats/')
        self.assertEqual(response.data['total'], 1)

    @override_settings(SHOPIFY_SHOP_DOMAIN='', SHOPIFY_ACCESS_TOKEN='')
    def test_sync_without_credentials_is_bad_gateway(self):
        """Test the manual sync reports Shopify failures as 502"""
        response = self.client.post('/api/v1/orders/sync/')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertIn('error', response.data)

    @patch('thrifthub.orders.views.sync_shopify_orders')
    def test_sync_success(self, mock_sync):
        """Test the manual sync returns the summary"""
        mock_sync.return_value = {'total': 3, 'created': 2, 'updated': 1, 'skipped': 0}
        response = self.client.post('/api/v1/orders/sync/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['created'], 2)

    def test_viewer_cannot_sync(self):
        """Test only admins and agents can trigger a sync"""
        self.client.authenticate_user(TestDataFactory.create_user(role='viewer'))
        response = self.client.post('/api/v1/orders/sync/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    @override_settings(SHOPIFY_SHOP_DOMAIN='', SHOPIFY_ACCESS_TOKEN='')
    def test_shopify_test_not_configured(self):
        """Test the connection check without credentials"""
        response = self.client.get('/api/v1/shopify/test/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['connected'])

"""
Test suite for Returns module
Tests: Return numbering, items, status dates, Shopify returns sync and webhooks
"""
import base64
import hashlib
import hmac
import json
from unittest.mock import patch

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from thrifthub.core.models import Activity
from thrifthub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from thrifthub.core.utils import get_setting
from thrifthub.orders.shopify import ShopifyAPIError
from thrifthub.returns.models import Return
from thrifthub.returns.services import generate_return_number
from thrifthub.returns.sync import sync_shopify_returns, map_return_status, RETURNS_LAST_SYNC_KEY
from thrifthub.returns.webhooks import (
    validate_shopify_webhook, return_gid_from_payload, process_return_webhook
)

WEBHOOK_SECRET = 'shpss_test_secret'


def shopify_return(gid='gid://shopify/Return/9001', name='#1001-R1', status='REQUESTED', order_id='1001'):
    return {
        'id': gid,
        'name': name,
        'status': status,
        'order': {'id': f'gid://shopify/Order/{order_id}', 'name': '#1001'},
        'order_created_at': '2025-03-01T12:00:00Z',
        'line_items': [{
            'id': 'gid://shopify/ReturnLineItem/1',
            'quantity': 1,
            'refundable_quantity': 1,
            'customer_note': 'Sluiter hapert',
            'return_reason_note': 'Defect',
            'title': 'Canon AE-1',
            'sku': 'CAM-1',
            'unit_price': '125.00',
        }],
    }


class FakeShopifyClient:
    def __init__(self, returns=None, error=None):
        self.returns = returns or []
        self.error = error

    def get_returns_since(self, since, on_progress=None):
        return self.returns

    def get_return(self, return_gid):
        if self.error:
            raise self.error
        return self.returns[0]


def sign(body):
    digest = hmac.new(WEBHOOK_SECRET.encode('utf-8'), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode('ascii')


class ReturnServiceTests(TestCase):
    """Test return numbering and totals"""

    def test_return_numbers_per_year(self):
        """Test return numbers count up within a year"""
        year = timezone.now().year
        first = TestDataFactory.create_return()
        second = TestDataFactory.create_return()
        self.assertEqual(first.return_number, f'RET-{year}-001')
        self.assertEqual(second.return_number, f'RET-{year}-002')
        self.assertEqual(generate_return_number(year + 1), f'RET-{year + 1}-001')

    def test_total_value(self):
        """Test total value sums item lines in cents"""
        return_request = TestDataFactory.create_return()
        TestDataFactory.create_return_item(return_request, quantity=2, unit_price=5000)
        self.assertEqual(return_request.get_total_value(), 22500)

    def test_status_mapping(self):
        """Test Shopify return statuses map to local statuses"""
        self.assertEqual(map_return_status('OPEN'), 'onderweg')
        self.assertEqual(map_return_status('closed'), 'klaar')
        self.assertEqual(map_return_status('DECLINED'), 'niet_ontvangen')
        self.assertEqual(map_return_status('SOMETHING'), 'nieuw')


class ReturnSyncTests(TestCase):
    """Test Shopify returns reconciliation"""

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        self.order = TestDataFactory.create_order(customer=self.customer)
        self.order.shopify_order_id = '1001'
        self.order.save()

    def test_new_returns_are_created(self):
        """Test requested Shopify returns are created with items and the order link"""
        summary = sync_shopify_returns(client=FakeShopifyClient([shopify_return()]))
        self.assertEqual(summary['created'], 1)
        return_request = Return.objects.get(shopify_return_id='gid://shopify/Return/9001')
        self.assertEqual(return_request.status, 'nieuw')
        self.assertEqual(return_request.order, self.order)
        self.assertEqual(return_request.customer, self.customer)
        self.assertIn('Reden: Defect', return_request.customer_notes)
        item = return_request.items.get()
        self.assertEqual(item.unit_price, 12500)
        self.assertTrue(item.restockable)
        self.assertIsNotNone(get_setting(RETURNS_LAST_SYNC_KEY))

    def test_closed_returns_are_not_imported(self):
        """Test inactive Shopify returns are skipped when unknown locally"""
        summary = sync_shopify_returns(client=FakeShopifyClient([shopify_return(status='CLOSED')]))
        self.assertEqual(summary['skipped'], 1)
        self.assertFalse(Return.objects.exists())

    def test_open_moves_nieuw_to_onderweg(self):
        """Test the only automatic transition: nieuw -> onderweg on OPEN"""
        sync_shopify_returns(client=FakeShopifyClient([shopify_return()]))
        summary = sync_shopify_returns(client=FakeShopifyClient([shopify_return(status='OPEN')]))
        self.assertEqual(summary['updated'], 1)
        return_request = Return.objects.get()
        self.assertEqual(return_request.status, 'onderweg')
        self.assertIsNotNone(return_request.accepted_at)

    def test_local_status_is_preserved(self):
        """Test returns moved on locally are not overwritten by sync"""
        sync_shopify_returns(client=FakeShopifyClient([shopify_return()]))
        Return.objects.update(status='ontvangen_controle')
        summary = sync_shopify_returns(client=FakeShopifyClient([shopify_return(status='CLOSED')]))
        self.assertEqual(summary['skipped'], 1)
        self.assertEqual(Return.objects.get().status, 'ontvangen_controle')

    def test_unknown_order_creates_unlinked_return(self):
        """Test returns for orders not synced yet are still created"""
        sync_shopify_returns(client=FakeShopifyClient([shopify_return(order_id='777')]))
        return_request = Return.objects.get()
        self.assertIsNone(return_request.order)
        self.assertIsNone(return_request.customer)


class ReturnWebhookTests(TestCase):
    """Test Shopify returns webhook handling"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_validate_signature(self):
        """Test HMAC validation against the shared secret"""
        body = b'{"id": 9001}'
        self.assertTrue(validate_shopify_webhook(body, sign(body), WEBHOOK_SECRET))
        self.assertFalse(validate_shopify_webhook(body, 'bogus', WEBHOOK_SECRET))
        self.assertFalse(validate_shopify_webhook(body, None, WEBHOOK_SECRET))

    def test_return_gid_from_payload(self):
        """Test both id styles are accepted"""
        self.assertEqual(return_gid_from_payload({'admin_graphql_api_id': 'gid://shopify/Return/1'}),
                         'gid://shopify/Return/1')
        self.assertEqual(return_gid_from_payload({'id': 42}), 'gid://shopify/Return/42')
        self.assertIsNone(return_gid_from_payload({}))

    def test_process_creates_then_updates(self):
        """Test webhooks create unknown returns and update known ones"""
        result = process_return_webhook('gid://shopify/Return/9001', client=FakeShopifyClient([shopify_return()]))
        self.assertTrue(result['success'])
        result = process_return_webhook('gid://shopify/Return/9001',
                                        client=FakeShopifyClient([shopify_return(status='CLOSED')]))
        self.assertTrue(result['success'])
        self.assertEqual(Return.objects.get().status, 'klaar')

    def test_process_reports_api_errors(self):
        """Test Shopify failures are reported, not raised"""
        result = process_return_webhook('gid://shopify/Return/1',
                                        client=FakeShopifyClient(error=ShopifyAPIError('not found', 404)))
        self.assertFalse(result['success'])

    @override_settings(SHOPIFY_WEBHOOK_SECRET=WEBHOOK_SECRET)
    def test_webhook_rejects_bad_signature(self):
        """Test unsigned requests get 401"""
        response = self.client.post('/api/v1/shopify/webhooks/returns/', data=json.dumps({'id': 1}),
                                    content_type='application/json', HTTP_X_SHOPIFY_HMAC_SHA256='bogus')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    @override_settings(SHOPIFY_WEBHOOK_SECRET='')
    def test_webhook_without_secret(self):
        """Test the webhook refuses to run without a configured secret"""
        response = self.client.post('/api/v1/shopify/webhooks/returns/', data='{}', content_type='application/json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    @override_settings(SHOPIFY_WEBHOOK_SECRET=WEBHOOK_SECRET)
    @patch('thrifthub.returns.views.process_return_webhook')
    def test_webhook_valid_signature(self, mock_process):
        """Test signed requests are processed without a user session"""
        mock_process.return_value = {'success': True, 'return_number': 'RET-2025-001'}
        body = json.dumps({'admin_graphql_api_id': 'gid://shopify/Return/9001'}).encode('utf-8')
        response = self.client.post('/api/v1/shopify/webhooks/returns/', data=body,
                                    content_type='application/json',
                                    HTTP_X_SHOPIFY_HMAC_SHA256=sign(body),
                                    HTTP_X_SHOPIFY_TOPIC='returns/request')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['received'])
        mock_process.assert_called_once_with('gid://shopify/Return/9001')

    @override_settings(SHOPIFY_WEBHOOK_SECRET=WEBHOOK_SECRET)
    @patch('thrifthub.returns.views.process_return_webhook')
    def test_webhook_rejects_non_object_payload(self, mock_process):
        """Test a signed JSON list is rejected instead of processed"""
        body = b'[{"id": 9001}]'
        response = self.client.post('/api/v1/shopify/webhooks/returns/', data=body,
                                    content_type='application/json',
                                    HTTP_X_SHOPIFY_HMAC_SHA256=sign(body))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        mock_process.assert_not_called()


class ReturnAPITests(TestCase):
    """Test Return API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer()
        self.order = TestDataFactory.create_order(customer=self.customer)

    def test_create_return_with_items(self):
        """Test creating a return with items inherits the order's customer"""
        data = {
            'order': self.order.id,
            'return_reason': 'damaged',
            'items': [
                {'sku': 'CAM-1', 'product_name': 'Canon AE-1', 'quantity': 1, 'unit_price': 12500},
                {'sku': 'STRAP', 'product_name': 'Riem', 'quantity': 2, 'unit_price': 500},
            ],
        }
        response = self.client.post('/api/v1/returns/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer'], self.customer.id)
        self.assertEqual(response.data['total_value'], 13500)
        self.assertEqual(len(response.data['items']), 2)
        self.assertTrue(Activity.objects.filter(type='return_created').exists())

    def test_other_reason_required(self):
        """Test 'other' needs a description"""
        response = self.client.post('/api/v1/returns/', {'return_reason': 'other'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_dates_stamped_once(self):
        """Test received_at is stamped on entering ontvangen_controle and kept afterwards"""
        return_request = TestDataFactory.create_return(customer=self.customer)
        response = self.client.patch(f'/api/v1/returns/{return_request.id}/',
                                     {'status': 'ontvangen_controle'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        received_at = response.data['received_at']
        self.assertIsNotNone(received_at)

        self.client.patch(f'/api/v1/returns/{return_request.id}/', {'status': 'wachten_klant'}, format='json')
        response = self.client.patch(f'/api/v1/returns/{return_request.id}/',
                                     {'status': 'ontvangen_controle'}, format='json')
        self.assertEqual(response.data['received_at'], received_at)
        self.assertEqual(Activity.objects.filter(type='return_status_updated').count(), 3)

    def test_filter_by_status_and_search(self):
        """Test status filter and search by order number"""
        TestDataFactory.create_return(order=self.order, status='onderweg')
        TestDataFactory.create_return(status='klaar')
        response = self.client.get('/api/v1/returns/', {'status': 'onderweg'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/returns/', {'search': f'#{self.order.order_number}'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/returns/', {'search': '#'})
        self.assertEqual(response.data['count'], 0)

    def test_add_item(self):
        """Test adding an item to an existing return"""
        return_request = TestDataFactory.create_return()
        response = self.client.post(f'/api/v1/returns/{return_request.id}/items/',
                                    {'product_name': 'Lensdop', 'quantity': 1, 'unit_price': 300}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(return_request.items.count(), 2)

    def test_return_from_case(self):
        """Test a return created from a case is linked to it"""
        case = TestDataFactory.create_case(customer=self.customer)
        response = self.client.post(f'/api/v1/returns/from-case/{case.id}/', {'return_reason': 'defective'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['case'], case.id)
        self.assertEqual(response.data['customer'], self.customer.id)
        self.assertTrue(case.links.filter(link_type='return', linked_id=response.data['id']).exists())

    @patch('thrifthub.returns.views.sync_shopify_returns', side_effect=ShopifyAPIError('down', 503))
    def test_sync_failure_is_bad_gateway(self, mock_sync):
        """Test Shopify failures surface as 502"""
        response = self.client.post('/api/v1/returns/sync/')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)

    def test_viewer_cannot_delete(self):
        """Test viewers cannot delete returns"""
        return_request = TestDataFactory.create_return()
        self.client.authenticate_user(TestDataFactory.create_user(role='viewer'))
        response = self.client.delete(f'/api/v1/returns/{return_request.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

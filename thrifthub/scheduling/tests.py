"""
Test suite for Scheduling module
Tests: Sync cycle ordering and locking, status endpoint, management commands
"""
import threading
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from rest_framework import status
from thrifthub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from thrifthub.core.utils import set_setting
from thrifthub.orders.sync import ORDERS_LAST_SYNC_KEY
from thrifthub.scheduling import scheduled_sync
from thrifthub.scheduling.scheduled_sync import run_sync_cycle, run_forever, get_sync_status

ORDERS_SUMMARY = {'total': 1, 'created': 1, 'updated': 0, 'skipped': 0}
RETURNS_SUMMARY = {'total': 0, 'created': 0, 'updated': 0, 'skipped': 0}


@patch('thrifthub.scheduling.scheduled_sync.incremental_email_sync', return_value={'synced': 2, 'errors': []})
@patch('thrifthub.scheduling.scheduled_sync.sync_shopify_returns', return_value=RETURNS_SUMMARY)
@patch('thrifthub.scheduling.scheduled_sync.sync_shopify_orders', return_value=ORDERS_SUMMARY)
class SyncCycleTests(TestCase):
    """Test one scheduled sync cycle"""

    def test_cycle_runs_orders_then_returns(self, mock_orders, mock_returns, mock_mail):
        """Test orders and returns are synced, mail only when asked"""
        calls = []
        mock_orders.side_effect = lambda: calls.append('orders') or ORDERS_SUMMARY
        mock_returns.side_effect = lambda: calls.append('returns') or RETURNS_SUMMARY

        result = run_sync_cycle()
        self.assertEqual(calls, ['orders', 'returns'])
        self.assertEqual(result['orders'], ORDERS_SUMMARY)
        self.assertNotIn('mail', result)
        self.assertIn('duration_seconds', result)
        mock_mail.assert_not_called()

    def test_cycle_with_mail(self, mock_orders, mock_returns, mock_mail):
        """Test the mailbox is fetched when included"""
        result = run_sync_cycle(include_mail=True)
        self.assertEqual(result['mail'], {'synced': 2, 'errors': []})
        self.assertEqual(get_sync_status()['last_result'], result)

    def test_failing_step_does_not_stop_cycle(self, mock_orders, mock_returns, mock_mail):
        """Test an error in one step is recorded and the next step still runs"""
        mock_orders.side_effect = RuntimeError('Shopify down')
        result = run_sync_cycle()
        self.assertEqual(result['orders'], {'error': 'Shopify down'})
        self.assertEqual(result['returns'], RETURNS_SUMMARY)

    def test_overlapping_cycle_is_skipped(self, mock_orders, mock_returns, mock_mail):
        """Test a cycle is skipped while another holds the lock"""
        scheduled_sync._cycle_lock.acquire()
        try:
            self.assertTrue(get_sync_status()['syncing'])
            self.assertIsNone(run_sync_cycle())
        finally:
            scheduled_sync._cycle_lock.release()
        mock_orders.assert_not_called()

    def test_run_forever_stops_on_event(self, mock_orders, mock_returns, mock_mail):
        """Test the loop exits once the stop event is set"""
        stop_event = threading.Event()
        mock_returns.side_effect = lambda: stop_event.set() or RETURNS_SUMMARY
        run_forever(10, include_mail=False, stop_event=stop_event)
        self.assertEqual(mock_orders.call_count, 1)
        self.assertFalse(get_sync_status()['running'])


class SyncStatusAPITests(TestCase):
    """Test the sync status endpoint"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_status_includes_cursors(self):
        """Test stored cursors are reported next to the scheduler state"""
        set_setting(ORDERS_LAST_SYNC_KEY, '2025-03-01T10:00:00+00:00')
        response = self.client.get('/api/v1/sync/status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['orders_last_sync'], '2025-03-01T10:00:00+00:00')
        self.assertIsNone(response.data['returns_last_sync'])
        self.assertFalse(response.data['syncing'])


class CommandTests(TestCase):
    """Test sync management commands"""

    @override_settings(SHOPIFY_SHOP_DOMAIN='', SHOPIFY_ACCESS_TOKEN='')
    def test_sync_shopify_requires_credentials(self):
        """Test the command refuses to run without credentials"""
        with self.assertRaises(CommandError):
            call_command('sync_shopify', stdout=StringIO())

    @override_settings(SHOPIFY_SHOP_DOMAIN='dutchthrift', SHOPIFY_ACCESS_TOKEN='token')
    @patch('thrifthub.scheduling.management.commands.sync_shopify.sync_shopify_returns')
    @patch('thrifthub.scheduling.management.commands.sync_shopify.sync_shopify_orders', return_value=ORDERS_SUMMARY)
    def test_sync_shopify_orders_only(self, mock_orders, mock_returns):
        """Test --orders skips the returns sync"""
        out = StringIO()
        call_command('sync_shopify', '--orders', stdout=out)
        mock_orders.assert_called_once()
        mock_returns.assert_not_called()
        self.assertIn('Orders:', out.getvalue())

    @patch('thrifthub.scheduling.management.commands.run_scheduled_sync.run_sync_cycle')
    def test_run_scheduled_sync_once(self, mock_cycle):
        """Test --once runs a single cycle"""
        mock_cycle.return_value = {'orders': ORDERS_SUMMARY, 'returns': RETURNS_SUMMARY, 'duration_seconds': 0.1}
        out = StringIO()
        call_command('run_scheduled_sync', '--once', '--skip-mail', stdout=out)
        mock_cycle.assert_called_once_with(include_mail=False)
        self.assertIn('Sync completed', out.getvalue())

    @patch('thrifthub.scheduling.management.commands.sync_emails.incremental_email_sync',
           return_value={'synced': 4, 'errors': ['Failed to sync Sent Items: timeout']})
    def test_sync_emails(self, mock_sync):
        """Test errors go to stderr and the count to stdout"""
        out, err = StringIO(), StringIO()
        call_command('sync_emails', stdout=out, stderr=err)
        self.assertIn('Synced 4', out.getvalue())
        self.assertIn('Sent Items', err.getvalue())

"""
Periodic Shopify (and optionally IMAP) sync.

Orders are synced before returns so new returns can link to their
orders. Only one cycle runs at a time per process.
"""
import logging
import threading
import time

from django.utils import timezone

from thrifthub.mail.imap_sync import incremental_email_sync
from thrifthub.orders.sync import sync_shopify_orders
from thrifthub.returns.sync import sync_shopify_returns

logger = logging.getLogger(__name__)

_cycle_lock = threading.Lock()
_state = {
    'running': False,
    'last_result': None,
}


def _run_step(name, func):
    try:
        return func()
    except Exception as e:
        logger.error(f"Scheduled {name} sync failed: {e}")
        return {'error': str(e)}


def run_sync_cycle(include_mail=False):
    """
    Run one sync cycle.

    Returns the cycle summary, or None when another cycle is still running.
    """
    if not _cycle_lock.acquire(blocking=False):
        logger.info("Skipping sync: previous sync still running")
        return None

    started = time.monotonic()
    try:
        logger.info("Starting scheduled sync")
        result = {
            'orders': _run_step('orders', sync_shopify_orders),
            'returns': _run_step('returns', sync_shopify_returns),
        }
        if include_mail:
            result['mail'] = _run_step('mail', incremental_email_sync)
        result['duration_seconds'] = round(time.monotonic() - started, 1)
        result['finished_at'] = timezone.now().isoformat()
        _state['last_result'] = result
        logger.info(f"Scheduled sync completed in {result['duration_seconds']}s")
        return result
    finally:
        _cycle_lock.release()


def run_forever(interval_minutes, include_mail=True, stop_event=None):
    """Run a cycle now, then every interval_minutes until stop_event is set"""
    stop_event = stop_event or threading.Event()
    _state['running'] = True
    logger.info(f"Starting scheduled sync every {interval_minutes} minutes")
    try:
        while not stop_event.is_set():
            run_sync_cycle(include_mail=include_mail)
            stop_event.wait(interval_minutes * 60)
    finally:
        _state['running'] = False
        logger.info("Stopped scheduled sync")


def get_sync_status():
    return {
        'running': _state['running'],
        'syncing': _cycle_lock.locked(),
        'last_result': _state['last_result'],
    }

from django.core.management.base import BaseCommand, CommandError

from thrifthub.core.utils import delete_setting
from thrifthub.orders.shopify import ShopifyAPIError, ShopifyClient
from thrifthub.orders.sync import sync_shopify_orders, reset_orders_cursor
from thrifthub.returns.sync import sync_shopify_returns, RETURNS_LAST_SYNC_KEY


class Command(BaseCommand):
    help = 'Run a one-off Shopify orders and/or returns sync'

    def add_arguments(self, parser):
        group = parser.add_mutually_exclusive_group()
        group.add_argument('--orders', action='store_true', help='Sync orders only')
        group.add_argument('--returns', action='store_true', help='Sync returns only')
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Clear the stored sync cursor first',
        )

    def handle(self, *args, **options):
        do_orders = not options['returns']
        do_returns = not options['orders']
        client = ShopifyClient()
        if not client.is_configured:
            raise CommandError('SHOPIFY_SHOP_DOMAIN and SHOPIFY_ACCESS_TOKEN must be set')

        def progress(current, total, message):
            if current == total or current % 50 == 0:
                self.stdout.write(message)

        try:
            if do_orders:
                if options['reset']:
                    reset_orders_cursor()
                    self.stdout.write('Orders cursor cleared')
                summary = sync_shopify_orders(client=client, on_progress=progress)
                self.stdout.write(self.style.SUCCESS(f"Orders: {summary}"))
            if do_returns:
                if options['reset']:
                    delete_setting(RETURNS_LAST_SYNC_KEY)
                    self.stdout.write('Returns cursor cleared')
                summary = sync_shopify_returns(client=client, on_progress=progress)
                self.stdout.write(self.style.SUCCESS(f"Returns: {summary}"))
        except ShopifyAPIError as e:
            raise CommandError(str(e))

"""
Run the Shopify and mailbox sync on a fixed interval.

Meant to run as its own process next to the web server.
"""
from django.conf import settings
from django.core.management.base import BaseCommand

from thrifthub.scheduling.scheduled_sync import run_sync_cycle, run_forever


class Command(BaseCommand):
    help = 'Sync Shopify orders, returns and email on a schedule'

    def add_arguments(self, parser):
        parser.add_argument(
            '--interval',
            type=int,
            default=settings.SYNC_INTERVAL_MINUTES,
            help=f'Minutes between cycles (default: {settings.SYNC_INTERVAL_MINUTES})',
        )
        parser.add_argument(
            '--once',
            action='store_true',
            help='Run a single cycle and exit',
        )
        parser.add_argument(
            '--skip-mail',
            action='store_true',
            help='Do not fetch email from IMAP',
        )

    def handle(self, *args, **options):
        include_mail = not options['skip_mail']

        if options['once']:
            result = run_sync_cycle(include_mail=include_mail)
            if result is None:
                self.stdout.write(self.style.WARNING('A sync cycle is already running'))
                return
            for name in ('orders', 'returns', 'mail'):
                if name in result:
                    self.stdout.write(f"{name}: {result[name]}")
            self.stdout.write(self.style.SUCCESS(f"Sync completed in {result['duration_seconds']}s"))
            return

        self.stdout.write(self.style.SUCCESS(f"Syncing every {options['interval']} minutes (Ctrl+C to stop)"))
        try:
            run_forever(options['interval'], include_mail=include_mail)
        except KeyboardInterrupt:
            self.stdout.write('Stopped')

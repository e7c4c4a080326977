from django.core.management.base import BaseCommand

from thrifthub.mail.imap_sync import incremental_email_sync


class Command(BaseCommand):
    help = 'Fetch new email from the IMAP mailbox'

    def handle(self, *args, **options):
        result = incremental_email_sync()
        for error in result['errors']:
            self.stderr.write(self.style.ERROR(error))
        self.stdout.write(self.style.SUCCESS(f"Synced {result['synced']} new message(s)"))

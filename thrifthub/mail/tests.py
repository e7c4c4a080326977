"""
Test suite for Mail module
Tests: quoted-reply splitting, content extraction, conversation grouping,
IMAP sync, outbound replies and the email thread endpoints
"""
from datetime import timedelta
from email.message import EmailMessage as MimeMessage
from email.utils import format_datetime
from unittest.mock import patch

from django.core import mail
from django.test import TestCase, SimpleTestCase, override_settings
from django.utils import timezone
from rest_framework import status

from thrifthub.cases.models import CaseLink
from thrifthub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from thrifthub.core.utils import get_setting, set_setting
from thrifthub.mail.content_parser import (
    extract_order_number, extract_customer_name, extract_phone_number,
    extract_address, extract_product_info, extract_customer_info
)
from thrifthub.mail.imap_sync import incremental_email_sync, parse_mime_message, MailboxError
from thrifthub.mail.ingest import build_conversation_id, ingest_message
from thrifthub.mail.models import EmailThread, EmailMessage
from thrifthub.mail.sender import send_reply
from thrifthub.mail.thread_parser import parse_email_thread, EMPTY_BODY


@override_settings(SUPPORT_MAILBOX='contact@dutchthrift.com')
class ThreadParserTests(SimpleTestCase):
    """Test splitting a body into quoted messages"""

    def test_empty_body(self):
        """Test an empty body yields a single placeholder message"""
        messages = parse_email_thread('   ', False, 'klant@example.com')
        self.assertEqual(len(messages), 1)
        self.assertEqual(messages[0].body, EMPTY_BODY)
        self.assertFalse(messages[0].is_quoted)

    def test_body_without_quotes(self):
        """Test a body without quote headers is returned as one message"""
        messages = parse_email_thread('Waar blijft mijn pakket?', False, 'klant@example.com')
        self.assertEqual(len(messages), 1)
        self.assertEqual(messages[0].id, 'msg-0')
        self.assertEqual(messages[0].from_email, 'klant@example.com')
        self.assertEqual(messages[0].to_email, 'contact@dutchthrift.com')
        self.assertEqual(messages[0].body, 'Waar blijft mijn pakket?')

    def test_english_wrote_header(self):
        """Test 'On <day> ... <email> wrote:' splits the body, oldest first"""
        body = (
            "Thanks, I will send it back.\n\n"
            "On Mon, 3 Mar 2025 at 10:00, Support <contact@dutchthrift.com> wrote:\n"
            "> Please return the camera."
        )
        messages = parse_email_thread(body, False, 'klant@example.com')
        self.assertEqual(len(messages), 2)
        quoted, reply = messages
        self.assertTrue(quoted.is_quoted)
        self.assertEqual(quoted.from_email, 'contact@dutchthrift.com')
        self.assertEqual(quoted.body, '> Please return the camera.')
        self.assertEqual(quoted.sent_at, '2025-03-03T00:00:00')
        self.assertFalse(reply.is_quoted)
        self.assertEqual(reply.body, 'Thanks, I will send it back.')
        self.assertEqual(reply.from_email, 'klant@example.com')

    def test_outlook_dutch_header(self):
        """Test Outlook 'Van:' followed by 'Verzonden:' with a Dutch date"""
        body = (
            "Prima, dank je.\n\n"
            "Van: Klant Naam <klant@example.com>\n"
            "Verzonden: 12 maart 2025 14:03\n"
            "Aan: contact@dutchthrift.com\n\n"
            "Mijn lens is kapot."
        )
        messages = parse_email_thread(body, False, 'contact@dutchthrift.com')
        self.assertEqual(len(messages), 2)
        self.assertEqual(messages[0].from_email, 'klant@example.com')
        self.assertEqual(messages[0].sent_at, '2025-03-12T00:00:00')
        self.assertTrue(messages[0].body.endswith('Mijn lens is kapot.'))
        self.assertEqual(messages[1].body, 'Prima, dank je.')

    def test_french_header(self):
        """Test 'Le <jour> ... a écrit :'"""
        body = (
            "Merci!\n\n"
            "Le lun. 3 mars 2025 à 10:15, client@example.fr a écrit :\n"
            "Bonjour, ma commande est arrivée cassée."
        )
        messages = parse_email_thread(body, False, 'contact@dutchthrift.com')
        self.assertEqual(len(messages), 2)
        self.assertEqual(messages[0].from_email, 'client@example.fr')
        self.assertEqual(messages[0].sent_at, '2025-03-03T00:00:00')
        self.assertEqual(messages[0].body, 'Bonjour, ma commande est arrivée cassée.')

    def test_simple_van_header(self):
        """Test the short 'Van: Name <email>' form without Verzonden"""
        body = "Ok\n\nVan: Piet <piet@example.com>\nDatum: gisteren\n\nOude tekst"
        messages = parse_email_thread(body, False, 'contact@dutchthrift.com')
        self.assertEqual(len(messages), 2)
        self.assertEqual(messages[0].from_email, 'piet@example.com')
        self.assertIsNone(messages[0].sent_at)

    def test_html_body_is_flattened(self):
        """Test HTML bodies are converted to text before splitting"""
        body = (
            "<div>Top reply</div>"
            "<div>On Tue, 4 Mar 2025, Jan &lt;jan@example.com&gt; wrote:</div>"
            "<blockquote>Old&nbsp;text</blockquote>"
        )
        messages = parse_email_thread(body, True, 'contact@dutchthrift.com')
        self.assertEqual(len(messages), 2)
        self.assertEqual(messages[0].body, 'Old text')
        self.assertEqual(messages[0].from_email, 'jan@example.com')
        self.assertEqual(messages[1].body, 'Top reply')
        self.assertFalse(messages[1].is_html)

    def test_html_without_quotes_is_flattened(self):
        """Test an HTML body with no quote header still comes back as text"""
        messages = parse_email_thread('<p>Hallo</p><p>Mijn camera is kapot</p>', True, 'klant@example.com')
        self.assertEqual(len(messages), 1)
        self.assertEqual(messages[0].body, 'Hallo\nMijn camera is kapot')
        self.assertFalse(messages[0].is_html)

    def test_empty_quoted_segment_dropped(self):
        """Test a quote header with nothing after it produces no message"""
        body = "Antwoord\n\nOn Wed, 5 Mar 2025, Jan <jan@example.com> wrote:\n   "
        messages = parse_email_thread(body, False, 'klant@example.com')
        self.assertEqual(len(messages), 1)
        self.assertEqual(messages[0].body, 'Antwoord')


class ContentParserTests(SimpleTestCase):
    """Test regex extraction from email bodies"""

    def test_order_number_with_hash(self):
        """Test '#12345' style order numbers"""
        self.assertEqual(extract_order_number('Mijn bestelling #10935 is niet aangekomen'), '10935')

    def test_order_number_dutch_label(self):
        """Test 'Ordernummer:' label"""
        self.assertEqual(extract_order_number('Ordernummer: 4521'), '4521')

    def test_order_number_too_short(self):
        """Test numbers under four digits are ignored"""
        self.assertIsNone(extract_order_number('order 12'))
        self.assertIsNone(extract_order_number(''))

    def test_customer_name_from_signature(self):
        """Test names are read from a Dutch signature"""
        body = 'Hallo,\n\nMet vriendelijke groet,\nPieter de Vries'
        self.assertEqual(extract_customer_name(body, 'p@example.com'), 'Pieter de Vries')

    def test_customer_name_fallback_to_mailbox(self):
        """Test the mailbox user name is title-cased when there is no signature"""
        self.assertEqual(extract_customer_name('Groetjes', 'jan.de-vries@example.com'), 'Jan De Vries')

    def test_phone_numbers(self):
        """Test Dutch phone formats"""
        self.assertEqual(extract_phone_number('Bel me op 06-12345678'), '06-12345678')
        self.assertEqual(extract_phone_number('Mobiel +31 6 12345678'), '+31 6 12345678')
        self.assertIsNone(extract_phone_number('geen nummer'))

    def test_address(self):
        """Test street, number, postcode and city"""
        body = 'Stuur naar:\nKerkstraat 12, 1234 AB Amsterdam'
        self.assertEqual(extract_address(body), 'Kerkstraat 12, 1234 AB Amsterdam')

    def test_product_info(self):
        """Test 'Artikel:' lines"""
        self.assertEqual(extract_product_info('Artikel: Canon AE-1 Program\nGroet'), 'Canon AE-1 Program')
        self.assertIsNone(extract_product_info('Hallo'))

    def test_customer_info(self):
        """Test name, phone and address are returned together"""
        info = extract_customer_info('Tel: 0201234567', 'anna@example.com')
        self.assertEqual(info['name'], 'Anna')
        self.assertEqual(info['phone'], '0201234567')
        self.assertIsNone(info['address'])


class ConversationTests(TestCase):
    """Test conversation ids and message ingestion"""

    def test_conversation_id(self):
        """Test reply prefixes, case and whitespace are normalised"""
        self.assertEqual(
            build_conversation_id('Re: Broken  camera', 'A@x.nl', 'b@y.nl'),
            'broken_camera|a@x.nl|b@y.nl'
        )

    def test_conversation_id_is_direction_independent(self):
        """Test both directions of a conversation share an id"""
        self.assertEqual(
            build_conversation_id('Retour', 'klant@example.com', 'contact@dutchthrift.com'),
            build_conversation_id('RE: Retour', 'contact@dutchthrift.com', 'klant@example.com'),
        )

    def test_long_subject_fits_thread_id(self):
        """Test very long subjects give a bounded, still distinct key"""
        first = build_conversation_id('x' * 498, 'a@b.nl', 'c@d.nl')
        second = build_conversation_id('x' * 499, 'a@b.nl', 'c@d.nl')
        self.assertLessEqual(len(first), 500)
        self.assertNotEqual(first, second)
        self.assertEqual(first, build_conversation_id('x' * 498, 'c@d.nl', 'a@b.nl'))

    def test_ingest_long_subject(self):
        """Test a long subject is stored cut to the column size"""
        message, created = ingest_message(
            message_id='<long@example.com>', subject='Vraag ' * 120,
            from_email='klant@example.com', to_email='contact@dutchthrift.com', body='Hallo'
        )
        self.assertTrue(created)
        self.assertEqual(len(message.subject), 500)
        self.assertEqual(len(message.thread.subject), 500)
        self.assertLessEqual(len(message.thread.thread_id), 500)

    def test_html_markup_is_not_matched_as_order(self):
        """Test numbers inside HTML attributes do not auto-link an order"""
        TestDataFactory.create_order(order_number='1080', customer_email='iemand@example.com')
        message, _ = ingest_message(
            message_id='<html@example.com>', subject='Openingstijden',
            from_email='klant@example.com', to_email='contact@dutchthrift.com',
            body='<img width="1920" height="1080"><p style="color:#333333">Hoe laat zijn jullie open?</p>',
            is_html=True
        )
        self.assertIsNone(message.thread.order)

    def test_html_body_order_number_is_matched(self):
        """Test order numbers in the text of an HTML body are still found"""
        order = TestDataFactory.create_order(order_number='10935', customer_email='iemand@example.com')
        message, _ = ingest_message(
            message_id='<html2@example.com>', subject='Vraag',
            from_email='klant@example.com', to_email='contact@dutchthrift.com',
            body='<div>Waar blijft bestelling #10935?</div>', is_html=True
        )
        self.assertEqual(message.thread.order, order)

    def test_ingest_creates_thread_and_links_order(self):
        """Test a new thread is linked to the customer and the mentioned order"""
        customer = TestDataFactory.create_customer(email='klant@example.com')
        order = TestDataFactory.create_order(order_number='10935', customer=customer)

        message, created = ingest_message(
            message_id='<m1@example.com>', subject='Bestelling #10935',
            from_email='Klant@Example.com', to_email='contact@dutchthrift.com',
            body='Waar blijft bestelling #10935?'
        )
        self.assertTrue(created)
        thread = message.thread
        self.assertEqual(thread.customer, customer)
        self.assertEqual(thread.order, order)
        self.assertTrue(thread.is_unread)

    def test_ingest_falls_back_to_latest_order_by_email(self):
        """Test the customer's latest order is used when no number matches"""
        older = TestDataFactory.create_order(customer_email='klant@example.com',
                                             order_date=timezone.now() - timedelta(days=10))
        newer = TestDataFactory.create_order(customer_email='klant@example.com')
        message, _ = ingest_message(
            message_id='<m2@example.com>', subject='Vraag', from_email='klant@example.com',
            to_email='contact@dutchthrift.com', body='Hallo'
        )
        self.assertEqual(message.thread.order, newer)
        self.assertNotEqual(message.thread.order, older)

    def test_ingest_reuses_thread_and_dedupes(self):
        """Test replies join the thread and duplicate message ids are ignored"""
        first, _ = ingest_message(message_id='<a@x>', subject='Retour', from_email='klant@example.com',
                                  to_email='contact@dutchthrift.com', body='Eerste')
        reply, _ = ingest_message(message_id='<b@x>', subject='Re: Retour', from_email='contact@dutchthrift.com',
                                  to_email='klant@example.com', body='Antwoord', folder='sent')
        duplicate, created = ingest_message(message_id='<a@x>', subject='Retour', from_email='klant@example.com',
                                            to_email='contact@dutchthrift.com', body='Eerste')
        self.assertEqual(first.thread_id, reply.thread_id)
        self.assertTrue(reply.is_outbound)
        self.assertFalse(created)
        self.assertEqual(duplicate.id, first.id)
        self.assertEqual(EmailMessage.objects.count(), 2)


def build_raw_message(message_id, subject='Retour', body='Hallo', html=None):
    message = MimeMessage()
    message['Subject'] = subject
    message['From'] = 'Jan Jansen <jan@example.com>'
    message['To'] = 'contact@dutchthrift.com'
    message['Message-ID'] = message_id
    message['Date'] = format_datetime(timezone.now())
    message.set_content(body)
    if html:
        message.add_alternative(html, subtype='html')
    return message.as_bytes()


class FakeMailbox:
    """In-memory stand-in for the IMAP mailbox"""

    def __init__(self, folders, fail_folders=()):
        self.folders = folders
        self.fail_folders = fail_folders
        self.selected = None
        self.logged_out = False

    def connect(self):
        pass

    def logout(self):
        self.logged_out = True

    def select(self, folder):
        if folder in self.fail_folders:
            raise MailboxError(f'Cannot open folder {folder}')
        self.selected = folder

    def uids_after(self, last_uid):
        return sorted(uid for uid in self.folders[self.selected] if uid > last_uid)

    def fetch(self, uid):
        return self.folders[self.selected][uid]


class ImapSyncTests(TestCase):
    """Test incremental IMAP sync"""

    def test_parse_mime_prefers_html(self):
        """Test the HTML alternative is used over plain text"""
        fields = parse_mime_message(build_raw_message('<p1@x>', body='plain', html='<p>html body</p>'))
        self.assertTrue(fields['is_html'])
        self.assertIn('<p>html body</p>', fields['body'])
        self.assertEqual(fields['from_email'], 'jan@example.com')
        self.assertEqual(fields['from_name'], 'Jan Jansen')
        self.assertEqual(fields['message_id'], '<p1@x>')

    @override_settings(IMAP_FOLDERS=[('INBOX', 'inbox')])
    def test_sync_advances_cursor(self):
        """Test new messages are stored and the UID cursor moves forward"""
        mailbox = FakeMailbox({'INBOX': {
            5: build_raw_message('<u5@x>', subject='Vraag 1'),
            6: build_raw_message('<u6@x>', subject='Vraag 2'),
        }})
        result = incremental_email_sync(mailbox)
        self.assertEqual(result, {'synced': 2, 'errors': []})
        self.assertEqual(get_setting('imap_last_uid_inbox'), '6')
        self.assertTrue(mailbox.logged_out)

        again = incremental_email_sync(mailbox)
        self.assertEqual(again['synced'], 0)
        self.assertEqual(EmailMessage.objects.count(), 2)

    @override_settings(IMAP_FOLDERS=[('INBOX', 'inbox')])
    def test_sync_skips_uids_below_cursor(self):
        """Test UIDs at or below the stored cursor are not fetched"""
        set_setting('imap_last_uid_inbox', 5)
        mailbox = FakeMailbox({'INBOX': {
            5: build_raw_message('<old@x>'),
            7: build_raw_message('<new@x>'),
        }})
        result = incremental_email_sync(mailbox)
        self.assertEqual(result['synced'], 1)
        self.assertTrue(EmailMessage.objects.filter(message_id='<new@x>', imap_uid=7).exists())

    @override_settings(IMAP_FOLDERS=[('INBOX', 'inbox'), ('Sent Items', 'sent')])
    def test_folder_failure_is_collected(self):
        """Test a failing folder is reported without stopping the others"""
        mailbox = FakeMailbox({'INBOX': {1: build_raw_message('<i1@x>')}}, fail_folders=('Sent Items',))
        result = incremental_email_sync(mailbox)
        self.assertEqual(result['synced'], 1)
        self.assertEqual(len(result['errors']), 1)
        self.assertIn('Sent Items', result['errors'][0])


@override_settings(EMAIL_BACKEND='django.core.mail.backends.locmem.EmailBackend')
class SendReplyTests(TestCase):
    """Test outbound replies"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.thread = TestDataFactory.create_thread(customer_email='klant@example.com')
        self.inbound = TestDataFactory.create_message(self.thread)

    def test_send_reply_threads_headers(self):
        """Test In-Reply-To and References point at the stored messages"""
        message = send_reply(self.thread, 'Uw pakket is onderweg.', user=self.user)
        self.assertEqual(len(mail.outbox), 1)
        sent = mail.outbox[0]
        self.assertEqual(sent.to, ['klant@example.com'])
        self.assertEqual(sent.subject, 'Re: Vraag over bestelling')
        self.assertEqual(sent.extra_headers['In-Reply-To'], self.inbound.message_id)
        self.assertIn(self.inbound.message_id, sent.extra_headers['References'])
        self.assertTrue(message.is_outbound)
        self.assertEqual(message.folder, 'sent')

    def test_send_reply_marks_thread_read(self):
        """Test the thread is marked read after replying"""
        self.thread.is_unread = True
        self.thread.save()
        send_reply(self.thread, 'Bedankt', user=self.user)
        self.thread.refresh_from_db()
        self.assertFalse(self.thread.is_unread)


@override_settings(EMAIL_BACKEND='django.core.mail.backends.locmem.EmailBackend')
class EmailThreadAPITests(TestCase):
    """Test email thread endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer(email='klant@example.com')
        self.thread = TestDataFactory.create_thread(customer_email='klant@example.com', customer=self.customer)
        self.message = TestDataFactory.create_message(
            self.thread,
            body='Mijn camera is kapot.\nArtikel: Canon AE-1\nTel: 0612345678\n\nMvg,\nJan Jansen'
        )

    def test_list_threads(self):
        """Test listing threads with message counts"""
        response = self.client.get('/api/v1/email-threads/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['message_count'], 1)

    def test_filter_unread_and_starred(self):
        """Test unread and starred filters"""
        TestDataFactory.create_thread(subject='Gelezen', is_unread=False, is_starred=True)
        response = self.client.get('/api/v1/email-threads/?unread=false')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['subject'], 'Gelezen')
        response = self.client.get('/api/v1/email-threads/?starred=true')
        self.assertEqual(response.data['count'], 1)

    def test_thread_detail_includes_messages(self):
        """Test thread detail embeds its messages"""
        response = self.client.get(f'/api/v1/email-threads/{self.thread.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['messages']), 1)

    def test_patch_thread_status(self):
        """Test updating a thread's status"""
        response = self.client.patch(f'/api/v1/email-threads/{self.thread.id}/', {'status': 'closed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'closed')

    def test_parsed_messages(self):
        """Test the parsed endpoint returns split messages per stored message"""
        response = self.client.get(f'/api/v1/email-threads/{self.thread.id}/parsed/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['parsed'][0]['from_email'], 'klant@example.com')

    def test_extract_customer_info(self):
        """Test extraction of customer details from the first message"""
        order = TestDataFactory.create_order(customer=self.customer)
        response = self.client.get(f'/api/v1/email-threads/{self.thread.id}/extract/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['customer']['name'], 'Jan Jansen')
        self.assertEqual(response.data['customer']['phone'], '0612345678')
        self.assertEqual(response.data['product'], 'Canon AE-1')
        self.assertEqual(response.data['match_method'], 'email_fallback')
        self.assertEqual(response.data['matched_order']['id'], order.id)

    def test_extract_customer_info_from_html(self):
        """Test signature and product lines are found in HTML mail"""
        thread = TestDataFactory.create_thread(customer_email='jj99@example.com')
        TestDataFactory.create_message(
            thread, is_html=True,
            body='<div>Mijn camera is kapot.<br>Artikel: Nikon FM2</div>'
                 '<div>Met vriendelijke groet,<br>Jan Jansen</div>'
        )
        response = self.client.get(f'/api/v1/email-threads/{thread.id}/extract/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['customer']['name'], 'Jan Jansen')
        self.assertEqual(response.data['product'], 'Nikon FM2')

    def test_bulk_mark_read(self):
        """Test bulk marking threads read"""
        response = self.client.post('/api/v1/email-threads/bulk/mark-read/', {'ids': [self.thread.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['updated'], 1)
        self.thread.refresh_from_db()
        self.assertFalse(self.thread.is_unread)

    def test_bulk_unknown_action(self):
        """Test unknown bulk actions are rejected"""
        response = self.client.post('/api/v1/email-threads/bulk/explode/', {'ids': [self.thread.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_bulk_delete(self):
        """Test bulk deleting threads"""
        response = self.client.post('/api/v1/email-threads/bulk/delete/', {'ids': [self.thread.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(EmailThread.objects.filter(id=self.thread.id).exists())

    def test_match_orders(self):
        """Test threads without an order are auto-linked"""
        order = TestDataFactory.create_order(customer=self.customer)
        response = self.client.post('/api/v1/email-threads/match-orders/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['processed'], 1)
        self.assertEqual(response.data['matched'], 1)
        self.thread.refresh_from_db()
        self.assertEqual(self.thread.order, order)

    def test_link_to_order(self):
        """Test manually linking a thread to an order"""
        order = TestDataFactory.create_order()
        response = self.client.post('/api/v1/emails/link-to-order/',
                                    {'thread_id': self.thread.id, 'order_id': order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order'], order.id)

    def test_link_to_order_requires_thread(self):
        """Test thread_id is required"""
        response = self.client.post('/api/v1/emails/link-to-order/', {'order_id': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_case_from_email(self):
        """Test creating a case from a thread links both ways"""
        response = self.client.post('/api/v1/emails/create-case/',
                                    {'thread_id': self.thread.id, 'title': 'Kapotte camera'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['source'], 'email')
        self.thread.refresh_from_db()
        self.assertEqual(self.thread.case_id, response.data['id'])
        self.assertTrue(CaseLink.objects.filter(case_id=response.data['id'], link_type='email',
                                                linked_id=self.thread.id).exists())

    def test_create_repair_from_email(self):
        """Test repairs created from a thread are pre-filled from the message"""
        response = self.client.post('/api/v1/emails/create-repair/', {'thread_id': self.thread.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_phone'], '0612345678')
        self.assertEqual(response.data['product_name'], 'Canon AE-1')
        self.thread.refresh_from_db()
        self.assertEqual(self.thread.repair_id, response.data['id'])

    def test_create_return_from_email(self):
        """Test returns created from a thread inherit the customer"""
        data = {
            'thread_id': self.thread.id,
            'return_reason': 'defective',
            'items': [{'sku': 'CAM-1', 'product_name': 'Canon AE-1', 'quantity': 1, 'unit_price': 12500}],
        }
        response = self.client.post('/api/v1/emails/create-return/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer'], self.customer.id)
        self.thread.refresh_from_db()
        self.assertEqual(self.thread.return_request_id, response.data['id'])

    def test_send_email(self):
        """Test sending a reply through the API"""
        response = self.client.post('/api/v1/emails/send/',
                                    {'thread': self.thread.id, 'body': 'Wij nemen contact op.'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(self.thread.messages.filter(is_outbound=True).count(), 1)

    @patch('thrifthub.mail.views.incremental_email_sync', return_value={'synced': 3, 'errors': []})
    def test_manual_sync(self, mock_sync):
        """Test triggering the IMAP sync"""
        response = self.client.post('/api/v1/emails/sync/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['synced'], 3)
        mock_sync.assert_called_once()

    def test_viewer_cannot_send(self):
        """Test viewers cannot send mail"""
        viewer = TestDataFactory.create_user(role='viewer')
        self.client.authenticate_user(viewer)
        response = self.client.post('/api/v1/emails/send/', {'thread': self.thread.id, 'body': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

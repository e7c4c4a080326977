"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from thrifthub.customers.models import Customer
from thrifthub.orders.models import Order
from thrifthub.cases.services import create_case
from thrifthub.returns.models import ReturnItem
from thrifthub.returns.services import create_return_with_items
from thrifthub.repairs.services import create_repair
from thrifthub.mail.models import EmailThread, EmailMessage
from thrifthub.todos.models import Todo
from thrifthub.appointments.models import Appointment
from thrifthub.purchasing.models import Supplier, PurchaseOrder
from django.utils import timezone
from datetime import timedelta
import random
import string
import uuid

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='agent', is_superuser=False):
        """Create a test user with a back-office role"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_customer(email=None, first_name='Jan', last_name='Jansen', shopify_customer_id=None):
        """Create a test customer"""
        if not email:
            email = f'customer_{TestDataFactory.random_string(6).lower()}@example.com'
        return Customer.objects.create(
            email=email,
            first_name=first_name,
            last_name=last_name,
            shopify_customer_id=shopify_customer_id
        )

    @staticmethod
    def create_order(order_number=None, customer=None, customer_email=None, total_amount=4999,
                     status='processing', order_date=None, order_data=None):
        """Create a test order (amounts in cents)"""
        if not order_number:
            order_number = str(random.randint(10000, 99999))
        if customer and not customer_email:
            customer_email = customer.email
        return Order.objects.create(
            shopify_order_id=str(random.randint(10 ** 9, 10 ** 10)),
            order_number=order_number,
            customer=customer,
            customer_email=customer_email or '',
            total_amount=total_amount,
            status=status,
            order_data=order_data or {},
            order_date=order_date or timezone.now()
        )

    @staticmethod
    def create_case(title='Defecte camera', customer=None, user=None, **fields):
        """Create a test case with a generated case number"""
        return create_case(
            title=title,
            customer=customer,
            customer_email=customer.email if customer else '',
            created_by=user,
            **fields
        )

    @staticmethod
    def create_return(customer=None, order=None, status='nieuw', items=None, **fields):
        """Create a test return; items default to one camera at 125.00"""
        if items is None:
            items = [{'sku': 'CAM-001', 'product_name': 'Canon AE-1', 'quantity': 1, 'unit_price': 12500}]
        return_data = dict(customer=customer, order=order, status=status, **fields)
        return create_return_with_items(return_data, items)

    @staticmethod
    def create_return_item(return_request, sku='LENS-50', product_name='50mm lens', quantity=1, unit_price=5000):
        return ReturnItem.objects.create(
            return_request=return_request,
            sku=sku,
            product_name=product_name,
            quantity=quantity,
            unit_price=unit_price
        )

    @staticmethod
    def create_repair(title='Sluiter hangt', user=None, **fields):
        """Create a test repair"""
        return create_repair(user=user, title=title, **fields)

    @staticmethod
    def create_thread(subject='Vraag over bestelling', customer_email='klant@example.com', customer=None, **fields):
        """Create a test email thread"""
        return EmailThread.objects.create(
            thread_id=f'{subject.lower()}|{customer_email}|{uuid.uuid4().hex[:8]}',
            subject=subject,
            customer=customer,
            customer_email=customer_email,
            last_activity=timezone.now(),
            **fields
        )

    @staticmethod
    def create_message(thread, body='Hallo, waar blijft mijn bestelling?', from_email=None,
                       to_email='contact@dutchthrift.com', is_outbound=False, is_html=False, sent_at=None):
        """Create a test message in a thread"""
        return EmailMessage.objects.create(
            message_id=f'<{uuid.uuid4().hex}@example.com>',
            thread=thread,
            from_email=from_email or thread.customer_email,
            to_email=to_email,
            subject=thread.subject,
            body=body,
            is_html=is_html,
            is_outbound=is_outbound,
            folder='sent' if is_outbound else 'inbox',
            sent_at=sent_at or timezone.now()
        )

    @staticmethod
    def create_todo(assigned_user, title='Pakket nabellen', status='todo', **fields):
        return Todo.objects.create(assigned_user=assigned_user, title=title, status=status, **fields)

    @staticmethod
    def create_appointment(title='Camera ophalen', start_time=None, duration_minutes=60, user=None, **fields):
        """Create a test appointment (starts tomorrow 10:00 UTC unless given)"""
        if not start_time:
            start_time = (timezone.now() + timedelta(days=1)).replace(hour=10, minute=0, second=0, microsecond=0)
        return Appointment.objects.create(
            title=title,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=duration_minutes),
            assigned_user=user,
            created_by=user,
            **fields
        )

    @staticmethod
    def create_supplier(name=None, supplier_number=None):
        """Create a test supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        if not supplier_number:
            supplier_number = f'SUP-{TestDataFactory.random_string(6).upper()}'
        return Supplier.objects.create(
            supplier_number=supplier_number,
            name=name,
            email=f'{supplier_number.lower()}@supplier.test'
        )

    @staticmethod
    def create_purchase_order(supplier=None, user=None, po_number=None, status='pending', amount=10000, purchase_date=None):
        """Create a test purchase order (amount in cents)"""
        purchase_date = purchase_date or timezone.now().date()
        if not po_number:
            po_number = f'PO-{purchase_date.year}-{random.randint(100, 999)}'
        return PurchaseOrder.objects.create(
            po_number=po_number,
            title=f'Inkoop {po_number}',
            supplier=supplier or TestDataFactory.create_supplier(),
            purchase_date=purchase_date,
            amount=amount,
            status=status,
            created_by=user
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()

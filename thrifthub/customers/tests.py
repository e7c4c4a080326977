"""
Test suite for Customers module
Tests: Customer CRUD, search, cached detail and related records
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from thrifthub.core.models import AuditLog
from thrifthub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from thrifthub.customers.models import Customer


class CustomerModelTests(TestCase):
    """Test Customer model"""

    def test_full_name_and_str(self):
        """Test full name falls back to email in str()"""
        customer = TestDataFactory.create_customer(email='jan@example.com', first_name='Jan', last_name='Jansen')
        self.assertEqual(customer.full_name, 'Jan Jansen')
        nameless = TestDataFactory.create_customer(email='anon@example.com', first_name='', last_name='')
        self.assertEqual(str(nameless), 'anon@example.com')


class CustomerAPITests(TestCase):
    """Test Customer API endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_customer_normalises_email(self):
        """Test emails are stored lowercased"""
        data = {'email': ' Piet@Example.COM ', 'first_name': 'Piet', 'last_name': 'de Vries'}
        response = self.client.post('/api/v1/customers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['email'], 'piet@example.com')
        self.assertTrue(AuditLog.objects.filter(model_name='Customer', action='create').exists())

    def test_search_customers(self):
        """Test searching by name or email"""
        TestDataFactory.create_customer(first_name='Anna', last_name='Bakker')
        TestDataFactory.create_customer(first_name='Kees', last_name='Smit')
        response = self.client.get('/api/v1/customers/?search=bakker')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_detail_reflects_update(self):
        """Test cached detail payloads are dropped when the customer changes"""
        customer = TestDataFactory.create_customer(first_name='Jan')
        self.client.get(f'/api/v1/customers/{customer.id}/')
        response = self.client.patch(f'/api/v1/customers/{customer.id}/', {'first_name': 'Johan'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.data['first_name'], 'Johan')

    def test_customer_orders_by_email(self):
        """Test orders are found by link or by email"""
        customer = TestDataFactory.create_customer(email='klant@example.com')
        TestDataFactory.create_order(customer=customer)
        TestDataFactory.create_order(customer_email='KLANT@example.com')
        TestDataFactory.create_order(customer_email='ander@example.com')
        response = self.client.get(f'/api/v1/customers/{customer.id}/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_customer_email_threads(self):
        """Test email threads of a customer"""
        customer = TestDataFactory.create_customer(email='klant@example.com')
        TestDataFactory.create_thread(customer_email='klant@example.com')
        response = self.client.get(f'/api/v1/customers/{customer.id}/email-threads/')
        self.assertEqual(len(response.data), 1)

    def test_viewer_cannot_delete(self):
        """Test viewers cannot delete customers"""
        customer = TestDataFactory.create_customer()
        viewer = TestDataFactory.create_user(role='viewer')
        self.client.authenticate_user(viewer)
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Customer.objects.filter(id=customer.id).exists())

    def test_delete_customer(self):
        """Test agents can delete customers"""
        customer = TestDataFactory.create_customer()
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

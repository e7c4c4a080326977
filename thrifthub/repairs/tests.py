"""
Test suite for Repairs module
Tests: Repair timeline, completion stamp, filters and role permissions
"""
from django.test import TestCase
from rest_framework import status
from thrifthub.core.models import Activity
from thrifthub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from thrifthub.repairs.models import Repair


class RepairModelTests(TestCase):
    """Test Repair timeline bookkeeping"""

    def test_create_seeds_timeline(self):
        """Test new repairs start with one timeline entry"""
        user = TestDataFactory.create_user(username='tech')
        repair = TestDataFactory.create_repair(user=user)
        self.assertEqual(len(repair.timeline), 1)
        self.assertEqual(repair.timeline[0]['status'], 'new')
        self.assertEqual(repair.timeline[0]['user'], 'tech')

    def test_customer_details_copied(self):
        """Test customer email and name are copied from the linked customer"""
        customer = TestDataFactory.create_customer(email='piet@example.com', first_name='Piet', last_name='Bos')
        repair = TestDataFactory.create_repair(customer=customer)
        self.assertEqual(repair.customer_email, 'piet@example.com')
        self.assertEqual(repair.customer_name, 'Piet Bos')

    def test_closed_sets_completed_at_once(self):
        """Test completed_at is set the first time a repair closes"""
        repair = TestDataFactory.create_repair()
        repair.record_status('closed')
        first = repair.completed_at
        self.assertIsNotNone(first)
        repair.record_status('in_progress')
        repair.record_status('closed')
        self.assertEqual(repair.completed_at, first)
        self.assertEqual([entry['status'] for entry in repair.timeline], ['new', 'closed', 'in_progress', 'closed'])


class RepairAPITests(TestCase):
    """Test Repair API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_repair(self):
        """Test creating a repair with costs in cents"""
        data = {
            'title': 'Sluiter hangt',
            'product_name': 'Nikon FM2',
            'serial_number': 'FM2-778812',
            'estimated_cost': 8500,
            'parts_needed': ['sluitergordijn'],
        }
        response = self.client.post('/api/v1/repairs/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['estimated_cost'], 8500)
        self.assertEqual(response.data['created_by'], self.user.id)
        self.assertEqual(len(response.data['timeline']), 1)
        self.assertTrue(Activity.objects.filter(type='repair_created').exists())

    def test_negative_cost_rejected(self):
        """Test costs must not be negative"""
        response = self.client.post('/api/v1/repairs/', {'title': 'X', 'actual_cost': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_parts_needed_must_be_list(self):
        """Test parts_needed must be a list"""
        response = self.client.post('/api/v1/repairs/', {'title': 'X', 'parts_needed': 'lens'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_change_extends_timeline(self):
        """Test status changes append to the timeline and stamp completion"""
        repair = TestDataFactory.create_repair(user=self.user)
        response = self.client.patch(f'/api/v1/repairs/{repair.id}/', {'status': 'closed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([entry['status'] for entry in response.data['timeline']], ['new', 'closed'])
        self.assertIsNotNone(response.data['completed_at'])
        self.assertTrue(Activity.objects.filter(type='repair_status_updated').exists())

    def test_same_status_does_not_extend_timeline(self):
        """Test saving without a status change leaves the timeline alone"""
        repair = TestDataFactory.create_repair()
        response = self.client.patch(f'/api/v1/repairs/{repair.id}/', {'description': 'Lichtlek'}, format='json')
        self.assertEqual(len(response.data['timeline']), 1)

    def test_filters(self):
        """Test status, assigned_user=me and search filters"""
        TestDataFactory.create_repair(title='Lens beslagen', assigned_user=self.user)
        TestDataFactory.create_repair(title='Flits kapot', status='ready')
        response = self.client.get('/api/v1/repairs/?status=ready')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/repairs/?assigned_user=me')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['title'], 'Lens beslagen')
        response = self.client.get('/api/v1/repairs/?search=flits')
        self.assertEqual(response.data['count'], 1)

    def test_repair_tech_can_write(self):
        """Test repair technicians can update repairs"""
        repair = TestDataFactory.create_repair()
        self.client.authenticate_user(TestDataFactory.create_user(role='repair_tech'))
        response = self.client.patch(f'/api/v1/repairs/{repair.id}/', {'status': 'in_progress'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_repair_tech_cannot_delete(self):
        """Test deleting a repair needs the admin or agent role"""
        repair = TestDataFactory.create_repair()
        self.client.authenticate_user(TestDataFactory.create_user(role='repair_tech'))
        response = self.client.delete(f'/api/v1/repairs/{repair.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Repair.objects.filter(id=repair.id).exists())

    def test_viewer_is_read_only(self):
        """Test viewers can list but not create repairs"""
        self.client.authenticate_user(TestDataFactory.create_user(role='viewer'))
        response = self.client.get('/api/v1/repairs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.post('/api/v1/repairs/', {'title': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_repair(self):
        """Test deleting a repair"""
        repair = TestDataFactory.create_repair()
        response = self.client.delete(f'/api/v1/repairs/{repair.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Repair.objects.filter(id=repair.id).exists())

"""
Test suite for Cases module
Tests: Case numbering, status timestamps, archiving, links and cases from email
"""
from django.test import TestCase
from rest_framework import status
from thrifthub.cases.models import Case, CaseLink
from thrifthub.cases.services import generate_case_number, link_case
from thrifthub.core.models import Activity, AuditLog
from thrifthub.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class CaseServiceTests(TestCase):
    """Test case numbering and linking"""

    def test_case_numbers_are_sequential(self):
        """Test case numbers count up from CASE-001"""
        self.assertEqual(generate_case_number(), 'CASE-001')
        TestDataFactory.create_case()
        TestDataFactory.create_case()
        self.assertEqual(generate_case_number(), 'CASE-003')

    def test_link_case_is_idempotent(self):
        """Test linking the same record twice keeps a single link"""
        case = TestDataFactory.create_case()
        link_case(case, 'order', 42)
        link_case(case, 'order', 42)
        self.assertEqual(CaseLink.objects.filter(case=case).count(), 1)


class CaseAPITests(TestCase):
    """Test Case API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer()

    def test_create_case(self):
        """Test creating a case assigns a number and logs activity"""
        data = {'title': 'Camera defect', 'customer': self.customer.id, 'priority': 'high', 'case_type': 'complaint'}
        response = self.client.post('/api/v1/cases/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['case_number'], 'CASE-001')
        self.assertEqual(response.data['created_by'], self.user.id)
        self.assertTrue(Activity.objects.filter(type='case_created').exists())

    def test_create_case_requires_title(self):
        """Test title is required"""
        response = self.client.post('/api/v1/cases/', {'priority': 'high'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_hides_archived_by_default(self):
        """Test archived cases are hidden unless requested"""
        TestDataFactory.create_case(title='Open')
        TestDataFactory.create_case(title='Oud', archived=True)
        response = self.client.get('/api/v1/cases/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['title'], 'Open')
        response = self.client.get('/api/v1/cases/?archived=true')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['title'], 'Oud')

    def test_search_cases(self):
        """Test search by case number"""
        case = TestDataFactory.create_case()
        TestDataFactory.create_case()
        response = self.client.get('/api/v1/cases/', {'search': case.case_number})
        self.assertEqual(response.data['count'], 1)

    def test_resolve_stamps_resolved_at(self):
        """Test moving to resolved stamps resolved_at and audits the change"""
        case = TestDataFactory.create_case()
        response = self.client.patch(f'/api/v1/cases/{case.id}/', {'status': 'resolved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['resolved_at'])
        self.assertIsNone(response.data['closed_at'])
        self.assertTrue(AuditLog.objects.filter(model_name='Case', action='status_change').exists())

    def test_close_keeps_first_resolved_at(self):
        """Test closing a resolved case keeps resolved_at and stamps closed_at"""
        case = TestDataFactory.create_case()
        self.client.patch(f'/api/v1/cases/{case.id}/', {'status': 'resolved'}, format='json')
        resolved_at = Case.objects.get(id=case.id).resolved_at
        response = self.client.patch(f'/api/v1/cases/{case.id}/', {'status': 'closed'}, format='json')
        case.refresh_from_db()
        self.assertEqual(case.resolved_at, resolved_at)
        self.assertIsNotNone(response.data['closed_at'])

    def test_invalid_status(self):
        """Test statuses outside the enum are rejected"""
        case = TestDataFactory.create_case()
        response = self.client.patch(f'/api/v1/cases/{case.id}/', {'status': 'done'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_archive_and_unarchive(self):
        """Test archiving sets archived_at and unarchiving clears it"""
        case = TestDataFactory.create_case()
        response = self.client.post(f'/api/v1/cases/{case.id}/archive/')
        self.assertTrue(response.data['archived'])
        self.assertIsNotNone(response.data['archived_at'])
        response = self.client.post(f'/api/v1/cases/{case.id}/unarchive/')
        self.assertFalse(response.data['archived'])
        self.assertIsNone(response.data['archived_at'])

    def test_add_and_remove_link(self):
        """Test linking a case to an order and removing the link"""
        case = TestDataFactory.create_case()
        order = TestDataFactory.create_order()
        response = self.client.post(f'/api/v1/cases/{case.id}/links/',
                                    {'link_type': 'order', 'linked_id': order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        link_id = response.data['id']

        response = self.client.get(f'/api/v1/cases/{case.id}/links/')
        self.assertEqual(len(response.data), 1)

        response = self.client.delete(f'/api/v1/cases/{case.id}/links/{link_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(CaseLink.objects.filter(id=link_id).exists())

    def test_invalid_link_type(self):
        """Test unknown link types are rejected"""
        case = TestDataFactory.create_case()
        response = self.client.post(f'/api/v1/cases/{case.id}/links/',
                                    {'link_type': 'invoice', 'linked_id': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_case_from_email(self):
        """Test creating a case from an email thread"""
        thread = TestDataFactory.create_thread(subject='Lens beschadigd', customer=self.customer)
        TestDataFactory.create_message(thread, body='De lens heeft krassen.')
        response = self.client.post(f'/api/v1/cases/from-email/{thread.id}/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['title'], 'Lens beschadigd')
        self.assertEqual(response.data['source'], 'email')
        self.assertEqual(response.data['description'], 'De lens heeft krassen.')
        self.assertEqual(response.data['customer'], self.customer.id)

    def test_viewer_cannot_create(self):
        """Test viewers are read-only"""
        self.client.authenticate_user(TestDataFactory.create_user(role='viewer'))
        response = self.client.post('/api/v1/cases/', {'title': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_viewer_can_list(self):
        """Test viewers can read cases"""
        self.client.authenticate_user(TestDataFactory.create_user(role='viewer'))
        response = self.client.get('/api/v1/cases/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

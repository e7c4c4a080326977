"""
Test suite for Core module
Tests: Authentication, users and roles, settings, activity feed, audit logs, global search
"""
from django.test import TestCase
from rest_framework import status
from thrifthub.core.models import Setting, AuditLog
from thrifthub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from thrifthub.core.utils import (
    create_audit_log, log_activity, get_setting, set_setting, delete_setting,
    model_changes, next_sequence_number
)
from thrifthub.cases.models import Case


class AuthTests(TestCase):
    """Test JWT login and the current user endpoint"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='agent1', password='testpass123', role='agent')
        self.client = AuthenticatedAPIClient()

    def test_login_returns_tokens_and_user(self):
        """Test login returns access and refresh tokens with the user"""
        response = self.client.post('/api/v1/auth/login/',
                                    {'username': 'agent1', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role'], 'agent')

    def test_login_wrong_password(self):
        """Test login fails with a wrong password"""
        response = self.client.post('/api/v1/auth/login/',
                                    {'username': 'agent1', 'password': 'wrong'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_token(self):
        """Test exchanging a refresh token for a new access token"""
        login = self.client.post('/api/v1/auth/login/',
                                 {'username': 'agent1', 'password': 'testpass123'}, format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_me_requires_authentication(self):
        """Test unauthenticated requests are rejected"""
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_capabilities(self):
        """Test role-derived capabilities on the current user"""
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_admin'])
        self.assertTrue(response.data['can_edit'])
        self.assertTrue(response.data['can_manage_repairs'])

    def test_superuser_is_admin(self):
        """Test superusers are treated as admins"""
        superuser = TestDataFactory.create_user(role='viewer', is_superuser=True)
        self.client.authenticate_user(superuser)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.data['role'], 'admin')
        self.assertTrue(response.data['is_admin'])


class UserAPITests(TestCase):
    """Test admin-only user management"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='admin')
        self.agent = TestDataFactory.create_user(role='agent')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_admin_creates_user(self):
        """Test creating a user with a role"""
        data = {
            'username': 'tech1',
            'email': 'tech1@dutchthrift.com',
            'password': 'Sluiter-2025!',
            'password_confirm': 'Sluiter-2025!',
            'role': 'repair_tech',
        }
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['role'], 'repair_tech')

    def test_password_mismatch(self):
        """Test mismatched passwords are rejected"""
        data = {'username': 'x', 'password': 'Sluiter-2025!', 'password_confirm': 'Other-2025!'}
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_agent_cannot_list_users(self):
        """Test user management is admin-only"""
        self.client.authenticate_user(self.agent)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_minimal_list_open_to_all_roles(self):
        """Test the assignment picker list is available to agents"""
        self.client.authenticate_user(self.agent)
        response = self.client.get('/api/v1/users/list/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_change_role(self):
        """Test an admin changing another user's role"""
        response = self.client.patch(f'/api/v1/users/{self.agent.id}/', {'role': 'viewer'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.agent.refresh_from_db()
        self.assertEqual(self.agent.role, 'viewer')

    def test_cannot_delete_self(self):
        """Test admins cannot delete their own account"""
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class SettingTests(TestCase):
    """Test settings helpers and endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_setting_helpers(self):
        """Test get, set and delete of a setting"""
        self.assertEqual(get_setting('orders_last_sync', 'never'), 'never')
        set_setting('orders_last_sync', '2025-03-01T10:00:00+00:00')
        set_setting('orders_last_sync', '2025-03-02T10:00:00+00:00')
        self.assertEqual(get_setting('orders_last_sync'), '2025-03-02T10:00:00+00:00')
        self.assertEqual(Setting.objects.filter(key='orders_last_sync').count(), 1)
        delete_setting('orders_last_sync')
        self.assertIsNone(get_setting('orders_last_sync'))

    def test_create_setting_via_api(self):
        """Test creating a setting through the API"""
        response = self.client.post('/api/v1/settings/', {'key': 'sla_hours', 'value': '48'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(get_setting('sla_hours'), '48')

    def test_settings_admin_only(self):
        """Test agents cannot read settings"""
        agent = TestDataFactory.create_user(role='agent')
        self.client.authenticate_user(agent)
        response = self.client.get('/api/v1/settings/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class UtilityTests(TestCase):
    """Test audit, activity and numbering helpers"""

    def test_create_audit_log_requires_fields(self):
        """Test audit entries missing required fields are skipped"""
        self.assertIsNone(create_audit_log(action='create', model_name='Case'))
        self.assertFalse(AuditLog.objects.exists())

    def test_log_activity(self):
        """Test activities are stored with metadata"""
        user = TestDataFactory.create_user()
        activity = log_activity('case_created', 'Case CASE-001 created', user=user, metadata={'case_id': 1})
        self.assertEqual(activity.user, user)
        self.assertEqual(activity.metadata, {'case_id': 1})

    def test_model_changes(self):
        """Test only differing fields are reported"""
        case = TestDataFactory.create_case()
        changes = model_changes(case, {'status': 'resolved', 'title': case.title})
        self.assertEqual(list(changes), ['status'])
        self.assertEqual(changes['status']['new'], 'resolved')

    def test_next_sequence_number(self):
        """Test numbering continues from the highest suffix"""
        TestDataFactory.create_case()
        TestDataFactory.create_case()
        self.assertEqual(next_sequence_number(Case, 'case_number', 'CASE-'), 'CASE-003')


class ActivityAndAuditAPITests(TestCase):
    """Test activity feed and audit log endpoints"""

    def setUp(self):
        self.agent = TestDataFactory.create_user(role='agent')
        self.admin = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.agent)

    def test_activity_list_filter(self):
        """Test filtering the activity feed by type"""
        log_activity('case_created', 'one', user=self.agent)
        log_activity('todo_completed', 'two', user=self.agent)
        response = self.client.get('/api/v1/activities/?type=todo_completed')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['description'], 'two')

    def test_non_admin_sees_own_audit_logs(self):
        """Test non-admins only see their own audit entries"""
        create_audit_log(action='create', model_name='Case', object_id=1, user=self.agent)
        create_audit_log(action='delete', model_name='Case', object_id=2, user=self.admin)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_admin_sees_all_audit_logs(self):
        """Test admins see every audit entry and can filter by model"""
        create_audit_log(action='create', model_name='Case', object_id=1, user=self.agent)
        create_audit_log(action='create', model_name='Return', object_id=2, user=self.admin)
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/?model=Return')
        self.assertEqual(response.data['count'], 1)

    def test_audit_log_detail_forbidden_for_others(self):
        """Test non-admins cannot open other users' audit entries"""
        entry = create_audit_log(action='create', model_name='Case', object_id=1, user=self.admin)
        response = self.client.get(f'/api/v1/audit-logs/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class GlobalSearchTests(TestCase):
    """Test global search across entities"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_empty_query(self):
        """Test an empty query returns empty groups"""
        response = self.client.get('/api/v1/search/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['orders'], [])
        self.assertEqual(response.data['cases'], [])

    def test_search_order_number_with_hash(self):
        """Test order numbers are found with or without a leading #"""
        TestDataFactory.create_order(order_number='10935')
        response = self.client.get('/api/v1/search/', {'q': '#10935'})
        self.assertEqual(len(response.data['orders']), 1)

    def test_bare_hash_matches_no_orders(self):
        """Test a lone '#' does not list every order"""
        TestDataFactory.create_order(order_number='10935')
        TestDataFactory.create_order(order_number='10936')
        response = self.client.get('/api/v1/search/', {'q': '#'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['orders'], [])

    def test_search_across_entities(self):
        """Test customers, cases and threads are searched"""
        customer = TestDataFactory.create_customer(email='zeiss.fan@example.com')
        TestDataFactory.create_case(title='Zeiss lens krassen', customer=customer)
        TestDataFactory.create_thread(subject='Vraag over Zeiss lens')
        response = self.client.get('/api/v1/search/', {'q': 'zeiss'})
        self.assertEqual(len(response.data['customers']), 1)
        self.assertEqual(len(response.data['cases']), 1)
        self.assertEqual(len(response.data['email_threads']), 1)

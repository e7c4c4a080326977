"""
Test suite for Todos module
Tests: Todo scope and filters, completion stamps, activity feed and subtasks
"""
from django.test import TestCase
from rest_framework import status
from thrifthub.core.models import Activity
from thrifthub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from thrifthub.todos.models import Subtask, Todo
from thrifthub.todos.services import apply_completion, next_subtask_position


class TodoServiceTests(TestCase):
    """Test completion bookkeeping and subtask positions"""

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_completion_sets_and_clears(self):
        """Test completed_at follows the done status"""
        todo = TestDataFactory.create_todo(self.user)
        todo.status = 'done'
        self.assertTrue(apply_completion(todo, 'todo'))
        self.assertIsNotNone(todo.completed_at)

        todo.status = 'in_progress'
        self.assertFalse(apply_completion(todo, 'done'))
        self.assertIsNone(todo.completed_at)

    def test_unchanged_status(self):
        """Test nothing happens when the status did not change"""
        todo = TestDataFactory.create_todo(self.user, status='done')
        self.assertFalse(apply_completion(todo, 'done'))

    def test_next_subtask_position(self):
        """Test positions continue after the highest existing one"""
        todo = TestDataFactory.create_todo(self.user)
        self.assertEqual(next_subtask_position(todo), 0)
        Subtask.objects.create(todo=todo, title='Een', position=4)
        self.assertEqual(next_subtask_position(todo), 5)


class TodoAPITests(TestCase):
    """Test Todo API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_defaults_to_requester(self):
        """Test new todos are assigned to the requester by default"""
        response = self.client.post('/api/v1/todos/', {'title': 'Leverancier bellen', 'category': 'purchasing'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['assigned_user'], self.user.id)
        self.assertEqual(response.data['created_by'], self.user.id)

    def test_create_for_colleague(self):
        """Test todos can be assigned to someone else"""
        response = self.client.post('/api/v1/todos/', {'title': 'Retour checken', 'assigned_user': self.other.id},
                                    format='json')
        self.assertEqual(response.data['assigned_user'], self.other.id)

    def test_list_mine_by_default(self):
        """Test the list shows only my todos unless scope=all"""
        TestDataFactory.create_todo(self.user, title='Mijn taak')
        TestDataFactory.create_todo(self.other, title='Andermans taak')
        response = self.client.get('/api/v1/todos/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['title'], 'Mijn taak')
        response = self.client.get('/api/v1/todos/?scope=all')
        self.assertEqual(response.data['count'], 2)

    def test_filters(self):
        """Test status, category and search filters"""
        TestDataFactory.create_todo(self.user, title='Facturen', category='admin')
        TestDataFactory.create_todo(self.user, title='Nieuwsbrief', category='marketing', status='done')
        response = self.client.get('/api/v1/todos/?category=marketing')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/todos/?status=todo')
        self.assertEqual(response.data['results'][0]['title'], 'Facturen')
        response = self.client.get('/api/v1/todos/?search=nieuws')
        self.assertEqual(response.data['count'], 1)

    def test_completing_logs_activity(self):
        """Test marking a todo done stamps completed_at and logs activity"""
        todo = TestDataFactory.create_todo(self.user)
        response = self.client.patch(f'/api/v1/todos/{todo.id}/', {'status': 'done'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['completed_at'])
        self.assertTrue(Activity.objects.filter(type='todo_completed').exists())

    def test_reopening_clears_completed_at(self):
        """Test moving a done todo back clears completed_at"""
        todo = TestDataFactory.create_todo(self.user)
        self.client.patch(f'/api/v1/todos/{todo.id}/', {'status': 'done'}, format='json')
        response = self.client.patch(f'/api/v1/todos/{todo.id}/', {'status': 'in_progress'}, format='json')
        self.assertIsNone(response.data['completed_at'])

    def test_subtasks(self):
        """Test adding subtasks appends positions and progress counts completed ones"""
        todo = TestDataFactory.create_todo(self.user)
        first = self.client.post(f'/api/v1/todos/{todo.id}/subtasks/', {'title': 'Offerte'}, format='json')
        second = self.client.post(f'/api/v1/todos/{todo.id}/subtasks/', {'title': 'Bestellen'}, format='json')
        self.assertEqual(first.data['position'], 0)
        self.assertEqual(second.data['position'], 1)

        self.client.patch(f'/api/v1/subtasks/{first.data["id"]}/', {'completed': True}, format='json')
        response = self.client.get(f'/api/v1/todos/{todo.id}/')
        self.assertEqual(response.data['subtask_progress'], {'done': 1, 'total': 2})

    def test_delete_subtask(self):
        """Test deleting a subtask"""
        todo = TestDataFactory.create_todo(self.user)
        subtask = Subtask.objects.create(todo=todo, title='Weg')
        response = self.client.delete(f'/api/v1/subtasks/{subtask.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Subtask.objects.filter(id=subtask.id).exists())

    def test_delete_todo_cascades(self):
        """Test deleting a todo removes its subtasks"""
        todo = TestDataFactory.create_todo(self.user)
        Subtask.objects.create(todo=todo, title='Weg')
        response = self.client.delete(f'/api/v1/todos/{todo.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Todo.objects.exists())
        self.assertFalse(Subtask.objects.exists())

    def test_viewer_cannot_create(self):
        """Test viewers are read-only"""
        self.client.authenticate_user(TestDataFactory.create_user(role='viewer'))
        response = self.client.post('/api/v1/todos/', {'title': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

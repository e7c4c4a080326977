"""
Test suite for Notes module
Tests: Mentions, pinning order, author permissions and soft delete
"""
from django.test import TestCase
from rest_framework import status
from thrifthub.core.models import Activity
from thrifthub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from thrifthub.notes.models import Note
from thrifthub.notes.serializers import parse_mentions


class MentionTests(TestCase):
    """Test @mention parsing"""

    def test_parse_mentions(self):
        """Test only existing users are returned, in order, once each"""
        anna = TestDataFactory.create_user(username='anna')
        bob = TestDataFactory.create_user(username='bob.k')
        content = 'Kun jij dit oppakken @bob.k? cc @anna @onbekend @anna.'
        self.assertEqual(parse_mentions(content), [bob.id, anna.id])

    def test_no_mentions(self):
        """Test content without mentions"""
        self.assertEqual(parse_mentions('Gewoon een notitie'), [])


class NoteAPITests(TestCase):
    """Test Note API endpoints"""

    def setUp(self):
        self.author = TestDataFactory.create_user(username='auteur')
        self.colleague = TestDataFactory.create_user(username='collega')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.author)
        self.customer = TestDataFactory.create_customer()

    def create_note(self, content='Klant belt morgen terug', author=None):
        return Note.objects.create(entity_type='customer', entity_id=self.customer.id,
                                   content=content, author=author or self.author)

    def test_create_note_with_mention(self):
        """Test mentions are stored and announced in the activity feed"""
        data = {'entity_type': 'customer', 'entity_id': self.customer.id, 'content': '@collega kun jij bellen?'}
        response = self.client.post('/api/v1/notes/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['mentions'], [self.colleague.id])
        self.assertEqual(response.data['author'], self.author.id)
        self.assertTrue(Activity.objects.filter(type='note_mention').exists())

    def test_empty_note_rejected(self):
        """Test blank content is rejected"""
        data = {'entity_type': 'customer', 'entity_id': self.customer.id, 'content': '   '}
        response = self.client.post('/api/v1/notes/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_pinned_first(self):
        """Test pinned notes come first, then newest first"""
        old = self.create_note('Oud')
        self.create_note('Nieuw')
        self.client.post(f'/api/v1/notes/{old.id}/pin/')
        response = self.client.get(f'/api/v1/notes/customer/{self.customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([note['content'] for note in response.data], ['Oud', 'Nieuw'])
        self.assertTrue(response.data[0]['is_pinned'])

    def test_unpin(self):
        """Test DELETE on pin unpins the note"""
        note = self.create_note()
        self.client.post(f'/api/v1/notes/{note.id}/pin/')
        response = self.client.delete(f'/api/v1/notes/{note.id}/pin/')
        self.assertFalse(response.data['is_pinned'])
        self.assertIsNone(response.data['pinned_at'])

    def test_unknown_entity_type(self):
        """Test listing notes for an unknown record type"""
        response = self.client.get('/api/v1/notes/invoice/1/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_author_can_edit(self):
        """Test the author can edit and mentions are recomputed"""
        note = self.create_note()
        response = self.client.patch(f'/api/v1/notes/{note.id}/', {'content': 'Update voor @collega'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['mentions'], [self.colleague.id])

    def test_entity_cannot_be_moved(self):
        """Test a note stays on its record"""
        note = self.create_note()
        self.client.patch(f'/api/v1/notes/{note.id}/', {'entity_type': 'order', 'entity_id': 99}, format='json')
        note.refresh_from_db()
        self.assertEqual(note.entity_type, 'customer')

    def test_other_user_cannot_edit(self):
        """Test colleagues cannot edit or delete someone else's note"""
        note = self.create_note()
        self.client.authenticate_user(self.colleague)
        response = self.client.patch(f'/api/v1/notes/{note.id}/', {'content': 'Gewijzigd'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.delete(f'/api/v1/notes/{note.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_can_edit(self):
        """Test admins can edit any note"""
        note = self.create_note()
        self.client.authenticate_user(TestDataFactory.create_user(role='admin'))
        response = self.client.patch(f'/api/v1/notes/{note.id}/', {'content': 'Door admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_soft_delete(self):
        """Test deleted notes are hidden but kept"""
        note = self.create_note()
        response = self.client.delete(f'/api/v1/notes/{note.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertTrue(Note.objects.filter(id=note.id, deleted_at__isnull=False).exists())
        response = self.client.get(f'/api/v1/notes/customer/{self.customer.id}/')
        self.assertEqual(response.data, [])
        response = self.client.get(f'/api/v1/notes/{note.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from thrifthub.core.permissions import ReadOnlyForViewer, has_role
from thrifthub.core.utils import log_activity
from .models import Note
from .serializers import NoteSerializer


def _can_edit(user, note):
    return note.author_id == user.id or has_role(user, 'admin')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def note_list_for_entity(request, entity_type, entity_id):
    """Notes on one record, pinned first, then newest first"""
    if entity_type not in dict(Note.ENTITY_TYPE_CHOICES):
        return Response({'error': f'Unknown entity type: {entity_type}'}, status=status.HTTP_400_BAD_REQUEST)
    notes = (
        Note.objects.active()
        .filter(entity_type=entity_type, entity_id=entity_id)
        .select_related('author')
        .order_by('-is_pinned', '-pinned_at', '-created_at')
    )
    return Response(NoteSerializer(notes, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def note_create(request):
    serializer = NoteSerializer(data=request.data)
    if serializer.is_valid():
        note = serializer.save(author=request.user)
        if note.mentions:
            log_activity('note_mention', f"{request.user.username} mentioned {len(note.mentions)} user(s) in a note",
                         user=request.user,
                         metadata={'note_id': note.id, 'mentions': note.mentions,
                                   'entity_type': note.entity_type, 'entity_id': note.entity_id})
        return Response(NoteSerializer(note).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def note_detail(request, pk):
    """Retrieve, edit (author or admin) or soft-delete a note"""
    note = get_object_or_404(Note.objects.active(), pk=pk)

    if request.method == 'GET':
        return Response(NoteSerializer(note).data)

    if not _can_edit(request.user, note):
        return Response({'error': 'Only the author or an admin can change this note'},
                        status=status.HTTP_403_FORBIDDEN)

    if request.method == 'PATCH':
        serializer = NoteSerializer(note, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        note.deleted_at = timezone.now()
        note.save(update_fields=['deleted_at', 'updated_at'])
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def note_pin(request, pk):
    """POST pins a note, DELETE unpins it"""
    note = get_object_or_404(Note.objects.active(), pk=pk)
    if request.method == 'POST':
        note.is_pinned = True
        note.pinned_at = timezone.now()
        note.pinned_by = request.user
    else:
        note.is_pinned = False
        note.pinned_at = None
        note.pinned_by = None
    note.save(update_fields=['is_pinned', 'pinned_at', 'pinned_by', 'updated_at'])
    return Response(NoteSerializer(note).data)

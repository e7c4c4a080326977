from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from thrifthub.core.pagination import paginated_response
from thrifthub.core.permissions import ReadOnlyForViewer
from thrifthub.core.utils import log_activity
from .models import Todo, Subtask
from .serializers import TodoSerializer, SubtaskSerializer
from .services import apply_completion, next_subtask_position


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def todo_list_create(request):
    """
    List todos or create a new one.

    GET returns the current user's todos; ?scope=all returns everyone's.
    Filters: status, category, priority, assigned_user, search.
    """
    if request.method == 'GET':
        queryset = Todo.objects.select_related('assigned_user').prefetch_related('subtasks')
        if request.query_params.get('scope') != 'all':
            queryset = queryset.filter(assigned_user=request.user)

        for param in ('status', 'category', 'priority'):
            value = request.query_params.get(param)
            if value:
                queryset = queryset.filter(**{param: value})

        assigned_user = request.query_params.get('assigned_user')
        if assigned_user:
            queryset = queryset.filter(assigned_user_id=assigned_user)

        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(title__icontains=search) | Q(description__icontains=search))

        return paginated_response(request, queryset.order_by('-created_at'),
                                  TodoSerializer, default_limit=50)

    data = request.data.copy()
    data.setdefault('assigned_user', request.user.id)
    serializer = TodoSerializer(data=data)
    if serializer.is_valid():
        todo = serializer.save(created_by=request.user)
        if apply_completion(todo, 'todo'):
            todo.save(update_fields=['completed_at'])
        return Response(TodoSerializer(todo).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def todo_detail(request, pk):
    todo = get_object_or_404(Todo.objects.prefetch_related('subtasks'), pk=pk)

    if request.method == 'GET':
        return Response(TodoSerializer(todo).data)
    elif request.method in ('PUT', 'PATCH'):
        old_status = todo.status
        serializer = TodoSerializer(todo, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            todo = serializer.save()
            if todo.status != old_status:
                completed = apply_completion(todo, old_status)
                todo.save(update_fields=['completed_at', 'updated_at'])
                if completed:
                    log_activity('todo_completed', f"Todo completed: {todo.title}",
                                 user=request.user, metadata={'todo_id': todo.id})
            return Response(TodoSerializer(todo).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        todo.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def subtask_list_create(request, pk):
    todo = get_object_or_404(Todo, pk=pk)

    if request.method == 'GET':
        return Response(SubtaskSerializer(todo.subtasks.all(), many=True).data)

    serializer = SubtaskSerializer(data=request.data)
    if serializer.is_valid():
        subtask = serializer.save(todo=todo, position=next_subtask_position(todo))
        return Response(SubtaskSerializer(subtask).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def subtask_detail(request, pk):
    subtask = get_object_or_404(Subtask, pk=pk)

    if request.method == 'GET':
        return Response(SubtaskSerializer(subtask).data)
    elif request.method == 'PATCH':
        serializer = SubtaskSerializer(subtask, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        subtask.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

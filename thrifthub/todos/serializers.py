from rest_framework import serializers
from .models import Todo, Subtask


class SubtaskSerializer(serializers.ModelSerializer):
    class Meta:
        model = Subtask
        fields = ['id', 'todo', 'title', 'completed', 'position', 'created_at']
        read_only_fields = ['todo', 'created_at']
        extra_kwargs = {'position': {'required': False}}


class TodoSerializer(serializers.ModelSerializer):
    assigned_user_name = serializers.CharField(source='assigned_user.username', read_only=True)
    subtasks = SubtaskSerializer(many=True, read_only=True)
    subtask_progress = serializers.SerializerMethodField()

    class Meta:
        model = Todo
        fields = [
            'id', 'title', 'description', 'category', 'assigned_user', 'assigned_user_name',
            'created_by', 'status', 'priority', 'due_date', 'customer', 'order', 'repair',
            'email_thread', 'case', 'return_request', 'completed_at', 'subtasks',
            'subtask_progress', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'completed_at', 'created_at', 'updated_at']

    def get_subtask_progress(self, obj):
        subtasks = list(obj.subtasks.all())
        return {'done': sum(1 for s in subtasks if s.completed), 'total': len(subtasks)}

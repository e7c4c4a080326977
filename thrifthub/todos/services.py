from django.db.models import Max
from django.utils import timezone

from .models import Subtask


def apply_completion(todo, old_status):
    """
    Keep completed_at in step with the status.

    Returns True when the todo has just been completed.
    """
    if todo.status == old_status:
        return False
    if todo.status == 'done':
        todo.completed_at = timezone.now()
        return True
    if old_status == 'done':
        todo.completed_at = None
    return False


def next_subtask_position(todo):
    highest = Subtask.objects.filter(todo=todo).aggregate(highest=Max('position'))['highest']
    return 0 if highest is None else highest + 1

from django.contrib import admin
from .models import Todo, Subtask


class SubtaskInline(admin.TabularInline):
    model = Subtask
    extra = 0
    fields = ['title', 'completed', 'position']


@admin.register(Todo)
class TodoAdmin(admin.ModelAdmin):
    list_display = ['id', 'title', 'category', 'assigned_user', 'status', 'priority', 'due_date']
    list_filter = ['status', 'category', 'priority']
    search_fields = ['title', 'description']
    inlines = [SubtaskInline]

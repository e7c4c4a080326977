from django.contrib import admin
from .models import Note


@admin.register(Note)
class NoteAdmin(admin.ModelAdmin):
    list_display = ['id', 'entity_type', 'entity_id', 'author', 'is_pinned', 'deleted_at', 'created_at']
    list_filter = ['entity_type', 'is_pinned']
    search_fields = ['content']

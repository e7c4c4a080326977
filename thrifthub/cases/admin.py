from django.contrib import admin
from .models import Case, CaseLink


class CaseLinkInline(admin.TabularInline):
    model = CaseLink
    extra = 0


@admin.register(Case)
class CaseAdmin(admin.ModelAdmin):
    list_display = ['case_number', 'title', 'status', 'priority', 'case_type', 'assigned_user', 'archived', 'created_at']
    list_filter = ['status', 'priority', 'case_type', 'source', 'archived']
    search_fields = ['case_number', 'title', 'customer_email']
    ordering = ['-created_at']
    inlines = [CaseLinkInline]

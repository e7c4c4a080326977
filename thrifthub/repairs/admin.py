from django.contrib import admin
from .models import Repair


@admin.register(Repair)
class RepairAdmin(admin.ModelAdmin):
    list_display = ['id', 'title', 'status', 'priority', 'assigned_user', 'customer_email', 'created_at']
    list_filter = ['status', 'priority']
    search_fields = ['title', 'description', 'customer_email', 'customer_name']
    ordering = ['-created_at']
    readonly_fields = ['timeline', 'completed_at', 'created_at', 'updated_at']

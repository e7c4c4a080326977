from django.contrib import admin
from .models import Appointment, AppointmentException, AppointmentAttendee


class AppointmentExceptionInline(admin.TabularInline):
    model = AppointmentException
    extra = 0
    fields = ['original_start_time', 'override_start_time', 'override_title', 'is_cancelled']


class AppointmentAttendeeInline(admin.TabularInline):
    model = AppointmentAttendee
    extra = 0
    fields = ['user', 'role', 'status']


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['id', 'title', 'type', 'start_time', 'end_time', 'assigned_user', 'recurrence_rule']
    list_filter = ['type', 'all_day', 'is_remote']
    search_fields = ['title', 'description', 'location']
    inlines = [AppointmentExceptionInline, AppointmentAttendeeInline]

from django.db import models
from thrifthub.core.models import User


class Appointment(models.Model):
    """
    Agenda item. A recurring appointment is a series described by an
    RFC 5545 RRULE; single occurrences are changed through AppointmentException.
    """
    TYPE_CHOICES = [
        ('afspraak', 'Afspraak'),
        ('intern', 'Intern'),
        ('taak', 'Taak'),
        ('blok', 'Blok'),
    ]

    title = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='afspraak')
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    all_day = models.BooleanField(default=False)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=255, blank=True)
    is_remote = models.BooleanField(default=False)
    meeting_link = models.URLField(max_length=500, blank=True)
    recurrence_rule = models.CharField(max_length=255, blank=True)
    recurrence_end_date = models.DateTimeField(null=True, blank=True)
    color = models.CharField(max_length=20, blank=True)
    assigned_user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='appointments')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_appointments')
    customer = models.ForeignKey('customers.Customer', on_delete=models.SET_NULL, null=True, blank=True, related_name='appointments')
    order = models.ForeignKey('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='appointments')
    repair = models.ForeignKey('repairs.Repair', on_delete=models.SET_NULL, null=True, blank=True, related_name='appointments')
    case = models.ForeignKey('cases.Case', on_delete=models.SET_NULL, null=True, blank=True, related_name='appointments')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.title} ({self.start_time:%Y-%m-%d %H:%M})"

    @property
    def is_recurring(self):
        return bool(self.recurrence_rule)

    @property
    def duration(self):
        return self.end_time - self.start_time

    class Meta:
        db_table = 'appointments'
        ordering = ['start_time']
        indexes = [
            models.Index(fields=['start_time', 'end_time'], name='appointment_start_t_5c0d2a_idx'),
            models.Index(fields=['assigned_user', 'start_time'], name='appointment_assigne_91f4be_idx'),
        ]


class AppointmentException(models.Model):
    """A cancelled or changed occurrence of a recurring appointment"""
    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name='exceptions')
    original_start_time = models.DateTimeField()
    override_start_time = models.DateTimeField(null=True, blank=True)
    override_end_time = models.DateTimeField(null=True, blank=True)
    override_title = models.CharField(max_length=255, blank=True)
    override_type = models.CharField(max_length=20, choices=Appointment.TYPE_CHOICES, blank=True)
    override_location = models.CharField(max_length=255, blank=True)
    is_cancelled = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.appointment_id} @ {self.original_start_time:%Y-%m-%d %H:%M}"

    class Meta:
        db_table = 'appointment_exceptions'
        unique_together = [['appointment', 'original_start_time']]


class AppointmentAttendee(models.Model):
    ROLE_CHOICES = [
        ('owner', 'Owner'),
        ('attendee', 'Attendee'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('accepted', 'Accepted'),
        ('declined', 'Declined'),
    ]

    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name='attendees')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='appointment_invites')
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='attendee')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.user} ({self.role})"

    class Meta:
        db_table = 'appointment_attendees'
        unique_together = [['appointment', 'user']]

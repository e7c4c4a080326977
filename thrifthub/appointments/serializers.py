from dateutil.rrule import rrulestr
from rest_framework import serializers
from .models import Appointment, AppointmentException, AppointmentAttendee


class AppointmentAttendeeSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True)

    class Meta:
        model = AppointmentAttendee
        fields = ['id', 'appointment', 'user', 'username', 'role', 'status', 'created_at']
        read_only_fields = ['appointment', 'created_at']


class AppointmentExceptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = AppointmentException
        fields = [
            'id', 'appointment', 'original_start_time', 'override_start_time', 'override_end_time',
            'override_title', 'override_type', 'override_location', 'is_cancelled',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['appointment', 'original_start_time', 'created_at', 'updated_at']

    def validate(self, attrs):
        start = attrs.get('override_start_time')
        end = attrs.get('override_end_time')
        if start and end and end < start:
            raise serializers.ValidationError({'override_end_time': 'End time must not be before start time.'})
        return attrs


class AppointmentSerializer(serializers.ModelSerializer):
    assigned_user_name = serializers.CharField(source='assigned_user.username', read_only=True)
    is_recurring = serializers.BooleanField(read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id', 'title', 'type', 'start_time', 'end_time', 'all_day', 'description',
            'location', 'is_remote', 'meeting_link', 'recurrence_rule', 'recurrence_end_date',
            'is_recurring', 'color', 'assigned_user', 'assigned_user_name', 'created_by',
            'customer', 'order', 'repair', 'case', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def validate(self, attrs):
        start = attrs.get('start_time', getattr(self.instance, 'start_time', None))
        end = attrs.get('end_time', getattr(self.instance, 'end_time', None))
        if start and end and end < start:
            raise serializers.ValidationError({'end_time': 'End time must not be before start time.'})

        # Occurrences are generated without microseconds
        if 'start_time' in attrs:
            attrs['start_time'] = attrs['start_time'].replace(microsecond=0)

        rule = attrs.get('recurrence_rule', getattr(self.instance, 'recurrence_rule', ''))
        if rule and start:
            try:
                rrulestr(rule, dtstart=start)
            except (ValueError, TypeError) as e:
                raise serializers.ValidationError({'recurrence_rule': f'Invalid recurrence rule: {e}'})
        return attrs

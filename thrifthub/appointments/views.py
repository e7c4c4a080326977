from django.db.models import Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from thrifthub.core.permissions import ReadOnlyForViewer, has_role
from thrifthub.core.utils import log_activity
from thrifthub.orders.sync import parse_datetime
from .models import Appointment
from .serializers import (
    AppointmentSerializer, AppointmentExceptionSerializer, AppointmentAttendeeSerializer
)
from .services import (
    expand_occurrences, is_occurrence, override_fields, upsert_exception, split_series,
    end_series_before, add_owner, build_ical
)

SCOPES = ('all', 'single', 'future')


def _parse_query_datetime(request, name):
    value = request.query_params.get(name)
    try:
        return parse_datetime(value)
    except (ValueError, OverflowError):
        return None


def _filter_appointments(request, queryset):
    assigned_user = request.query_params.get('assigned_user')
    if assigned_user == 'me':
        queryset = queryset.filter(assigned_user=request.user)
    elif assigned_user:
        queryset = queryset.filter(assigned_user_id=assigned_user)

    appointment_type = request.query_params.get('type')
    if appointment_type:
        queryset = queryset.filter(type=appointment_type)
    return queryset


def _can_remove(user, appointment):
    return has_role(user, 'admin', 'agent') or appointment.created_by_id == user.id


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def appointment_list_create(request):
    """
    List agenda events in a time range or create an appointment.

    GET requires time_min and time_max and returns {'events': [...]} with
    recurring series expanded into occurrences.
    Filters: assigned_user (id or 'me'), type.
    """
    if request.method == 'GET':
        time_min = _parse_query_datetime(request, 'time_min')
        time_max = _parse_query_datetime(request, 'time_max')
        if not time_min or not time_max:
            return Response({'error': 'time_min and time_max are required'},
                            status=status.HTTP_400_BAD_REQUEST)
        if time_max < time_min:
            return Response({'error': 'time_max must not be before time_min'},
                            status=status.HTTP_400_BAD_REQUEST)

        queryset = Appointment.objects.filter(start_time__lte=time_max).filter(
            Q(end_time__gte=time_min) | ~Q(recurrence_rule='')
        ).prefetch_related('exceptions')
        queryset = _filter_appointments(request, queryset)

        events = []
        for appointment in queryset:
            events.extend(expand_occurrences(appointment, time_min, time_max))
        events.sort(key=lambda event: (event['start_time'], event['series_id']))
        return Response({'events': events})

    data = request.data.copy()
    data.setdefault('assigned_user', request.user.id)
    serializer = AppointmentSerializer(data=data)
    if serializer.is_valid():
        appointment = serializer.save(created_by=request.user)
        add_owner(appointment, request.user)
        log_activity('appointment_created', f"Appointment created: {appointment.title}",
                     user=request.user, metadata={'appointment_id': appointment.id})
        return Response(AppointmentSerializer(appointment).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def appointment_detail(request, pk):
    """
    Retrieve, edit or delete an appointment.

    PATCH takes {scope, original_start, data}; DELETE takes ?scope and
    ?original_start. scope is 'all' (the whole series), 'single' (one
    occurrence) or 'future' (this occurrence and everything after it).
    Non-recurring appointments are always edited as a whole.
    """
    appointment = get_object_or_404(
        Appointment.objects.prefetch_related('exceptions', 'attendees__user'), pk=pk
    )

    if request.method == 'GET':
        return Response({
            'series': AppointmentSerializer(appointment).data,
            'exceptions': AppointmentExceptionSerializer(appointment.exceptions.all(), many=True).data,
            'attendees': AppointmentAttendeeSerializer(appointment.attendees.all(), many=True).data,
        })

    if request.method == 'PATCH':
        scope = request.data.get('scope', 'all')
        original_start_value = request.data.get('original_start')
        changes = request.data.get('data', {})
    else:
        scope = request.query_params.get('scope', 'single')
        original_start_value = request.query_params.get('original_start')
        changes = {}

    if scope not in SCOPES:
        return Response({'error': f"Invalid scope: {scope}"}, status=status.HTTP_400_BAD_REQUEST)
    if not isinstance(changes, dict):
        return Response({'error': 'data must be an object'}, status=status.HTTP_400_BAD_REQUEST)
    if not appointment.is_recurring:
        scope = 'all'

    original_start = None
    if scope != 'all':
        try:
            original_start = parse_datetime(original_start_value)
        except (ValueError, OverflowError):
            original_start = None
        if not original_start or not is_occurrence(appointment, original_start):
            return Response({'error': 'original_start must be an occurrence of this appointment'},
                            status=status.HTTP_400_BAD_REQUEST)

    if request.method == 'DELETE':
        return _delete_appointment(request, appointment, scope, original_start)

    if scope == 'all':
        serializer = AppointmentSerializer(appointment, data=changes, partial=True)
        if serializer.is_valid():
            appointment = serializer.save()
            return Response(AppointmentSerializer(appointment).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if scope == 'single':
        serializer = AppointmentExceptionSerializer(data=override_fields(changes), partial=True)
        if serializer.is_valid():
            exception = upsert_exception(appointment, original_start, **serializer.validated_data)
            return Response(AppointmentExceptionSerializer(exception).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # future: the series continues as a new one from this occurrence
    payload = {
        field: value for field, value in AppointmentSerializer(appointment).data.items()
        if field not in ('id', 'created_by', 'created_at', 'updated_at', 'assigned_user_name', 'is_recurring')
    }
    payload['start_time'] = original_start
    payload['end_time'] = original_start + appointment.duration
    payload.update(changes)
    serializer = AppointmentSerializer(data=payload)
    if serializer.is_valid():
        new_series = split_series(appointment, original_start, serializer, user=request.user)
        return Response(AppointmentSerializer(new_series).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


def _delete_appointment(request, appointment, scope, original_start):
    if not _can_remove(request.user, appointment):
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    if scope == 'single':
        upsert_exception(appointment, original_start, is_cancelled=True)
    elif scope == 'future' and original_start > appointment.start_time:
        end_series_before(appointment, original_start)
    else:
        log_activity('appointment_deleted', f"Appointment deleted: {appointment.title}",
                     user=request.user, metadata={'appointment_id': appointment.id})
        appointment.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def appointment_export_ics(request):
    """
    Export appointments as an iCalendar file.

    Optional filters: assigned_user, type, time_min, time_max.
    """
    queryset = _filter_appointments(request, Appointment.objects.prefetch_related('exceptions'))
    time_min = _parse_query_datetime(request, 'time_min')
    time_max = _parse_query_datetime(request, 'time_max')
    if time_min:
        queryset = queryset.filter(Q(end_time__gte=time_min) | ~Q(recurrence_rule=''))
    if time_max:
        queryset = queryset.filter(start_time__lte=time_max)

    response = HttpResponse(build_ical(queryset), content_type='text/calendar; charset=utf-8')
    response['Content-Disposition'] = 'attachment; filename=agenda.ics'
    return response

"""
Agenda helpers: recurrence expansion, occurrence edits and iCalendar export.

Recurring series are expanded in the server's local time zone so that a
weekly 09:00 appointment stays at 09:00 across daylight saving changes.
"""
import logging
from datetime import timedelta, timezone as dt_timezone

from dateutil.rrule import rrulestr
from django.db import transaction
from django.utils import timezone

from .models import Appointment, AppointmentException, AppointmentAttendee

logger = logging.getLogger(__name__)

MAX_OCCURRENCES = 500
ICAL_DATE_FORMAT = '%Y%m%dT%H%M%SZ'

# Occurrence fields a single-occurrence edit may override
OVERRIDE_FIELDS = {
    'start_time': 'override_start_time',
    'end_time': 'override_end_time',
    'title': 'override_title',
    'type': 'override_type',
    'location': 'override_location',
}


def build_rule(appointment):
    return rrulestr(appointment.recurrence_rule, dtstart=timezone.localtime(appointment.start_time))


def occurrence_starts(appointment, window_start, window_end):
    """Original start times of the occurrences overlapping the window"""
    if not appointment.is_recurring:
        if appointment.start_time <= window_end and appointment.end_time >= window_start:
            return [appointment.start_time]
        return []

    starts = build_rule(appointment).between(window_start - appointment.duration, window_end, inc=True)
    if appointment.recurrence_end_date:
        starts = [start for start in starts if start <= appointment.recurrence_end_date]
    if len(starts) > MAX_OCCURRENCES:
        logger.warning(f"Appointment {appointment.id} has {len(starts)} occurrences in range, "
                       f"returning the first {MAX_OCCURRENCES}")
        starts = starts[:MAX_OCCURRENCES]
    return [start.astimezone(dt_timezone.utc) for start in starts]


def is_occurrence(appointment, original_start):
    return original_start in occurrence_starts(appointment, original_start, original_start)


def build_event(appointment, original_start, exception=None):
    start = original_start
    end = original_start + appointment.duration
    title = appointment.title
    event_type = appointment.type
    location = appointment.location
    if exception:
        start = exception.override_start_time or start
        end = exception.override_end_time or start + appointment.duration
        title = exception.override_title or title
        event_type = exception.override_type or event_type
        location = exception.override_location or location

    if appointment.is_recurring:
        event_id = f"{appointment.id}-{original_start.strftime(ICAL_DATE_FORMAT)}"
    else:
        event_id = str(appointment.id)

    return {
        'id': event_id,
        'series_id': appointment.id,
        'original_start': original_start,
        'start_time': start,
        'end_time': end,
        'title': title,
        'type': event_type,
        'location': location,
        'description': appointment.description,
        'all_day': appointment.all_day,
        'is_remote': appointment.is_remote,
        'meeting_link': appointment.meeting_link,
        'color': appointment.color,
        'assigned_user': appointment.assigned_user_id,
        'customer': appointment.customer_id,
        'order': appointment.order_id,
        'repair': appointment.repair_id,
        'case': appointment.case_id,
        'is_recurring': appointment.is_recurring,
        'is_exception': exception is not None,
    }


def expand_occurrences(appointment, window_start, window_end):
    """
    Concrete events of an appointment within [window_start, window_end].

    Cancelled occurrences are skipped and overrides from exceptions are
    applied. An occurrence moved out of the window is dropped.
    """
    exceptions = {e.original_start_time: e for e in appointment.exceptions.all()}
    events = []
    for original_start in occurrence_starts(appointment, window_start, window_end):
        exception = exceptions.get(original_start)
        if exception and exception.is_cancelled:
            continue
        event = build_event(appointment, original_start, exception)
        if event['start_time'] <= window_end and event['end_time'] >= window_start:
            events.append(event)
    return events


def override_fields(data):
    """Map occurrence edits onto the exception's override fields"""
    return {override: data[field] for field, override in OVERRIDE_FIELDS.items() if field in data}


def upsert_exception(appointment, original_start, **fields):
    exception, _ = AppointmentException.objects.update_or_create(
        appointment=appointment,
        original_start_time=original_start,
        defaults=fields,
    )
    return exception


def end_series_before(appointment, original_start):
    """Stop a series just before original_start"""
    appointment.recurrence_end_date = original_start - timedelta(seconds=1)
    appointment.save(update_fields=['recurrence_end_date', 'updated_at'])


@transaction.atomic
def split_series(appointment, original_start, serializer, user=None):
    """
    End the series before original_start and continue it as a new series
    saved from the validated serializer. Attendees and exceptions from
    original_start on move along. Returns the new series.
    """
    end_series_before(appointment, original_start)
    new_series = serializer.save(created_by=user)

    AppointmentAttendee.objects.bulk_create([
        AppointmentAttendee(appointment=new_series, user_id=attendee.user_id,
                            role=attendee.role, status=attendee.status)
        for attendee in appointment.attendees.all()
    ])
    appointment.exceptions.filter(original_start_time__gte=original_start).update(appointment=new_series)
    return new_series


def add_owner(appointment, user):
    AppointmentAttendee.objects.get_or_create(
        appointment=appointment, user=user,
        defaults={'role': 'owner', 'status': 'accepted'},
    )


def format_ical_date(value):
    return value.astimezone(dt_timezone.utc).strftime(ICAL_DATE_FORMAT)


def escape_ical_text(value):
    return (value.replace('\\', '\\\\')
                 .replace(';', '\\;')
                 .replace(',', '\\,')
                 .replace('\r\n', '\\n')
                 .replace('\n', '\\n'))


def ical_rrule(appointment):
    rule = appointment.recurrence_rule
    if rule.upper().startswith('RRULE:'):
        rule = rule[len('RRULE:'):]
    parts = rule.upper().split(';')
    if appointment.recurrence_end_date and not any(p.startswith(('UNTIL=', 'COUNT=')) for p in parts):
        rule = f"{rule};UNTIL={format_ical_date(appointment.recurrence_end_date)}"
    return rule


def _event_lines(appointment, start, end, title, location, stamp):
    lines = [
        'BEGIN:VEVENT',
        f'UID:{appointment.id}@dutchthrifthub.com',
        f'DTSTAMP:{stamp}',
        f'DTSTART:{format_ical_date(start)}',
        f'DTEND:{format_ical_date(end)}',
        f'SUMMARY:{escape_ical_text(title)}',
    ]
    if appointment.description:
        lines.append(f'DESCRIPTION:{escape_ical_text(appointment.description)}')
    if location:
        lines.append(f'LOCATION:{escape_ical_text(location)}')
    return lines


def build_ical(appointments):
    """Render appointments as an iCalendar (RFC 5545) document"""
    stamp = format_ical_date(timezone.now())
    lines = [
        'BEGIN:VCALENDAR',
        'VERSION:2.0',
        'PRODID:-//DutchThriftHub//Agenda//NL',
        'CALSCALE:GREGORIAN',
        'METHOD:PUBLISH',
        'X-WR-TIMEZONE:Europe/Amsterdam',
    ]

    for appointment in appointments:
        exceptions = list(appointment.exceptions.all()) if appointment.is_recurring else []

        lines.extend(_event_lines(appointment, appointment.start_time, appointment.end_time,
                                  appointment.title, appointment.location, stamp))
        if appointment.is_recurring:
            lines.append(f'RRULE:{ical_rrule(appointment)}')
            for exception in exceptions:
                if exception.is_cancelled:
                    lines.append(f'EXDATE:{format_ical_date(exception.original_start_time)}')
        lines.append(f'LAST-MODIFIED:{format_ical_date(appointment.updated_at)}')
        lines.append('END:VEVENT')

        for exception in exceptions:
            if exception.is_cancelled:
                continue
            event = build_event(appointment, exception.original_start_time, exception)
            lines.extend(_event_lines(appointment, event['start_time'], event['end_time'],
                                      event['title'], event['location'], stamp))
            lines.append(f'RECURRENCE-ID:{format_ical_date(exception.original_start_time)}')
            lines.append(f'LAST-MODIFIED:{format_ical_date(exception.updated_at)}')
            lines.append('END:VEVENT')

    lines.append('END:VCALENDAR')
    return '\r\n'.join(lines) + '\r\n'

"""
Test suite for Appointments module
Tests: Recurrence expansion, occurrence edits, scoped deletes and iCalendar export
"""
from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import TestCase
from rest_framework import status
from thrifthub.core.models import Activity
from thrifthub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from thrifthub.appointments.models import Appointment, AppointmentAttendee, AppointmentException
from thrifthub.appointments.services import (
    expand_occurrences, escape_ical_text, format_ical_date, ical_rrule, is_occurrence
)


def utc(*args):
    return datetime(*args, tzinfo=dt_timezone.utc)


JANUARY = (utc(2026, 1, 1), utc(2026, 1, 31, 23, 59))


class RecurrenceTests(TestCase):
    """Test expanding series into occurrences"""

    def setUp(self):
        self.series = TestDataFactory.create_appointment(
            title='Weekoverleg', start_time=utc(2026, 1, 5, 9), recurrence_rule='FREQ=WEEKLY;COUNT=4'
        )

    def test_single_appointment_overlap(self):
        """Test a one-off appointment appears only when it overlaps the window"""
        appointment = TestDataFactory.create_appointment(start_time=utc(2026, 1, 10, 14), duration_minutes=120)
        self.assertEqual(len(expand_occurrences(appointment, utc(2026, 1, 10, 15), utc(2026, 1, 10, 18))), 1)
        self.assertEqual(expand_occurrences(appointment, utc(2026, 1, 11), utc(2026, 1, 12)), [])

    def test_weekly_series_expands(self):
        """Test every occurrence in the window is returned with the series duration"""
        events = expand_occurrences(self.series, *JANUARY)
        self.assertEqual([e['start_time'] for e in events],
                         [utc(2026, 1, 5, 9), utc(2026, 1, 12, 9), utc(2026, 1, 19, 9), utc(2026, 1, 26, 9)])
        self.assertEqual(events[1]['end_time'], utc(2026, 1, 12, 10))
        self.assertEqual(events[1]['series_id'], self.series.id)
        self.assertTrue(events[1]['is_recurring'])

    def test_wall_clock_kept_across_dst(self):
        """Test a 10:00 Amsterdam series stays at 10:00 after the clocks change"""
        series = TestDataFactory.create_appointment(
            start_time=utc(2026, 3, 23, 9), recurrence_rule='FREQ=WEEKLY;COUNT=2'
        )
        events = expand_occurrences(series, utc(2026, 3, 20), utc(2026, 4, 5))
        self.assertEqual([e['start_time'] for e in events], [utc(2026, 3, 23, 9), utc(2026, 3, 30, 8)])

    def test_exceptions_applied(self):
        """Test cancelled occurrences are skipped and overrides replace series values"""
        AppointmentException.objects.create(
            appointment=self.series, original_start_time=utc(2026, 1, 12, 9), is_cancelled=True
        )
        AppointmentException.objects.create(
            appointment=self.series, original_start_time=utc(2026, 1, 19, 9),
            override_start_time=utc(2026, 1, 19, 13), override_title='Verzet overleg'
        )
        events = expand_occurrences(self.series, *JANUARY)
        self.assertEqual(len(events), 3)
        moved = events[1]
        self.assertEqual(moved['title'], 'Verzet overleg')
        self.assertEqual(moved['start_time'], utc(2026, 1, 19, 13))
        self.assertEqual(moved['end_time'], utc(2026, 1, 19, 14))
        self.assertEqual(moved['original_start'], utc(2026, 1, 19, 9))
        self.assertTrue(moved['is_exception'])

    def test_recurrence_end_date_bounds_series(self):
        """Test no occurrences are produced after the recurrence end date"""
        self.series.recurrence_end_date = utc(2026, 1, 18, 23)
        self.series.save()
        self.assertEqual(len(expand_occurrences(self.series, *JANUARY)), 2)

    def test_is_occurrence(self):
        """Test only generated start times count as occurrences"""
        self.assertTrue(is_occurrence(self.series, utc(2026, 1, 12, 9)))
        self.assertFalse(is_occurrence(self.series, utc(2026, 1, 12, 10)))
        self.assertFalse(is_occurrence(self.series, utc(2026, 2, 2, 9)))


class ICalendarFormattingTests(TestCase):
    """Test iCalendar text helpers"""

    def test_escape_text(self):
        """Test backslash, semicolon, comma and newline are escaped"""
        self.assertEqual(escape_ical_text('a;b,c\\d\ne'), 'a\\;b\\,c\\\\d\\ne')

    def test_format_date(self):
        """Test dates are written in UTC basic format"""
        local = datetime(2026, 7, 1, 12, 30, tzinfo=dt_timezone(timedelta(hours=2)))
        self.assertEqual(format_ical_date(local), '20260701T103000Z')

    def test_rrule_gets_until_from_end_date(self):
        """Test an open-ended rule is bounded by the recurrence end date"""
        appointment = Appointment(recurrence_rule='RRULE:FREQ=DAILY', recurrence_end_date=utc(2026, 2, 1))
        self.assertEqual(ical_rrule(appointment), 'FREQ=DAILY;UNTIL=20260201T000000Z')
        appointment.recurrence_rule = 'FREQ=DAILY;COUNT=3'
        self.assertEqual(ical_rrule(appointment), 'FREQ=DAILY;COUNT=3')


class AppointmentAPITests(TestCase):
    """Test Appointment API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.series = TestDataFactory.create_appointment(
            title='Weekoverleg', start_time=utc(2026, 1, 5, 9), recurrence_rule='FREQ=WEEKLY;COUNT=4',
            user=self.user, type='intern'
        )

    def list_january(self, extra=''):
        return self.client.get(
            f'/api/v1/appointments/?time_min=2026-01-01T00:00:00Z&time_max=2026-01-31T23:59:00Z{extra}'
        )

    def test_list_requires_range(self):
        """Test listing without time_min and time_max is rejected"""
        response = self.client.get('/api/v1/appointments/?time_min=2026-01-01T00:00:00Z')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_list_expands_and_filters(self):
        """Test events are expanded, sorted and filtered by type and assigned user"""
        TestDataFactory.create_appointment(title='Klant bezoek', start_time=utc(2026, 1, 6, 12))
        TestDataFactory.create_appointment(title='Februari', start_time=utc(2026, 2, 6, 12))

        response = self.list_january()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        titles = [e['title'] for e in response.data['events']]
        self.assertEqual(titles, ['Weekoverleg', 'Klant bezoek', 'Weekoverleg', 'Weekoverleg', 'Weekoverleg'])

        response = self.list_january('&type=afspraak')
        self.assertEqual([e['title'] for e in response.data['events']], ['Klant bezoek'])
        response = self.list_january('&assigned_user=me')
        self.assertEqual(len(response.data['events']), 4)

    def test_create_adds_owner(self):
        """Test creating defaults the assignee and makes the creator owner"""
        data = {
            'title': 'Reparatie bespreken',
            'type': 'afspraak',
            'start_time': '2026-01-08T10:00:00Z',
            'end_time': '2026-01-08T10:30:00Z',
        }
        response = self.client.post('/api/v1/appointments/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['assigned_user'], self.user.id)
        self.assertEqual(response.data['created_by'], self.user.id)
        attendee = AppointmentAttendee.objects.get(appointment_id=response.data['id'])
        self.assertEqual((attendee.user, attendee.role, attendee.status), (self.user, 'owner', 'accepted'))
        self.assertTrue(Activity.objects.filter(type='appointment_created').exists())

    def test_create_validation(self):
        """Test end before start and broken recurrence rules are rejected"""
        data = {'title': 'X', 'start_time': '2026-01-08T10:00:00Z', 'end_time': '2026-01-08T09:00:00Z'}
        response = self.client.post('/api/v1/appointments/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('end_time', response.data)

        data['end_time'] = '2026-01-08T11:00:00Z'
        data['recurrence_rule'] = 'FREQ=SOMETIMES'
        response = self.client.post('/api/v1/appointments/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('recurrence_rule', response.data)

    def test_detail_returns_series_exceptions_attendees(self):
        """Test the detail view bundles the series with its exceptions and attendees"""
        AppointmentAttendee.objects.create(appointment=self.series, user=self.user, role='owner')
        AppointmentException.objects.create(
            appointment=self.series, original_start_time=utc(2026, 1, 12, 9), is_cancelled=True
        )
        response = self.client.get(f'/api/v1/appointments/{self.series.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['series']['title'], 'Weekoverleg')
        self.assertTrue(response.data['series']['is_recurring'])
        self.assertEqual(len(response.data['exceptions']), 1)
        self.assertEqual(response.data['attendees'][0]['role'], 'owner')

    def test_patch_single_occurrence(self):
        """Test editing one occurrence stores an exception and leaves the series alone"""
        payload = {'scope': 'single', 'original_start': '2026-01-12T09:00:00Z', 'data': {'title': 'Verzet'}}
        response = self.client.patch(f'/api/v1/appointments/{self.series.id}/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['override_title'], 'Verzet')

        # same occurrence again updates the existing exception
        payload['data'] = {'title': 'Nogmaals verzet'}
        self.client.patch(f'/api/v1/appointments/{self.series.id}/', payload, format='json')
        self.assertEqual(self.series.exceptions.count(), 1)

        titles = [e['title'] for e in self.list_january().data['events']]
        self.assertEqual(titles, ['Weekoverleg', 'Nogmaals verzet', 'Weekoverleg', 'Weekoverleg'])
        self.series.refresh_from_db()
        self.assertEqual(self.series.title, 'Weekoverleg')

    def test_patch_requires_real_occurrence(self):
        """Test a start time that is not an occurrence is rejected"""
        payload = {'scope': 'single', 'original_start': '2026-01-13T09:00:00Z', 'data': {'title': 'X'}}
        response = self.client.patch(f'/api/v1/appointments/{self.series.id}/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_patch_future_splits_series(self):
        """Test editing this and following occurrences starts a new series"""
        AppointmentAttendee.objects.create(appointment=self.series, user=self.user, role='owner', status='accepted')
        payload = {'scope': 'future', 'original_start': '2026-01-19T09:00:00Z', 'data': {'title': 'Nieuw overleg'}}
        response = self.client.patch(f'/api/v1/appointments/{self.series.id}/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        self.series.refresh_from_db()
        self.assertEqual(self.series.recurrence_end_date, utc(2026, 1, 19, 8, 59, 59))
        new_series = Appointment.objects.get(id=response.data['id'])
        self.assertEqual(new_series.start_time, utc(2026, 1, 19, 9))
        self.assertEqual(new_series.end_time, utc(2026, 1, 19, 10))
        self.assertEqual(new_series.recurrence_rule, 'FREQ=WEEKLY;COUNT=4')
        self.assertEqual(new_series.attendees.count(), 1)

        titles = [e['title'] for e in self.list_january().data['events']]
        self.assertEqual(titles, ['Weekoverleg', 'Weekoverleg', 'Nieuw overleg', 'Nieuw overleg'])

    def test_patch_all_updates_series(self):
        """Test scope all edits the series itself"""
        payload = {'scope': 'all', 'data': {'title': 'Teamoverleg', 'location': 'Werkplaats'}}
        response = self.client.patch(f'/api/v1/appointments/{self.series.id}/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.series.refresh_from_db()
        self.assertEqual(self.series.location, 'Werkplaats')

    def test_invalid_scope(self):
        """Test an unknown scope is rejected for edits and deletes"""
        response = self.client.patch(f'/api/v1/appointments/{self.series.id}/',
                                     {'scope': 'sometimes', 'data': {}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.delete(f'/api/v1/appointments/{self.series.id}/?scope=sometimes')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_single_occurrence(self):
        """Test deleting one occurrence cancels it"""
        response = self.client.delete(
            f'/api/v1/appointments/{self.series.id}/?scope=single&original_start=2026-01-12T09:00:00Z'
        )
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertTrue(self.series.exceptions.get(original_start_time=utc(2026, 1, 12, 9)).is_cancelled)
        self.assertEqual(len(self.list_january().data['events']), 3)

    def test_delete_future_occurrences(self):
        """Test deleting this and following occurrences ends the series"""
        response = self.client.delete(
            f'/api/v1/appointments/{self.series.id}/?scope=future&original_start=2026-01-19T09:00:00Z'
        )
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(len(self.list_january().data['events']), 2)

    def test_delete_all(self):
        """Test deleting the whole series"""
        response = self.client.delete(f'/api/v1/appointments/{self.series.id}/?scope=all')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Appointment.objects.filter(id=self.series.id).exists())
        self.assertTrue(Activity.objects.filter(type='appointment_deleted').exists())

    def test_repair_tech_cannot_delete_others_appointment(self):
        """Test only staff or the creator may delete an appointment"""
        tech = TestDataFactory.create_user(role='repair_tech')
        self.client.authenticate_user(tech)
        response = self.client.delete(f'/api/v1/appointments/{self.series.id}/?scope=all')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        own = TestDataFactory.create_appointment(user=tech)
        response = self.client.delete(f'/api/v1/appointments/{own.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_viewer_is_read_only(self):
        """Test viewers can list but not create appointments"""
        self.client.authenticate_user(TestDataFactory.create_user(role='viewer'))
        self.assertEqual(self.list_january().status_code, status.HTTP_200_OK)
        data = {'title': 'X', 'start_time': '2026-01-08T10:00:00Z', 'end_time': '2026-01-08T11:00:00Z'}
        response = self.client.post('/api/v1/appointments/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_export_ics(self):
        """Test the calendar export carries series, rules and cancelled dates"""
        self.series.description = 'Agenda: retouren, reparaties'
        self.series.save()
        AppointmentException.objects.create(
            appointment=self.series, original_start_time=utc(2026, 1, 12, 9), is_cancelled=True
        )
        TestDataFactory.create_appointment(title='Ophalen; Leica', start_time=utc(2026, 1, 7, 15))

        response = self.client.get('/api/v1/appointments/export.ics')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/calendar; charset=utf-8')
        self.assertEqual(response['Content-Disposition'], 'attachment; filename=agenda.ics')

        lines = response.content.decode().split('\r\n')
        self.assertEqual(lines[:2], ['BEGIN:VCALENDAR', 'VERSION:2.0'])
        self.assertIn('PRODID:-//DutchThriftHub//Agenda//NL', lines)
        self.assertIn(f'UID:{self.series.id}@dutchthrifthub.com', lines)
        self.assertIn('DTSTART:20260105T090000Z', lines)
        self.assertIn('DTEND:20260105T100000Z', lines)
        self.assertIn('RRULE:FREQ=WEEKLY;COUNT=4', lines)
        self.assertIn('EXDATE:20260112T090000Z', lines)
        self.assertIn('DESCRIPTION:Agenda: retouren\\, reparaties', lines)
        self.assertIn('SUMMARY:Ophalen\\; Leica', lines)
        self.assertEqual(lines.count('BEGIN:VEVENT'), 2)
        self.assertIn('END:VCALENDAR', lines)

    def test_export_ics_filters(self):
        """Test the export honours the type filter"""
        TestDataFactory.create_appointment(title='Klant bezoek', start_time=utc(2026, 1, 7, 15))
        response = self.client.get('/api/v1/appointments/export.ics?type=intern')
        content = response.content.decode()
        self.assertIn('SUMMARY:Weekoverleg', content)
        self.assertNotIn('Klant bezoek', content)

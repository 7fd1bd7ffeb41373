"""Duty hours, bookable slots and the booking lookups."""
from datetime import datetime, timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.urls import reverse

from core.models import Appointment, Clinic, DoctorAvailability, User
from core.services.slots import earliest_booking_start
from core.services.timeutils import MANILA, build_manila_datetime, manila_now, start_of_manila_week

from .factories import client_for, make_appointment, next_weekday

pytestmark = pytest.mark.django_db


def test_slots_skip_booked_times(student, doctor, clinic, duty, visit_day):
    make_appointment(student, doctor, clinic, visit_day, '09:00', '09:30', status=Appointment.STATUS_APPROVED)
    make_appointment(student, doctor, clinic, visit_day, '10:00', '10:15', status=Appointment.STATUS_CANCELLED)
    client = client_for(student)
    r = client.get(reverse('meta_doctor_availability'),
                   {'clinic_id': clinic.id, 'doctor_user_id': doctor.id, 'date': visit_day.isoformat()})
    assert r.status_code == 200
    starts = [s['start'] for s in r.data['slots']]
    assert len(starts) == 16 - 2
    assert '09:00' not in starts and '09:15' not in starts
    assert '10:00' in starts
    assert starts[0] == '08:00' and r.data['slots'][-1]['end'] == '12:00'


def test_slots_require_params(student):
    r = client_for(student).get(reverse('meta_doctor_availability'), {'clinic_id': 1})
    assert r.status_code == 400
    assert r.data['error']['code'] == 'invalid'


def test_bulk_slots(student, doctor, other_doctor, clinic, duty, visit_day):
    r = client_for(student).get(reverse('meta_doctor_availability_bulk'), {
        'clinic_id': clinic.id, 'date': visit_day.isoformat(),
        'doctor_user_ids': f'{doctor.id}, {other_doctor.id},{doctor.id},x',
    })
    assert r.status_code == 200
    assert set(r.data['availability']) == {str(doctor.id), str(other_doctor.id)}
    assert len(r.data['availability'][str(doctor.id)]) == 16
    assert r.data['availability'][str(other_doctor.id)] == []

    r = client_for(student).get(reverse('meta_doctor_availability_bulk'),
                                {'clinic_id': clinic.id, 'date': visit_day.isoformat()})
    assert r.status_code == 400


def test_doctors_filtered_by_service(student, doctor, dentist, clinic, visit_day, duty):
    DoctorAvailability.objects.create(
        doctor=dentist, clinic=clinic, available_date=visit_day,
        available_timestart=build_manila_datetime(visit_day, '13:00'),
        available_timeend=build_manila_datetime(visit_day, '15:00'),
    )
    client = client_for(student)
    r = client.get(reverse('meta_doctors'), {'clinic_id': clinic.id})
    assert {d['user_id'] for d in r.data['doctors']} == {doctor.id, dentist.id}
    r = client.get(reverse('meta_doctors'), {'clinic_id': clinic.id, 'service_type': 'Dental-cleaning'})
    assert [d['user_id'] for d in r.data['doctors']] == [dentist.id]
    assert client.get(reverse('meta_doctors')).status_code == 400


def test_service_options_by_specialization(student):
    client = client_for(student)
    r = client.get(reverse('meta_service_options'), {'specialization': 'Dentist'})
    assert all(o['serviceType'] == 'Dental' for o in r.data['options'])
    r = client.get(reverse('meta_service_options'))
    assert r.data['options'] == []


def test_earliest_booking_skips_weekends():
    friday = datetime(2026, 10, 16, 10, 0, tzinfo=MANILA)
    # three days after Friday is Monday
    assert earliest_booking_start(User.PHYSICIAN, now=friday, lead_days=3).date().isoformat() == '2026-10-19'
    wednesday = datetime(2026, 10, 14, 10, 0, tzinfo=MANILA)
    # Saturday is open for dentists only
    assert earliest_booking_start(User.DENTIST, now=wednesday, lead_days=3).date().isoformat() == '2026-10-17'
    assert earliest_booking_start(User.PHYSICIAN, now=wednesday, lead_days=3).date().isoformat() == '2026-10-19'


def test_enums_catalogue(student):
    r = client_for(student).get(reverse('enums'))
    assert r.status_code == 200
    assert {'value': 'percent', 'label': '%'} in r.data['dosageUnits']
    assert {'value': 'Moved', 'label': 'Moved'} in r.data['appointmentStatuses']


# ---------------------------------------------------------------------
# Duty hours
# ---------------------------------------------------------------------
def _week_start():
    return next_weekday(21).isoformat()


def test_publish_duty_week(doctor, dentist, clinic):
    r = client_for(doctor).post(reverse('doctor_duty_hours'), {
        'clinic_id': clinic.id, 'available_timestart': '08:00', 'available_timeend': '12:00',
        'week_start': _week_start(),
    }, format='json')
    assert r.status_code == 201
    days = [a['available_date'] for a in r.data['availability']]
    assert len(days) == 5
    monday = start_of_manila_week(next_weekday(21)).date()
    assert days[0] == monday.isoformat()

    r = client_for(dentist).post(reverse('doctor_duty_hours'), {
        'clinic_id': clinic.id, 'available_timestart': '08:00', 'available_timeend': '12:00',
        'week_start': _week_start(),
    }, format='json')
    assert len(r.data['availability']) == 6


def test_duty_week_conflicts(doctor, clinic):
    client = client_for(doctor)
    payload = {'clinic_id': clinic.id, 'available_timestart': '08:00', 'available_timeend': '12:00',
               'week_start': _week_start()}
    assert client.post(reverse('doctor_duty_hours'), payload, format='json').status_code == 201
    payload.update(available_timestart='11:00', available_timeend='13:00')
    r = client.post(reverse('doctor_duty_hours'), payload, format='json')
    assert r.status_code == 409
    assert r.data['error']['message'].startswith('Duty hours conflict with existing schedules on:')
    # a refused week leaves no partial windows behind
    assert DoctorAvailability.objects.filter(doctor=doctor).count() == 5


@pytest.mark.parametrize('start, end, message', [
    ('8am', '12:00', 'Times must be in HH:MM format'),
    ('12:00', '08:00', 'End time must be after start time'),
])
def test_duty_week_validation(doctor, clinic, start, end, message):
    r = client_for(doctor).post(reverse('doctor_duty_hours'), {
        'clinic_id': clinic.id, 'available_timestart': start, 'available_timeend': end,
    }, format='json')
    assert r.status_code == 400
    assert r.data['error']['message'] == message


def test_update_and_delete_duty_window(doctor, student, clinic, duty, visit_day):
    client = client_for(doctor)
    r = client.put(reverse('doctor_duty_hours'), {
        'availability_id': duty.id, 'available_timestart': '07:00', 'available_timeend': '11:00',
    }, format='json')
    assert r.status_code == 200
    assert r.data['availability']['start'] == '07:00'

    appt = make_appointment(student, doctor, clinic, visit_day, '09:00', '09:15')
    r = client.delete(reverse('doctor_duty_hours') + f'?availability_id={duty.id}')
    assert r.status_code == 409

    appt.status = Appointment.STATUS_CANCELLED
    appt.save(update_fields=['status'])
    r = client.delete(reverse('doctor_duty_hours'), {'availability_id': duty.id}, format='json')
    assert r.status_code == 200
    assert not DoctorAvailability.objects.filter(pk=duty.id).exists()


def test_delete_blocked_by_appointment_at_another_clinic(doctor, student, duty, visit_day):
    annex = Clinic.objects.create(name='Annex Clinic', location='Annex', contactno='0385010001')
    make_appointment(student, doctor, annex, visit_day, '10:00', '10:15')
    r = client_for(doctor).delete(reverse('doctor_duty_hours') + f'?availability_id={duty.id}')
    assert r.status_code == 409
    assert DoctorAvailability.objects.filter(pk=duty.id).exists()


def test_delete_needs_a_numeric_window_id(doctor, duty):
    client = client_for(doctor)
    r = client.delete(reverse('doctor_duty_hours') + '?availability_id=abc')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'invalid'
    r = client.delete(reverse('doctor_duty_hours'))
    assert r.status_code == 400
    assert r.data['error']['message'] == 'Missing availability ID'


def test_other_doctor_cannot_edit_window(other_doctor, duty):
    r = client_for(other_doctor).put(reverse('doctor_duty_hours'), {
        'availability_id': duty.id, 'available_timestart': '07:00', 'available_timeend': '11:00',
    }, format='json')
    assert r.status_code == 404


def test_archive_duty_hours_command(doctor, clinic):
    past = (manila_now() - timedelta(days=3)).date()
    old = DoctorAvailability.objects.create(
        doctor=doctor, clinic=clinic, available_date=past,
        available_timestart=build_manila_datetime(past, '08:00'),
        available_timeend=build_manila_datetime(past, '12:00'),
    )
    out = StringIO()
    call_command('archive_duty_hours', stdout=out)
    assert 'Archived 1 duty windows' in out.getvalue()
    old.refresh_from_db()
    assert old.archived_at is not None
    r = client_for(doctor).get(reverse('doctor_duty_hours'))
    assert r.data['availability'] == []

"""
Patient-side appointment booking.

Booking and rescheduling share one validation path: the requested
window must lie at least the configured lead time ahead, fit entirely
inside one of the doctor's duty windows at that clinic, and not overlap
a Pending or Approved appointment of either the doctor or the patient.
A reschedule excludes the appointment being moved from those checks and
marks it ``Moved`` so the doctor re-confirms.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.db import transaction

from core.exceptions import BookingError
from core.models import Appointment, Clinic, DoctorAvailability, User
from core.services.audit import log_action
from core.services.formatting import full_name
from core.services.service_options import resolve_service_type
from core.services.timeutils import (
    build_manila_datetime,
    format_hhmm,
    format_time_12h,
    manila_now,
    ranges_overlap,
    to_manila_date_string,
)

logger = logging.getLogger(__name__)


def serialize_patient_appointment(a: Appointment) -> dict:
    return {
        'id': a.id,
        'clinicId': a.clinic_id,
        'clinic': a.clinic.name if a.clinic_id else '-',
        'doctor': full_name(a.doctor),
        'doctorId': a.doctor_id,
        'doctorSpecialization': a.doctor.specialization,
        'date': to_manila_date_string(a.appointment_timestart),
        'time': format_time_12h(a.appointment_timestart),
        'timeStart': format_hhmm(a.appointment_timestart),
        'timeEnd': format_hhmm(a.appointment_timeend),
        'status': a.status,
        'serviceType': a.service_type,
        'remarks': a.remarks,
    }


def list_patient_appointments(patient: User) -> list[dict]:
    qs = (Appointment.objects
          .filter(patient=patient)
          .select_related('clinic', 'doctor__employee_profile', 'doctor__student_profile')
          .order_by('appointment_timestart'))
    return [serialize_patient_appointment(a) for a in qs]


def _window(day, time_start, time_end):
    start = build_manila_datetime(day, time_start)
    end = build_manila_datetime(day, time_end)
    if not start < end:
        raise BookingError('Invalid time range', 400)
    lead = settings.CLINIC_MIN_BOOKING_LEAD_DAYS
    if start < manila_now() + timedelta(days=lead):
        raise BookingError(f'Appointments must be booked at least {lead} days in advance', 400)
    return start, end


def _check_slot(*, patient_id, doctor_id, clinic_id, day, start, end, exclude_id=None) -> None:
    windows = DoctorAvailability.objects.filter(doctor_id=doctor_id, clinic_id=clinic_id, available_date=day)
    if not any(start >= w.available_timestart and end <= w.available_timeend for w in windows):
        raise BookingError("Selected time is outside doctor's availability", 400)

    doctor_busy = Appointment.objects.filter(
        doctor_id=doctor_id, appointment_date=day, status__in=Appointment.BLOCKING_STATUSES,
    ).exclude(pk=exclude_id)
    if any(ranges_overlap(start, end, a.appointment_timestart, a.appointment_timeend) for a in doctor_busy):
        raise BookingError('Time slot already booked', 409)

    own_busy = Appointment.objects.filter(
        patient_id=patient_id, appointment_date=day, status__in=Appointment.BLOCKING_STATUSES,
    ).exclude(pk=exclude_id)
    if any(ranges_overlap(start, end, a.appointment_timestart, a.appointment_timeend) for a in own_busy):
        raise BookingError('You already have an appointment scheduled for this time', 409)


def book_appointment(patient: User, data: dict) -> Appointment:
    """Book from validated ``BookingSerializer`` data; ``date`` is a ``date``."""
    day = data['date']
    clinic = Clinic.objects.filter(pk=data['clinic_id']).first()
    if clinic is None:
        raise BookingError('Clinic not found', 404)
    doctor = User.objects.filter(pk=data['doctor_user_id'], role=User.ROLE_DOCTOR).first()
    if doctor is None:
        raise BookingError('Doctor not found', 404)
    start, end = _window(day, data['time_start'], data['time_end'])
    service_type = resolve_service_type(data['service_type']) or Appointment.SERVICE_OTHER

    with transaction.atomic():
        # serialize concurrent bookings against the same doctor
        User.objects.select_for_update().filter(pk=doctor.pk).first()
        _check_slot(patient_id=patient.id, doctor_id=doctor.id, clinic_id=clinic.id,
                    day=day, start=start, end=end)
        appt = Appointment.objects.create(
            patient=patient, doctor=doctor, clinic=clinic,
            appointment_date=day, appointment_timestart=start, appointment_timeend=end,
            service_type=service_type, status=Appointment.STATUS_PENDING,
        )
    log_action(user=patient, action='appointment_book', object_type='appointment', object_id=appt.id,
               detail={'doctor': doctor.id, 'clinic': clinic.id, 'start': start.isoformat()})
    logger.info('appointment %s booked by patient %s with doctor %s', appt.id, patient.id, doctor.id)
    return appt


def _own_appointment(patient: User, appointment_id) -> Appointment:
    appt = Appointment.objects.filter(pk=appointment_id, patient=patient).first()
    if appt is None:
        raise BookingError('Appointment not found', 404)
    return appt


def reschedule_appointment(patient: User, appointment_id, data: dict) -> Appointment:
    appt = _own_appointment(patient, appointment_id)
    if appt.status in Appointment.CLOSED_STATUSES:
        raise BookingError(f'{appt.status} appointments cannot be rescheduled', 400)
    day = data['date']
    clinic_id = data.get('clinic_id') or appt.clinic_id
    doctor_id = data.get('doctor_user_id') or appt.doctor_id
    if not Clinic.objects.filter(pk=clinic_id).exists():
        raise BookingError('Clinic not found', 404)
    if not User.objects.filter(pk=doctor_id, role=User.ROLE_DOCTOR).exists():
        raise BookingError('Doctor not found', 404)
    start, end = _window(day, data['time_start'], data['time_end'])

    with transaction.atomic():
        User.objects.select_for_update().filter(pk=doctor_id).first()
        _check_slot(patient_id=patient.id, doctor_id=doctor_id, clinic_id=clinic_id,
                    day=day, start=start, end=end, exclude_id=appt.id)
        appt.clinic_id = clinic_id
        appt.doctor_id = doctor_id
        appt.appointment_date = day
        appt.appointment_timestart = start
        appt.appointment_timeend = end
        if data.get('service_type'):
            appt.service_type = resolve_service_type(data['service_type']) or appt.service_type
        appt.status = Appointment.STATUS_MOVED
        appt.save()
    log_action(user=patient, action='appointment_move', object_type='appointment', object_id=appt.id,
               detail={'start': start.isoformat()})
    logger.info('appointment %s moved by patient %s', appt.id, patient.id)
    return appt


def cancel_own_appointment(patient: User, appointment_id) -> Appointment:
    appt = _own_appointment(patient, appointment_id)
    if appt.status in Appointment.CLOSED_STATUSES:
        raise BookingError(f'Appointment is already {appt.status.lower()}', 400)
    appt.status = Appointment.STATUS_CANCELLED
    appt.save(update_fields=['status', 'updated_at'])
    log_action(user=patient, action='appointment_cancel', object_type='appointment', object_id=appt.id)
    return appt


def appointment_result(appt: Appointment, extra: Optional[dict] = None) -> dict:
    out = {
        'id': appt.id,
        'status': appt.status,
        'date': to_manila_date_string(appt.appointment_timestart),
        'timeStart': format_hhmm(appt.appointment_timestart),
        'timeEnd': format_hhmm(appt.appointment_timeend),
    }
    if extra:
        out.update(extra)
    return out

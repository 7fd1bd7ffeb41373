"""
Appointment status changes made by clinic staff.

Doctors drive the lifecycle of their own appointments through three
actions.  Allowed source states per action are kept in
``TRANSITIONS``; anything else is a 409 so a stale screen cannot, for
instance, approve an appointment that was already cancelled.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from django.db import transaction

from core.exceptions import BookingError
from core.models import Appointment, User
from core.services.audit import log_action
from core.services.formatting import clean_text, full_name
from core.services.timeutils import (
    end_of_manila_day,
    format_hhmm,
    format_time_12h,
    manila_now,
    parse_iso_date,
    start_of_manila_day,
    to_manila_date_string,
)

logger = logging.getLogger(__name__)

ACTIONS = {
    'approve': Appointment.STATUS_APPROVED,
    'cancel': Appointment.STATUS_CANCELLED,
    'complete': Appointment.STATUS_COMPLETED,
}

TRANSITIONS = {
    Appointment.STATUS_APPROVED: {Appointment.STATUS_PENDING, Appointment.STATUS_MOVED},
    Appointment.STATUS_CANCELLED: {Appointment.STATUS_PENDING, Appointment.STATUS_APPROVED, Appointment.STATUS_MOVED},
    Appointment.STATUS_COMPLETED: {Appointment.STATUS_APPROVED, Appointment.STATUS_MOVED},
}


def serialize_doctor_appointment(a: Appointment) -> dict:
    consultation = getattr(a, 'consultation', None)
    return {
        'id': a.id,
        'patientId': a.patient_id,
        'patientName': full_name(a.patient),
        'clinic': a.clinic.name,
        'date': to_manila_date_string(a.appointment_timestart),
        'time': format_time_12h(a.appointment_timestart),
        'timeStart': format_hhmm(a.appointment_timestart),
        'timeEnd': format_hhmm(a.appointment_timeend),
        'status': a.status,
        'serviceType': a.service_type,
        'consultationId': consultation.id if consultation else None,
    }


def _with_relations(qs):
    return qs.select_related(
        'clinic', 'consultation',
        'patient__student_profile', 'patient__employee_profile',
    )


def list_doctor_appointments(doctor: User) -> list[dict]:
    qs = _with_relations(Appointment.objects.filter(doctor=doctor)).order_by('-appointment_date', '-appointment_timestart')
    return [serialize_doctor_appointment(a) for a in qs]


def apply_doctor_action(doctor: User, appointment_id, action) -> Appointment:
    new_status = ACTIONS.get(action)
    if new_status is None:
        raise BookingError('Invalid action', 400)
    with transaction.atomic():
        appt = (_with_relations(Appointment.objects.select_for_update(of=('self',)))
                .filter(pk=appointment_id, doctor=doctor).first())
        if appt is None:
            raise BookingError('Appointment not found', 404)
        if appt.status not in TRANSITIONS[new_status]:
            raise BookingError(f'Cannot {action} an appointment that is {appt.status}', 409)
        previous = appt.status
        appt.status = new_status
        appt.save(update_fields=['status', 'updated_at'])
    log_action(user=doctor, action='appointment_status', object_type='appointment', object_id=appt.id,
               detail={'from': previous, 'to': new_status})
    logger.info('appointment %s %s -> %s by doctor %s', appt.id, previous, new_status, doctor.id)
    return appt


# ---------------------------------------------------------------------
# Scholar desk view
# ---------------------------------------------------------------------
def serialize_desk_appointment(a: Appointment) -> dict:
    return {
        **serialize_doctor_appointment(a),
        'doctorId': a.doctor_id,
        'doctorName': full_name(a.doctor),
        'clinicId': a.clinic_id,
        'remarks': a.remarks,
        'timestart': a.appointment_timestart.isoformat(),
        'timeend': a.appointment_timeend.isoformat(),
    }


def _clamp_take(raw, default=200) -> int:
    try:
        take = int(raw)
    except (TypeError, ValueError):
        return default
    return max(1, min(500, take))


def list_desk_appointments(*, status=None, date_from=None, date_to=None, take=None) -> list[dict]:
    now = manila_now()
    start = start_of_manila_day(parse_iso_date(date_from)) if parse_iso_date(date_from) else now - timedelta(days=7)
    end = end_of_manila_day(parse_iso_date(date_to)) if parse_iso_date(date_to) else now + timedelta(days=30)

    qs = Appointment.objects.filter(appointment_timestart__gte=start, appointment_timestart__lte=end)
    status = (status or '').strip()
    if status.lower() == 'active':
        qs = qs.filter(status__in=Appointment.ACTIVE_STATUSES)
    elif status and status.lower() != 'all':
        match = [s for s, _ in Appointment.STATUS_CHOICES if s.lower() == status.lower()]
        qs = qs.filter(status=match[0]) if match else qs.none()
    qs = _with_relations(qs).select_related('doctor__employee_profile', 'doctor__student_profile')
    qs = qs.order_by('appointment_timestart')[:_clamp_take(take)]
    return [serialize_desk_appointment(a) for a in qs]


def update_desk_appointment(user: User, appointment_id, *, status=None, remarks=None) -> Appointment:
    if not appointment_id:
        raise BookingError('appointment_id is required', 400)
    if status is None and remarks is None:
        raise BookingError('Nothing to update', 400)
    if status is not None and status not in dict(Appointment.STATUS_CHOICES):
        raise BookingError('Invalid status', 400)
    appt = _with_relations(Appointment.objects.filter(pk=appointment_id)).first()
    if appt is None:
        raise BookingError('Appointment not found', 404)
    fields = ['updated_at']
    if status is not None:
        appt.status = status
        fields.append('status')
    if remarks is not None:
        appt.remarks = clean_text(remarks)
        fields.append('remarks')
    appt.save(update_fields=fields)
    log_action(user=user, action='appointment_desk_update', object_type='appointment', object_id=appt.id,
               detail={'status': status, 'remarks': remarks is not None})
    return appt

from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction

from core.exceptions import ClinicError
from core.models import Appointment, Consultation, User
from core.services.audit import log_action
from core.services.formatting import clean_text, full_name
from core.services.timeutils import to_manila_date_string

logger = logging.getLogger(__name__)

NOTE_FIELDS = ('reason_of_visit', 'findings', 'diagnosis')


def serialize_consultation(c: Consultation) -> dict:
    appt = c.appointment
    return {
        'consultation_id': c.id,
        'appointment_id': c.appointment_id,
        'doctor_user_id': c.doctor_id,
        'nurse_user_id': c.nurse_id,
        'reason_of_visit': c.reason_of_visit,
        'findings': c.findings,
        'diagnosis': c.diagnosis,
        'patientName': full_name(appt.patient) if appt else None,
        'date': to_manila_date_string(appt.appointment_timestart) if appt else None,
        'createdAt': c.created_at.isoformat() if c.created_at else None,
        'updatedAt': c.updated_at.isoformat() if c.updated_at else None,
    }


def _notes(data: dict) -> dict:
    return {f: clean_text(data[f]) for f in NOTE_FIELDS if f in data}


def save_doctor_notes(doctor: User, data: dict) -> Consultation:
    """Upsert notes from validated ``DoctorNotesSerializer`` data."""
    appt = Appointment.objects.filter(pk=data['appointment_id']).first()
    if appt is None:
        raise ClinicError('Appointment not found', 404)
    if appt.doctor_id != doctor.id:
        raise ClinicError('You can only write notes for your own appointments', 403)

    nurse = None
    nurse_id = data.get('nurse_user_id')
    if nurse_id:
        nurse = User.objects.filter(pk=nurse_id, role=User.ROLE_NURSE).first()
        if nurse is None:
            raise ClinicError('nurse_user_id must reference a nurse', 400)

    notes = _notes(data)
    with transaction.atomic():
        consultation = Consultation.objects.select_for_update().filter(appointment=appt).first()
        if consultation is None:
            consultation = Consultation.objects.create(appointment=appt, doctor=doctor, nurse=nurse, **notes)
            created = True
        else:
            for k, v in notes.items():
                setattr(consultation, k, v)
            if nurse is not None:
                consultation.nurse = nurse
            if consultation.doctor_id is None:
                consultation.doctor = doctor
            consultation.save()
            created = False
    log_action(user=doctor, action='consultation_save', object_type='consultation', object_id=consultation.id,
               detail={'appointment': appt.id, 'created': created})
    return consultation


def save_nurse_notes(nurse: User, data: dict) -> Consultation:
    appt = Appointment.objects.filter(pk=data['appointment_id']).first()
    if appt is None:
        raise ClinicError('Appointment not found', 404)
    notes = _notes(data)
    with transaction.atomic():
        consultation, created = Consultation.objects.select_for_update().get_or_create(
            appointment=appt, defaults={'nurse': nurse, 'doctor_id': appt.doctor_id, **notes},
        )
        if not created:
            for k, v in notes.items():
                setattr(consultation, k, v)
            consultation.nurse = nurse
            consultation.save()
    log_action(user=nurse, action='consultation_save', object_type='consultation', object_id=consultation.id,
               detail={'appointment': appt.id, 'created': created})
    return consultation


def consultations_for(*, doctor: Optional[User] = None) -> list[dict]:
    qs = Consultation.objects.select_related(
        'appointment__patient__student_profile', 'appointment__patient__employee_profile',
    ).order_by('-created_at')
    if doctor is not None:
        qs = qs.filter(doctor=doctor)
    return [serialize_consultation(c) for c in qs]

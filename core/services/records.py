"""
Patient directory assembled from student and employee profiles.

Only accounts with the patient role are listed.  Each entry carries the
latest Pending, Approved or Completed appointment so staff can jump to
the visit; entries are keyed by profile id plus ``patientType`` because
student and employee ids live in separate tables.
"""
from __future__ import annotations

from typing import Optional

from django.db.models import Prefetch

from core.exceptions import ClinicError
from core.models import Appointment, Consultation, EmployeeProfile, StudentProfile, User
from core.services.formatting import (
    format_blood_type,
    format_department,
    format_year_level,
)
from core.services.timeutils import to_manila_date_string
from core.services.validation import validate_and_normalize_contacts

RECORD_APPOINTMENT_STATUSES = (
    Appointment.STATUS_PENDING,
    Appointment.STATUS_APPROVED,
    Appointment.STATUS_COMPLETED,
)

_SEARCH_FIELDS = (
    'fullName', 'patientId', 'patientType', 'department', 'departmentLabel', 'program',
    'year_level', 'yearLevelLabel', 'contactno', 'address',
)


def _latest_prefetch():
    return Prefetch(
        'user__patient_appointments',
        queryset=(Appointment.objects
                  .filter(status__in=RECORD_APPOINTMENT_STATUSES)
                  .order_by('-appointment_date', '-appointment_timestart')),
        to_attr='record_appointments',
    )


def _entry(prof, patient_type: str) -> dict:
    appts = getattr(prof.user, 'record_appointments', None)
    if appts is None:
        appts = list(prof.user.patient_appointments
                     .filter(status__in=RECORD_APPOINTMENT_STATUSES)
                     .order_by('-appointment_date', '-appointment_timestart')[:1])
    latest = appts[0] if appts else None
    entry = {
        'id': prof.id,
        'userId': prof.user_id,
        'patientId': prof.student_id if patient_type == 'Student' else prof.employee_id,
        'fullName': prof.full_name,
        'patientType': patient_type,
        'gender': prof.gender,
        'date_of_birth': prof.date_of_birth.isoformat() if prof.date_of_birth else None,
        'status': prof.user.status,
        'contactno': prof.contactno,
        'address': prof.address,
        'bloodtype': prof.bloodtype,
        'bloodtypeLabel': format_blood_type(prof.bloodtype),
        'allergies': prof.allergies,
        'medical_cond': prof.medical_cond,
        'emergency': {
            'name': prof.emergencyco_name,
            'num': prof.emergencyco_num,
            'relation': prof.emergencyco_relation,
        },
        'appointment_id': latest.id if latest else None,
        'latestAppointment': {
            'id': latest.id,
            'timestart': latest.appointment_timestart.isoformat(),
            'timeend': latest.appointment_timeend.isoformat(),
            'status': latest.status,
        } if latest else None,
    }
    if patient_type == 'Student':
        entry.update({
            'department': prof.department,
            'departmentLabel': format_department(prof.department),
            'program': prof.program,
            'year_level': prof.year_level,
            'yearLevelLabel': format_year_level(prof.year_level),
        })
    return entry


def fetch_patient_records() -> list[dict]:
    students = (StudentProfile.objects
                .filter(user__role=User.ROLE_PATIENT)
                .select_related('user')
                .prefetch_related(_latest_prefetch())
                .order_by('lname', 'fname'))
    employees = (EmployeeProfile.objects
                 .filter(user__role=User.ROLE_PATIENT)
                 .select_related('user')
                 .prefetch_related(_latest_prefetch())
                 .order_by('lname', 'fname'))
    return [_entry(s, 'Student') for s in students] + [_entry(e, 'Employee') for e in employees]


def patient_detail(user_id) -> dict:
    user = (User.objects
            .select_related('student_profile', 'employee_profile')
            .filter(pk=user_id, role=User.ROLE_PATIENT).first())
    if user is None or user.profile is None:
        raise ClinicError('Patient not found', 404)
    prof = user.profile
    entry = _entry(prof, 'Student' if isinstance(prof, StudentProfile) else 'Employee')
    history = (Consultation.objects
               .filter(appointment__patient=user)
               .select_related('appointment__clinic', 'doctor__employee_profile')
               .order_by('-appointment__appointment_timestart'))
    entry['consultations'] = [
        {
            'consultation_id': c.id,
            'appointment_id': c.appointment_id,
            'date': to_manila_date_string(c.appointment.appointment_timestart),
            'clinic': c.appointment.clinic.name,
            'serviceType': c.appointment.service_type,
            'status': c.appointment.status,
            'doctorId': c.doctor_id,
            'reason_of_visit': c.reason_of_visit,
            'findings': c.findings,
            'diagnosis': c.diagnosis,
        }
        for c in history
    ]
    return entry


def update_patient_record(profile_id, data: dict) -> dict:
    """Apply a validated record patch (see ``RecordPatchSerializer``)."""
    model = StudentProfile if data['type'] == 'Student' else EmployeeProfile
    prof = model.objects.select_related('user').filter(pk=profile_id).first()
    if prof is None:
        raise ClinicError('Patient record not found', 404)

    emergency = data.get('emergency') or {}
    _, contact, emergency_num = validate_and_normalize_contacts(
        None, data.get('contactno'), emergency.get('num'),
    )
    if 'contactno' in data:
        prof.contactno = contact or None
    for fld in ('address', 'allergies', 'medical_cond'):
        if fld in data:
            setattr(prof, fld, data[fld])
    if 'bloodtype' in data:
        prof.bloodtype = data['bloodtype']
    if 'name' in emergency:
        prof.emergencyco_name = emergency['name']
    if 'num' in emergency:
        prof.emergencyco_num = emergency_num or None
    if 'relation' in emergency:
        prof.emergencyco_relation = emergency['relation']
    prof.save()
    return _entry(prof, data['type'])


def _matches(entry: dict, needle: str) -> bool:
    values = [entry.get(k) for k in _SEARCH_FIELDS]
    values.extend((entry.get('emergency') or {}).values())
    return any(needle in str(v).lower() for v in values if v)


def filter_patient_records(*, patient_type: Optional[str] = None, status: Optional[str] = None,
                           search: Optional[str] = None, with_appointment: Optional[str] = None) -> list[dict]:
    records = fetch_patient_records()
    if patient_type and patient_type.lower() != 'all':
        records = [r for r in records if r['patientType'].lower() == patient_type.lower()]
    if status and status.lower() != 'all':
        records = [r for r in records if r['status'].lower() == status.lower()]
    if with_appointment in ('true', '1', 'yes'):
        records = [r for r in records if r['latestAppointment']]
    elif with_appointment in ('false', '0', 'no'):
        records = [r for r in records if not r['latestAppointment']]
    needle = (search or '').strip().lower()
    if needle:
        records = [r for r in records if _matches(r, needle)]
    return records

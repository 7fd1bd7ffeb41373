"""
Medical and dental certificates for student patients.

Two flows issue certificates:

* the appointment certificate (``issue_appointment_certificate``) is
  re-issued in place for a completed visit and stays valid for a year;
* the consultation certificate (``issue_consultation_certificate``)
  expires every valid certificate of the consultation and issues a new
  one valid ``CLINIC_CERTIFICATE_VALID_DAYS`` days, in one transaction.

Both return the certificate row together with the rendered PDF bytes
and the download filename.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist
from django.db import transaction

from core.exceptions import CertificateError
from core.models import Appointment, MedicalCertificate, StudentProfile, User
from core.services import timeutils
from core.services.audit import log_action
from core.services.formatting import (
    compute_age,
    format_department,
    format_year_level,
    slugify,
    split_conditions,
    title_case,
)
from core.services.pdf import render_certificate

logger = logging.getLogger(__name__)

MEDICAL_HISTORY_OPTIONS = (
    ('Asthma', ('asthma',)),
    ('Hypertension', ('hypertension', 'high blood')),
    ('Cancer', ('cancer',)),
    ('Epilepsy', ('epilepsy', 'seizure')),
    ('Diabetes', ('diabetes',)),
    ('Heart Disease', ('heart', 'cardio', 'cardiac')),
    ('Kidney Disease', ('kidney', 'renal')),
    ('Nervous/Mental Disorder', ('mental', 'nervous', 'anxiety', 'depression', 'psychiatric')),
)

NOT_RECORDED = 'Not recorded'


@dataclass
class IssuedCertificate:
    certificate: MedicalCertificate
    pdf: bytes
    filename: str


def match_medical_history(conditions: list[str]) -> tuple[list[tuple[str, bool]], list[str]]:
    """Tick history boxes by keyword; return the boxes and unmatched conditions."""
    lowered = [c.lower() for c in conditions]
    matched = set()
    boxes = []
    for label, keywords in MEDICAL_HISTORY_OPTIONS:
        hit = False
        for i, cond in enumerate(lowered):
            if any(k in cond for k in keywords):
                matched.add(i)
                hit = True
        boxes.append((label, hit))
    remaining = [title_case(c) for i, c in enumerate(conditions) if i not in matched]
    return boxes, remaining


def _load_appointment(appointment_id):
    return (Appointment.objects
            .select_related('clinic', 'consultation',
                            'patient__student_profile', 'patient__employee_profile',
                            'doctor__employee_profile')
            .filter(pk=appointment_id).first())


def _doctor_name(doctor: User) -> str:
    emp = _employee(doctor)
    if emp is not None:
        return title_case(emp.full_name) or doctor.username
    return doctor.username if doctor.username.startswith('Dr.') else f'Dr. {doctor.username}'


def _employee(user: User):
    try:
        return user.employee_profile
    except ObjectDoesNotExist:
        return None


def _student(patient: User):
    try:
        return patient.student_profile
    except ObjectDoesNotExist:
        return None


def _check_common(doctor: User, appt) -> tuple:
    """Guards shared by both flows; returns (consultation, student, specialization)."""
    if appt is None:
        raise CertificateError('Appointment not found', 404)
    if appt.doctor_id != doctor.id:
        raise CertificateError('You can only issue certificates for your own appointments', 403)
    consultation = getattr(appt, 'consultation', None)
    if consultation is None or not any(
        (getattr(consultation, f) or '').strip() for f in ('reason_of_visit', 'findings', 'diagnosis')
    ):
        raise CertificateError('Consultation notes are required before issuing a certificate.', 400)
    if not doctor.specialization:
        raise CertificateError('Doctor specialization is required to generate a certificate.', 400)
    student = _student(appt.patient)
    if student is None:
        raise CertificateError('Certificates are currently available for student patients only.', 400)
    return consultation, student, doctor.specialization


def _patient_rows(student: StudentProfile, at) -> list[tuple[str, str]]:
    age = compute_age(student.date_of_birth, at)
    program = title_case(student.program)
    year = format_year_level(student.year_level)
    return [
        ('Name', title_case(student.full_name) or NOT_RECORDED),
        ('Student ID', student.student_id),
        ('Address', student.address or 'Not provided'),
        ('Age', str(age) if age is not None else 'Not provided'),
        ('Sex', title_case(student.gender) or 'Not provided'),
        ('Department', format_department(student.department) or NOT_RECORDED),
        ('Course / Year', ' - '.join(p for p in (program, year) if p) or NOT_RECORDED),
    ]


def issue_appointment_certificate(doctor: User, appointment_id) -> IssuedCertificate:
    appt = _load_appointment(appointment_id)
    if appt is not None and appt.doctor_id == doctor.id and appt.status != Appointment.STATUS_COMPLETED:
        raise CertificateError('Complete the appointment before generating a certificate.', 400)
    consultation, student, specialization = _check_common(doctor, appt)
    dental = specialization == User.DENTIST

    now = timeutils.manila_now()
    valid_until = now + timedelta(days=365)
    with transaction.atomic():
        cert = (MedicalCertificate.objects.select_for_update()
                .filter(consultation=consultation).order_by('-issue_date').first())
        if cert is None:
            cert = MedicalCertificate.objects.create(
                consultation=consultation, patient=appt.patient, issued_by=doctor,
                issue_date=now, valid_until=valid_until,
            )
        else:
            cert.issue_date = now
            cert.valid_until = valid_until
            cert.issued_by = doctor
            cert.status = MedicalCertificate.STATUS_VALID
            cert.save(update_fields=['issue_date', 'valid_until', 'issued_by', 'status'])
            MedicalCertificate.objects.filter(
                consultation=consultation, status=MedicalCertificate.STATUS_VALID,
            ).exclude(pk=cert.pk).update(status=MedicalCertificate.STATUS_EXPIRED)

    boxes, remaining = match_medical_history(split_conditions(student.medical_cond))
    allergies = ', '.join(title_case(a) for a in split_conditions(student.allergies))
    patient_name = title_case(student.full_name) or appt.patient.username
    reason = (consultation.reason_of_visit or '').strip()
    consultation_date = timeutils.format_date_long(appt.appointment_timestart)
    note = ' '.join(filter(None, [
        f'Reason for visit: {reason}.' if reason else '',
        f'Consultation recorded on {consultation_date}.',
    ]))
    intro = (
        f'This is to certify that {patient_name}, a student of {settings.CLINIC_INSTITUTION}, '
        + ('underwent a dental evaluation at the Health Services Department.' if dental
           else 'was examined at the Health Services Department.')
    )
    doc = {
        'institution': settings.CLINIC_INSTITUTION,
        'clinic': 'Health Services Department',
        'address': settings.CLINIC_ADDRESS,
        'title': 'Dental Certificate' if dental else 'Medical Certificate',
        'certificate_id': f'{cert.id:06d}',
        'issue_date': timeutils.format_date_long(cert.issue_date),
        'valid_until': timeutils.format_date_long(cert.valid_until),
        'paragraphs': [intro],
        'patient': _patient_rows(student, now),
        'history': boxes,
        'remaining': remaining,
        'allergies': allergies,
        'impression': (consultation.diagnosis or '').strip() or NOT_RECORDED,
        'recommendation': (consultation.findings or '').strip() or (
            'No dental recommendations were provided.' if dental else 'No medical recommendations were provided.'
        ),
        'notes': [('Notes', note)],
        'doctor': {
            'name': _doctor_name(doctor),
            'title': 'Attending Dentist' if dental else 'Attending Physician',
            'license': getattr(_employee(doctor), 'employee_id', ''),
        },
    }
    pdf = render_certificate(doc)
    prefix = 'dental' if dental else 'medical'
    filename = f'{prefix}-certificate-{slugify(patient_name)}.pdf'
    log_action(user=doctor, action='certificate_issue', object_type='certificate', object_id=cert.id,
               detail={'appointment': appt.id, 'flow': 'appointment'})
    logger.info('certificate %s issued for appointment %s by doctor %s', cert.id, appt.id, doctor.id)
    return IssuedCertificate(cert, pdf, filename)


def issue_consultation_certificate(doctor: User, appointment_id) -> IssuedCertificate:
    if not appointment_id:
        raise CertificateError('appointment_id is required', 400)
    appt = _load_appointment(appointment_id)
    consultation, student, specialization = _check_common(doctor, appt)
    dental = specialization == User.DENTIST
    kind = 'Dental Certificate' if dental else 'Medical Certificate'

    now = timeutils.manila_now()
    with transaction.atomic():
        expired = (MedicalCertificate.objects
                   .filter(consultation=consultation, status=MedicalCertificate.STATUS_VALID)
                   .update(status=MedicalCertificate.STATUS_EXPIRED))
        cert = MedicalCertificate.objects.create(
            consultation=consultation, patient=appt.patient, issued_by=doctor,
            issue_date=now, valid_until=now + timedelta(days=settings.CLINIC_CERTIFICATE_VALID_DAYS),
        )

    patient_name = title_case(student.full_name) or appt.patient.username
    clinic = appt.clinic.name
    visit_date = timeutils.format_date_long(appt.appointment_timestart)
    if dental:
        paragraphs = [
            f'This certifies that {patient_name} underwent dental evaluation and management at the '
            f'{settings.CLINIC_INSTITUTION} Dental Clinic ({clinic}) on {visit_date}.',
            'The dental assessment and interventions rendered during the visit are documented below '
            'for patient and academic reference.',
        ]
        footer = ('This dental certificate is issued upon the request of the concerned individual '
                  'for school documentation and other lawful purposes.')
    else:
        paragraphs = [
            f'This is to certify that {patient_name} was examined at the {settings.CLINIC_INSTITUTION} '
            f'Health Services Department ({clinic}) on {visit_date}.',
            'Based on the clinical assessment, the patient was evaluated and managed accordingly. '
            'The findings and diagnosis are summarized below for reference.',
        ]
        footer = ('This medical certificate is issued upon the request of the patient '
                  'for school compliance and other legitimate purposes.')

    doc = {
        'institution': settings.CLINIC_INSTITUTION,
        'clinic': clinic,
        'address': settings.CLINIC_ADDRESS,
        'title': kind,
        'certificate_id': f'{cert.id:06d}',
        'issue_date': timeutils.format_date_long(cert.issue_date),
        'valid_until': timeutils.format_date_long(cert.valid_until),
        'paragraphs': paragraphs,
        'patient': _patient_rows(student, now),
        'notes': [
            ('Reason for visit', (consultation.reason_of_visit or '').strip()),
            ('Findings', (consultation.findings or '').strip()),
            ('Diagnosis', (consultation.diagnosis or '').strip()),
        ],
        'footer': footer,
        'doctor': {
            'name': _doctor_name(doctor),
            'title': 'University Dentist' if dental else 'University Physician',
            'license': getattr(_employee(doctor), 'employee_id', ''),
        },
    }
    pdf = render_certificate(doc)
    filename = f'{slugify(kind)}-{slugify(patient_name)}-{timeutils.to_manila_date_string(now)}.pdf'
    log_action(user=doctor, action='certificate_issue', object_type='certificate', object_id=cert.id,
               detail={'appointment': appt.id, 'flow': 'consultation', 'expired': expired})
    logger.info('certificate %s issued for consultation %s (expired %s)', cert.id, consultation.id, expired)
    return IssuedCertificate(cert, pdf, filename)

"""
Lookups used by the booking screens: clinics, doctors, free slots,
service options, the earliest bookable day and the enum catalogue.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.models import Appointment, MedicalCertificate, Medicine, PersonProfile, StudentProfile, User
from core.services.clinics import list_clinics
from core.services.service_options import options_for_specialization
from core.services.slots import doctors_for_clinic, earliest_booking_start, slots_for_doctor, slots_for_doctors
from core.services.timeutils import parse_iso_date


def _choices(pairs):
    return [{'value': k, 'label': v} for k, v in pairs]


def _int_param(request, name):
    raw = request.query_params.get(name)
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def clinics(request):
    return Response({'ok': True, 'clinics': list_clinics()})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctor_availability(request):
    clinic_id = _int_param(request, 'clinic_id')
    doctor_id = _int_param(request, 'doctor_user_id')
    day = parse_iso_date(request.query_params.get('date'))
    if not clinic_id or not doctor_id or day is None:
        raise ValidationError('clinic_id, doctor_user_id and date are required')
    return Response({'ok': True, 'slots': slots_for_doctor(clinic_id, doctor_id, day)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctor_availability_bulk(request):
    clinic_id = _int_param(request, 'clinic_id')
    day = parse_iso_date(request.query_params.get('date'))
    raw_ids = request.query_params.get('doctor_user_ids') or ''
    doctor_ids = []
    for part in raw_ids.split(','):
        part = part.strip()
        if part.isdigit() and int(part) not in doctor_ids:
            doctor_ids.append(int(part))
    if not clinic_id or day is None:
        raise ValidationError('clinic_id and date are required')
    if not doctor_ids:
        raise ValidationError('doctor_user_ids is required')
    return Response({'ok': True, 'availability': slots_for_doctors(clinic_id, doctor_ids, day)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctors(request):
    clinic_id = _int_param(request, 'clinic_id')
    if not clinic_id:
        raise ValidationError('clinic_id is required')
    return Response({
        'ok': True,
        'doctors': doctors_for_clinic(clinic_id, request.query_params.get('service_type')),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def service_options(request):
    specialization = request.query_params.get('specialization')
    return Response({'ok': True, 'options': options_for_specialization(specialization)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def earliest_booking(request):
    start = earliest_booking_start(request.query_params.get('specialization'))
    return Response({'ok': True, 'earliest': start.isoformat(), 'date': start.date().isoformat()})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def enums(request):
    return Response({
        'ok': True,
        'medicineCategories': _choices(Medicine.CATEGORY_CHOICES),
        'dosageUnits': _choices(Medicine.UNIT_CHOICES),
        'serviceTypes': _choices(Appointment.SERVICE_CHOICES),
        'appointmentStatuses': _choices(Appointment.STATUS_CHOICES),
        'certificateStatuses': _choices(MedicalCertificate.STATUS_CHOICES),
        'bloodTypes': _choices(PersonProfile.BLOOD_TYPE_CHOICES),
        'genders': _choices(PersonProfile.GENDER_CHOICES),
        'departments': _choices(StudentProfile.DEPARTMENT_CHOICES),
        'yearLevels': _choices(StudentProfile.YEAR_LEVEL_CHOICES),
        'specializations': _choices(User.SPECIALIZATION_CHOICES),
    })

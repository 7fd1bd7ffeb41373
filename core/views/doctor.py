"""
Doctor portal.

Duty hours, own appointments and their lifecycle, consultation notes,
certificates, the patient directory and dispensing against the
doctor's own consultations.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.exceptions import DispenseError
from core.permissions import IsDoctorRole
from core.serializers.clinic import (
    AppointmentRefSerializer,
    DispenseSerializer,
    DoctorActionSerializer,
    DoctorNotesSerializer,
    DutyWeekSerializer,
    DutyWindowRefSerializer,
    DutyWindowUpdateSerializer,
)
from core.services import appointments as appointment_service
from core.services import availability, certificates, consultations, dispense, records
from core.services.consultations import serialize_consultation
from core.services.pdf import pdf_response


# ---------------------------------------------------------------------
# Duty hours
# ---------------------------------------------------------------------
@api_view(['GET', 'POST', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def duty_hours(request):
    doctor = request.user
    if request.method == 'GET':
        return Response({'ok': True, 'availability': availability.list_duty_hours(doctor)})
    if request.method == 'POST':
        s = DutyWeekSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        created = availability.create_duty_week(
            doctor,
            clinic_id=vd['clinic_id'],
            timestart=vd['available_timestart'],
            timeend=vd['available_timeend'],
            week_start=vd.get('week_start'),
        )
        return Response({
            'ok': True,
            'availability': [availability.serialize_availability(a) for a in created],
        }, status=201)
    if request.method == 'PUT':
        s = DutyWindowUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        av = availability.update_duty_window(
            doctor, vd['availability_id'],
            clinic_id=vd.get('clinic_id'),
            available_date=vd.get('available_date'),
            timestart=vd.get('available_timestart'),
            timeend=vd.get('available_timeend'),
        )
        return Response({'ok': True, 'availability': availability.serialize_availability(av)})
    # the id may come in the body or the query string
    s = DutyWindowRefSerializer(data=request.data or request.query_params)
    s.is_valid(raise_exception=True)
    availability.delete_duty_window(doctor, s.validated_data['availability_id'])
    return Response({'ok': True})


# ---------------------------------------------------------------------
# Appointments
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def appointment_list(request):
    return Response({'ok': True, 'appointments': appointment_service.list_doctor_appointments(request.user)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def appointment_action(request, appointment_id: int):
    s = DoctorActionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appt = appointment_service.apply_doctor_action(request.user, appointment_id, s.validated_data['action'])
    return Response({'ok': True, 'appointment': appointment_service.serialize_doctor_appointment(appt)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def appointment_certificate(request, appointment_id: int):
    issued = certificates.issue_appointment_certificate(request.user, appointment_id)
    return pdf_response(issued.pdf, issued.filename)


# ---------------------------------------------------------------------
# Consultations
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def patient_consultations(request):
    if request.method == 'GET':
        return Response({'ok': True, 'consultations': consultations.consultations_for(doctor=request.user)})
    s = DoctorNotesSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    c = consultations.save_doctor_notes(request.user, s.validated_data)
    return Response({'ok': True, 'consultation': serialize_consultation(c)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def consultation_certificate(request):
    s = AppointmentRefSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    issued = certificates.issue_consultation_certificate(request.user, s.validated_data['appointment_id'])
    return pdf_response(issued.pdf, issued.filename, headers={'X-Medcert-Id': issued.certificate.id})


# ---------------------------------------------------------------------
# Patients
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def patient_list(request):
    return Response({'ok': True, 'patients': records.fetch_patient_records()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def patient_detail(request, user_id: int):
    return Response({'ok': True, 'patient': records.patient_detail(user_id)})


# ---------------------------------------------------------------------
# Dispensing
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def dispense_view(request):
    doctor = request.user
    if request.method == 'GET':
        return Response({
            'ok': True,
            'dispenses': dispense.list_dispenses(dispensed_by=doctor),
            'consultations': consultations.consultations_for(doctor=doctor),
            'medicines': dispense.medicine_options(),
        })
    s = DispenseSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    if not vd.get('consultation_id'):
        raise DispenseError('consultation_id is required', 400)

    def own_consultation(c):
        if c.doctor_id != doctor.id:
            raise DispenseError('You can only dispense for your own consultations', 403)

    d = dispense.record_dispense(
        med_id=vd['med_id'], quantity=vd['quantity'], dispensed_by=doctor,
        consultation_id=vd['consultation_id'], consultation_guard=own_consultation,
    )
    return Response({'ok': True, 'dispense_id': d.id, 'quantity': d.quantity}, status=201)

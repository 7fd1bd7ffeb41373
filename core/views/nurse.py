"""
Nurse portal.

Clinic setup, patient records, medicine inventory, dispensing
(consultation or walk-in), consultation notes, quarterly reports and
account management.
"""
from __future__ import annotations

from django.conf import settings
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.exceptions import DispenseError
from core.permissions import IsNurseRole
from core.serializers.auth import AccountStatusSerializer
from core.serializers.clinic import (
    ClinicSerializer,
    ConsultationNotesSerializer,
    DispenseSerializer,
    InventoryQuerySerializer,
    RecordPatchSerializer,
    StockBatchSerializer,
    StockSerializer,
)
from core.services import accounts, clinics, consultations, dispense, inventory, records, reports
from core.services.consultations import serialize_consultation
from core.services.pdf import pdf_response, render_quarterly_report


# ---------------------------------------------------------------------
# Clinics
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsNurseRole])
def clinic_list(request):
    if request.method == 'GET':
        return Response({'ok': True, 'clinics': clinics.list_clinics()})
    s = ClinicSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    clinic = clinics.create_clinic(
        name=vd.get('clinic_name'), location=vd.get('clinic_location'), contactno=vd.get('clinic_contactno'),
    )
    return Response({'ok': True, 'clinic': clinics.serialize_clinic(clinic)}, status=201)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsNurseRole])
def clinic_detail(request, clinic_id: int):
    if request.method == 'GET':
        return Response({'ok': True, 'clinic': clinics.serialize_clinic(clinics.get_clinic(clinic_id))})
    s = ClinicSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    clinic = clinics.update_clinic(
        clinic_id, name=vd.get('clinic_name'), location=vd.get('clinic_location'),
        contactno=vd.get('clinic_contactno'),
    )
    return Response({'ok': True, 'clinic': clinics.serialize_clinic(clinic)})


# ---------------------------------------------------------------------
# Patient records
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsNurseRole])
def record_list(request):
    return Response({'ok': True, 'records': records.fetch_patient_records()})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsNurseRole])
def record_detail(request, profile_id: int):
    s = RecordPatchSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response({'ok': True, 'record': records.update_patient_record(profile_id, s.validated_data)})


# ---------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsNurseRole])
def inventory_list(request):
    if request.method == 'GET':
        q = InventoryQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        payload = inventory.list_inventory(clinic_id=q.validated_data.get('clinic_id'))
        return Response({'ok': True, **payload})
    s = StockSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    med = inventory.add_stock(request.user, s.validated_data)
    return Response({'ok': True, 'medicine': inventory.get_medicine_payload(med)}, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsNurseRole])
def inventory_replenish(request, med_id: int):
    s = StockBatchSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    med = inventory.replenish(request.user, med_id, s.validated_data)
    return Response({'ok': True, 'medicine': inventory.get_medicine_payload(med)}, status=201)


# ---------------------------------------------------------------------
# Dispensing
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsNurseRole])
def dispense_view(request):
    if request.method == 'GET':
        return Response({
            'ok': True,
            'dispenses': dispense.list_dispenses(),
            'consultations': consultations.consultations_for(),
            'medicines': dispense.medicine_options(),
        })
    s = DispenseSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    walk_in = s.walk_in()
    if not vd.get('consultation_id') and not (walk_in['name'] or '').strip():
        raise DispenseError('walkInName is required for walk-in dispenses', 400)
    d = dispense.record_dispense(
        med_id=vd['med_id'], quantity=vd['quantity'], dispensed_by=request.user,
        consultation_id=vd.get('consultation_id'),
        walk_in=None if vd.get('consultation_id') else walk_in,
    )
    return Response({'ok': True, 'dispense_id': d.id, 'quantity': d.quantity}, status=201)


# ---------------------------------------------------------------------
# Consultation notes
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsNurseRole])
def consultation_notes(request):
    if request.method == 'GET':
        return Response({'ok': True, 'consultations': consultations.consultations_for()})
    s = ConsultationNotesSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    c = consultations.save_nurse_notes(request.user, s.validated_data)
    return Response({'ok': True, 'consultation': serialize_consultation(c)})


# ---------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsNurseRole])
def report_view(request):
    report = reports.generate_quarterly_report(
        request.query_params.get('year'), request.query_params.get('quarter'),
    )
    return Response({'ok': True, 'report': report})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsNurseRole])
def report_export(request):
    report = reports.generate_quarterly_report(
        request.query_params.get('year'), request.query_params.get('quarter'),
    )
    pdf = render_quarterly_report(report, institution=settings.CLINIC_NAME)
    filename = f"nurse-quarterly-report-{report['year']}-q{report['selectedQuarter']}.pdf"
    return pdf_response(pdf, filename)


# ---------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------
@api_view(['GET', 'POST', 'PUT'])
@permission_classes([IsAuthenticated, IsNurseRole])
def account_admin(request):
    if request.method == 'GET':
        return Response({'ok': True, 'accounts': accounts.list_accounts()})
    if request.method == 'POST':
        user, profile_id, raw_password = accounts.create_account(request.data, created_by=request.user)
        return Response({
            'ok': True,
            'userId': user.id,
            'username': user.username,
            'role': user.role,
            'profileId': profile_id,
            'password': raw_password,
        }, status=201)
    s = AccountStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = accounts.set_account_status(
        s.validated_data['userId'], s.validated_data['newStatus'], changed_by=request.user,
    )
    return Response({'ok': True, 'userId': user.id, 'status': user.status})

"""Scholar (clinic desk) portal: appointment desk, patient search, walk-in dispensing."""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.exceptions import DispenseError
from core.permissions import IsScholarRole
from core.serializers.clinic import DeskAppointmentSerializer, DispenseSerializer
from core.services import appointments, dispense, records


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsScholarRole])
def appointment_desk(request):
    if request.method == 'GET':
        qp = request.query_params
        rows = appointments.list_desk_appointments(
            status=qp.get('status'), date_from=qp.get('from'), date_to=qp.get('to'), take=qp.get('take'),
        )
        return Response({'ok': True, 'appointments': rows})
    s = DeskAppointmentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    appt = appointments.update_desk_appointment(
        request.user, vd['appointment_id'], status=vd.get('status'), remarks=vd.get('remarks'),
    )
    return Response({'ok': True, 'appointment': appointments.serialize_desk_appointment(appt)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsScholarRole])
def patient_search(request):
    qp = request.query_params
    rows = records.filter_patient_records(
        patient_type=qp.get('type'), status=qp.get('status'),
        search=qp.get('search'), with_appointment=qp.get('withAppointment'),
    )
    return Response({'ok': True, 'patients': rows})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsScholarRole])
def dispense_view(request):
    if request.method == 'GET':
        return Response({
            'ok': True,
            'dispenses': dispense.list_dispenses(walk_in_only=True),
            'medicines': dispense.medicine_options(),
        })
    s = DispenseSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    walk_in = s.walk_in()
    if vd.get('consultation_id'):
        raise DispenseError('Scholars can only record walk-in dispenses', 403)
    if not (walk_in['name'] or '').strip():
        raise DispenseError('med_id, quantity and walkInName are required', 400)
    d = dispense.record_dispense(
        med_id=vd['med_id'], quantity=vd['quantity'], dispensed_by=request.user, walk_in=walk_in,
    )
    return Response({'ok': True, 'dispense_id': d.id, 'quantity': d.quantity}, status=201)

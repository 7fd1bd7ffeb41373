"""Patient portal: own appointments."""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsPatientRole
from core.serializers.clinic import BookingSerializer, RescheduleSerializer
from core.services import booking
from core.throttling import WRITE_THROTTLES


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsPatientRole])
@throttle_classes(WRITE_THROTTLES)
def appointments(request):
    if request.method == 'GET':
        return Response({'ok': True, 'appointments': booking.list_patient_appointments(request.user)})
    s = BookingSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appt = booking.book_appointment(request.user, s.validated_data)
    return Response({'ok': True, 'appointment': booking.appointment_result(appt)}, status=201)

appointments.cls.throttle_scope = 'booking'


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsPatientRole])
def appointment_detail(request, appointment_id: int):
    if request.method == 'DELETE':
        appt = booking.cancel_own_appointment(request.user, appointment_id)
    else:
        s = RescheduleSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        appt = booking.reschedule_appointment(request.user, appointment_id, s.validated_data)
    return Response({'ok': True, 'appointment': booking.appointment_result(appt)})

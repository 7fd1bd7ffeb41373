from __future__ import annotations

import logging

from django.conf import settings
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from core.exceptions import ClinicError
from core.serializers.clinic import ContactSerializer
from core.services import notifications
from core.services.audit import log_action

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([AllowAny])
def contact_view(request):
    """Public contact form; forwards the message to the clinic inbox."""
    s = ContactSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    body = f"From: {vd['name']} <{vd['email']}>\n\n{vd['message']}"
    try:
        notifications.send_email(
            settings.CONTACT_INBOX_EMAIL, f"[{settings.CLINIC_NAME}] Message from {vd['name']}", body,
            reply_to=vd['email'],
        )
    except (notifications.DeliveryError, OSError):
        logger.warning('contact message from %s could not be delivered', vd['email'], exc_info=True)
        raise ClinicError('Unable to send your message right now', 500)
    user = request.user if getattr(request.user, 'is_authenticated', False) else None
    log_action(user=user, action='contact_message', detail={'email': vd['email']})
    return Response({'ok': True, 'message': 'Message sent'})

contact_view.cls.throttle_scope = 'contact'

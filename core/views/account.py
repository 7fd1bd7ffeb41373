"""
Own-account endpoints shared by every portal.

Mounted under each role prefix (``/api/<role>/account/...``); the role
in the URL must match the caller's role.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.serializers.auth import PasswordChangeSerializer
from core.services import accounts


def _check_portal(request, role):
    if request.user.role != role:
        raise PermissionDenied('This portal is not available for your role')


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def account_me(request, role):
    _check_portal(request, role)
    user = request.user
    if request.method == 'PUT':
        data = request.data
        profile = data.get('profile') if isinstance(data.get('profile'), dict) else data
        accounts.update_profile(user, profile, email=data.get('email'), phone=data.get('phone'))
    return Response({'ok': True, 'account': accounts.account_payload(user)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def account_password(request, role):
    _check_portal(request, role)
    s = PasswordChangeSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    accounts.change_password(request.user, s.validated_data.get('oldPassword'), s.validated_data.get('newPassword'))
    return Response({'ok': True, 'message': 'Password updated'})

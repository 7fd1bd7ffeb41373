"""
Authentication views.

Login is role aware: the portal sends the role together with the
identifier that role signs in with (employee id for doctors and
nurses, school id for scholars, student or employee id for patients).
A plain ``username`` login is accepted as well.  Every successful login
returns the legacy DRF token plus a simplejwt access/refresh pair.

Kept apart from ``core.authentication`` so DRF can load the
authentication classes without importing views.
"""
from __future__ import annotations

import logging

from django.contrib.auth.models import update_last_login
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from core.exceptions import AccountError
from core.models import User
from core.serializers.auth import (
    AdminPinSerializer,
    LoginSerializer,
    ResetPasswordSerializer,
    ResetRequestSerializer,
)
from core.services import accounts
from core.services.audit import log_action

logger = logging.getLogger(__name__)


def _client_ip(request):
    return request.META.get('REMOTE_ADDR')


# ---------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    Fields:
      - role plus employee_id | school_id | patient_id, or username
      - password
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    password = vd['password']
    role = vd.get('role')

    if role:
        user = accounts.find_login_user(role, vd)
        attempted = vd.get('employee_id') or vd.get('school_id') or vd.get('patient_id')
    else:
        attempted = (vd.get('username') or '').strip()
        if not attempted:
            raise AccountError('Missing login identifier', 400)
        user = User.objects.filter(username=attempted).first()

    if user is None or not user.check_password(password):
        log_action(user=None, action='login', object_type='user',
                   detail={'result': 'fail', 'identifier': attempted, 'ip': _client_ip(request)})
        raise AccountError('Invalid credentials', 401)
    if user.status != User.STATUS_ACTIVE:
        log_action(user=user, action='login', object_type='user', object_id=user.id,
                   detail={'result': 'inactive', 'ip': _client_ip(request)})
        raise AccountError('Account is inactive', 403)

    update_last_login(None, user)
    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': _client_ip(request)})

    # legacy token
    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    return Response({
        'ok': True,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': user.role,
        'user': accounts.user_summary(user),
    })

# ScopedRateThrottle reads throttle_scope from the wrapped APIView class
login_view.cls.throttle_scope = 'login'


# ---------------------------------------------------------------------
# JWT: refresh & logout
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    resp = TokenRefreshView.as_view()(request._request)
    if isinstance(resp, Response):
        data = dict(resp.data)
        if 'access' in data and 'jwt_access' not in data:
            data['jwt_access'] = data.pop('access')
        if resp.status_code == 200:
            data['ok'] = True
        return Response(data, status=resp.status_code)
    return resp


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token, or every outstanding one of the user."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
            count = 1
        except TokenError as exc:
            raise AccountError(f'Invalid refresh token: {exc}', 400)
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    Token.objects.filter(user=request.user).delete()
    log_action(user=request.user, action='logout', object_type='user', object_id=request.user.id,
               detail={'blacklisted': count})
    return Response({'ok': True, 'blacklisted': count})


# ---------------------------------------------------------------------
# Admin PIN & provisioning
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def admin_pin_view(request):
    s = AdminPinSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    accounts.verify_admin_pin(s.validated_data['pin'])
    return Response({'ok': True})

admin_pin_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def provision_user_view(request):
    """Create an account; gated by the ``X-Admin-Pin`` header."""
    accounts.verify_admin_pin(request.headers.get('X-Admin-Pin'))
    user, profile_id, raw_password = accounts.create_account(request.data)
    return Response({
        'ok': True,
        'userId': user.id,
        'username': user.username,
        'role': user.role,
        'profileId': profile_id,
        'password': raw_password,
    }, status=201)

provision_user_view.cls.throttle_scope = 'login'


# ---------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def request_reset_view(request):
    s = ResetRequestSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    token = accounts.request_password_reset(s.validated_data.get('contact'))
    return Response({'ok': True, 'channel': token.channel, 'message': 'Reset code sent.'})

request_reset_view.cls.throttle_scope = 'password_reset'


@api_view(['POST'])
@permission_classes([AllowAny])
def reset_password_view(request):
    s = ResetPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    accounts.reset_password(vd.get('contact'), vd.get('code'), vd.get('newPassword'))
    return Response({'ok': True, 'message': 'Password has been reset.'})

reset_password_view.cls.throttle_scope = 'password_reset'

"""
Account lookup, provisioning, profile editing and password reset.

Login identifiers are the school or employee ids stored on the
profiles, not the Django username: doctors and nurses sign in with
their employee id, scholars with their student id and patients with
either.  Provisioned accounts get a random password that is returned
once to the caller.
"""
from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Optional

import requests
from django.conf import settings
from django.contrib.auth.hashers import check_password
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from core.exceptions import AccountError
from core.models import EmployeeProfile, PasswordResetToken, PersonProfile, StudentProfile, User
from core.services import notifications
from core.services.audit import log_action
from core.services.formatting import full_name, match_choice
from core.services.timeutils import parse_iso_date
from core.services.validation import (
    ensure_password_strength,
    format_phone_for_sms,
    generate_numeric_code,
    generate_random_password,
    normalize_reset_contact,
    validate_and_normalize_contacts,
)

logger = logging.getLogger(__name__)

# Friendly year-level aliases accepted on profile updates
_YEAR_LEVEL_ALIASES = {
    'kindergarten 1': 'KINDERGARTEN',
    'kindergarten 2': 'KINDERGARTEN',
    **{f'grade {n}': 'ELEMENTARY' for n in range(1, 7)},
    **{f'grade {n}': 'JUNIOR_HIGH' for n in range(7, 11)},
    'grade 11': 'SENIOR_HIGH',
    'grade 12': 'SENIOR_HIGH',
}


# ---------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------
def find_login_user(role: str, data: dict) -> Optional[User]:
    """Resolve the account a role-aware login refers to.

    Raises ``AccountError`` (400) when the identifier for the role is
    missing; returns ``None`` when nothing matches.
    """
    if role in (User.ROLE_DOCTOR, User.ROLE_NURSE):
        ident = (data.get('employee_id') or '').strip()
        if not ident:
            raise AccountError('Missing login identifier', 400)
        return User.objects.filter(role=role, employee_profile__employee_id=ident).first()
    if role == User.ROLE_SCHOLAR:
        ident = (data.get('school_id') or '').strip()
        if not ident:
            raise AccountError('Missing login identifier', 400)
        return User.objects.filter(role=role, student_profile__student_id=ident).first()
    if role == User.ROLE_PATIENT:
        ident = (data.get('patient_id') or '').strip()
        if not ident:
            raise AccountError('Missing login identifier', 400)
        return User.objects.filter(
            Q(student_profile__student_id=ident) | Q(employee_profile__employee_id=ident),
            role=role,
        ).first()
    raise AccountError('Invalid role', 400)


def user_summary(user: User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'fullName': full_name(user),
        'role': user.role,
    }


def verify_admin_pin(pin) -> None:
    pin = str(pin or '').strip()
    if not (len(pin) == 6 and pin.isdigit()):
        raise AccountError('PIN must be 6 digits', 400)
    hashed = getattr(settings, 'CLINIC_ADMIN_PIN_HASH', '')
    plain = getattr(settings, 'CLINIC_ADMIN_PIN', '')
    if hashed:
        ok = check_password(pin, hashed)
    elif plain:
        ok = secrets.compare_digest(pin, str(plain))
    else:
        raise AccountError('Access PIN is not configured', 500)
    if not ok:
        raise AccountError('Invalid PIN', 401)


# ---------------------------------------------------------------------
# Provisioning
# ---------------------------------------------------------------------
def _random_username(prefix: str) -> str:
    return f"{prefix}-{secrets.token_hex(4)}"


def resolve_username(role: str, *, employee_id=None, school_id=None, student_id=None, patient_type=None) -> str:
    if role in (User.ROLE_DOCTOR, User.ROLE_NURSE):
        return employee_id or _random_username('EMP')
    if role == User.ROLE_SCHOLAR:
        return school_id or _random_username('SCH')
    if patient_type == 'student':
        return student_id or _random_username('STUD')
    return employee_id or _random_username('EMP')


def create_account(data: dict, *, created_by: Optional[User] = None):
    """Create a user and its profile; returns ``(user, profile_id, raw_password)``."""
    role = str(data.get('role') or '').lower()
    if role not in dict(User.ROLE_CHOICES):
        raise AccountError('Invalid role supplied', 400)
    fname = (data.get('fname') or '').strip()
    lname = (data.get('lname') or '').strip()
    if not fname or not lname:
        raise AccountError('First name and last name are required', 400)
    dob = parse_iso_date(data.get('date_of_birth'))
    if dob is None:
        raise AccountError('Invalid date of birth', 400)
    gender = data.get('gender')
    if gender not in ('Male', 'Female'):
        raise AccountError('Invalid gender value', 400)

    employee_id = (data.get('employee_id') or '').strip() or None
    school_id = (data.get('school_id') or '').strip() or None
    student_id = (data.get('student_id') or '').strip() or None
    patient_type = data.get('patientType') or 'employee'
    specialization = data.get('specialization') if role == User.ROLE_DOCTOR else None
    if specialization and specialization not in dict(User.SPECIALIZATION_CHOICES):
        raise AccountError('Invalid specialization', 400)

    username = resolve_username(
        role, employee_id=employee_id, school_id=school_id,
        student_id=student_id, patient_type=patient_type,
    )
    raw_password = generate_random_password(12)
    person = dict(fname=fname, mname=(data.get('mname') or None), lname=lname,
                  date_of_birth=dob, gender=gender)

    if User.objects.filter(username=username).exists():
        raise AccountError('An account with this ID already exists', 409)
    try:
        with transaction.atomic():
            user = User.objects.create_user(username=username, password=raw_password, role=role,
                                            specialization=specialization)
            if role == User.ROLE_SCHOLAR or (role == User.ROLE_PATIENT and patient_type == 'student'):
                prof = StudentProfile.objects.create(
                    user=user, student_id=(school_id if role == User.ROLE_SCHOLAR else student_id) or username,
                    **person,
                )
                profile_id = prof.student_id
            else:
                prof = EmployeeProfile.objects.create(user=user, employee_id=employee_id or username, **person)
                profile_id = prof.employee_id
    except IntegrityError:
        raise AccountError('An account with this ID already exists', 409)

    log_action(user=created_by, action='account_create', object_type='user', object_id=user.id,
               detail={'role': role, 'username': username})
    logger.info('account %s created with role %s', username, role)
    return user, profile_id, raw_password


def list_accounts() -> list[dict]:
    users = User.objects.select_related('student_profile', 'employee_profile').order_by('-date_joined')
    out = []
    for u in users:
        out.append({
            'user_id': u.id,
            'username': u.username,
            'role': u.role,
            'status': u.status,
            'specialization': u.specialization,
            'fullName': full_name(u),
        })
    return out


def set_account_status(user_id, new_status, *, changed_by: Optional[User] = None) -> User:
    if not user_id:
        raise AccountError('User ID is required', 400)
    if new_status not in dict(User.STATUS_CHOICES):
        raise AccountError('Invalid status supplied', 400)
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise AccountError('User not found', 404)
    user.status = new_status
    user.save(update_fields=['status'])
    log_action(user=changed_by, action='account_status', object_type='user', object_id=user.id,
               detail={'status': new_status})
    return user


# ---------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------
def profile_payload(prof: Optional[PersonProfile]) -> Optional[dict]:
    if prof is None:
        return None
    data = {
        'fname': prof.fname,
        'mname': prof.mname,
        'lname': prof.lname,
        'date_of_birth': prof.date_of_birth.isoformat() if prof.date_of_birth else None,
        'gender': prof.gender,
        'contactno': prof.contactno,
        'address': prof.address,
        'bloodtype': prof.bloodtype,
        'allergies': prof.allergies,
        'medical_cond': prof.medical_cond,
        'emergencyco_name': prof.emergencyco_name,
        'emergencyco_num': prof.emergencyco_num,
        'emergencyco_relation': prof.emergencyco_relation,
    }
    if isinstance(prof, StudentProfile):
        data.update({
            'student_id': prof.student_id,
            'department': prof.department,
            'program': prof.program,
            'year_level': prof.year_level,
        })
    else:
        data['employee_id'] = prof.employee_id
    return data


def account_payload(user: User) -> dict:
    return {
        'accountId': user.id,
        'username': user.username,
        'role': user.role,
        'status': user.status,
        'email': user.email,
        'phone': user.phone,
        'specialization': user.specialization,
        'profile': profile_payload(user.profile),
    }


def _year_level(value):
    key = match_choice(value, StudentProfile.YEAR_LEVEL_CHOICES)
    if key is None and value:
        key = _YEAR_LEVEL_ALIASES.get(str(value).strip().lower())
    return key


def update_profile(user: User, raw: dict, *, email=None, phone=None) -> User:
    prof = user.profile
    if prof is None:
        raise AccountError('Profile not found', 404)

    email_n, contact_n, emergency_n = validate_and_normalize_contacts(
        email if email is not None else user.email,
        raw.get('contactno') if isinstance(raw.get('contactno'), str) else prof.contactno,
        raw.get('emergencyco_num') if isinstance(raw.get('emergencyco_num'), str) else prof.emergencyco_num,
    )

    for fld in ('fname', 'mname', 'lname', 'address', 'allergies', 'medical_cond',
                'emergencyco_name', 'emergencyco_relation'):
        if isinstance(raw.get(fld), str):
            setattr(prof, fld, raw[fld].strip())
    if raw.get('gender') in ('Male', 'Female'):
        prof.gender = raw['gender']
    dob = parse_iso_date(raw.get('date_of_birth'))
    if dob:
        prof.date_of_birth = dob
    blood = match_choice(raw.get('bloodtype'), PersonProfile.BLOOD_TYPE_CHOICES)
    if blood:
        prof.bloodtype = blood
    if isinstance(prof, StudentProfile):
        dept = match_choice(raw.get('department'), StudentProfile.DEPARTMENT_CHOICES)
        if dept:
            prof.department = dept
        year = _year_level(raw.get('year_level'))
        if year:
            prof.year_level = year
        if isinstance(raw.get('program'), str):
            prof.program = raw['program'].strip()
    if 'contactno' in raw:
        prof.contactno = contact_n or None
    if 'emergencyco_num' in raw:
        prof.emergencyco_num = emergency_n or None

    with transaction.atomic():
        prof.save()
        fields = []
        if email is not None:
            user.email = email_n
            fields.append('email')
        if phone is not None:
            _, phone_n, _ = validate_and_normalize_contacts(None, phone, None)
            user.phone = phone_n
            fields.append('phone')
        if fields:
            user.save(update_fields=fields)
    log_action(user=user, action='profile_update', object_type='user', object_id=user.id)
    return user


def change_password(user: User, old_password, new_password) -> None:
    if not old_password or not new_password:
        raise AccountError('Both old and new passwords are required', 400)
    if not user.check_password(old_password):
        raise AccountError('Old password is incorrect', 400)
    ensure_password_strength(new_password)
    user.set_password(new_password)
    user.save(update_fields=['password'])
    log_action(user=user, action='password_change', object_type='user', object_id=user.id)


# ---------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------
def request_password_reset(raw_contact) -> PasswordResetToken:
    contact = normalize_reset_contact(raw_contact)
    if contact is None:
        raise AccountError('Contact (email or phone) required.', 400)
    if contact.channel == 'EMAIL':
        user = User.objects.filter(email__iexact=contact.normalized).first()
    else:
        user = User.objects.filter(
            Q(phone__in=contact.variants)
            | Q(student_profile__contactno__in=contact.variants)
            | Q(employee_profile__contactno__in=contact.variants)
        ).first()
    if user is None:
        raise AccountError('No account found with that contact.', 404)

    code = generate_numeric_code(6)
    ttl = settings.CLINIC_RESET_CODE_TTL_MINUTES
    with transaction.atomic():
        PasswordResetToken.objects.filter(user=user).delete()
        token = PasswordResetToken.objects.create(
            user=user, code=code, contact=contact.normalized, channel=contact.channel,
            expires_at=timezone.now() + timedelta(minutes=ttl),
        )

    try:
        if contact.channel == 'EMAIL':
            notifications.send_email(
                contact.normalized, 'Password Reset Code',
                f"Your password reset code is: {code}\nThis code will expire in {ttl} minutes.",
            )
        else:
            notifications.send_sms(
                format_phone_for_sms(contact.normalized),
                f"Your {settings.CLINIC_NAME} password reset code: {code} (valid {ttl} mins)",
            )
    except (notifications.DeliveryError, requests.RequestException, OSError):
        logger.warning('reset code delivery failed for user %s via %s', user.id, contact.channel, exc_info=True)

    log_action(user=user, action='password_reset_request', object_type='user', object_id=user.id,
               detail={'channel': contact.channel})
    return token


def reset_password(raw_contact, code, new_password) -> User:
    if not raw_contact or not code or not new_password:
        raise AccountError('Contact, code and new password are required.', 400)
    contact = normalize_reset_contact(raw_contact)
    if contact is None:
        raise AccountError('Invalid or expired code.', 400)
    token = (PasswordResetToken.objects
             .select_related('user')
             .filter(contact__in=contact.variants, code=str(code).strip())
             .order_by('-created_at')
             .first())
    if token is None or token.expires_at < timezone.now():
        raise AccountError('Invalid or expired code.', 400)
    ensure_password_strength(new_password)

    user = token.user
    with transaction.atomic():
        user.set_password(new_password)
        user.save(update_fields=['password'])
        PasswordResetToken.objects.filter(user=user).delete()
    log_action(user=user, action='password_reset', object_type='user', object_id=user.id)
    logger.info('password reset completed for user %s', user.id)
    return user

import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from core.models import AuditEvent, PasswordResetToken, User

from .factories import PASSWORD, make_employee, make_student

pytestmark = pytest.mark.django_db


def login(client, **payload):
    return client.post(reverse('login_view'), payload, format='json')


def test_unknown_role_is_rejected(student):
    client = APIClient()
    r = login(client, role='super', patient_id='STUD-0001', password=PASSWORD)
    assert r.status_code == 400
    assert r.data['error']['message'] == 'Invalid role'
    student.refresh_from_db()
    assert student.role == 'patient'


def test_login_returns_jwt_and_legacy_token(student):
    client = APIClient()
    r = login(client, username='STUD-0001', password=PASSWORD)
    assert r.status_code == 200
    assert r.data['ok'] is True
    assert r.data['jwt_access'] and r.data['jwt_refresh'] and r.data['token']
    assert r.data['role'] == 'patient'
    assert r.data['user']['id'] == student.id


def test_role_aware_login_by_identifier(doctor, scholar, employee_patient):
    client = APIClient()
    assert login(client, role='Doctor', employee_id='EMP-D001', password=PASSWORD).status_code == 200
    assert login(client, role='scholar', school_id='SCH-0001', password=PASSWORD).status_code == 200
    assert login(client, role='patient', patient_id='EMP-P001', password=PASSWORD).status_code == 200
    # the identifier must belong to an account of that role
    r = login(client, role='nurse', employee_id='EMP-D001', password=PASSWORD)
    assert r.status_code == 401


def test_missing_identifier_and_password(doctor):
    client = APIClient()
    r = login(client, role='doctor', password=PASSWORD)
    assert r.status_code == 400
    assert r.data['error']['message'] == 'Missing login identifier'
    r = login(client, username='EMP-D001')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'invalid'


def test_wrong_password_is_logged(doctor):
    client = APIClient()
    r = login(client, username='EMP-D001', password='nope')
    assert r.status_code == 401
    assert r.data['error']['message'] == 'Invalid credentials'
    assert AuditEvent.objects.filter(action='login', detail__result='fail').exists()


def test_inactive_account_cannot_log_in_or_use_old_token(doctor):
    client = APIClient()
    r = login(client, username='EMP-D001', password=PASSWORD)
    token = r.data['token']
    doctor.status = User.STATUS_INACTIVE
    doctor.save(update_fields=['status'])

    r = login(client, username='EMP-D001', password=PASSWORD)
    assert r.status_code == 403
    assert r.data['error']['message'] == 'Account is inactive'

    client.credentials(HTTP_AUTHORIZATION=f'Token {token}')
    r = client.get(reverse('doctor_appointments'))
    assert r.status_code == 401


def test_jwt_refresh_and_logout(student):
    client = APIClient()
    r = login(client, username='STUD-0001', password=PASSWORD)
    refresh = r.data['jwt_refresh']

    rr = client.post(reverse('jwt_refresh'), {'refresh': refresh}, format='json')
    assert rr.status_code == 200
    assert rr.data['ok'] is True and rr.data['jwt_access']

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['jwt_access']}")
    out = client.post(reverse('jwt_logout'), {'refresh': refresh}, format='json')
    assert out.status_code == 200 and out.data['blacklisted'] == 1

    again = APIClient().post(reverse('jwt_refresh'), {'refresh': refresh}, format='json')
    assert again.status_code == 401


def test_jwt_bearer_authenticates_portal(doctor):
    client = APIClient()
    r = login(client, role='doctor', employee_id='EMP-D001', password=PASSWORD)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['jwt_access']}")
    assert client.get(reverse('doctor_appointments')).status_code == 200
    # a doctor token does not open the nurse portal
    assert client.get(reverse('nurse_inventory')).status_code == 403


def test_admin_pin(settings):
    settings.CLINIC_ADMIN_PIN = '246810'
    settings.CLINIC_ADMIN_PIN_HASH = ''
    client = APIClient()
    assert client.post(reverse('admin_pin'), {'pin': '246810'}, format='json').status_code == 200
    assert client.post(reverse('admin_pin'), {'pin': '111111'}, format='json').status_code == 401
    assert client.post(reverse('admin_pin'), {'pin': '12ab'}, format='json').status_code == 400


def test_provisioning_requires_pin_and_returns_random_password(settings):
    settings.CLINIC_ADMIN_PIN = '246810'
    settings.CLINIC_ADMIN_PIN_HASH = ''
    client = APIClient()
    payload = {
        'role': 'doctor', 'fname': 'Ana', 'lname': 'Reyes', 'date_of_birth': '1985-02-14',
        'gender': 'Female', 'employee_id': 'EMP-D100', 'specialization': 'Dentist',
    }
    denied = client.post(reverse('provision_user'), payload, format='json')
    assert denied.status_code == 400

    r = client.post(reverse('provision_user'), payload, format='json', HTTP_X_ADMIN_PIN='246810')
    assert r.status_code == 201
    assert r.data['username'] == 'EMP-D100'
    assert r.data['profileId'] == 'EMP-D100'
    assert len(r.data['password']) == 12
    user = User.objects.get(pk=r.data['userId'])
    assert user.specialization == User.DENTIST
    assert user.check_password(r.data['password'])

    dup = client.post(reverse('provision_user'), payload, format='json', HTTP_X_ADMIN_PIN='246810')
    assert dup.status_code == 409


def test_password_reset_by_email(settings, mailoutbox):
    user = make_student('STUD-0100', student_id='STUD-0100')
    user.email = 'juan@example.com'
    user.save(update_fields=['email'])
    client = APIClient()

    r = client.post(reverse('request_reset'), {'contact': 'Juan@Example.com'}, format='json')
    assert r.status_code == 200 and r.data['channel'] == 'EMAIL'
    assert len(mailoutbox) == 1
    code = PasswordResetToken.objects.get(user=user).code
    assert code in mailoutbox[0].body

    weak = client.post(reverse('reset_password'),
                       {'contact': 'juan@example.com', 'code': code, 'newPassword': 'abc'}, format='json')
    assert weak.status_code == 400

    ok = client.post(reverse('reset_password'),
                     {'contact': 'juan@example.com', 'code': code, 'newPassword': 'N3w#Passw0rd'}, format='json')
    assert ok.status_code == 200
    user.refresh_from_db()
    assert user.check_password('N3w#Passw0rd')
    assert not PasswordResetToken.objects.filter(user=user).exists()


def test_password_reset_unknown_contact():
    client = APIClient()
    r = client.post(reverse('request_reset'), {'contact': '09998887777'}, format='json')
    assert r.status_code == 404


def test_password_reset_by_phone_survives_sms_outage(settings):
    settings.SMS_API_KEY = ''
    make_employee('EMP-P050', User.ROLE_PATIENT, employee_id='EMP-P050', contactno='09171112222')
    client = APIClient()
    r = client.post(reverse('request_reset'), {'contact': '+63 917 111 2222'}, format='json')
    assert r.status_code == 200 and r.data['channel'] == 'PHONE'
    token = PasswordResetToken.objects.get()
    assert token.contact == '09171112222'

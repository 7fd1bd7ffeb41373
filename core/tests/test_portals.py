"""Account self-service, the nurse and scholar desks, consultations and the contact form."""
from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.urls import reverse
from rest_framework.test import APIClient

from core.models import Appointment, Clinic, Consultation, EmployeeProfile, StudentProfile, User
from core.services import notifications
from core.services.timeutils import manila_today

from .factories import PASSWORD, client_for, make_appointment

pytestmark = pytest.mark.django_db


# ---------------------------------------------------------------------
# Own account
# ---------------------------------------------------------------------
def test_account_me_for_each_prefix(student):
    client = client_for(student)
    for name in ('account_me', 'accounts_me'):
        r = client.get(reverse(name, kwargs={'role': 'patient'}))
        assert r.status_code == 200
        assert r.data['account']['profile']['student_id'] == 'STUD-0001'


def test_account_portal_must_match_role(student):
    r = client_for(student).get(reverse('account_me', kwargs={'role': 'nurse'}))
    assert r.status_code == 403


def test_update_profile_normalizes_contacts(student):
    client = client_for(student)
    r = client.put(reverse('account_me', kwargs={'role': 'patient'}), {
        'profile': {'address': ' Dao, Tagbilaran ', 'contactno': '0917 555 1234', 'bloodtype': 'O+',
                    'year_level': '3rd Year', 'department': 'College of Law'},
        'email': 'juan@example.com',
        'phone': '+63 917 555 1234',
    }, format='json')
    assert r.status_code == 200
    prof = StudentProfile.objects.get(user=student)
    assert prof.address == 'Dao, Tagbilaran'
    assert prof.contactno == '09175551234'
    assert prof.bloodtype == 'O_POS'
    assert prof.year_level == 'THIRD_YEAR'
    assert prof.department == 'LAW'
    student.refresh_from_db()
    assert student.email == 'juan@example.com'
    assert student.phone == '+639175551234'


def test_update_profile_rejects_bad_phone(student):
    r = client_for(student).put(reverse('account_me', kwargs={'role': 'patient'}),
                                {'contactno': '12345'}, format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'invalid'


def test_change_password(nurse):
    client = client_for(nurse)
    url = reverse('accounts_password', kwargs={'role': 'nurse'})
    r = client.put(url, {'oldPassword': 'wrong', 'newPassword': 'N3w#Passw0rd'}, format='json')
    assert r.status_code == 400
    assert r.data['error']['message'] == 'Old password is incorrect'
    r = client.put(url, {'oldPassword': PASSWORD, 'newPassword': 'short'}, format='json')
    assert r.status_code == 400
    r = client.put(url, {'oldPassword': PASSWORD, 'newPassword': 'N3w#Passw0rd'}, format='json')
    assert r.status_code == 200
    nurse.refresh_from_db()
    assert nurse.check_password('N3w#Passw0rd')


# ---------------------------------------------------------------------
# Nurse desk
# ---------------------------------------------------------------------
def test_nurse_clinic_crud(nurse, clinic):
    client = client_for(nurse)
    r = client.post(reverse('nurse_clinics'), {'clinic_name': 'Annex Clinic', 'clinic_location': 'Annex',
                                               'clinic_contactno': '0385010001'}, format='json')
    assert r.status_code == 201
    r = client.post(reverse('nurse_clinics'), {'clinic_name': 'Annex Clinic', 'clinic_location': 'Annex',
                                               'clinic_contactno': '0385010001'}, format='json')
    assert r.status_code == 409
    r = client.post(reverse('nurse_clinics'), {'clinic_name': 'Half'}, format='json')
    assert r.status_code == 400

    r = client.put(reverse('nurse_clinic_detail', kwargs={'clinic_id': clinic.id}),
                   {'clinic_location': 'Second floor'}, format='json')
    assert r.status_code == 200
    assert Clinic.objects.get(pk=clinic.id).location == 'Second floor'
    assert len(client.get(reverse('nurse_clinics')).data['clinics']) == 2


def test_nurse_records_and_patch(nurse, student, employee_patient, doctor, clinic, visit_day):
    make_appointment(student, doctor, clinic, visit_day, status=Appointment.STATUS_APPROVED)
    client = client_for(nurse)
    r = client.get(reverse('nurse_records'))
    assert r.status_code == 200
    by_type = {row['patientType']: row for row in r.data['records']}
    assert by_type['Student']['latestAppointment']['status'] == 'Approved'
    assert by_type['Employee']['latestAppointment'] is None

    prof = StudentProfile.objects.get(user=student)
    r = client.patch(reverse('nurse_record_detail', kwargs={'profile_id': prof.id}), {
        'type': 'Student', 'bloodtype': 'AB_NEG', 'allergies': '<i>Penicillin</i>',
        'emergency': {'name': 'Rosa Dela Cruz', 'num': '09181234567', 'relation': 'Mother'},
    }, format='json')
    assert r.status_code == 200
    assert r.data['record']['bloodtypeLabel'] == 'AB-'
    prof.refresh_from_db()
    assert prof.allergies == 'Penicillin'
    assert prof.emergencyco_relation == 'Mother'

    emp = EmployeeProfile.objects.get(user=employee_patient)
    r = client.patch(reverse('nurse_record_detail', kwargs={'profile_id': emp.id}),
                     {'type': 'Employee', 'contactno': '0917-000-1111'}, format='json')
    assert r.status_code == 200
    assert r.data['record']['contactno'] == '09170001111'
    r = client.patch(reverse('nurse_record_detail', kwargs={'profile_id': 99999}),
                     {'type': 'Employee'}, format='json')
    assert r.status_code == 404


def test_nurse_account_admin(nurse, doctor):
    client = client_for(nurse)
    r = client.get(reverse('nurse_accounts'))
    assert {a['username'] for a in r.data['accounts']} >= {'EMP-N001', 'EMP-D001'}

    r = client.put(reverse('nurse_accounts'), {'userId': doctor.id, 'newStatus': 'Inactive'}, format='json')
    assert r.status_code == 200
    doctor.refresh_from_db()
    assert doctor.status == User.STATUS_INACTIVE
    r = client.put(reverse('nurse_accounts'), {'userId': doctor.id, 'newStatus': 'Gone'}, format='json')
    assert r.status_code == 400

    r = client.post(reverse('nurse_accounts'), {
        'role': 'patient', 'patientType': 'student', 'student_id': 'STUD-0200', 'fname': 'Mia', 'lname': 'Uy',
        'date_of_birth': '2005-07-01', 'gender': 'Female',
    }, format='json')
    assert r.status_code == 201
    assert r.data['profileId'] == 'STUD-0200'
    assert StudentProfile.objects.filter(student_id='STUD-0200', user__role='patient').exists()


def test_nurse_consultation_notes(nurse, doctor, student, clinic, visit_day):
    appt = make_appointment(student, doctor, clinic, visit_day, status=Appointment.STATUS_APPROVED)
    client = client_for(nurse)
    r = client.post(reverse('nurse_consultations'),
                    {'appointment_id': appt.id, 'reason_of_visit': 'Headache <b>since</b> morning'}, format='json')
    assert r.status_code == 200
    c = Consultation.objects.get(appointment=appt)
    assert c.nurse_id == nurse.id and c.doctor_id == doctor.id
    assert c.reason_of_visit == 'Headache since morning'
    r = client.post(reverse('nurse_consultations'), {}, format='json')
    assert r.status_code == 400
    r = client.post(reverse('nurse_consultations'), {'appointment_id': 'abc'}, format='json')
    assert r.status_code == 400
    assert r.data['error']['message'] == 'Valid appointment_id is required'


def test_doctor_consultation_notes(doctor, other_doctor, nurse, student, clinic, visit_day):
    appt = make_appointment(student, doctor, clinic, visit_day, status=Appointment.STATUS_APPROVED)
    r = client_for(other_doctor).post(reverse('doctor_consultations'),
                                      {'appointment_id': appt.id, 'diagnosis': 'Flu'}, format='json')
    assert r.status_code == 403

    client = client_for(doctor)
    r = client.post(reverse('doctor_consultations'), {
        'appointment_id': appt.id, 'diagnosis': 'Flu', 'nurse_user_id': nurse.id,
    }, format='json')
    assert r.status_code == 200
    assert r.data['consultation']['nurse_user_id'] == nurse.id
    r = client.post(reverse('doctor_consultations'), {'appointment_id': appt.id, 'findings': 'Fever'},
                    format='json')
    assert r.data['consultation']['diagnosis'] == 'Flu'
    assert r.data['consultation']['findings'] == 'Fever'
    assert Consultation.objects.count() == 1

    r = client.get(reverse('doctor_patient_detail', kwargs={'user_id': student.id}))
    assert r.status_code == 200
    assert r.data['patient']['consultations'][0]['diagnosis'] == 'Flu'
    assert client.get(reverse('doctor_patient_detail', kwargs={'user_id': doctor.id})).status_code == 404


# ---------------------------------------------------------------------
# Scholar desk
# ---------------------------------------------------------------------
def test_scholar_desk(scholar, doctor, student, clinic, visit_day):
    appt = make_appointment(student, doctor, clinic, visit_day)
    client = client_for(scholar)
    r = client.get(reverse('scholar_appointments'), {'status': 'active'})
    assert [a['id'] for a in r.data['appointments']] == [appt.id]
    r = client.get(reverse('scholar_appointments'), {'status': 'completed'})
    assert r.data['appointments'] == []

    r = client.patch(reverse('scholar_appointments'),
                     {'appointment_id': appt.id, 'status': 'Approved', 'remarks': 'Called patient'}, format='json')
    assert r.status_code == 200
    assert r.data['appointment']['remarks'] == 'Called patient'
    r = client.patch(reverse('scholar_appointments'), {'appointment_id': appt.id}, format='json')
    assert r.status_code == 400
    r = client.patch(reverse('scholar_appointments'), {'appointment_id': appt.id, 'status': 'Lost'},
                     format='json')
    assert r.status_code == 400


def test_scholar_desk_window_and_take(scholar, doctor, student, clinic):
    today = manila_today()
    make_appointment(student, doctor, clinic, today - timedelta(days=10), '10:00', '10:15')
    soon = make_appointment(student, doctor, clinic, today + timedelta(days=2), '10:00', '10:15')
    later = make_appointment(student, doctor, clinic, today + timedelta(days=5), '10:00', '10:15')
    make_appointment(student, doctor, clinic, today + timedelta(days=40), '10:00', '10:15')
    client = client_for(scholar)
    url = reverse('scholar_appointments')

    # default window is a week back to a month ahead
    r = client.get(url)
    assert [a['id'] for a in r.data['appointments']] == [soon.id, later.id]

    for take, expected in (('1', 1), ('0', 1), ('-5', 1), ('9999', 2), ('abc', 2)):
        r = client.get(url, {'take': take})
        assert len(r.data['appointments']) == expected, take

    r = client.get(url, {'from': (today - timedelta(days=11)).isoformat(),
                         'to': (today + timedelta(days=41)).isoformat()})
    assert len(r.data['appointments']) == 4


def test_scholar_patient_search(scholar, student, employee_patient):
    client = client_for(scholar)
    r = client.get(reverse('scholar_patients'), {'search': 'dela'})
    assert [p['patientId'] for p in r.data['patients']] == ['STUD-0001']
    r = client.get(reverse('scholar_patients'), {'type': 'Employee'})
    assert [p['patientId'] for p in r.data['patients']] == ['EMP-P001']
    r = client.get(reverse('scholar_patients'), {'withAppointment': 'true'})
    assert r.data['patients'] == []


# ---------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------
def test_contact_form(settings, mailoutbox):
    settings.CONTACT_INBOX_EMAIL = 'clinic@example.com'
    r = APIClient().post(reverse('contact'), {'name': 'Ana', 'email': 'ana@example.com',
                                              'message': '<script>x</script>Clinic hours?'}, format='json')
    assert r.status_code == 200
    assert mailoutbox[0].to == ['clinic@example.com']
    assert mailoutbox[0].extra_headers['Reply-To'] == 'ana@example.com'
    assert '<script>' not in mailoutbox[0].body


def test_contact_form_delivery_failure(monkeypatch):
    def boom(*args, **kwargs):
        raise notifications.DeliveryError('smtp down')
    monkeypatch.setattr(notifications, 'send_email', boom)
    r = APIClient().post(reverse('contact'), {'name': 'Ana', 'email': 'ana@example.com', 'message': 'Hi'},
                         format='json')
    assert r.status_code == 500
    assert r.data['ok'] is False


def test_contact_form_validation():
    r = APIClient().post(reverse('contact'), {'name': 'Ana', 'email': 'not-an-email', 'message': 'Hi'},
                         format='json')
    assert r.status_code == 400


def test_contact_name_must_be_one_line(mailoutbox):
    r = APIClient().post(reverse('contact'), {'name': 'Ann\nBcc: x@example.com', 'email': 'ann@example.com',
                                              'message': 'Hi'}, format='json')
    assert r.status_code == 400
    assert r.data['error'] == {'code': 'invalid', 'message': 'Name must be a single line'}
    assert mailoutbox == []


def test_contact_strips_markup_from_name(mailoutbox):
    r = APIClient().post(reverse('contact'), {'name': '<i>Ana</i>', 'email': 'ana@example.com',
                                              'message': '<a href="http://x.example">see</a> <b>this</b>'},
                         format='json')
    assert r.status_code == 200
    assert mailoutbox[0].subject.endswith('Message from Ana')
    assert mailoutbox[0].body.endswith('see this')


def test_healthz():
    r = APIClient().get(reverse('healthz'))
    assert r.status_code == 200
    assert r.json() == {'ok': True, 'db': True}


def test_ensure_test_users_is_idempotent():
    call_command('ensure_test_users', stdout=StringIO())
    call_command('ensure_test_users', stdout=StringIO())
    assert User.objects.filter(username__in=['EMP-D001', 'EMP-D002', 'EMP-N001', 'SCH-0001',
                                             'STUD-0001', 'EMP-P001']).count() == 6
    assert Clinic.objects.filter(name='Main Campus Clinic').count() == 1
    client = APIClient()
    r = client.post(reverse('login_view'), {'role': 'scholar', 'school_id': 'SCH-0001', 'password': PASSWORD},
                    format='json')
    assert r.status_code == 200

"""Certificate issuance: guards, validity bookkeeping and the PDF download."""
import pytest
from django.urls import reverse

from core.models import Appointment, Consultation, MedicalCertificate
from core.services.certificates import match_medical_history
from core.services.timeutils import manila_today

from .factories import client_for, make_appointment

pytestmark = pytest.mark.django_db


def test_medical_history_keywords():
    boxes, remaining = match_medical_history(['Asthma', 'high blood pressure', 'seasonal allergies'])
    checked = {label for label, hit in boxes if hit}
    assert checked == {'Asthma', 'Hypertension'}
    assert remaining == ['Seasonal Allergies']
    assert len(boxes) == 8


def test_appointment_certificate_pdf(doctor, completed_visit):
    client = client_for(doctor)
    url = reverse('doctor_appointment_certificate', kwargs={'appointment_id': completed_visit.id})
    r = client.get(url)
    assert r.status_code == 200
    assert r['Content-Type'] == 'application/pdf'
    assert r['Cache-Control'] == 'no-store'
    assert r['Content-Disposition'] == 'attachment; filename="medical-certificate-juan-dela-cruz.pdf"'
    assert r.content.startswith(b'%PDF')

    cert = MedicalCertificate.objects.get()
    assert cert.status == MedicalCertificate.STATUS_VALID
    assert (cert.valid_until - cert.issue_date).days == 365

    # reissuing updates the same certificate in place
    assert client.get(url).status_code == 200
    assert MedicalCertificate.objects.count() == 1


def test_appointment_certificate_requires_completed_visit(doctor, student, clinic, visit_day):
    appt = make_appointment(student, doctor, clinic, visit_day, status=Appointment.STATUS_APPROVED)
    Consultation.objects.create(appointment=appt, doctor=doctor, diagnosis='Flu')
    r = client_for(doctor).get(reverse('doctor_appointment_certificate', kwargs={'appointment_id': appt.id}))
    assert r.status_code == 400
    assert r.data['error']['message'] == 'Complete the appointment before generating a certificate.'


def test_certificate_guards(doctor, other_doctor, student, employee_patient, clinic, visit_day, completed_visit):
    url = reverse('doctor_consultation_certificate')

    r = client_for(other_doctor).post(url, {'appointment_id': completed_visit.id}, format='json')
    assert r.status_code == 403

    r = client_for(doctor).post(url, {'appointment_id': 999999}, format='json')
    assert r.status_code == 404

    r = client_for(doctor).post(url, {}, format='json')
    assert r.status_code == 400
    r = client_for(doctor).post(url, {'appointment_id': 'abc'}, format='json')
    assert r.status_code == 400
    assert r.data['error']['message'] == 'appointment_id is required'

    bare = make_appointment(student, doctor, clinic, visit_day, '10:00', '10:15', status=Appointment.STATUS_COMPLETED)
    Consultation.objects.create(appointment=bare, doctor=doctor, diagnosis='  ')
    r = client_for(doctor).post(url, {'appointment_id': bare.id}, format='json')
    assert r.status_code == 400
    assert r.data['error']['message'] == 'Consultation notes are required before issuing a certificate.'

    staff = make_appointment(employee_patient, doctor, clinic, visit_day, '11:00', '11:15',
                             status=Appointment.STATUS_COMPLETED)
    Consultation.objects.create(appointment=staff, doctor=doctor, diagnosis='Migraine')
    r = client_for(doctor).post(url, {'appointment_id': staff.id}, format='json')
    assert r.status_code == 400
    assert r.data['error']['message'] == 'Certificates are currently available for student patients only.'


def test_doctor_without_specialization(doctor, completed_visit):
    doctor.specialization = None
    doctor.save(update_fields=['specialization'])
    r = client_for(doctor).post(reverse('doctor_consultation_certificate'),
                                {'appointment_id': completed_visit.id}, format='json')
    assert r.status_code == 400
    assert r.data['error']['message'] == 'Doctor specialization is required to generate a certificate.'


def test_consultation_certificate_expires_previous(doctor, completed_visit, settings):
    settings.CLINIC_CERTIFICATE_VALID_DAYS = 7
    client = client_for(doctor)
    url = reverse('doctor_consultation_certificate')

    first = client.post(url, {'appointment_id': completed_visit.id}, format='json')
    assert first.status_code == 200
    first_id = int(first['X-Medcert-Id'])
    today = manila_today().isoformat()
    assert first['Content-Disposition'] == f'attachment; filename="medical-certificate-juan-dela-cruz-{today}.pdf"'

    second = client.post(url, {'appointment_id': completed_visit.id}, format='json')
    assert second.status_code == 200
    second_id = int(second['X-Medcert-Id'])
    assert second_id != first_id

    assert MedicalCertificate.objects.get(pk=first_id).status == MedicalCertificate.STATUS_EXPIRED
    latest = MedicalCertificate.objects.get(pk=second_id)
    assert latest.status == MedicalCertificate.STATUS_VALID
    assert (latest.valid_until - latest.issue_date).days == 7


def test_consultation_certificate_does_not_need_completed_status(doctor, student, clinic, visit_day):
    appt = make_appointment(student, doctor, clinic, visit_day, status=Appointment.STATUS_APPROVED)
    Consultation.objects.create(appointment=appt, doctor=doctor, findings='Healthy')
    r = client_for(doctor).post(reverse('doctor_consultation_certificate'), {'appointment_id': appt.id},
                                format='json')
    assert r.status_code == 200
    assert r.content.startswith(b'%PDF')


def test_dentist_gets_dental_certificate(dentist, student, clinic, visit_day):
    appt = make_appointment(student, dentist, clinic, visit_day, status=Appointment.STATUS_COMPLETED,
                            service_type=Appointment.SERVICE_DENTAL)
    Consultation.objects.create(appointment=appt, doctor=dentist, diagnosis='Dental caries')
    r = client_for(dentist).get(reverse('doctor_appointment_certificate', kwargs={'appointment_id': appt.id}))
    assert r.status_code == 200
    assert 'dental-certificate-juan-dela-cruz.pdf' in r['Content-Disposition']

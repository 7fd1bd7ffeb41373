"""Shared fixtures: a clinic, one account per portal role and a duty window."""
from datetime import date

import pytest
from django.core.cache import cache

from core.models import Appointment, Clinic, Consultation, DoctorAvailability, User
from core.services.timeutils import build_manila_datetime

from .factories import make_appointment, make_employee, make_student, next_weekday


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle counters and cached reports live in the default cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def clinic():
    return Clinic.objects.create(name='Main Campus Clinic', location='Ground floor, Main Building',
                                 contactno='0385010000')


@pytest.fixture
def doctor():
    return make_employee('EMP-D001', User.ROLE_DOCTOR, employee_id='EMP-D001',
                         fname='jose', lname='rizal', specialization=User.PHYSICIAN)


@pytest.fixture
def other_doctor():
    return make_employee('EMP-D009', User.ROLE_DOCTOR, employee_id='EMP-D009',
                         fname='Ana', lname='Reyes', specialization=User.PHYSICIAN)


@pytest.fixture
def dentist():
    return make_employee('EMP-D002', User.ROLE_DOCTOR, employee_id='EMP-D002',
                         fname='Carla', lname='Lim', specialization=User.DENTIST)


@pytest.fixture
def nurse():
    return make_employee('EMP-N001', User.ROLE_NURSE, employee_id='EMP-N001', fname='Rosa', lname='Cruz')


@pytest.fixture
def scholar():
    return make_student('SCH-0001', User.ROLE_SCHOLAR, student_id='SCH-0001', fname='Pia', lname='Tan')


@pytest.fixture
def student():
    return make_student(
        'STUD-0001', student_id='STUD-0001', date_of_birth=date(2004, 5, 17), gender='Female',
        department='HEALTH_SCIENCES', program='bs nursing', year_level='SECOND_YEAR',
        address='Tagbilaran City', medical_cond='Asthma, seasonal allergies', contactno='09171234567',
    )


@pytest.fixture
def employee_patient():
    return make_employee('EMP-P001', User.ROLE_PATIENT, employee_id='EMP-P001', fname='Leo', lname='Garcia')


@pytest.fixture
def visit_day():
    return next_weekday()


@pytest.fixture
def duty(doctor, clinic, visit_day):
    return DoctorAvailability.objects.create(
        doctor=doctor, clinic=clinic, available_date=visit_day,
        available_timestart=build_manila_datetime(visit_day, '08:00'),
        available_timeend=build_manila_datetime(visit_day, '12:00'),
    )


@pytest.fixture
def completed_visit(student, doctor, clinic, visit_day):
    appt = make_appointment(student, doctor, clinic, visit_day, status=Appointment.STATUS_COMPLETED)
    Consultation.objects.create(
        appointment=appt, doctor=doctor,
        reason_of_visit='Fever and cough', findings='Mild throat inflammation', diagnosis='acute pharyngitis',
    )
    return appt

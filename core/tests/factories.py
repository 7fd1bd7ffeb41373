"""Plain builders shared by the test modules and the fixtures in conftest."""
from datetime import date, timedelta

from rest_framework.test import APIClient

from core.models import Appointment, EmployeeProfile, StudentProfile, User
from core.services.timeutils import build_manila_datetime, manila_today

PASSWORD = 'Clinic#2024'


def next_weekday(days_ahead: int = 14) -> date:
    """A Monday-to-Friday date at least ``days_ahead`` days from today."""
    day = manila_today() + timedelta(days=days_ahead)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


def make_employee(username, role, *, employee_id, fname='Maria', lname='Santos', specialization=None, **extra):
    user = User.objects.create_user(username=username, password=PASSWORD, role=role,
                                    specialization=specialization)
    EmployeeProfile.objects.create(user=user, employee_id=employee_id, fname=fname, lname=lname, **extra)
    return user


def make_student(username, role=User.ROLE_PATIENT, *, student_id, fname='Juan', lname='Dela Cruz', **extra):
    user = User.objects.create_user(username=username, password=PASSWORD, role=role)
    StudentProfile.objects.create(user=user, student_id=student_id, fname=fname, lname=lname, **extra)
    return user


def make_appointment(patient, doctor, clinic, day, start='09:00', end='09:15', status=Appointment.STATUS_PENDING,
                     service_type=Appointment.SERVICE_CONSULTATION):
    return Appointment.objects.create(
        patient=patient, doctor=doctor, clinic=clinic, appointment_date=day,
        appointment_timestart=build_manila_datetime(day, start),
        appointment_timeend=build_manila_datetime(day, end),
        status=status, service_type=service_type,
    )


def client_for(user) -> APIClient:
    """Return an APIClient authenticated as ``user``."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client

# core/management/commands/ensure_test_users.py
from datetime import date

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction

from core.models import Clinic, EmployeeProfile, StudentProfile, User

PASSWORD = "Clinic#2024"

# username, role, profile kind, profile id, first name, last name, specialization
TEST_SET = [
    ("EMP-D001", "doctor", "employee", "EMP-D001", "Maria", "Santos", User.PHYSICIAN),
    ("EMP-D002", "doctor", "employee", "EMP-D002", "Jose", "Reyes", User.DENTIST),
    ("EMP-N001", "nurse", "employee", "EMP-N001", "Ana", "Cruz", None),
    ("SCH-0001", "scholar", "student", "SCH-0001", "Paolo", "Garcia", None),
    ("STUD-0001", "patient", "student", "STUD-0001", "Lea", "Bautista", None),
    ("EMP-P001", "patient", "employee", "EMP-P001", "Ramon", "Villanueva", None),
]


class Command(BaseCommand):
    help = f"Ensure one test account per role plus a clinic exist (password={PASSWORD}; idempotent)."

    @transaction.atomic
    def handle(self, *args, **opts):
        clinic, _ = Clinic.objects.get_or_create(
            name="Main Campus Clinic",
            defaults={"location": "Main Campus, Ground Floor", "contactno": "09171234567"},
        )
        self.stdout.write(self.style.SUCCESS(f"ok: clinic {clinic.name}"))

        for username, role, kind, ident, fname, lname, specialization in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"role": role, "password": make_password(PASSWORD), "specialization": specialization},
            )
            if not created:
                # reset password, role and status
                u.password = make_password(PASSWORD)
                u.role = role
                u.status = User.STATUS_ACTIVE
                u.specialization = specialization
                u.save(update_fields=["password", "role", "status", "specialization"])
            person = {"fname": fname, "lname": lname, "gender": "Female" if fname in ("Maria", "Ana", "Lea") else "Male",
                      "date_of_birth": date(2000, 1, 15)}
            if kind == "student":
                StudentProfile.objects.update_or_create(
                    user=u, defaults={"student_id": ident, "program": "BS Nursing", "year_level": "SECOND_YEAR",
                                      "department": "HEALTH_SCIENCES", **person},
                )
            else:
                EmployeeProfile.objects.update_or_create(user=u, defaults={"employee_id": ident, **person})
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))

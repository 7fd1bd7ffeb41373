"""
Database models for the clinic portal.

Accounts carry a role (patient, doctor, nurse, scholar) and are linked
to either a student or an employee profile holding demographics and
health data.  Doctors publish duty hours per clinic, patients book
appointments inside them, and consultations record the visit.  The
pharmacy side tracks medicines with expiring replenishment batches and
every dispense remembers which batches it drew from.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Custom user model with a portal role and account status.

    A doctor additionally carries a specialization which drives the
    working week (dentists also work Saturdays), the service options
    offered to patients and the certificate flavour.
    """
    ROLE_PATIENT = 'patient'
    ROLE_DOCTOR = 'doctor'
    ROLE_NURSE = 'nurse'
    ROLE_SCHOLAR = 'scholar'
    ROLE_CHOICES = [
        (ROLE_PATIENT, 'Patient'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_NURSE, 'Nurse'),
        (ROLE_SCHOLAR, 'Scholar'),
    ]

    STATUS_ACTIVE = 'Active'
    STATUS_INACTIVE = 'Inactive'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
    ]

    PHYSICIAN = 'Physician'
    DENTIST = 'Dentist'
    SPECIALIZATION_CHOICES = [
        (PHYSICIAN, 'Physician'),
        (DENTIST, 'Dentist'),
    ]

    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_PATIENT, db_index=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    specialization = models.CharField(max_length=16, choices=SPECIALIZATION_CHOICES, blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True)

    @property
    def profile(self):
        """Return the linked student or employee profile, student first."""
        for attr in ('student_profile', 'employee_profile'):
            try:
                return getattr(self, attr)
            except models.ObjectDoesNotExist:
                continue
        return None

    @property
    def display_name(self) -> str:
        prof = self.profile
        if prof is not None and prof.fname and prof.lname:
            return f"{prof.fname} {prof.lname}"
        return self.username

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class PersonProfile(models.Model):
    """Fields shared by student and employee profiles."""
    GENDER_CHOICES = [('Male', 'Male'), ('Female', 'Female')]

    BLOOD_TYPE_CHOICES = [
        ('A_POS', 'A+'),
        ('A_NEG', 'A-'),
        ('B_POS', 'B+'),
        ('B_NEG', 'B-'),
        ('AB_POS', 'AB+'),
        ('AB_NEG', 'AB-'),
        ('O_POS', 'O+'),
        ('O_NEG', 'O-'),
    ]

    fname = models.CharField(max_length=100)
    mname = models.CharField(max_length=100, blank=True, null=True)
    lname = models.CharField(max_length=100)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True, null=True)
    contactno = models.CharField(max_length=20, blank=True, null=True)
    address = models.CharField(max_length=255, blank=True, null=True)
    bloodtype = models.CharField(max_length=8, choices=BLOOD_TYPE_CHOICES, blank=True, null=True)
    allergies = models.TextField(blank=True, null=True)
    medical_cond = models.TextField(blank=True, null=True)
    emergencyco_name = models.CharField(max_length=150, blank=True, null=True)
    emergencyco_num = models.CharField(max_length=20, blank=True, null=True)
    emergencyco_relation = models.CharField(max_length=50, blank=True, null=True)

    class Meta:
        abstract = True

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.fname, self.mname, self.lname) if p)


class StudentProfile(PersonProfile):
    """A student (patient or scholar) record keyed by the school id."""
    DEPARTMENT_CHOICES = [
        ('EDUCATION', 'College of Education'),
        ('ARTS_AND_SCIENCES', 'College of Arts and Sciences'),
        ('BUSINESS_AND_ACCOUNTANCY', 'College of Business and Accountancy'),
        ('ENGINEERING_AND_COMPUTER_STUDIES', 'College of Engineering and Computer Studies'),
        ('HEALTH_SCIENCES', 'College of Health Sciences'),
        ('LAW', 'College of Law'),
        ('BASIC_EDUCATION', 'Basic Education Department'),
    ]
    YEAR_LEVEL_CHOICES = [
        ('FIRST_YEAR', '1st Year'),
        ('SECOND_YEAR', '2nd Year'),
        ('THIRD_YEAR', '3rd Year'),
        ('FOURTH_YEAR', '4th Year'),
        ('FIFTH_YEAR', '5th Year'),
        ('KINDERGARTEN', 'Kindergarten'),
        ('ELEMENTARY', 'Elementary'),
        ('JUNIOR_HIGH', 'Junior High School'),
        ('SENIOR_HIGH', 'Senior High School'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='student_profile')
    student_id = models.CharField(max_length=32, unique=True)
    department = models.CharField(max_length=40, choices=DEPARTMENT_CHOICES, blank=True, null=True)
    program = models.CharField(max_length=150, blank=True, null=True)
    year_level = models.CharField(max_length=20, choices=YEAR_LEVEL_CHOICES, blank=True, null=True)

    def __str__(self) -> str:
        return f"{self.student_id} {self.full_name}"


class EmployeeProfile(PersonProfile):
    """An employee (patient or clinic staff) record keyed by the employee id."""
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='employee_profile')
    employee_id = models.CharField(max_length=32, unique=True)

    def __str__(self) -> str:
        return f"{self.employee_id} {self.full_name}"


class Clinic(models.Model):
    name = models.CharField(max_length=150, unique=True)
    location = models.CharField(max_length=255)
    contactno = models.CharField(max_length=32)

    def __str__(self) -> str:
        return self.name


class DoctorAvailability(models.Model):
    """A duty window of a doctor at a clinic on one Manila calendar day."""
    doctor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='availabilities')
    clinic = models.ForeignKey(Clinic, on_delete=models.CASCADE, related_name='availabilities')
    available_date = models.DateField()
    available_timestart = models.DateTimeField()
    available_timeend = models.DateTimeField()
    archived_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'available_date'], name='core_doctor_doctor__5a1c3e_idx'),
            models.Index(fields=['clinic', 'available_date'], name='core_doctor_clinic__8d2b47_idx'),
        ]

    def __str__(self) -> str:
        return f"duty d={self.doctor_id} c={self.clinic_id} {self.available_date}"


class Appointment(models.Model):
    STATUS_PENDING = 'Pending'
    STATUS_APPROVED = 'Approved'
    STATUS_MOVED = 'Moved'
    STATUS_CANCELLED = 'Cancelled'
    STATUS_COMPLETED = 'Completed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_MOVED, 'Moved'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_COMPLETED, 'Completed'),
    ]
    # Statuses that hold a doctor's time
    BLOCKING_STATUSES = (STATUS_PENDING, STATUS_APPROVED)
    ACTIVE_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_MOVED)
    CLOSED_STATUSES = (STATUS_CANCELLED, STATUS_COMPLETED)

    SERVICE_CONSULTATION = 'Consultation'
    SERVICE_DENTAL = 'Dental'
    SERVICE_ASSESSMENT = 'Assessment'
    SERVICE_OTHER = 'Other'
    SERVICE_CHOICES = [
        (SERVICE_CONSULTATION, 'Consultation'),
        (SERVICE_DENTAL, 'Dental'),
        (SERVICE_ASSESSMENT, 'Assessment'),
        (SERVICE_OTHER, 'Other'),
    ]

    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='patient_appointments')
    doctor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='doctor_appointments')
    clinic = models.ForeignKey(Clinic, on_delete=models.CASCADE, related_name='appointments')
    appointment_date = models.DateField()
    appointment_timestart = models.DateTimeField()
    appointment_timeend = models.DateTimeField()
    service_type = models.CharField(max_length=16, choices=SERVICE_CHOICES, default=SERVICE_CONSULTATION)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    remarks = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'appointment_timestart'], name='core_appoin_doctor__3f6e21_idx'),
            models.Index(fields=['patient', 'appointment_timestart'], name='core_appoin_patient_b7c904_idx'),
            models.Index(fields=['appointment_date'], name='core_appoin_appoint_e41d88_idx'),
        ]

    def __str__(self) -> str:
        return f"appt {self.id} p={self.patient_id} d={self.doctor_id} {self.status}"


class Consultation(models.Model):
    """Visit notes attached to an appointment."""
    appointment = models.OneToOneField(
        Appointment, on_delete=models.CASCADE, related_name='consultation', null=True, blank=True
    )
    doctor = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='doctor_consultations'
    )
    nurse = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='nurse_consultations'
    )
    reason_of_visit = models.TextField(blank=True, null=True)
    findings = models.TextField(blank=True, null=True)
    diagnosis = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"consultation {self.id} appt={self.appointment_id}"


class Medicine(models.Model):
    CATEGORY_CHOICES = [
        ('Analgesic', 'Analgesic'),
        ('Antibiotic', 'Antibiotic'),
        ('Antipyretic', 'Antipyretic'),
        ('Antihistamine', 'Antihistamine'),
        ('Antacid', 'Antacid'),
        ('Antiseptic', 'Antiseptic'),
        ('Antihypertensive', 'Antihypertensive'),
        ('Vitamin', 'Vitamin'),
        ('FirstAid', 'First Aid'),
        ('Other', 'Other'),
    ]
    UNIT_CHOICES = [
        ('mg', 'mg'),
        ('g', 'g'),
        ('mcg', 'mcg'),
        ('mL', 'mL'),
        ('IU', 'IU'),
        ('percent', '%'),
        ('piece', 'piece'),
    ]

    clinic = models.ForeignKey(Clinic, on_delete=models.CASCADE, related_name='medicines')
    item_name = models.CharField(max_length=150)
    item_type = models.CharField(max_length=64, blank=True, default='')
    category = models.CharField(max_length=32, choices=CATEGORY_CHOICES, default='Other')
    strength = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    unit = models.CharField(max_length=16, choices=UNIT_CHOICES, blank=True, null=True)
    quantity = models.PositiveIntegerField(default=0)

    class Meta:
        indexes = [models.Index(fields=['clinic', 'item_name'], name='core_medici_clinic__0c9a5f_idx')]

    def __str__(self) -> str:
        return f"{self.item_name} ({self.quantity})"


class Replenishment(models.Model):
    """A received batch of a medicine with its own expiry date."""
    medicine = models.ForeignKey(Medicine, on_delete=models.CASCADE, related_name='replenishments')
    quantity_added = models.PositiveIntegerField()
    remaining_qty = models.PositiveIntegerField()
    date_received = models.DateTimeField()
    expiry_date = models.DateField()

    class Meta:
        indexes = [models.Index(fields=['medicine', 'expiry_date'], name='core_replen_medicin_9b13d2_idx')]

    def __str__(self) -> str:
        return f"batch {self.id} med={self.medicine_id} left={self.remaining_qty} exp={self.expiry_date}"


class Dispense(models.Model):
    medicine = models.ForeignKey(Medicine, on_delete=models.PROTECT, related_name='dispenses')
    consultation = models.ForeignKey(
        Consultation, on_delete=models.SET_NULL, null=True, blank=True, related_name='dispenses'
    )
    walk_in_name = models.CharField(max_length=150, blank=True, null=True)
    walk_in_contact = models.CharField(max_length=32, blank=True, null=True)
    walk_in_notes = models.TextField(blank=True, null=True)
    quantity = models.PositiveIntegerField()
    dispensed_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='dispenses'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"dispense {self.id} med={self.medicine_id} x{self.quantity}"


class DispenseBatch(models.Model):
    dispense = models.ForeignKey(Dispense, on_delete=models.CASCADE, related_name='batches')
    replenishment = models.ForeignKey(Replenishment, on_delete=models.PROTECT, related_name='dispense_batches')
    quantity_used = models.PositiveIntegerField()


class MedicalCertificate(models.Model):
    STATUS_VALID = 'Valid'
    STATUS_EXPIRED = 'Expired'
    STATUS_CHOICES = [
        (STATUS_VALID, 'Valid'),
        (STATUS_EXPIRED, 'Expired'),
    ]

    consultation = models.ForeignKey(Consultation, on_delete=models.CASCADE, related_name='certificates')
    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='certificates')
    issued_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='issued_certificates'
    )
    issue_date = models.DateTimeField()
    valid_until = models.DateTimeField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_VALID, db_index=True)

    def __str__(self) -> str:
        return f"cert {self.id} consultation={self.consultation_id} {self.status}"


class PasswordResetToken(models.Model):
    CHANNEL_EMAIL = 'EMAIL'
    CHANNEL_PHONE = 'PHONE'
    CHANNEL_CHOICES = [(CHANNEL_EMAIL, 'Email'), (CHANNEL_PHONE, 'Phone')]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='reset_tokens')
    code = models.CharField(max_length=12)
    contact = models.CharField(max_length=254)
    channel = models.CharField(max_length=8, choices=CHANNEL_CHOICES)
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['contact', 'code'], name='core_passwo_contact_51e7aa_idx')]


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='core_audite_action_2d8f61_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='core_audite_object__c57e09_idx'),
        ]

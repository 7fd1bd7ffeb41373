"""
Django admin registrations for the core models.

Lets superusers inspect accounts, schedules, pharmacy stock and issued
certificates from ``/admin/`` during development and support work.
"""

from django.contrib import admin

from .models import (
    Appointment,
    AuditEvent,
    Clinic,
    Consultation,
    Dispense,
    DispenseBatch,
    DoctorAvailability,
    EmployeeProfile,
    MedicalCertificate,
    Medicine,
    Replenishment,
    StudentProfile,
    User,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'status', 'specialization', 'is_staff')
    list_filter = ('role', 'status', 'specialization')
    search_fields = ('username', 'email', 'phone')


@admin.register(StudentProfile)
class StudentProfileAdmin(admin.ModelAdmin):
    list_display = ('student_id', 'lname', 'fname', 'department', 'year_level')
    list_filter = ('department', 'year_level')
    search_fields = ('student_id', 'fname', 'lname')


@admin.register(EmployeeProfile)
class EmployeeProfileAdmin(admin.ModelAdmin):
    list_display = ('employee_id', 'lname', 'fname')
    search_fields = ('employee_id', 'fname', 'lname')


@admin.register(Clinic)
class ClinicAdmin(admin.ModelAdmin):
    list_display = ('name', 'location', 'contactno')
    search_fields = ('name',)


@admin.register(DoctorAvailability)
class DoctorAvailabilityAdmin(admin.ModelAdmin):
    list_display = ('doctor', 'clinic', 'available_date', 'available_timestart', 'available_timeend', 'archived_at')
    list_filter = ('clinic',)


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'clinic', 'appointment_timestart', 'service_type', 'status')
    list_filter = ('status', 'service_type', 'clinic')
    search_fields = ('patient__username', 'doctor__username')


@admin.register(Consultation)
class ConsultationAdmin(admin.ModelAdmin):
    list_display = ('id', 'appointment', 'doctor', 'nurse', 'diagnosis', 'created_at')
    search_fields = ('diagnosis', 'findings')


class ReplenishmentInline(admin.TabularInline):
    model = Replenishment
    extra = 0


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = ('item_name', 'clinic', 'category', 'strength', 'unit', 'quantity')
    list_filter = ('clinic', 'category')
    search_fields = ('item_name',)
    inlines = [ReplenishmentInline]


class DispenseBatchInline(admin.TabularInline):
    model = DispenseBatch
    extra = 0


@admin.register(Dispense)
class DispenseAdmin(admin.ModelAdmin):
    list_display = ('id', 'medicine', 'quantity', 'consultation', 'walk_in_name', 'dispensed_by', 'created_at')
    inlines = [DispenseBatchInline]


@admin.register(MedicalCertificate)
class MedicalCertificateAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'issued_by', 'issue_date', 'valid_until', 'status')
    list_filter = ('status',)


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'user', 'action', 'object_type', 'object_id')
    list_filter = ('action',)

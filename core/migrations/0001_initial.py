import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='email address')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('role', models.CharField(choices=[('patient', 'Patient'), ('doctor', 'Doctor'), ('nurse', 'Nurse'), ('scholar', 'Scholar')], db_index=True, default='patient', max_length=10)),
                ('status', models.CharField(choices=[('Active', 'Active'), ('Inactive', 'Inactive')], db_index=True, default='Active', max_length=10)),
                ('specialization', models.CharField(blank=True, choices=[('Physician', 'Physician'), ('Dentist', 'Dentist')], max_length=16, null=True)),
                ('phone', models.CharField(blank=True, max_length=20)),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'abstract': False,
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Clinic',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=150, unique=True)),
                ('location', models.CharField(max_length=255)),
                ('contactno', models.CharField(max_length=32)),
            ],
        ),
        migrations.CreateModel(
            name='StudentProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('fname', models.CharField(max_length=100)),
                ('mname', models.CharField(blank=True, max_length=100, null=True)),
                ('lname', models.CharField(max_length=100)),
                ('date_of_birth', models.DateField(blank=True, null=True)),
                ('gender', models.CharField(blank=True, choices=[('Male', 'Male'), ('Female', 'Female')], max_length=10, null=True)),
                ('contactno', models.CharField(blank=True, max_length=20, null=True)),
                ('address', models.CharField(blank=True, max_length=255, null=True)),
                ('bloodtype', models.CharField(blank=True, choices=[('A_POS', 'A+'), ('A_NEG', 'A-'), ('B_POS', 'B+'), ('B_NEG', 'B-'), ('AB_POS', 'AB+'), ('AB_NEG', 'AB-'), ('O_POS', 'O+'), ('O_NEG', 'O-')], max_length=8, null=True)),
                ('allergies', models.TextField(blank=True, null=True)),
                ('medical_cond', models.TextField(blank=True, null=True)),
                ('emergencyco_name', models.CharField(blank=True, max_length=150, null=True)),
                ('emergencyco_num', models.CharField(blank=True, max_length=20, null=True)),
                ('emergencyco_relation', models.CharField(blank=True, max_length=50, null=True)),
                ('student_id', models.CharField(max_length=32, unique=True)),
                ('department', models.CharField(blank=True, choices=[('EDUCATION', 'College of Education'), ('ARTS_AND_SCIENCES', 'College of Arts and Sciences'), ('BUSINESS_AND_ACCOUNTANCY', 'College of Business and Accountancy'), ('ENGINEERING_AND_COMPUTER_STUDIES', 'College of Engineering and Computer Studies'), ('HEALTH_SCIENCES', 'College of Health Sciences'), ('LAW', 'College of Law'), ('BASIC_EDUCATION', 'Basic Education Department')], max_length=40, null=True)),
                ('program', models.CharField(blank=True, max_length=150, null=True)),
                ('year_level', models.CharField(blank=True, choices=[('FIRST_YEAR', '1st Year'), ('SECOND_YEAR', '2nd Year'), ('THIRD_YEAR', '3rd Year'), ('FOURTH_YEAR', '4th Year'), ('FIFTH_YEAR', '5th Year'), ('KINDERGARTEN', 'Kindergarten'), ('ELEMENTARY', 'Elementary'), ('JUNIOR_HIGH', 'Junior High School'), ('SENIOR_HIGH', 'Senior High School')], max_length=20, null=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='student_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='EmployeeProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('fname', models.CharField(max_length=100)),
                ('mname', models.CharField(blank=True, max_length=100, null=True)),
                ('lname', models.CharField(max_length=100)),
                ('date_of_birth', models.DateField(blank=True, null=True)),
                ('gender', models.CharField(blank=True, choices=[('Male', 'Male'), ('Female', 'Female')], max_length=10, null=True)),
                ('contactno', models.CharField(blank=True, max_length=20, null=True)),
                ('address', models.CharField(blank=True, max_length=255, null=True)),
                ('bloodtype', models.CharField(blank=True, choices=[('A_POS', 'A+'), ('A_NEG', 'A-'), ('B_POS', 'B+'), ('B_NEG', 'B-'), ('AB_POS', 'AB+'), ('AB_NEG', 'AB-'), ('O_POS', 'O+'), ('O_NEG', 'O-')], max_length=8, null=True)),
                ('allergies', models.TextField(blank=True, null=True)),
                ('medical_cond', models.TextField(blank=True, null=True)),
                ('emergencyco_name', models.CharField(blank=True, max_length=150, null=True)),
                ('emergencyco_num', models.CharField(blank=True, max_length=20, null=True)),
                ('emergencyco_relation', models.CharField(blank=True, max_length=50, null=True)),
                ('employee_id', models.CharField(max_length=32, unique=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='employee_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='DoctorAvailability',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('available_date', models.DateField()),
                ('available_timestart', models.DateTimeField()),
                ('available_timeend', models.DateTimeField()),
                ('archived_at', models.DateTimeField(blank=True, null=True)),
                ('clinic', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='availabilities', to='core.clinic')),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='availabilities', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['doctor', 'available_date'], name='core_doctor_doctor__5a1c3e_idx'),
                    models.Index(fields=['clinic', 'available_date'], name='core_doctor_clinic__8d2b47_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('appointment_date', models.DateField()),
                ('appointment_timestart', models.DateTimeField()),
                ('appointment_timeend', models.DateTimeField()),
                ('service_type', models.CharField(choices=[('Consultation', 'Consultation'), ('Dental', 'Dental'), ('Assessment', 'Assessment'), ('Other', 'Other')], default='Consultation', max_length=16)),
                ('status', models.CharField(choices=[('Pending', 'Pending'), ('Approved', 'Approved'), ('Moved', 'Moved'), ('Cancelled', 'Cancelled'), ('Completed', 'Completed')], db_index=True, default='Pending', max_length=16)),
                ('remarks', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('clinic', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='appointments', to='core.clinic')),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='doctor_appointments', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='patient_appointments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['doctor', 'appointment_timestart'], name='core_appoin_doctor__3f6e21_idx'),
                    models.Index(fields=['patient', 'appointment_timestart'], name='core_appoin_patient_b7c904_idx'),
                    models.Index(fields=['appointment_date'], name='core_appoin_appoint_e41d88_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Consultation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reason_of_visit', models.TextField(blank=True, null=True)),
                ('findings', models.TextField(blank=True, null=True)),
                ('diagnosis', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('appointment', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='consultation', to='core.appointment')),
                ('doctor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='doctor_consultations', to=settings.AUTH_USER_MODEL)),
                ('nurse', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='nurse_consultations', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='Medicine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('item_name', models.CharField(max_length=150)),
                ('item_type', models.CharField(blank=True, default='', max_length=64)),
                ('category', models.CharField(choices=[('Analgesic', 'Analgesic'), ('Antibiotic', 'Antibiotic'), ('Antipyretic', 'Antipyretic'), ('Antihistamine', 'Antihistamine'), ('Antacid', 'Antacid'), ('Antiseptic', 'Antiseptic'), ('Antihypertensive', 'Antihypertensive'), ('Vitamin', 'Vitamin'), ('FirstAid', 'First Aid'), ('Other', 'Other')], default='Other', max_length=32)),
                ('strength', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('unit', models.CharField(blank=True, choices=[('mg', 'mg'), ('g', 'g'), ('mcg', 'mcg'), ('mL', 'mL'), ('IU', 'IU'), ('percent', '%'), ('piece', 'piece')], max_length=16, null=True)),
                ('quantity', models.PositiveIntegerField(default=0)),
                ('clinic', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='medicines', to='core.clinic')),
            ],
            options={
                'indexes': [
                    models.Index(fields=['clinic', 'item_name'], name='core_medici_clinic__0c9a5f_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Replenishment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_added', models.PositiveIntegerField()),
                ('remaining_qty', models.PositiveIntegerField()),
                ('date_received', models.DateTimeField()),
                ('expiry_date', models.DateField()),
                ('medicine', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='replenishments', to='core.medicine')),
            ],
            options={
                'indexes': [
                    models.Index(fields=['medicine', 'expiry_date'], name='core_replen_medicin_9b13d2_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Dispense',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('walk_in_name', models.CharField(blank=True, max_length=150, null=True)),
                ('walk_in_contact', models.CharField(blank=True, max_length=32, null=True)),
                ('walk_in_notes', models.TextField(blank=True, null=True)),
                ('quantity', models.PositiveIntegerField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('consultation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='dispenses', to='core.consultation')),
                ('dispensed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='dispenses', to=settings.AUTH_USER_MODEL)),
                ('medicine', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='dispenses', to='core.medicine')),
            ],
        ),
        migrations.CreateModel(
            name='DispenseBatch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_used', models.PositiveIntegerField()),
                ('dispense', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='batches', to='core.dispense')),
                ('replenishment', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='dispense_batches', to='core.replenishment')),
            ],
        ),
        migrations.CreateModel(
            name='MedicalCertificate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('issue_date', models.DateTimeField()),
                ('valid_until', models.DateTimeField()),
                ('status', models.CharField(choices=[('Valid', 'Valid'), ('Expired', 'Expired')], db_index=True, default='Valid', max_length=10)),
                ('consultation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='certificates', to='core.consultation')),
                ('issued_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='issued_certificates', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='certificates', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='PasswordResetToken',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=12)),
                ('contact', models.CharField(max_length=254)),
                ('channel', models.CharField(choices=[('EMAIL', 'Email'), ('PHONE', 'Phone')], max_length=8)),
                ('expires_at', models.DateTimeField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reset_tokens', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['contact', 'code'], name='core_passwo_contact_51e7aa_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AuditEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(max_length=64)),
                ('object_type', models.CharField(blank=True, max_length=64, null=True)),
                ('object_id', models.IntegerField(blank=True, null=True)),
                ('detail', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['action', 'created_at'], name='core_audite_action_2d8f61_idx'),
                    models.Index(fields=['object_type', 'object_id', 'created_at'], name='core_audite_object__c57e09_idx'),
                ],
            },
        ),
    ]

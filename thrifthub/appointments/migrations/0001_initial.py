# Generated manually

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


TYPE_CHOICES = [('afspraak', 'Afspraak'), ('intern', 'Intern'), ('taak', 'Taak'), ('blok', 'Blok')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('customers', '0001_initial'),
        ('orders', '0001_initial'),
        ('cases', '0001_initial'),
        ('repairs', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('type', models.CharField(choices=TYPE_CHOICES, default='afspraak', max_length=20)),
                ('start_time', models.DateTimeField()),
                ('end_time', models.DateTimeField()),
                ('all_day', models.BooleanField(default=False)),
                ('description', models.TextField(blank=True)),
                ('location', models.CharField(blank=True, max_length=255)),
                ('is_remote', models.BooleanField(default=False)),
                ('meeting_link', models.URLField(blank=True, max_length=500)),
                ('recurrence_rule', models.CharField(blank=True, max_length=255)),
                ('recurrence_end_date', models.DateTimeField(blank=True, null=True)),
                ('color', models.CharField(blank=True, max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assigned_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='appointments', to=settings.AUTH_USER_MODEL)),
                ('case', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='appointments', to='cases.case')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_appointments', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='appointments', to='customers.customer')),
                ('order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='appointments', to='orders.order')),
                ('repair', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='appointments', to='repairs.repair')),
            ],
            options={
                'db_table': 'appointments',
                'ordering': ['start_time'],
                'indexes': [
                    models.Index(fields=['start_time', 'end_time'], name='appointment_start_t_5c0d2a_idx'),
                    models.Index(fields=['assigned_user', 'start_time'], name='appointment_assigne_91f4be_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AppointmentException',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('original_start_time', models.DateTimeField()),
                ('override_start_time', models.DateTimeField(blank=True, null=True)),
                ('override_end_time', models.DateTimeField(blank=True, null=True)),
                ('override_title', models.CharField(blank=True, max_length=255)),
                ('override_type', models.CharField(blank=True, choices=TYPE_CHOICES, max_length=20)),
                ('override_location', models.CharField(blank=True, max_length=255)),
                ('is_cancelled', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('appointment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='exceptions', to='appointments.appointment')),
            ],
            options={
                'db_table': 'appointment_exceptions',
                'unique_together': {('appointment', 'original_start_time')},
            },
        ),
        migrations.CreateModel(
            name='AppointmentAttendee',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('owner', 'Owner'), ('attendee', 'Attendee')], default='attendee', max_length=20)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('declined', 'Declined')], default='pending', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('appointment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attendees', to='appointments.appointment')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='appointment_invites', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'appointment_attendees',
                'unique_together': {('appointment', 'user')},
            },
        ),
    ]

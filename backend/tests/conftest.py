"""
Shared fixtures: a department with one doctor working Wednesday mornings,
a patient, rooms, medicines and a lab test.
"""
from datetime import datetime, time
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from admissions.models import Room
from appointments.models import DoctorSchedule
from core.context import AuthContext
from lab.models import MedicalTest
from patients.models import Patient
from pharmacy.models import Medicine
from users.models import Department, Doctor, User

WEDNESDAY = 2


def local_dt(*args):
    return timezone.make_aware(datetime(*args))


@pytest.fixture
def department(db):
    return Department.objects.create(name='Cardiology')


@pytest.fixture
def doctor(db, department):
    user = User.objects.create_user(
        username='rahim@careconnect.test', email='rahim@careconnect.test',
        first_name='Rahim', last_name='Uddin', role='DOCTOR',
    )
    return Doctor.objects.create(
        user=user,
        department=department,
        specialization='Cardiology',
        license_number='BMDC-A-12345',
        consultation_fee=Decimal('500.00'),
    )


@pytest.fixture
def schedule(doctor):
    # 2025-01-01 is a Wednesday
    return DoctorSchedule.objects.create(
        doctor=doctor,
        day_of_week=WEDNESDAY,
        start_time=time(9, 0),
        end_time=time(12, 0),
        max_patients=5,
        slot_minutes=30,
    )


@pytest.fixture
def patient(db):
    return Patient.objects.create(full_name='Nusrat Jahan', gender='F', phone='01711000001')


@pytest.fixture
def other_patient(db):
    return Patient.objects.create(full_name='Kamal Hossain', gender='M', phone='01711000002')


@pytest.fixture
def icu_room(db):
    return Room.objects.create(room_number='ICU-1', category=Room.ICU, charge_per_day=Decimal('5000.00'))


@pytest.fixture
def ward_rooms(db):
    return [
        Room.objects.create(room_number='W-101', category=Room.WARD_AC, charge_per_day=Decimal('1500.00')),
        Room.objects.create(room_number='W-102', category=Room.WARD_AC, charge_per_day=Decimal('1500.00')),
    ]


@pytest.fixture
def paracetamol(db):
    return Medicine.objects.create(name='Paracetamol 500mg', stock_quantity=100, unit_price=Decimal('2.50'), reorder_level=10)


@pytest.fixture
def insulin(db):
    return Medicine.objects.create(name='Insulin Pen', stock_quantity=1, unit_price=Decimal('850.00'), reorder_level=2)


@pytest.fixture
def blood_test(db):
    return MedicalTest.objects.create(test_name='Complete Blood Count', cost=Decimal('800.00'), duration_minutes=30)


@pytest.fixture
def reception():
    return AuthContext(role='RECEPTION')


@pytest.fixture
def admin_context():
    return AuthContext(role='ADMIN')


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(username='desk', password='desk-pass-123', role='RECEPTION')


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(username='boss', password='boss-pass-123', role='ADMIN')


@pytest.fixture
def api_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client

from datetime import time
from decimal import Decimal

from django.core.management.base import BaseCommand

from admissions.models import Room
from appointments.models import DoctorSchedule
from core.ports import DoctorRegistration
from lab.models import MedicalTest
from pharmacy.models import Medicine
from users.models import Department, Doctor
from users.services import register_doctor


class Command(BaseCommand):
    help = 'Populates the database with a small demo hospital: doctors, schedules, rooms, tests and medicines'

    def handle(self, *args, **options):
        self.stdout.write('Starting dummy data population...')

        self.populate_doctors()
        self.populate_rooms()
        self.populate_lab_data()
        self.populate_pharmacy_data()

        self.stdout.write(self.style.SUCCESS('Successfully populated dummy data.'))

    def populate_doctors(self):
        self.stdout.write('Populating doctors...')

        doctors = [
            {'email': 'rahim@careconnect.local', 'first': 'Rahim', 'last': 'Uddin', 'dept': 'Cardiology',
             'license': 'BMDC-A-10001', 'fee': '800.00', 'days': [0, 2, 4]},
            {'email': 'salma@careconnect.local', 'first': 'Salma', 'last': 'Akter', 'dept': 'Pediatrics',
             'license': 'BMDC-A-10002', 'fee': '600.00', 'days': [1, 3]},
            {'email': 'tanvir@careconnect.local', 'first': 'Tanvir', 'last': 'Hasan', 'dept': 'Medicine',
             'license': 'BMDC-B-10003', 'fee': '500.00', 'days': [0, 1, 2, 3, 4, 5]},
        ]

        for data in doctors:
            department, _ = Department.objects.get_or_create(name=data['dept'])
            doctor = Doctor.objects.filter(license_number=data['license']).first()
            if doctor is None:
                result = register_doctor(DoctorRegistration(
                    email=data['email'],
                    first_name=data['first'],
                    last_name=data['last'],
                    license_number=data['license'],
                    specialization=data['dept'],
                    consultation_fee=Decimal(data['fee']),
                    department_id=department.id,
                ))
                doctor = Doctor.objects.get(pk=result['doctor_id'])
                self.stdout.write(f'Created Doctor: {doctor}')

            for day in data['days']:
                DoctorSchedule.objects.get_or_create(
                    doctor=doctor,
                    day_of_week=day,
                    defaults={'start_time': time(9, 0), 'end_time': time(13, 0)},
                )

    def populate_rooms(self):
        self.stdout.write('Populating rooms...')

        rooms = [
            ('ICU-01', Room.ICU, '5000.00'),
            ('ICU-02', Room.ICU, '5000.00'),
            ('W-101', Room.WARD_AC, '1500.00'),
            ('W-102', Room.WARD_AC, '1500.00'),
            ('W-201', Room.WARD_NON_AC, '800.00'),
            ('W-202', Room.WARD_NON_AC, '800.00'),
            ('LAB-1', Room.LAB, '0.00'),
        ]
        for number, category, charge in rooms:
            Room.objects.get_or_create(
                room_number=number,
                defaults={'category': category, 'charge_per_day': Decimal(charge)},
            )

    def populate_lab_data(self):
        self.stdout.write('Populating Lab data...')

        lab_room = Room.objects.filter(category=Room.LAB).first()
        tests = [
            {'name': 'Complete Blood Count', 'cost': '350.00', 'minutes': 30},
            {'name': 'Blood Glucose Fasting', 'cost': '100.00', 'minutes': 15},
            {'name': 'Lipid Profile', 'cost': '800.00', 'minutes': 60},
            {'name': 'Chest X-Ray', 'cost': '600.00', 'minutes': 20},
        ]
        for test in tests:
            MedicalTest.objects.get_or_create(
                test_name=test['name'],
                defaults={
                    'cost': Decimal(test['cost']),
                    'duration_minutes': test['minutes'],
                    'lab_room': lab_room,
                },
            )

    def populate_pharmacy_data(self):
        self.stdout.write('Populating Pharmacy data...')

        medicines = [
            {'name': 'Paracetamol 500mg', 'generic': 'Paracetamol', 'price': '2.50', 'qty': 500},
            {'name': 'Amoxicillin 250mg', 'generic': 'Amoxicillin', 'price': '8.00', 'qty': 200},
            {'name': 'Omeprazole 20mg', 'generic': 'Omeprazole', 'price': '6.00', 'qty': 150},
            {'name': 'Insulin Pen', 'generic': 'Insulin glargine', 'price': '850.00', 'qty': 5},
        ]
        for med in medicines:
            Medicine.objects.get_or_create(
                name=med['name'],
                defaults={
                    'generic_name': med['generic'],
                    'unit_price': Decimal(med['price']),
                    'stock_quantity': med['qty'],
                },
            )

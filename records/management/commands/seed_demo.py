"""
Management command to populate the database with a demo tenant.

Creates an approved hospital with an active admin and a few patients
(QR images included) so the front-end can be tried locally.  Running it
again reuses the existing demo hospital.
"""
from django.core.management.base import BaseCommand

from records.models import Hospital, Patient
from records.principals import HospitalAdminPrincipal
from records.services import hospitals as tenants
from records.services import patients as store

DEMO_HOSPITAL = {
    'name': 'City General Hospital',
    'email': 'contact@citygeneral.example',
    'phone': '+1 555 0100',
    'address': '1 Main Street',
    'primary_contact_name': 'Dr. Grey',
    'admin_name': 'City Admin',
    'admin_email': 'admin@citygeneral.example',
    'admin_password': 'secret1',
}

DEMO_PATIENTS = [
    {
        'fullName': 'Jane Roe', 'age': 34, 'gender': 'Female', 'bloodGroup': 'O-',
        'allergies': ['Penicillin'], 'medicalConditions': ['Asthma'], 'medications': ['Salbutamol'],
        'emergencyContact': {'name': 'John Roe', 'phone': '+1 555 0101'}, 'riskLevel': 'High',
    },
    {
        'fullName': 'Sam Patel', 'age': 61, 'gender': 'Male', 'bloodGroup': 'A+',
        'allergies': [], 'medicalConditions': ['Type 2 diabetes', 'Hypertension'],
        'medications': ['Metformin', 'Lisinopril'],
        'emergencyContact': {'name': 'Priya Patel', 'phone': '+1 555 0102'}, 'riskLevel': 'Medium',
    },
    {
        'fullName': 'Alex Kim', 'age': 8, 'gender': 'Other', 'bloodGroup': 'B+',
        'allergies': ['Peanuts'], 'medicalConditions': [], 'medications': [],
        'emergencyContact': {'name': 'Jordan Kim', 'phone': '(555) 0103'},
    },
]


class Command(BaseCommand):
    help = 'Populate database with a demo hospital and patients'

    def handle(self, *args, **options):
        hospital = Hospital.objects.filter(email=DEMO_HOSPITAL['email']).first()
        if hospital is None:
            hospital = tenants.register_hospital(**DEMO_HOSPITAL)
            self.stdout.write(f'registered {hospital.name}')
        tenants.approve(hospital.id)

        principal = HospitalAdminPrincipal(user_id=hospital.admin_user_id, hospital_id=hospital.id)
        existing = set(Patient.objects.filter(hospital=hospital).values_list('full_name', flat=True))
        for data in DEMO_PATIENTS:
            if data['fullName'] in existing:
                continue
            patient, _ = store.create_patient(principal, data)
            self.stdout.write(f'  patient {patient.full_name}: {patient.qr_code_url}')

        self.stdout.write(self.style.SUCCESS(
            f"Demo ready. Log in as {DEMO_HOSPITAL['admin_email']} / {DEMO_HOSPITAL['admin_password']}"
        ))

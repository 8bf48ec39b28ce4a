import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from records.models import Hospital, Patient, User
from records.principals import HospitalAdminPrincipal, SuperAdminPrincipal
from records.services import patients as store
from records.services.tokens import issue_token

PASSWORD = 'secret1'


@pytest.fixture(autouse=True)
def _isolated(settings, tmp_path):
    settings.QR_UPLOAD_DIR = tmp_path / 'uploads'
    settings.FRONTEND_URL = 'https://smartqr.test'
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    # Throttle counters live in the cache.
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api():
    return APIClient()


def make_hospital(name, email, status=Hospital.STATUS_APPROVED, admin_email=None):
    hospital = Hospital.objects.create(name=name, email=email, status=status)
    admin = User.objects.create_user(
        email=admin_email or f'admin@{email.split("@")[1]}',
        password=PASSWORD,
        name=f'{name} Admin',
        role=User.ROLE_HOSPITAL_ADMIN,
        hospital=hospital,
        is_active=status == Hospital.STATUS_APPROVED,
    )
    hospital.admin_user = admin
    hospital.save(update_fields=['admin_user'])
    return hospital


def patient_data(**overrides):
    data = {
        'fullName': 'Jane Roe',
        'age': 34,
        'gender': 'Female',
        'bloodGroup': 'O-',
        'allergies': ['Penicillin'],
        'medicalConditions': ['Asthma'],
        'medications': ['Salbutamol'],
        'emergencyContact': {'name': 'John Roe', 'phone': '+1 555 0101'},
        'riskLevel': 'High',
    }
    data.update(overrides)
    return data


def bearer(client, user):
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(user)}')
    return client


@pytest.fixture
def hospital_a(db):
    return make_hospital('City General', 'contact@citygen.test')


@pytest.fixture
def hospital_b(db):
    return make_hospital('County Clinic', 'contact@county.test')


@pytest.fixture
def owner(db):
    # post_migrate may already have created the configured owner.
    user = User.objects.filter(role=User.ROLE_SUPER_ADMIN).first()
    if user is None:
        user = User.objects.create_superuser(email='owner@smartqr.test', password=PASSWORD, name='Owner')
    return user


@pytest.fixture
def admin_a(hospital_a):
    return hospital_a.admin_user


@pytest.fixture
def admin_b(hospital_b):
    return hospital_b.admin_user


@pytest.fixture
def patient_a(hospital_a, admin_a) -> Patient:
    principal = HospitalAdminPrincipal(user_id=admin_a.id, hospital_id=hospital_a.id)
    patient, _ = store.create_patient(principal, patient_data())
    return patient


@pytest.fixture
def patient_b(hospital_b, owner) -> Patient:
    principal = SuperAdminPrincipal(user_id=owner.id)
    patient, _ = store.create_patient(principal, patient_data(fullName='Rick Moe', hospitalId=hospital_b.id))
    return patient


@pytest.fixture
def owner_client(client_for, owner):
    return client_for(owner)


@pytest.fixture
def admin_a_client(client_for, admin_a):
    return client_for(admin_a)


@pytest.fixture
def admin_b_client(client_for, admin_b):
    return client_for(admin_b)


@pytest.fixture
def hospital_factory(db):
    return make_hospital


@pytest.fixture
def new_patient_data():
    return patient_data


@pytest.fixture
def client_for(db):
    def _client(user):
        return bearer(APIClient(), user)
    return _client

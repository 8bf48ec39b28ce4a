import logging
from pathlib import Path

import pytest

from records.models import AuditEvent, Patient, User
from records.principals import HospitalAdminPrincipal
from records.services import patients as store
from records.services import qr

pytestmark = pytest.mark.django_db


def test_create_returns_qr_token_and_image(admin_a_client, hospital_a, new_patient_data, settings):
    r = admin_a_client.post('/api/patients', new_patient_data(), format='json')
    assert r.status_code == 201
    body = r.data['patient']
    token = body['qrToken']
    assert len(token) >= 32
    assert body['qrCodeUrl'] == f'/uploads/qr-{token}.png'
    assert body['hospital'] == hospital_a.id
    assert body['riskLevel'] == 'High'
    assert (Path(settings.QR_UPLOAD_DIR) / f'qr-{token}.png').is_file()


def test_qr_image_encodes_the_emergency_page(monkeypatch, admin_a_client, new_patient_data):
    encoded = []
    add_data = qr.qrcode.QRCode.add_data

    def spy(self, data, *args, **kwargs):
        encoded.append(data)
        return add_data(self, data, *args, **kwargs)

    monkeypatch.setattr(qr.qrcode.QRCode, 'add_data', spy)
    r = admin_a_client.post('/api/patients', new_patient_data(), format='json')
    assert r.status_code == 201
    assert encoded == [f"https://smartqr.test/emergency/{r.data['patient']['qrToken']}"]


def test_hospital_in_body_is_ignored_for_hospital_admins(admin_a_client, hospital_a, hospital_b, new_patient_data):
    r = admin_a_client.post(
        '/api/patients',
        new_patient_data(hospitalId=hospital_b.id, hospital=hospital_b.id),
        format='json',
    )
    assert r.status_code == 201
    assert Patient.objects.get(pk=r.data['patient']['id']).hospital_id == hospital_a.id


def test_owner_must_name_a_hospital(owner_client, hospital_b, new_patient_data):
    r = owner_client.post('/api/patients', new_patient_data(), format='json')
    assert r.status_code == 400
    assert 'hospitalId' in r.data['error']['fields']

    r = owner_client.post('/api/patients', new_patient_data(hospitalId=hospital_b.id), format='json')
    assert r.status_code == 201
    assert r.data['patient']['hospital'] == hospital_b.id


def test_owner_cannot_use_unknown_hospital(owner_client, new_patient_data):
    r = owner_client.post('/api/patients', new_patient_data(hospitalId=999999), format='json')
    assert r.status_code == 400


@pytest.mark.parametrize('field, value', [
    ('age', 151),
    ('age', -1),
    ('gender', 'Robot'),
    ('bloodGroup', 'C+'),
    ('riskLevel', 'Extreme'),
    ('emergencyContact', {'name': 'Bob', 'phone': 'call me'}),
])
def test_create_validates_fields(admin_a_client, new_patient_data, field, value):
    r = admin_a_client.post('/api/patients', new_patient_data(**{field: value}), format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'ValidationError'
    assert field in r.data['error']['fields']


def test_risk_level_defaults_to_low(admin_a_client, new_patient_data):
    data = new_patient_data()
    del data['riskLevel']
    r = admin_a_client.post('/api/patients', data, format='json')
    assert r.status_code == 201
    assert r.data['patient']['riskLevel'] == 'Low'


def test_qr_write_failure_rolls_back_the_record(monkeypatch, admin_a, hospital_a, new_patient_data):
    def broken(token):
        raise OSError('disk full')

    monkeypatch.setattr(qr, 'write_qr_image', broken)
    principal = HospitalAdminPrincipal(user_id=admin_a.id, hospital_id=hospital_a.id)
    with pytest.raises(OSError):
        store.create_patient(principal, new_patient_data())
    assert not Patient.objects.exists()


def test_qr_token_is_immutable(admin_a_client, patient_a):
    original = patient_a.qr_token
    r = admin_a_client.put(
        f'/api/patients/{patient_a.id}',
        {'fullName': 'Jane Q. Roe', 'qrToken': 'attacker-chosen', 'qrCodeUrl': '/evil.png'},
        format='json',
    )
    assert r.status_code == 200
    patient_a.refresh_from_db()
    assert patient_a.full_name == 'Jane Q. Roe'
    assert patient_a.qr_token == original
    assert r.data['patient']['qrToken'] == original


def test_hospital_is_immutable(admin_a_client, patient_a, hospital_a, hospital_b):
    r = admin_a_client.patch(f'/api/patients/{patient_a.id}', {'hospital': hospital_b.id}, format='json')
    assert r.status_code == 200
    patient_a.refresh_from_db()
    assert patient_a.hospital_id == hospital_a.id


def test_patch_merges_emergency_contact(admin_a_client, patient_a):
    r = admin_a_client.patch(
        f'/api/patients/{patient_a.id}', {'emergencyContact': {'phone': '+44 20 7946 0000'}}, format='json',
    )
    assert r.status_code == 200
    assert r.data['patient']['emergencyContact'] == {'name': 'John Roe', 'phone': '+44 20 7946 0000'}


def test_list_is_scoped_to_own_hospital(admin_a_client, patient_a, patient_b):
    r = admin_a_client.get('/api/patients')
    assert r.status_code == 200
    assert [p['id'] for p in r.data['patients']] == [patient_a.id]


def test_owner_lists_everything_and_can_filter(owner_client, hospital_b, patient_a, patient_b):
    r = owner_client.get('/api/patients')
    assert {p['id'] for p in r.data['patients']} == {patient_a.id, patient_b.id}

    r = owner_client.get('/api/patients', {'hospitalId': hospital_b.id})
    assert [p['id'] for p in r.data['patients']] == [patient_b.id]


def test_hospital_filter_does_not_widen_admin_scope(admin_a_client, hospital_b, patient_a, patient_b):
    r = admin_a_client.get('/api/patients', {'hospitalId': hospital_b.id})
    assert [p['id'] for p in r.data['patients']] == [patient_a.id]


def test_list_filters_by_risk(admin_a_client, admin_a, hospital_a, patient_a, new_patient_data):
    principal = HospitalAdminPrincipal(user_id=admin_a.id, hospital_id=hospital_a.id)
    store.create_patient(principal, new_patient_data(fullName='Calm Person', riskLevel='Low'))
    r = admin_a_client.get('/api/patients', {'riskLevel': 'Low'})
    assert [p['fullName'] for p in r.data['patients']] == ['Calm Person']


def test_delete_removes_record_image_and_portal_account(admin_a_client, admin_a, hospital_a, new_patient_data):
    created = admin_a_client.post(
        '/api/patients', new_patient_data(portalEmail='jane@mail.test'), format='json',
    ).data
    assert created['initialPassword']
    patient = Patient.objects.get(pk=created['patient']['id'])
    image = qr.qr_path(patient.qr_token)
    assert image.is_file()

    r = admin_a_client.delete(f'/api/patients/{patient.id}')
    assert r.status_code == 200
    assert not Patient.objects.filter(pk=patient.id).exists()
    assert not User.objects.filter(email='jane@mail.test').exists()
    assert not image.exists()
    assert AuditEvent.objects.filter(action='patient_delete', object_id=patient.id).exists()


def test_delete_survives_qr_removal_failure(monkeypatch, caplog, admin_a_client, patient_a):
    def locked(self, missing_ok=False):
        raise PermissionError('read-only filesystem')

    monkeypatch.setattr(Path, 'unlink', locked)
    with caplog.at_level(logging.WARNING, logger='records.services.qr'):
        r = admin_a_client.delete(f'/api/patients/{patient_a.id}')
    assert r.status_code == 200
    assert not Patient.objects.filter(pk=patient_a.id).exists()
    assert 'could not remove QR image' in caplog.text


def test_delete_tolerates_missing_image(admin_a_client, patient_a):
    qr.qr_path(patient_a.qr_token).unlink()
    r = admin_a_client.delete(f'/api/patients/{patient_a.id}')
    assert r.status_code == 200


def test_portal_password_must_be_long_enough(admin_a_client, new_patient_data):
    r = admin_a_client.post(
        '/api/patients', new_patient_data(portalEmail='p@mail.test', portalPassword='123'), format='json',
    )
    assert r.status_code == 400
    assert 'portalPassword' in r.data['error']['fields']
    assert not Patient.objects.exists()


def test_stats_are_scoped(admin_a_client, admin_a, hospital_a, patient_a, patient_b, new_patient_data):
    principal = HospitalAdminPrincipal(user_id=admin_a.id, hospital_id=hospital_a.id)
    store.create_patient(principal, new_patient_data(fullName='Mid', riskLevel='Medium'))
    r = admin_a_client.get('/api/patients/stats')
    assert r.status_code == 200
    assert r.data['stats'] == {'total': 2, 'high': 1, 'medium': 1, 'low': 0}


def test_staff_view_includes_ai_summary(admin_a_client, patient_a):
    admin_a_client.patch(f'/api/patients/{patient_a.id}', {'aiSummary': 'Stable.'}, format='json')
    r = admin_a_client.get(f'/api/patients/{patient_a.id}')
    assert r.data['patient']['aiSummary'] == 'Stable.'


def test_patient_endpoints_need_authentication(api, patient_a):
    assert api.get('/api/patients').status_code == 401
    assert api.get(f'/api/patients/{patient_a.id}').status_code == 401

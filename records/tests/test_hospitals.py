import pytest
from django.contrib.auth import get_user_model

from records.models import AuditEvent, Hospital
from records.services import hospitals as tenants

pytestmark = pytest.mark.django_db

User = get_user_model()


def registration(**overrides):
    data = {
        'name': 'City Gen',
        'email': 'city@x.com',
        'phone': '+1 555 0100',
        'address': '1 Main Street',
        'primaryContactName': 'Dr. Grey',
        'adminName': 'City Admin',
        'adminEmail': 'admin@x.com',
        'adminPassword': 'secret1',
    }
    data.update(overrides)
    return data


def test_city_gen_scenario(api, owner_client):
    r = api.post('/api/hospitals/register', registration(), format='json')
    assert r.status_code == 201
    hospital = r.data['hospital']
    assert hospital['status'] == 'PENDING'
    assert hospital['adminUser']['isActive'] is False

    r = api.post('/api/auth/login', {'email': 'admin@x.com', 'password': 'secret1'}, format='json')
    assert r.status_code == 403
    assert r.data['error']['code'] == 'AccountPending'

    r = owner_client.patch(f"/api/hospitals/{hospital['id']}/approve")
    assert r.status_code == 200
    assert r.data['hospital']['status'] == 'APPROVED'
    assert r.data['hospital']['adminUser']['isActive'] is True

    r = api.post('/api/auth/login', {'email': 'admin@x.com', 'password': 'secret1'}, format='json')
    assert r.status_code == 200
    assert r.data['user']['role'] == 'HOSPITAL_ADMIN'
    assert r.data['user']['hospital'] == hospital['id']


def test_registration_requires_core_fields(api):
    r = api.post('/api/hospitals/register', {'name': 'Nameless'}, format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'ValidationError'
    assert {'email', 'adminName', 'adminEmail', 'adminPassword'} <= set(r.data['error']['fields'])


def test_short_admin_password_is_rejected(api):
    r = api.post('/api/hospitals/register', registration(adminPassword='12345'), format='json')
    assert r.status_code == 400
    assert 'adminPassword' in r.data['error']['fields']


def test_duplicate_hospital_email(api, hospital_a):
    r = api.post('/api/hospitals/register', registration(email='CONTACT@citygen.test'), format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'DuplicateHospitalEmail'


def test_duplicate_admin_email(api, admin_a):
    r = api.post('/api/hospitals/register', registration(adminEmail=admin_a.email), format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'DuplicateAdminEmail'
    assert not Hospital.objects.filter(email='city@x.com').exists()


def test_registration_is_atomic(monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError('db went away')

    monkeypatch.setattr(User.objects, 'create_user', boom)
    with pytest.raises(RuntimeError):
        tenants.register_hospital(
            name='City Gen', email='city@x.com', admin_name='A', admin_email='admin@x.com', admin_password='secret1',
        )
    assert not Hospital.objects.filter(email='city@x.com').exists()


def test_registration_strips_markup(api):
    r = api.post('/api/hospitals/register', registration(name='<b>City</b> Gen'), format='json')
    assert r.status_code == 201
    assert r.data['hospital']['name'] == 'City Gen'


def test_registration_strips_links_and_keeps_ampersands(api):
    r = api.post('/api/hospitals/register', registration(
        name='<a href="http://evil.test">St. Mary</a> & St. John',
        address='Unit 4 <script>x</script>',
    ), format='json')
    assert r.status_code == 201
    hospital = Hospital.objects.get(pk=r.data['hospital']['id'])
    assert hospital.name == 'St. Mary & St. John'
    assert '<' not in hospital.address


def test_list_is_owner_only(admin_a_client):
    r = admin_a_client.get('/api/hospitals')
    assert r.status_code == 403
    assert r.data['error']['code'] == 'Forbidden'


def test_list_filters_by_status_newest_first(owner_client, hospital_factory):
    hospital_factory('Old', 'old@h.test', status=Hospital.STATUS_PENDING, admin_email='admin@old.test')
    hospital_factory('New', 'new@h.test', status=Hospital.STATUS_PENDING, admin_email='admin@new.test')
    hospital_factory('Live', 'live@h.test', admin_email='admin@live.test')

    r = owner_client.get('/api/hospitals', {'status': 'pending'})
    assert r.status_code == 200
    assert [h['name'] for h in r.data['hospitals']] == ['New', 'Old']

    r = owner_client.get('/api/hospitals')
    assert r.data['count'] == 3


def test_unknown_status_filter(owner_client):
    r = owner_client.get('/api/hospitals', {'status': 'closed'})
    assert r.status_code == 400


def test_detail_includes_patient_count(owner_client, hospital_a, patient_a):
    r = owner_client.get(f'/api/hospitals/{hospital_a.id}')
    assert r.status_code == 200
    assert r.data['hospital']['patientCount'] == 1


def test_detail_of_missing_hospital(owner_client):
    r = owner_client.get('/api/hospitals/999999')
    assert r.status_code == 404
    assert r.data['error']['code'] == 'NotFound'


def test_reject_then_reapprove(owner_client, hospital_a, admin_a):
    r = owner_client.patch(f'/api/hospitals/{hospital_a.id}/reject')
    assert r.status_code == 200
    admin_a.refresh_from_db()
    assert r.data['hospital']['status'] == 'REJECTED'
    assert admin_a.is_active is False

    r = owner_client.patch(f'/api/hospitals/{hospital_a.id}/approve')
    admin_a.refresh_from_db()
    assert r.data['hospital']['status'] == 'APPROVED'
    assert admin_a.is_active is True


def test_transitions_are_idempotent(owner_client, hospital_a):
    first = owner_client.patch(f'/api/hospitals/{hospital_a.id}/approve')
    second = owner_client.patch(f'/api/hospitals/{hospital_a.id}/approve')
    assert first.status_code == second.status_code == 200
    assert second.data['hospital']['status'] == 'APPROVED'


def test_transitions_need_patch(owner_client, hospital_a):
    r = owner_client.post(f'/api/hospitals/{hospital_a.id}/approve')
    assert r.status_code == 405
    assert r.data['error']['code'] == 'MethodNotAllowed'


def test_transitions_are_audited(owner_client, owner, hospital_a):
    owner_client.patch(f'/api/hospitals/{hospital_a.id}/reject')
    event = AuditEvent.objects.get(action='hospital_rejected')
    assert event.user_id == owner.id
    assert event.object_id == hospital_a.id


def test_owner_stats(owner_client, hospital_a, hospital_factory, patient_a):
    hospital_factory('Waiting', 'wait@h.test', status=Hospital.STATUS_PENDING)
    r = owner_client.get('/api/admin/stats')
    assert r.status_code == 200
    assert r.data['stats'] == {
        'totalHospitals': 2,
        'approvedHospitals': 1,
        'pendingHospitals': 1,
        'rejectedHospitals': 0,
        'totalPatients': 1,
    }


def test_owner_sees_one_tenants_patients(owner_client, hospital_a, patient_a, patient_b):
    r = owner_client.get(f'/api/admin/hospitals/{hospital_a.id}/patients')
    assert r.status_code == 200
    assert r.data['hospital']['id'] == hospital_a.id
    assert [p['id'] for p in r.data['patients']] == [patient_a.id]

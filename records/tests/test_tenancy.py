"""
Tenant isolation tests.

A hospital administrator must not be able to tell whether another
hospital's record exists: reads, updates and deletes across tenants all
answer 404.  Patients can read only their own record and cannot write.
"""
from rest_framework.test import APITestCase, APIClient

from records.models import Hospital, Patient, User
from records.principals import HospitalAdminPrincipal
from records.services import patients as store
from records.services.tokens import issue_token


class TenantIsolationTests(APITestCase):
    def setUp(self) -> None:
        self.h1 = Hospital.objects.create(name='North', email='north@h.test', status=Hospital.STATUS_APPROVED)
        self.h2 = Hospital.objects.create(name='South', email='south@h.test', status=Hospital.STATUS_APPROVED)
        self.admin1 = User.objects.create_user(
            email='a1@h.test', password='secret1', role=User.ROLE_HOSPITAL_ADMIN, hospital=self.h1,
        )
        self.admin2 = User.objects.create_user(
            email='a2@h.test', password='secret1', role=User.ROLE_HOSPITAL_ADMIN, hospital=self.h2,
        )
        base = {
            'age': 50, 'gender': 'Male', 'bloodGroup': 'A+',
            'emergencyContact': {'name': 'Kin', 'phone': '555-0100'},
        }
        self.p1, _ = store.create_patient(
            HospitalAdminPrincipal(user_id=self.admin1.id, hospital_id=self.h1.id),
            dict(base, fullName='North Patient', portalEmail='np@h.test', portalPassword='np-pass'),
        )
        self.p2, _ = store.create_patient(
            HospitalAdminPrincipal(user_id=self.admin2.id, hospital_id=self.h2.id),
            dict(base, fullName='South Patient'),
        )
        self.client1 = self._client(self.admin1)
        self.patient_client = self._client(User.objects.get(email='np@h.test'))

    def _client(self, user) -> APIClient:
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(user)}')
        return client

    def assertNotFound(self, resp):
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.data['error']['code'], 'NotFound')

    def test_cross_tenant_read_is_not_found(self):
        self.assertNotFound(self.client1.get(f'/api/patients/{self.p2.id}'))

    def test_cross_tenant_update_is_not_found(self):
        resp = self.client1.put(f'/api/patients/{self.p2.id}', {'fullName': 'Hijacked'}, format='json')
        self.assertNotFound(resp)
        self.p2.refresh_from_db()
        self.assertEqual(self.p2.full_name, 'South Patient')

    def test_cross_tenant_delete_is_not_found(self):
        self.assertNotFound(self.client1.delete(f'/api/patients/{self.p2.id}'))
        self.assertTrue(Patient.objects.filter(pk=self.p2.id).exists())

    def test_cross_tenant_matches_missing_record(self):
        foreign = self.client1.get(f'/api/patients/{self.p2.id}')
        missing = self.client1.get('/api/patients/999999')
        self.assertEqual(foreign.data, missing.data)

    def test_patient_reads_only_own_record(self):
        resp = self.patient_client.get(f'/api/patients/{self.p1.id}')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['patient']['fullName'], 'North Patient')
        listing = self.patient_client.get('/api/patients')
        self.assertEqual([p['id'] for p in listing.data['patients']], [self.p1.id])
        self.assertNotFound(self.patient_client.get(f'/api/patients/{self.p2.id}'))

    def test_patient_cannot_write(self):
        resp = self.patient_client.patch(f'/api/patients/{self.p1.id}', {'age': 20}, format='json')
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.data['error']['code'], 'Forbidden')
        resp = self.patient_client.post('/api/patients', {
            'fullName': 'Self Made', 'age': 30, 'gender': 'Other', 'bloodGroup': 'O+',
            'emergencyContact': {'name': 'X', 'phone': '555'},
        }, format='json')
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(self.patient_client.delete(f'/api/patients/{self.p1.id}').status_code, 403)

    def test_patient_cannot_see_stats(self):
        self.assertEqual(self.patient_client.get('/api/patients/stats').status_code, 403)

    def test_hospital_admin_cannot_reach_owner_routes(self):
        self.assertEqual(self.client1.get(f'/api/admin/hospitals/{self.h2.id}/patients').status_code, 403)
        self.assertEqual(self.client1.get('/api/admin/stats').status_code, 403)
        self.assertEqual(self.client1.patch(f'/api/hospitals/{self.h2.id}/reject').status_code, 403)

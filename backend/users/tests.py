# users/tests.py
from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from solarshare.exceptions import NotFound, ValidationError
from .services import get_user, upsert_user

User = get_user_model()


class UpsertUserTestCase(TestCase):
    def test_upsert_creates_then_updates_same_row(self):
        user, created = upsert_user('auth0-42', email='sun@example.com', first_name='Sunny', role='site_owner')
        self.assertTrue(created)
        self.assertEqual(user.pk, 'auth0-42')
        self.assertEqual(user.role, 'site_owner')
        first_stamp = user.updated_at

        again, created = upsert_user('auth0-42', email='sunny@example.com', first_name='Sunny')
        self.assertFalse(created)
        self.assertEqual(User.objects.filter(pk='auth0-42').count(), 1)
        self.assertEqual(again.email, 'sunny@example.com')
        self.assertGreaterEqual(again.updated_at, first_stamp)

    def test_role_is_not_changed_by_upsert(self):
        upsert_user('u-1', role='investor')
        user, _ = upsert_user('u-1', role='admin')
        self.assertEqual(user.role, 'investor')

    def test_missing_id_and_unknown_fields_are_rejected(self):
        with self.assertRaises(ValidationError):
            upsert_user('', email='x@example.com')
        with self.assertRaises(ValidationError):
            upsert_user('u-2', is_superuser=True)

    def test_stripe_customer_id_is_stored_encrypted(self):
        user, _ = upsert_user('u-3', stripe_customer_id='cus_123')
        user.refresh_from_db()
        self.assertNotIn(b'cus_123', bytes(user.stripe_customer_encrypted))
        self.assertEqual(user.get_stripe_customer_id(), 'cus_123')

    def test_get_user_not_found(self):
        with self.assertRaises(NotFound):
            get_user('missing')


class UserApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(username='admin', password='pass', role='admin')
        self.investor = User.objects.create_user(username='alice', password='pass', role='investor')

    def test_me_returns_current_user(self):
        self.client.force_authenticate(user=self.investor)
        resp = self.client.get('/api/auth/me/')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['id'], self.investor.pk)
        self.assertEqual(resp.data['role'], 'investor')

    def test_only_admin_can_upsert(self):
        self.client.force_authenticate(user=self.investor)
        resp = self.client.post('/api/auth/users/', data={'id': 'new-user'}, format='json')
        self.assertEqual(resp.status_code, 403)

        self.client.force_authenticate(user=self.admin)
        resp = self.client.post('/api/auth/users/', data={'id': 'new-user', 'role': 'site_owner'}, format='json')
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data['role'], 'site_owner')

        resp = self.client.post('/api/auth/users/', data={'id': 'new-user', 'email': 'new@example.com'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['email'], 'new@example.com')
        self.assertEqual(User.objects.filter(pk='new-user').count(), 1)

    def test_unauthenticated_requests_are_rejected(self):
        resp = self.client.get('/api/auth/me/')
        self.assertEqual(resp.status_code, 401)

# investments/tests_api.py
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from .models import Investment
from .services import create_investment
from .tests import make_project

User = get_user_model()


class InvestmentApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(username='admin', password='pass', role='admin')
        self.owner = User.objects.create_user(username='owner', password='pass', role='site_owner')
        self.alice = User.objects.create_user(username='alice', password='pass', role='investor')
        self.bob = User.objects.create_user(username='bob', password='pass', role='investor')
        self.project = make_project(self.owner)

    def test_investor_creates_investment(self):
        self.client.force_authenticate(user=self.alice)
        resp = self.client.post('/api/investments/', data={
            'project_id': self.project.pk, 'amount': '3000.00', 'lock_in_period': 5, 'expected_return': '99.00',
        }, format='json')
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data['status'], 'active')
        self.assertEqual(resp.data['amount'], '3000.00')
        self.assertEqual(resp.data['expected_return'], '10.00')
        self.assertEqual(resp.data['investor'], self.alice.pk)

        resp = self.client.get('/api/my-investments/')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data), 1)
        self.assertEqual(resp.data[0]['project']['current_funding'], '3000.00')

    def test_investment_errors_map_to_status_codes(self):
        self.client.force_authenticate(user=self.alice)
        resp = self.client.post('/api/investments/', data={'project_id': 9999, 'amount': '1000', 'lock_in_period': 5}, format='json')
        self.assertEqual(resp.status_code, 404)
        resp = self.client.post('/api/investments/', data={'project_id': self.project.pk, 'amount': '100', 'lock_in_period': 5}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertIn('amount', resp.data)
        resp = self.client.post('/api/investments/', data={'project_id': self.project.pk, 'amount': '-5', 'lock_in_period': 5}, format='json')
        self.assertEqual(resp.status_code, 400)

    def test_site_owner_cannot_invest(self):
        self.client.force_authenticate(user=self.owner)
        resp = self.client.post('/api/investments/', data={'project_id': self.project.pk, 'amount': '1000', 'lock_in_period': 5}, format='json')
        self.assertEqual(resp.status_code, 403)

    def test_investor_may_only_cancel_own_investment(self):
        investment = create_investment(self.alice, self.project.pk, Decimal('1000.00'), 5)
        self.client.force_authenticate(user=self.bob)
        resp = self.client.patch(f'/api/investments/{investment.pk}/status/', data={'status': 'cancelled'}, format='json')
        self.assertEqual(resp.status_code, 403)

        self.client.force_authenticate(user=self.alice)
        resp = self.client.patch(f'/api/investments/{investment.pk}/status/', data={'status': 'completed'}, format='json')
        self.assertEqual(resp.status_code, 403)
        resp = self.client.patch(f'/api/investments/{investment.pk}/status/', data={'status': 'cancelled'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['status'], 'cancelled')

    def test_admin_completed_investment_cannot_reactivate(self):
        investment = create_investment(self.alice, self.project.pk, Decimal('1000.00'), 5)
        Investment.objects.filter(pk=investment.pk).update(end_date=timezone.now() - timedelta(days=1))
        self.client.force_authenticate(user=self.admin)
        resp = self.client.patch(f'/api/investments/{investment.pk}/status/', data={'status': 'completed'}, format='json')
        self.assertEqual(resp.status_code, 200)
        resp = self.client.patch(f'/api/investments/{investment.pk}/status/', data={'status': 'active'}, format='json')
        self.assertEqual(resp.status_code, 409)

    def test_admin_records_payouts(self):
        investment = create_investment(self.alice, self.project.pk, Decimal('1000.00'), 5)
        self.client.force_authenticate(user=self.alice)
        resp = self.client.post('/api/payouts/', data={'investment_id': investment.pk, 'amount': '50.00', 'status': 'completed'}, format='json')
        self.assertEqual(resp.status_code, 403)

        self.client.force_authenticate(user=self.admin)
        resp = self.client.post('/api/payouts/', data={'investment_id': investment.pk, 'amount': '50.00'}, format='json')
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data['status'], 'pending')
        payout_id = resp.data['id']

        resp = self.client.patch(f'/api/payouts/{payout_id}/status/', data={'status': 'completed'}, format='json')
        self.assertEqual(resp.status_code, 200)
        investment.refresh_from_db()
        self.assertEqual(investment.total_earnings, Decimal('50.00'))

        resp = self.client.patch(f'/api/payouts/{payout_id}/status/', data={'status': 'failed'}, format='json')
        self.assertEqual(resp.status_code, 409)

        self.client.force_authenticate(user=self.alice)
        resp = self.client.get('/api/my-payouts/')
        self.assertEqual(len(resp.data), 1)
        self.assertEqual(resp.data[0]['amount'], '50.00')

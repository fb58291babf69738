# analytics/tests.py
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from investments.services import create_investment, record_payout, update_investment_status
from investments.tests import make_project
from projects.models import Project
from solarshare.exceptions import ValidationError
from .services import admin_stats, get_user_stats, investor_stats, site_owner_stats

User = get_user_model()


class EmptyStatsTestCase(TestCase):
    def test_investor_without_investments_gets_zeros(self):
        investor = User.objects.create_user(username='alice', password='pass', role='investor')
        stats = get_user_stats(investor.pk, 'investor')
        self.assertEqual(stats, {
            'total_invested': Decimal('0'),
            'total_earnings': Decimal('0'),
            'active_investments': 0,
            'monthly_income': Decimal('0'),
        })

    def test_site_owner_without_projects_gets_zeros(self):
        stats = site_owner_stats('nobody')
        self.assertEqual(stats, {'total_projects': 0, 'active_projects': 0, 'total_funding': Decimal('0')})

    def test_empty_platform(self):
        stats = admin_stats()
        self.assertEqual(stats['total_projects'], 0)
        self.assertEqual(stats['total_users'], 0)
        self.assertEqual(stats['total_investment'], Decimal('0'))
        self.assertEqual(stats['projects_by_status']['funding'], 0)

    def test_unknown_role(self):
        with self.assertRaises(ValidationError):
            get_user_stats('someone', 'guest')


class PortfolioStatsTestCase(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(username='owner', password='pass', role='site_owner')
        self.alice = User.objects.create_user(username='alice', password='pass', role='investor')
        self.bob = User.objects.create_user(username='bob', password='pass', role='investor')
        self.admin = User.objects.create_user(username='admin', password='pass', role='admin')
        self.project = make_project(self.owner)
        self.investment = create_investment(self.alice, self.project.pk, Decimal('1000.00'), 5)

    def test_investor_stats_follow_payouts(self):
        record_payout(self.investment.pk, Decimal('50.00'), status='completed')
        stats = investor_stats(self.alice.pk)
        self.assertEqual(stats['total_invested'], Decimal('1000.00'))
        self.assertGreaterEqual(stats['total_earnings'], Decimal('50.00'))
        self.assertEqual(stats['active_investments'], 1)
        self.assertEqual(stats['monthly_income'], Decimal('50.00'))

    def test_monthly_income_window(self):
        now = timezone.now()
        record_payout(self.investment.pk, Decimal('10.00'), payout_date=now - timedelta(days=5), status='completed')
        record_payout(self.investment.pk, Decimal('20.00'), payout_date=now - timedelta(days=45), status='completed')
        record_payout(self.investment.pk, Decimal('40.00'), payout_date=now - timedelta(days=2))
        stats = investor_stats(self.alice.pk, now=now)
        self.assertEqual(stats['monthly_income'], Decimal('10.00'))
        self.assertEqual(stats['total_earnings'], Decimal('30.00'))

    def test_cancelled_investments_are_not_active(self):
        create_investment(self.alice, self.project.pk, Decimal('500.00'), 3)
        update_investment_status(self.investment.pk, 'cancelled')
        stats = investor_stats(self.alice.pk)
        self.assertEqual(stats['active_investments'], 1)
        self.assertEqual(stats['total_invested'], Decimal('1500.00'))

    def test_site_owner_stats(self):
        make_project(self.owner, status=Project.STATUS_ACTIVE)
        stats = get_user_stats(self.owner.pk, 'site_owner')
        self.assertEqual(stats['total_projects'], 2)
        self.assertEqual(stats['active_projects'], 1)
        self.assertEqual(stats['total_funding'], Decimal('1000.00'))

    def test_admin_stats(self):
        make_project(self.owner, status=Project.STATUS_PENDING)
        create_investment(self.bob, self.project.pk, Decimal('2000.00'), 7)
        stats = admin_stats()
        self.assertEqual(stats['total_projects'], 2)
        self.assertEqual(stats['pending_projects'], 1)
        self.assertEqual(stats['projects_by_status']['funding'], 1)
        self.assertEqual(stats['total_users'], 4)
        self.assertEqual(stats['investors'], 2)
        self.assertEqual(stats['site_owners'], 1)
        self.assertEqual(stats['users_by_role']['admin'], 1)
        self.assertEqual(stats['total_investment'], Decimal('3000.00'))
        self.assertEqual(stats['investment_count'], 2)
        self.assertEqual(stats['active_investments'], 2)

    def test_stats_endpoints(self):
        client = APIClient()
        client.force_authenticate(user=self.alice)
        resp = client.get('/api/my-stats/')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['total_invested'], '1000.00')
        self.assertEqual(resp.data['monthly_income'], '0.00')
        resp = client.get('/api/admin/stats/')
        self.assertEqual(resp.status_code, 403)

        client.force_authenticate(user=self.owner)
        resp = client.get('/api/my-stats/')
        self.assertEqual(resp.data['total_funding'], '1000.00')

        client.force_authenticate(user=self.admin)
        resp = client.get('/api/admin/stats/')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['total_investment'], '1000.00')
        self.assertEqual(resp.data['investment_count'], 1)

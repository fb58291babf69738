# investments/tests.py
import threading
from datetime import timedelta
from decimal import Decimal
from unittest import skipUnless

from django.test import TestCase, TransactionTestCase
from django.contrib.auth import get_user_model
from django.db import connection
from django.utils import timezone

from notifications.models import Notification
from projects.models import FundingEntry, Project
from projects.services import funding_ledger_balance
from solarshare.exceptions import ConflictError, NotFound, ValidationError
from .models import Investment, Payout
from .services import (
    create_investment, get_investments_by_project, get_investments_by_user, get_payouts_by_investment,
    get_payouts_by_user, record_payout, update_investment_status, update_payout_status,
)

User = get_user_model()


def make_project(owner, status=Project.STATUS_FUNDING, **overrides):
    fields = {
        'site_owner': owner,
        'title': 'Community solar',
        'description': 'Shared array',
        'location': 'Tucson, AZ',
        'system_size': 25,
        'total_funding': Decimal('10000.00'),
        'expected_return': Decimal('10.00'),
        'min_investment': Decimal('500.00'),
        'status': status,
    }
    fields.update(overrides)
    return Project.objects.create(**fields)


class InvestmentLifecycleTestCase(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(username='owner', password='pass', role='site_owner')
        self.alice = User.objects.create_user(username='alice', password='pass', role='investor')
        self.bob = User.objects.create_user(username='bob', password='pass', role='investor')
        self.project = make_project(self.owner)

    def test_two_investors_fund_project(self):
        a = create_investment(self.alice, self.project.pk, Decimal('3000.00'), 5)
        b = create_investment(self.bob, self.project.pk, Decimal('4000.00'), 5)
        self.project.refresh_from_db()
        self.assertEqual(self.project.current_funding, Decimal('7000.00'))
        self.assertEqual(self.project.status, Project.STATUS_FUNDING)
        amounts = sorted(i.amount for i in get_investments_by_project(self.project.pk))
        self.assertEqual(amounts, [Decimal('3000.00'), Decimal('4000.00')])
        self.assertEqual(a.investor, self.alice)
        self.assertEqual(b.project.current_funding, Decimal('7000.00'))
        entries = FundingEntry.objects.filter(project=self.project)
        self.assertEqual(entries.count(), 2)
        self.assertEqual(funding_ledger_balance(self.project.pk), Decimal('7000.00'))
        self.assertEqual(entries.last().metadata['investment_id'], a.pk)

    def test_investment_copies_project_rate_and_starts_lock_in(self):
        investment = create_investment(self.alice, self.project.pk, Decimal('1000.00'), 5)
        self.assertEqual(investment.status, Investment.STATUS_ACTIVE)
        self.assertEqual(investment.expected_return, Decimal('10.00'))
        self.assertEqual(investment.total_earnings, Decimal('0.00'))
        self.assertEqual(investment.end_date.year - investment.start_date.year, 5)
        self.assertEqual(investment.projected_return, Decimal('500.00'))
        self.assertEqual(investment.monthly_average, Decimal('8.33'))

        # later rate changes do not touch existing investments
        Project.objects.filter(pk=self.project.pk).update(expected_return=Decimal('12.00'))
        investment.refresh_from_db()
        self.assertEqual(investment.expected_return, Decimal('10.00'))

    def test_creation_sends_notifications(self):
        create_investment(self.alice, self.project.pk, Decimal('1000.00'), 3)
        self.assertEqual(Notification.objects.filter(user=self.alice, notification_type='investment').count(), 1)
        self.assertEqual(Notification.objects.filter(user=self.owner, notification_type='project_update').count(), 1)

    def test_validation_failures(self):
        with self.assertRaises(NotFound):
            create_investment(self.alice, 9999, Decimal('1000.00'), 5)
        with self.assertRaises(ValidationError):
            create_investment(self.alice, self.project.pk, Decimal('499.99'), 5)
        with self.assertRaises(ValidationError):
            create_investment(self.alice, self.project.pk, Decimal('1000.00'), 4)
        with self.assertRaises(ValidationError):
            create_investment(self.alice, self.project.pk, Decimal('1000.00'), 5, status='completed')
        self.assertEqual(Investment.objects.count(), 0)

    def test_project_must_accept_investments(self):
        pending = make_project(self.owner, status=Project.STATUS_PENDING)
        with self.assertRaises(ConflictError):
            create_investment(self.alice, pending.pk, Decimal('1000.00'), 5)
        approved = make_project(self.owner, status=Project.STATUS_APPROVED)
        create_investment(self.alice, approved.pk, Decimal('1000.00'), 5)

    def test_overfunding_rolls_back_investment_row(self):
        create_investment(self.alice, self.project.pk, Decimal('9000.00'), 5)
        with self.assertRaises(ValidationError):
            create_investment(self.bob, self.project.pk, Decimal('2000.00'), 5)
        self.project.refresh_from_db()
        self.assertEqual(self.project.current_funding, Decimal('9000.00'))
        self.assertFalse(Investment.objects.filter(investor=self.bob).exists())
        self.assertFalse(Notification.objects.filter(user=self.bob).exists())

    def test_pending_investment_becomes_active(self):
        investment = create_investment(self.alice, self.project.pk, Decimal('1000.00'), 5, status='pending')
        self.assertIsNone(investment.start_date)
        investment = update_investment_status(investment.pk, 'active')
        self.assertEqual(investment.status, 'active')
        self.assertIsNotNone(investment.end_date)

    def test_completion_waits_for_lock_in(self):
        investment = create_investment(self.alice, self.project.pk, Decimal('1000.00'), 3)
        with self.assertRaises(ConflictError):
            update_investment_status(investment.pk, 'completed')
        Investment.objects.filter(pk=investment.pk).update(end_date=timezone.now() - timedelta(days=1))
        investment = update_investment_status(investment.pk, 'completed')
        self.assertEqual(investment.status, 'completed')

    def test_terminal_states_reject_transitions(self):
        investment = create_investment(self.alice, self.project.pk, Decimal('1000.00'), 3)
        Investment.objects.filter(pk=investment.pk).update(end_date=timezone.now() - timedelta(days=1))
        update_investment_status(investment.pk, 'completed')
        for status in ('active', 'pending', 'cancelled'):
            with self.assertRaises(ConflictError):
                update_investment_status(investment.pk, status)

        cancelled = create_investment(self.bob, self.project.pk, Decimal('1000.00'), 3)
        update_investment_status(cancelled.pk, 'cancelled')
        with self.assertRaises(ConflictError):
            update_investment_status(cancelled.pk, 'active')
        with self.assertRaises(NotFound):
            update_investment_status(9999, 'cancelled')

    def test_cancelling_does_not_reduce_funding(self):
        investment = create_investment(self.alice, self.project.pk, Decimal('1000.00'), 3)
        update_investment_status(investment.pk, 'cancelled')
        self.project.refresh_from_db()
        self.assertEqual(self.project.current_funding, Decimal('1000.00'))

    def test_investments_by_user_newest_first(self):
        first = create_investment(self.alice, self.project.pk, Decimal('1000.00'), 3)
        second = create_investment(self.alice, self.project.pk, Decimal('600.00'), 5)
        create_investment(self.bob, self.project.pk, Decimal('700.00'), 5)
        self.assertEqual([i.pk for i in get_investments_by_user(self.alice.pk)], [second.pk, first.pk])


class PayoutRecorderTestCase(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(username='owner', password='pass', role='site_owner')
        self.alice = User.objects.create_user(username='alice', password='pass', role='investor')
        self.project = make_project(self.owner)
        self.investment = create_investment(self.alice, self.project.pk, Decimal('1000.00'), 5)

    def test_completed_payout_credits_earnings(self):
        record_payout(self.investment.pk, Decimal('50.00'), status='completed', transaction_id='tx-1')
        self.investment.refresh_from_db()
        self.assertEqual(self.investment.total_earnings, Decimal('50.00'))
        self.assertEqual(Notification.objects.filter(user=self.alice, notification_type='payout').count(), 1)

    def test_pending_payout_credits_only_on_completion(self):
        payout = record_payout(self.investment.pk, Decimal('25.00'))
        self.assertEqual(payout.status, Payout.STATUS_PENDING)
        self.investment.refresh_from_db()
        self.assertEqual(self.investment.total_earnings, Decimal('0.00'))

        update_payout_status(payout.pk, 'completed')
        self.investment.refresh_from_db()
        self.assertEqual(self.investment.total_earnings, Decimal('25.00'))

        # completed is terminal, so the payout cannot be credited twice
        with self.assertRaises(ConflictError):
            update_payout_status(payout.pk, 'completed')
        with self.assertRaises(ConflictError):
            update_payout_status(payout.pk, 'pending')
        self.investment.refresh_from_db()
        self.assertEqual(self.investment.total_earnings, Decimal('25.00'))

    def test_cancelled_investment_payout_cannot_complete(self):
        payout = record_payout(self.investment.pk, Decimal('50.00'))
        update_investment_status(self.investment.pk, 'cancelled')
        with self.assertRaises(ConflictError):
            update_payout_status(payout.pk, 'completed')
        self.investment.refresh_from_db()
        payout.refresh_from_db()
        self.assertEqual(self.investment.total_earnings, Decimal('0.00'))
        self.assertEqual(payout.status, Payout.STATUS_PENDING)
        self.assertFalse(Notification.objects.filter(user=self.alice, notification_type='payout').exists())

        # a failed payout stays retryable but still cannot be credited
        update_payout_status(payout.pk, 'failed')
        with self.assertRaises(ConflictError):
            update_payout_status(payout.pk, 'completed')

    def test_failed_payout_can_be_retried(self):
        payout = record_payout(self.investment.pk, Decimal('30.00'), status='failed')
        self.investment.refresh_from_db()
        self.assertEqual(self.investment.total_earnings, Decimal('0.00'))
        update_payout_status(payout.pk, 'pending')
        update_payout_status(payout.pk, 'failed')
        update_payout_status(payout.pk, 'completed')
        self.investment.refresh_from_db()
        self.assertEqual(self.investment.total_earnings, Decimal('30.00'))

    def test_payout_rules(self):
        with self.assertRaises(NotFound):
            record_payout(9999, Decimal('10.00'))
        with self.assertRaises(ValidationError):
            record_payout(self.investment.pk, Decimal('0.00'))
        with self.assertRaises(ValidationError):
            record_payout(self.investment.pk, Decimal('10.00'), status='refunded')
        with self.assertRaises(NotFound):
            update_payout_status(9999, 'completed')

        update_investment_status(self.investment.pk, 'cancelled')
        with self.assertRaises(ConflictError):
            record_payout(self.investment.pk, Decimal('10.00'), status='completed')
        self.assertEqual(Payout.objects.count(), 0)

    def test_payout_listings(self):
        now = timezone.now()
        old = record_payout(self.investment.pk, Decimal('10.00'), payout_date=now - timedelta(days=60), status='completed')
        new = record_payout(self.investment.pk, Decimal('20.00'), payout_date=now, status='completed')
        self.assertEqual([p.pk for p in get_payouts_by_investment(self.investment.pk)], [new.pk, old.pk])
        self.assertEqual([p.pk for p in get_payouts_by_user(self.alice.pk)], [new.pk, old.pk])
        self.assertEqual(list(get_payouts_by_user(self.owner.pk)), [])


@skipUnless(connection.vendor == 'postgresql', 'concurrent writers need a server database')
class ConcurrentFundingTestCase(TransactionTestCase):
    def setUp(self):
        self.owner = User.objects.create_user(username='owner', password='pass', role='site_owner')
        self.project = make_project(self.owner, total_funding=Decimal('100000.00'))
        self.investors = [
            User.objects.create_user(username=f'investor{i}', password='pass', role='investor')
            for i in range(8)
        ]

    def test_concurrent_investments_are_all_counted(self):
        errors = []
        barrier = threading.Barrier(len(self.investors))

        def invest(investor, amount):
            try:
                barrier.wait()
                create_investment(investor, self.project.pk, amount, 5)
            except Exception as e:
                errors.append(e)
            finally:
                connection.close()

        amounts = [Decimal('500.00') + Decimal(i * 100) for i in range(len(self.investors))]
        threads = [threading.Thread(target=invest, args=(inv, amt)) for inv, amt in zip(self.investors, amounts)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.project.refresh_from_db()
        self.assertEqual(self.project.current_funding, sum(amounts))
        self.assertEqual(Investment.objects.filter(project=self.project).count(), len(amounts))
        self.assertEqual(funding_ledger_balance(self.project.pk), sum(amounts))

# projects/tests.py
from decimal import Decimal
from django.db import connection
from django.db.models import F
from django.test import TestCase, override_settings
from django.test.utils import CaptureQueriesContext
from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from notifications.models import Notification
from solarshare.exceptions import ConflictError, NotFound, ValidationError
from .models import FundingEntry, Project
from .services import (
    create_project, funding_ledger_balance, get_project, get_projects,
    get_projects_by_owner, increase_funding, update_project_status,
)

User = get_user_model()


def project_fields(**overrides):
    fields = {
        'title': 'Rooftop array',
        'description': '40 kW on a warehouse roof',
        'location': 'Austin, TX',
        'system_size': 40,
        'total_funding': Decimal('10000.00'),
        'expected_return': Decimal('10.00'),
        'min_investment': Decimal('500.00'),
    }
    fields.update(overrides)
    return fields


class ProjectStoreTestCase(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(username='owner', password='pass', role='site_owner')
        self.other_owner = User.objects.create_user(username='owner2', password='pass', role='site_owner')

    def test_create_project_always_starts_pending(self):
        project = create_project(self.owner, **project_fields())
        self.assertEqual(project.status, Project.STATUS_PENDING)
        self.assertEqual(project.current_funding, Decimal('0.00'))
        self.assertIsNotNone(project.created_at)

    def test_create_project_rejects_status_and_missing_fields(self):
        with self.assertRaises(ValidationError):
            create_project(self.owner, status='active', **project_fields())
        fields = project_fields()
        del fields['title']
        with self.assertRaises(ValidationError):
            create_project(self.owner, **fields)
        self.assertEqual(Project.objects.count(), 0)

    def test_get_project_includes_owner_and_investments(self):
        project = create_project(self.owner, **project_fields())
        fetched = get_project(project.pk)
        self.assertEqual(fetched.site_owner, self.owner)
        self.assertEqual(list(fetched.investments.all()), [])

    def test_get_project_not_found(self):
        with self.assertRaises(NotFound):
            get_project(9999)

    def test_filter_by_status_newest_first(self):
        older = create_project(self.owner, **project_fields(title='older'))
        create_project(self.owner, **project_fields(title='pending one'))
        newer = create_project(self.owner, **project_fields(title='newer'))
        Project.objects.filter(pk__in=[older.pk, newer.pk]).update(status=Project.STATUS_FUNDING)

        results = list(get_projects(status='funding'))
        self.assertEqual([p.pk for p in results], [newer.pk, older.pk])
        self.assertTrue(all(p.status == 'funding' for p in results))

    def test_filters_compose(self):
        austin_small = create_project(self.owner, **project_fields(min_investment=Decimal('250.00')))
        create_project(self.owner, **project_fields(min_investment=Decimal('2500.00')))
        create_project(self.owner, **project_fields(location='Denver, CO', min_investment=Decimal('250.00')))

        self.assertEqual(get_projects().count(), 3)
        self.assertEqual(get_projects(location='austin').count(), 2)
        results = get_projects(location='AUSTIN', max_investment=Decimal('1000.00'))
        self.assertEqual([p.pk for p in results], [austin_small.pk])
        self.assertEqual(get_projects(min_investment=Decimal('1000.00')).count(), 1)

    def test_projects_by_owner(self):
        mine = create_project(self.owner, **project_fields())
        create_project(self.other_owner, **project_fields())
        self.assertEqual([p.pk for p in get_projects_by_owner(self.owner.pk)], [mine.pk])


class ProjectLifecycleTestCase(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(username='owner', password='pass', role='site_owner')
        self.project = create_project(self.owner, **project_fields())

    def test_happy_path_to_completed(self):
        for status in ('approved', 'funding', 'active', 'completed'):
            project = update_project_status(self.project.pk, status)
            self.assertEqual(project.status, status)
        notes = Notification.objects.filter(user=self.owner, notification_type='project_update')
        self.assertEqual(notes.count(), 4)

    def test_cancel_from_non_terminal_state(self):
        update_project_status(self.project.pk, 'approved')
        project = update_project_status(self.project.pk, 'cancelled')
        self.assertEqual(project.status, 'cancelled')
        with self.assertRaises(ConflictError):
            update_project_status(self.project.pk, 'approved')

    def test_illegal_transitions_are_rejected(self):
        with self.assertRaises(ConflictError):
            update_project_status(self.project.pk, 'active')
        with self.assertRaises(ValidationError):
            update_project_status(self.project.pk, 'bogus')
        with self.assertRaises(NotFound):
            update_project_status(9999, 'approved')
        self.project.refresh_from_db()
        self.assertEqual(self.project.status, 'pending')


class FundingLedgerTestCase(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(username='owner', password='pass', role='site_owner')
        self.project = create_project(self.owner, **project_fields())

    def test_increase_is_a_single_relative_update(self):
        with CaptureQueriesContext(connection) as ctx:
            increase_funding(self.project.pk, Decimal('3000.00'))
        statements = [q['sql'] for q in ctx.captured_queries]
        updates = [i for i, sql in enumerate(statements) if sql.startswith('UPDATE "projects_project"')]
        self.assertEqual(len(updates), 1)
        update = statements[updates[0]]
        set_clause = update.split(' SET ', 1)[1].split(' WHERE ', 1)[0]
        self.assertIn('"current_funding" +', set_clause)
        # the new balance is computed by the database, not from a row read first
        for sql in statements[:updates[0]]:
            self.assertNotIn('"projects_project"', sql)

    def test_write_between_read_and_increase_is_kept(self):
        snapshot = Project.objects.get(pk=self.project.pk)
        # another writer commits after the snapshot was taken
        Project.objects.filter(pk=self.project.pk).update(current_funding=F('current_funding') + Decimal('4000.00'))
        project = increase_funding(snapshot.pk, Decimal('3000.00'))
        self.assertEqual(snapshot.current_funding, Decimal('0.00'))
        self.assertEqual(project.current_funding, Decimal('7000.00'))
        self.assertEqual(FundingEntry.objects.get(project=self.project).balance_after, Decimal('7000.00'))

    def test_journal_records_balance_after(self):
        increase_funding(self.project.pk, Decimal('1000.00'), metadata={'investment_id': 1})
        project = increase_funding(self.project.pk, Decimal('500.00'))
        self.assertEqual(project.current_funding, Decimal('1500.00'))
        latest = FundingEntry.objects.filter(project=self.project).first()
        self.assertEqual(latest.balance_after, Decimal('1500.00'))
        self.assertEqual(FundingEntry.objects.filter(project=self.project).count(), 2)

    def test_overfunding_is_rejected(self):
        increase_funding(self.project.pk, Decimal('9000.00'))
        with self.assertRaises(ValidationError):
            increase_funding(self.project.pk, Decimal('1000.01'))
        project = increase_funding(self.project.pk, Decimal('1000.00'))
        self.assertEqual(project.current_funding, project.total_funding)
        self.assertEqual(project.funding_progress, Decimal('100.00'))

    def test_overfunding_allowed_when_configured(self):
        with override_settings(SOLARSHARE={**settings.SOLARSHARE, 'ALLOW_OVERFUNDING': True}):
            project = increase_funding(self.project.pk, Decimal('12000.00'))
        self.assertEqual(project.current_funding, Decimal('12000.00'))
        self.assertEqual(project.remaining_funding, Decimal('0.00'))

    def test_invalid_amount_and_missing_project(self):
        with self.assertRaises(ValidationError):
            increase_funding(self.project.pk, Decimal('0.00'))
        with self.assertRaises(NotFound):
            increase_funding(9999, Decimal('10.00'))
        self.assertEqual(funding_ledger_balance(self.project.pk), Decimal('0.00'))


class ProjectApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(username='owner', password='pass', role='site_owner')
        self.investor = User.objects.create_user(username='alice', password='pass', role='investor')
        self.admin = User.objects.create_user(username='admin', password='pass', role='admin')

    def test_site_owner_submits_project(self):
        self.client.force_authenticate(user=self.owner)
        payload = {k: str(v) for k, v in project_fields().items()}
        payload['status'] = 'active'
        resp = self.client.post('/api/projects/', data=payload, format='json')
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data['status'], 'pending')
        self.assertEqual(resp.data['current_funding'], '0.00')
        self.assertEqual(resp.data['site_owner'], self.owner.pk)

        resp = self.client.get('/api/my-projects/')
        self.assertEqual(len(resp.data), 1)

    def test_investor_cannot_submit_project(self):
        self.client.force_authenticate(user=self.investor)
        payload = {k: str(v) for k, v in project_fields().items()}
        resp = self.client.post('/api/projects/', data=payload, format='json')
        self.assertEqual(resp.status_code, 403)

    def test_list_with_query_filters_and_detail(self):
        project = create_project(self.owner, **project_fields())
        create_project(self.owner, **project_fields(location='Denver'))
        self.client.force_authenticate(user=self.investor)
        resp = self.client.get('/api/projects/', {'location': 'austin', 'status': ''})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([p['id'] for p in resp.data], [project.pk])

        resp = self.client.get(f'/api/projects/{project.pk}/')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['site_owner']['id'], self.owner.pk)
        self.assertEqual(resp.data['investments'], [])

        resp = self.client.get('/api/projects/9999/')
        self.assertEqual(resp.status_code, 404)

    def test_admin_status_update(self):
        project = create_project(self.owner, **project_fields())
        self.client.force_authenticate(user=self.owner)
        resp = self.client.patch(f'/api/admin/projects/{project.pk}/status/', data={'status': 'approved'}, format='json')
        self.assertEqual(resp.status_code, 403)

        self.client.force_authenticate(user=self.admin)
        resp = self.client.patch(f'/api/admin/projects/{project.pk}/status/', data={'status': 'approved'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['status'], 'approved')

        resp = self.client.patch(f'/api/admin/projects/{project.pk}/status/', data={'status': 'completed'}, format='json')
        self.assertEqual(resp.status_code, 409)
        self.assertIn('detail', resp.data)

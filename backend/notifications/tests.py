# notifications/tests.py
from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from solarshare.exceptions import NotFound, ValidationError
from .models import Notification
from .services import create_notification, get_notifications_by_user, mark_notification_as_read

User = get_user_model()


class NotificationTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.alice = User.objects.create_user(username='alice', password='pass', role='investor')
        self.bob = User.objects.create_user(username='bob', password='pass', role='investor')

    def test_create_and_list_newest_first(self):
        first = create_notification(self.alice, 'Welcome', 'Hello there')
        second = create_notification(self.alice, 'Payout', 'Money', notification_type=Notification.TYPE_PAYOUT)
        self.assertFalse(first.read)
        self.assertEqual(first.notification_type, 'system')
        self.assertEqual([n.pk for n in get_notifications_by_user(self.alice.pk)], [second.pk, first.pk])

    def test_invalid_notification(self):
        with self.assertRaises(ValidationError):
            create_notification(self.alice, '', 'no title')
        with self.assertRaises(ValidationError):
            create_notification(self.alice, 'Title', 'msg', notification_type='sms')

    def test_mark_as_read(self):
        note = create_notification(self.alice, 'Welcome', 'Hello there')
        self.assertTrue(mark_notification_as_read(note.pk).read)
        with self.assertRaises(NotFound):
            mark_notification_as_read(9999)

    def test_api_only_marks_own_notifications(self):
        note = create_notification(self.alice, 'Welcome', 'Hello there')
        self.client.force_authenticate(user=self.bob)
        resp = self.client.post(f'/api/notifications/{note.pk}/read/')
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(self.client.get('/api/notifications/').data, [])

        self.client.force_authenticate(user=self.alice)
        resp = self.client.post(f'/api/notifications/{note.pk}/read/')
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data['read'])
        resp = self.client.get('/api/notifications/')
        self.assertEqual(len(resp.data), 1)

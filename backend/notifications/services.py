# notifications/services.py
import logging

from solarshare.exceptions import NotFound, full_clean_or_raise
from .models import Notification

logger = logging.getLogger(__name__)


def create_notification(user, title, message, notification_type=Notification.TYPE_SYSTEM):
    notification = Notification(
        user=user,
        title=title,
        message=message,
        notification_type=notification_type,
    )
    full_clean_or_raise(notification)
    notification.save()
    logger.debug("Notified user %s: %s", user.pk, title)
    return notification


def get_notifications_by_user(user_id):
    return Notification.objects.filter(user_id=user_id).order_by('-created_at', '-id')


def get_notification(notification_id):
    notification = Notification.objects.filter(pk=notification_id).first()
    if notification is None:
        raise NotFound(f"Notification {notification_id} not found")
    return notification


def mark_notification_as_read(notification_id):
    updated = Notification.objects.filter(pk=notification_id).update(read=True)
    if not updated:
        raise NotFound(f"Notification {notification_id} not found")
    return Notification.objects.get(pk=notification_id)

# notifications/models.py
from django.db import models
from django.conf import settings


class Notification(models.Model):
    TYPE_INVESTMENT = 'investment'
    TYPE_PAYOUT = 'payout'
    TYPE_PROJECT_UPDATE = 'project_update'
    TYPE_SYSTEM = 'system'

    NOTIFICATION_TYPES = (
        (TYPE_INVESTMENT, 'Investment'),
        (TYPE_PAYOUT, 'Payout'),
        (TYPE_PROJECT_UPDATE, 'Project Update'),
        (TYPE_SYSTEM, 'System'),
    )

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=200)
    message = models.TextField()
    notification_type = models.CharField(max_length=20, choices=NOTIFICATION_TYPES)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('-created_at', '-id')
        indexes = [
            models.Index(fields=['user', '-created_at'], name='notification_user_created_idx'),
        ]

    def __str__(self):
        return f"{self.notification_type}: {self.title}"

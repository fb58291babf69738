# notifications/views.py
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.permissions import IsOwnerOrAdmin
from .serializers import NotificationSerializer
from .services import get_notification, get_notifications_by_user, mark_notification_as_read


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list_view(request):
    """
    GET /api/notifications/
    Notifications of the authenticated user, newest first.
    """
    notifications = get_notifications_by_user(request.user.pk)
    return Response(NotificationSerializer(notifications, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notification_read_view(request, notification_id):
    """
    POST /api/notifications/<id>/read/
    Users may only mark their own notifications.
    """
    notification = get_notification(notification_id)
    if not IsOwnerOrAdmin().has_object_permission(request, None, notification):
        raise PermissionDenied("Cannot modify another user's notification")
    notification = mark_notification_as_read(notification.pk)
    return Response(NotificationSerializer(notification).data)

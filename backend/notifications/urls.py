from django.urls import path
from .views import notification_list_view, notification_read_view

urlpatterns = [
    path('', notification_list_view, name='notification-list'),
    path('<int:notification_id>/read/', notification_read_view, name='notification-read'),
]

from django.urls import path
from .views import my_stats_view, admin_stats_view

urlpatterns = [
    path('my-stats/', my_stats_view, name='my-stats'),
    path('admin/stats/', admin_stats_view, name='admin-stats'),
]

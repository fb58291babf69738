from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/auth/', include('users.urls')),
    path('api/', include('projects.urls')),
    path('api/', include('investments.urls')),
    path('api/notifications/', include('notifications.urls')),
    path('api/', include('analytics.urls')),
]

from django.urls import path
from .views import project_list_view, project_detail_view, my_projects_view, project_status_view

urlpatterns = [
    path('projects/', project_list_view, name='project-list'),
    path('projects/<int:project_id>/', project_detail_view, name='project-detail'),
    path('my-projects/', my_projects_view, name='my-projects'),
    path('admin/projects/<int:project_id>/status/', project_status_view, name='project-status'),
]

# projects/views.py
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from users.models import ROLE_SITE_OWNER
from users.permissions import IsAdminRole, IsSiteOwner
from .serializers import (
    ProjectCreateSerializer, ProjectDetailSerializer, ProjectFilterSerializer,
    ProjectSerializer, ProjectStatusSerializer,
)
from .services import create_project, get_project, get_projects, get_projects_by_owner, update_project_status


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def project_list_view(request):
    """
    GET /api/projects/?status=&location=&min_investment=&max_investment=
    POST /api/projects/
    body: { title, description, location, system_size, total_funding, expected_return, min_investment, ... }
    - Only site owners may submit projects; the project is owned by the caller and starts pending.
    """
    if request.method == 'POST':
        if getattr(request.user, 'role', None) != ROLE_SITE_OWNER:
            raise PermissionDenied("Only site owners can submit projects")
        serializer = ProjectCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        project = create_project(request.user, **serializer.validated_data)
        return Response(ProjectSerializer(project).data, status=status.HTTP_201_CREATED)

    filters = ProjectFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    projects = get_projects(**filters.validated_data)
    return Response(ProjectSerializer(projects, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_detail_view(request, project_id):
    """
    GET /api/projects/<id>/
    Project with its site owner and investments.
    """
    project = get_project(project_id)
    return Response(ProjectDetailSerializer(project).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSiteOwner])
def my_projects_view(request):
    """
    GET /api/my-projects/
    """
    projects = get_projects_by_owner(request.user.pk)
    return Response(ProjectSerializer(projects, many=True).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def project_status_view(request, project_id):
    """
    PATCH /api/admin/projects/<id>/status/
    body: { status }
    Illegal transitions are rejected with 409.
    """
    serializer = ProjectStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    project = update_project_status(project_id, serializer.validated_data['status'])
    return Response(ProjectSerializer(project).data)

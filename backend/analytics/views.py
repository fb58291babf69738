# analytics/views.py
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.models import ROLE_INVESTOR, ROLE_SITE_OWNER
from users.permissions import IsAdminRole
from .serializers import AdminStatsSerializer, InvestorStatsSerializer, SiteOwnerStatsSerializer
from .services import admin_stats, get_user_stats

STATS_SERIALIZERS = {
    ROLE_INVESTOR: InvestorStatsSerializer,
    ROLE_SITE_OWNER: SiteOwnerStatsSerializer,
}


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_stats_view(request):
    """
    GET /api/my-stats/
    Statistics scoped to the caller's role. Amounts are decimal strings.
    """
    role = request.user.role
    stats = get_user_stats(request.user.pk, role)
    serializer_class = STATS_SERIALIZERS.get(role, AdminStatsSerializer)
    return Response(serializer_class(stats).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_stats_view(request):
    """
    GET /api/admin/stats/
    """
    return Response(AdminStatsSerializer(admin_stats()).data)

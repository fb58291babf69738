# analytics/services.py
"""
Read-only statistics over projects, investments and payouts.

Every aggregate falls back to zero when there is nothing to aggregate.
"""
import logging
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db.models import Count, Q, Sum
from django.utils import timezone

from investments.models import Investment, Payout
from projects.models import Project
from solarshare.conf import solarshare_setting
from solarshare.exceptions import ValidationError
from users.models import ROLE_ADMIN, ROLE_CHOICES, ROLE_INVESTOR, ROLE_SITE_OWNER

logger = logging.getLogger(__name__)

User = get_user_model()

ZERO = Decimal('0.00')


def investor_stats(user_id, now=None):
    now = now or timezone.now()
    totals = Investment.objects.filter(investor_id=user_id).aggregate(
        total_invested=Sum('amount'),
        total_earnings=Sum('total_earnings'),
        active_investments=Count('id', filter=Q(status=Investment.STATUS_ACTIVE)),
    )
    window_start = now - timedelta(days=solarshare_setting('MONTHLY_INCOME_WINDOW_DAYS'))
    monthly = Payout.objects.filter(
        investment__investor_id=user_id,
        status=Payout.STATUS_COMPLETED,
        payout_date__gte=window_start,
        payout_date__lte=now,
    ).aggregate(monthly_income=Sum('amount'))
    return {
        'total_invested': totals['total_invested'] or ZERO,
        'total_earnings': totals['total_earnings'] or ZERO,
        'active_investments': totals['active_investments'] or 0,
        'monthly_income': monthly['monthly_income'] or ZERO,
    }


def site_owner_stats(user_id):
    totals = Project.objects.filter(site_owner_id=user_id).aggregate(
        total_projects=Count('id'),
        active_projects=Count('id', filter=Q(status=Project.STATUS_ACTIVE)),
        total_funding=Sum('current_funding'),
    )
    return {
        'total_projects': totals['total_projects'] or 0,
        'active_projects': totals['active_projects'] or 0,
        'total_funding': totals['total_funding'] or ZERO,
    }


def admin_stats():
    projects_by_status = {value: 0 for value, _ in Project.STATUS_CHOICES}
    for row in Project.objects.order_by().values('status').annotate(count=Count('id')):
        projects_by_status[row['status']] = row['count']

    users_by_role = {value: 0 for value, _ in ROLE_CHOICES}
    for row in User.objects.order_by().values('role').annotate(count=Count('id')):
        users_by_role[row['role']] = row['count']

    investments = Investment.objects.aggregate(
        total_investment=Sum('amount'),
        investment_count=Count('id'),
        active_investments=Count('id', filter=Q(status=Investment.STATUS_ACTIVE)),
    )
    return {
        'projects_by_status': projects_by_status,
        'total_projects': sum(projects_by_status.values()),
        'active_projects': projects_by_status[Project.STATUS_ACTIVE],
        'pending_projects': projects_by_status[Project.STATUS_PENDING],
        'users_by_role': users_by_role,
        'total_users': sum(users_by_role.values()),
        'investors': users_by_role[ROLE_INVESTOR],
        'site_owners': users_by_role[ROLE_SITE_OWNER],
        'total_investment': investments['total_investment'] or ZERO,
        'investment_count': investments['investment_count'] or 0,
        'active_investments': investments['active_investments'] or 0,
    }


def get_user_stats(user_id, role):
    if role == ROLE_INVESTOR:
        return investor_stats(user_id)
    if role == ROLE_SITE_OWNER:
        return site_owner_stats(user_id)
    if role == ROLE_ADMIN:
        return admin_stats()
    logger.warning("Stats requested for unknown role %r (user %s)", role, user_id)
    raise ValidationError({'role': [f'"{role}" is not a valid role.']})

# projects/services.py
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from notifications.models import Notification
from notifications.services import create_notification
from solarshare.conf import solarshare_setting
from solarshare.exceptions import ConflictError, NotFound, ValidationError, full_clean_or_raise
from .models import FundingEntry, Project

logger = logging.getLogger(__name__)

PROJECT_FIELDS = (
    'title', 'description', 'location', 'system_size', 'total_funding', 'expected_return',
    'min_investment', 'monthly_electricity_bill', 'roof_details', 'energy_needs', 'installation_date',
)


def create_project(site_owner, **fields):
    """
    Create a project owned by ``site_owner``. Projects always start pending,
    whatever the submitter asks for.
    """
    unknown = set(fields) - set(PROJECT_FIELDS)
    if unknown:
        raise ValidationError({name: ['Unknown project field.'] for name in sorted(unknown)})
    project = Project(site_owner=site_owner, status=Project.STATUS_PENDING, **fields)
    full_clean_or_raise(project)
    project.save()
    logger.info("Project %s created by %s", project.pk, site_owner.pk)
    return project


def get_project(project_id):
    project = (
        Project.objects.select_related('site_owner')
        .prefetch_related('investments')
        .filter(pk=project_id)
        .first()
    )
    if project is None:
        raise NotFound(f"Project {project_id} not found")
    return project


def get_projects(status=None, location=None, min_investment=None, max_investment=None):
    """
    Newest-first project list. Every filter is optional and they combine with AND.
    ``min_investment`` and ``max_investment`` both bound the project's minimum
    investment ticket: a project is listed when its ticket lies in that range.
    """
    qs = Project.objects.all()
    if status:
        qs = qs.filter(status=status)
    if location:
        qs = qs.filter(location__icontains=location)
    if min_investment is not None:
        qs = qs.filter(min_investment__gte=min_investment)
    if max_investment is not None:
        qs = qs.filter(min_investment__lte=max_investment)
    return qs.order_by('-created_at', '-id')


def get_projects_by_owner(owner_id):
    return Project.objects.filter(site_owner_id=owner_id).order_by('-created_at', '-id')


@transaction.atomic
def update_project_status(project_id, new_status):
    if new_status not in dict(Project.STATUS_CHOICES):
        raise ValidationError({'status': [f'"{new_status}" is not a valid choice.']})
    project = Project.objects.select_for_update().filter(pk=project_id).first()
    if project is None:
        raise NotFound(f"Project {project_id} not found")
    if not project.can_transition_to(new_status):
        logger.warning("Rejected project %s transition %s -> %s", project.pk, project.status, new_status)
        raise ConflictError(f"Cannot move project from {project.status} to {new_status}")

    old_status = project.status
    project.status = new_status
    project.save(update_fields=['status', 'updated_at'])
    create_notification(
        project.site_owner,
        title='Project status updated',
        message=f'"{project.title}" moved from {old_status} to {new_status}.',
        notification_type=Notification.TYPE_PROJECT_UPDATE,
    )
    logger.info("Project %s status %s -> %s", project.pk, old_status, new_status)
    return project


@transaction.atomic
def increase_funding(project_id, amount: Decimal, metadata=None):
    """
    Add ``amount`` to the project's current funding with a single UPDATE
    (``current_funding = current_funding + amount``) so concurrent investors
    never overwrite each other's contribution. Unless overfunding is allowed,
    the update only matches while the total stays within ``total_funding``.
    Appends a FundingEntry and returns the refreshed project.
    """
    if amount is None or amount <= Decimal('0.00'):
        raise ValidationError({'amount': ['Funding amount must be positive.']})

    qs = Project.objects.filter(pk=project_id)
    if not solarshare_setting('ALLOW_OVERFUNDING'):
        qs = qs.filter(current_funding__lte=F('total_funding') - amount)
    updated = qs.update(current_funding=F('current_funding') + amount, updated_at=timezone.now())

    if not updated:
        project = Project.objects.filter(pk=project_id).first()
        if project is None:
            raise NotFound(f"Project {project_id} not found")
        logger.warning("Rejected funding of %s on project %s: remaining %s", amount, project_id, project.remaining_funding)
        raise ValidationError({'amount': [f'Amount exceeds remaining funding of {project.remaining_funding}.']})

    project = Project.objects.get(pk=project_id)
    FundingEntry.objects.create(
        project=project,
        amount=amount,
        balance_after=project.current_funding,
        metadata=metadata or {},
    )
    logger.info("Project %s funding +%s -> %s", project_id, amount, project.current_funding)
    return project


def funding_ledger_balance(project_id):
    total = FundingEntry.objects.filter(project_id=project_id).aggregate(total=Sum('amount'))['total']
    return total or Decimal('0.00')

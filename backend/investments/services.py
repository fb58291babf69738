# investments/services.py
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from notifications.models import Notification
from notifications.services import create_notification
from projects.models import Project
from projects.services import increase_funding
from solarshare.conf import solarshare_setting
from solarshare.exceptions import ConflictError, NotFound, ValidationError, full_clean_or_raise
from .models import Investment, Payout

logger = logging.getLogger(__name__)

# investments are created either awaiting confirmation or already live
INITIAL_STATUSES = (Investment.STATUS_PENDING, Investment.STATUS_ACTIVE)
PAYABLE_STATUSES = (Investment.STATUS_ACTIVE, Investment.STATUS_COMPLETED)


def get_investment(investment_id):
    investment = Investment.objects.select_related('project', 'investor').filter(pk=investment_id).first()
    if investment is None:
        raise NotFound(f"Investment {investment_id} not found")
    return investment


def get_investments_by_user(user_id):
    return Investment.objects.select_related('project').filter(investor_id=user_id).order_by('-created_at', '-id')


def get_investments_by_project(project_id):
    return Investment.objects.filter(project_id=project_id).order_by('-created_at', '-id')


@transaction.atomic
def create_investment(investor, project_id, amount: Decimal, lock_in_period: int, status=Investment.STATUS_ACTIVE):
    """
    Commit ``amount`` from ``investor`` to a project.

    The investment row, the funding ledger increment and the notifications are
    written in one transaction: if any step fails nothing is persisted. The
    expected return is copied from the project, never taken from the caller.
    """
    if amount is None or amount <= Decimal('0.00'):
        raise ValidationError({'amount': ['Investment amount must be positive.']})
    if status not in INITIAL_STATUSES:
        raise ValidationError({'status': [f'Investments cannot be created as "{status}".']})
    if lock_in_period not in solarshare_setting('LOCK_IN_PERIODS'):
        raise ValidationError({'lock_in_period': [f'Lock-in period must be one of {list(solarshare_setting("LOCK_IN_PERIODS"))} years.']})

    project = Project.objects.select_related('site_owner').filter(pk=project_id).first()
    if project is None:
        raise NotFound(f"Project {project_id} not found")
    if project.status not in solarshare_setting('INVESTABLE_PROJECT_STATUSES'):
        raise ConflictError(f"Project {project.pk} is {project.status} and not accepting investments")
    if amount < project.min_investment:
        raise ValidationError({'amount': [f'Minimum investment for this project is {project.min_investment}.']})

    investment = Investment(
        project=project,
        investor=investor,
        amount=amount,
        lock_in_period=lock_in_period,
        expected_return=project.expected_return,
        status=status,
    )
    if status == Investment.STATUS_ACTIVE:
        investment.start()
    full_clean_or_raise(investment)
    investment.save()

    investment.project = increase_funding(
        project.pk, amount,
        metadata={'investment_id': investment.pk, 'investor_id': investor.pk},
    )

    create_notification(
        investor,
        title='Investment confirmed',
        message=f'You invested {amount} in "{project.title}" for {lock_in_period} years.',
        notification_type=Notification.TYPE_INVESTMENT,
    )
    create_notification(
        project.site_owner,
        title='New investment received',
        message=f'"{project.title}" received {amount}. Funding is now {investment.project.current_funding} of {project.total_funding}.',
        notification_type=Notification.TYPE_PROJECT_UPDATE,
    )
    logger.info("Investment %s created: %s in project %s by %s", investment.pk, amount, project.pk, investor.pk)
    return investment


@transaction.atomic
def update_investment_status(investment_id, new_status):
    """
    Move an investment along pending -> active -> completed, or cancel it
    before completion. An active investment cannot complete before its
    lock-in period has elapsed.
    """
    if new_status not in dict(Investment.STATUS_CHOICES):
        raise ValidationError({'status': [f'"{new_status}" is not a valid choice.']})
    investment = Investment.objects.select_for_update().filter(pk=investment_id).first()
    if investment is None:
        raise NotFound(f"Investment {investment_id} not found")
    if not investment.can_transition_to(new_status):
        logger.warning("Rejected investment %s transition %s -> %s", investment.pk, investment.status, new_status)
        raise ConflictError(f"Cannot move investment from {investment.status} to {new_status}")
    if new_status == Investment.STATUS_COMPLETED and not investment.lock_in_elapsed:
        raise ConflictError(f"Lock-in period of investment {investment.pk} ends {investment.end_date.isoformat() if investment.end_date else 'later'}")

    old_status = investment.status
    investment.status = new_status
    update_fields = ['status', 'updated_at']
    if new_status == Investment.STATUS_ACTIVE:
        investment.start()
        update_fields += ['start_date', 'end_date']
    investment.save(update_fields=update_fields)
    logger.info("Investment %s status %s -> %s", investment.pk, old_status, new_status)
    return investment


def get_payouts_by_investment(investment_id):
    return Payout.objects.filter(investment_id=investment_id).order_by('-payout_date', '-id')


def get_payouts_by_user(user_id):
    return Payout.objects.filter(investment__investor_id=user_id).order_by('-payout_date', '-id')


def _credit_earnings(payout):
    """Roll a completed payout into its investment's running total."""
    Investment.objects.filter(pk=payout.investment_id).update(
        total_earnings=F('total_earnings') + payout.amount,
        updated_at=timezone.now(),
    )
    investment = Investment.objects.select_related('investor', 'project').get(pk=payout.investment_id)
    create_notification(
        investment.investor,
        title='Payout received',
        message=f'{payout.amount} was paid out for your investment in "{investment.project.title}".',
        notification_type=Notification.TYPE_PAYOUT,
    )
    logger.info("Payout %s credited %s to investment %s (total %s)", payout.pk, payout.amount, investment.pk, investment.total_earnings)
    return investment


@transaction.atomic
def record_payout(investment_id, amount: Decimal, payout_date=None, status=Payout.STATUS_PENDING, transaction_id=''):
    """
    Append a payout for an investment. A payout recorded as completed credits
    the investment's total earnings in the same transaction; pending and
    failed payouts leave it untouched.
    """
    if amount is None or amount <= Decimal('0.00'):
        raise ValidationError({'amount': ['Payout amount must be positive.']})
    investment = Investment.objects.filter(pk=investment_id).first()
    if investment is None:
        raise NotFound(f"Investment {investment_id} not found")
    if investment.status not in PAYABLE_STATUSES:
        raise ConflictError(f"Investment {investment.pk} is {investment.status} and cannot receive payouts")

    payout = Payout(
        investment=investment,
        amount=amount,
        payout_date=payout_date or timezone.now(),
        status=status,
        transaction_id=transaction_id or '',
    )
    full_clean_or_raise(payout)
    payout.save()
    if payout.status == Payout.STATUS_COMPLETED:
        _credit_earnings(payout)
    logger.info("Payout %s recorded for investment %s: %s [%s]", payout.pk, investment.pk, amount, payout.status)
    return payout


@transaction.atomic
def update_payout_status(payout_id, new_status):
    """
    Transition a payout. The write is conditional on the status read under
    lock, so a payout reaches completed (and is credited) at most once.
    Completion also requires the investment to still be payable.
    """
    if new_status not in dict(Payout.STATUS_CHOICES):
        raise ValidationError({'status': [f'"{new_status}" is not a valid choice.']})
    payout = Payout.objects.select_for_update().filter(pk=payout_id).first()
    if payout is None:
        raise NotFound(f"Payout {payout_id} not found")
    if not payout.can_transition_to(new_status):
        logger.warning("Rejected payout %s transition %s -> %s", payout.pk, payout.status, new_status)
        raise ConflictError(f"Cannot move payout from {payout.status} to {new_status}")
    if new_status == Payout.STATUS_COMPLETED:
        # locked so a concurrent cancellation cannot slip in before the credit
        investment = Investment.objects.select_for_update().get(pk=payout.investment_id)
        if investment.status not in PAYABLE_STATUSES:
            logger.warning("Rejected completion of payout %s: investment %s is %s", payout.pk, investment.pk, investment.status)
            raise ConflictError(f"Investment {investment.pk} is {investment.status} and cannot receive payouts")

    updated = Payout.objects.filter(pk=payout.pk, status=payout.status).update(status=new_status)
    if not updated:
        raise ConflictError(f"Payout {payout.pk} was modified concurrently")
    payout.status = new_status
    if new_status == Payout.STATUS_COMPLETED:
        _credit_earnings(payout)
    return payout

# investments/models.py
from decimal import Decimal
from django.db import models
from django.conf import settings
from django.utils import timezone
from django.core.validators import MinValueValidator
from dateutil.relativedelta import relativedelta

from projects.models import Project


class Investment(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_ACTIVE = 'active'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'

    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACTIVE, 'Active'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    )

    TRANSITIONS = {
        STATUS_PENDING: {STATUS_ACTIVE, STATUS_CANCELLED},
        STATUS_ACTIVE: {STATUS_COMPLETED, STATUS_CANCELLED},
        STATUS_COMPLETED: set(),
        STATUS_CANCELLED: set(),
    }

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='investments')
    investor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='investments')
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    lock_in_period = models.PositiveSmallIntegerField(validators=[MinValueValidator(1)], help_text='years')
    # copied from the project when the investment is made
    expected_return = models.DecimalField(max_digits=5, decimal_places=2)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)
    total_earnings = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'), editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('-created_at', '-id')
        indexes = [
            models.Index(fields=['investor', '-created_at'], name='investment_investor_idx'),
        ]

    def __str__(self):
        return f"Investment({self.investor_id} -> project {self.project_id}): {self.amount} [{self.status}]"

    def can_transition_to(self, new_status):
        return new_status in self.TRANSITIONS.get(self.status, set())

    def start(self, when=None):
        """Stamp the lock-in window starting at ``when`` (default now)."""
        self.start_date = when or timezone.now()
        self.end_date = self.start_date + relativedelta(years=self.lock_in_period)

    @property
    def lock_in_elapsed(self):
        return self.end_date is not None and self.end_date <= timezone.now()

    @property
    def projected_return(self):
        annual = self.amount * self.expected_return / Decimal('100')
        return (annual * self.lock_in_period).quantize(Decimal('0.01'))

    @property
    def monthly_average(self):
        months = self.lock_in_period * 12
        if not months:
            return Decimal('0.00')
        return (self.projected_return / months).quantize(Decimal('0.01'))


class Payout(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_COMPLETED = 'completed'
    STATUS_FAILED = 'failed'

    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_FAILED, 'Failed'),
    )

    # a failed payout may be retried; completed is terminal
    TRANSITIONS = {
        STATUS_PENDING: {STATUS_COMPLETED, STATUS_FAILED},
        STATUS_FAILED: {STATUS_PENDING, STATUS_COMPLETED},
        STATUS_COMPLETED: set(),
    }

    investment = models.ForeignKey(Investment, on_delete=models.CASCADE, related_name='payouts')
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    payout_date = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    transaction_id = models.CharField(max_length=255, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('-payout_date', '-id')

    def __str__(self):
        return f"Payout({self.investment_id}): {self.amount} [{self.status}]"

    def can_transition_to(self, new_status):
        return new_status in self.TRANSITIONS.get(self.status, set())

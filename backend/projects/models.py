# projects/models.py
from decimal import Decimal
from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator


class Project(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_FUNDING = 'funding'
    STATUS_ACTIVE = 'active'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'

    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_FUNDING, 'Funding'),
        (STATUS_ACTIVE, 'Active'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    )

    # allowed status edges; completed and cancelled are terminal
    TRANSITIONS = {
        STATUS_PENDING: {STATUS_APPROVED, STATUS_CANCELLED},
        STATUS_APPROVED: {STATUS_FUNDING, STATUS_CANCELLED},
        STATUS_FUNDING: {STATUS_ACTIVE, STATUS_CANCELLED},
        STATUS_ACTIVE: {STATUS_COMPLETED, STATUS_CANCELLED},
        STATUS_COMPLETED: set(),
        STATUS_CANCELLED: set(),
    }

    site_owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='projects')
    title = models.CharField(max_length=200)
    description = models.TextField()
    location = models.CharField(max_length=200)
    system_size = models.PositiveIntegerField(validators=[MinValueValidator(1)], help_text='kW')
    total_funding = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    current_funding = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'), editable=False)
    expected_return = models.DecimalField(max_digits=5, decimal_places=2, validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('100.00'))], help_text='APR percentage')
    min_investment = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    monthly_electricity_bill = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    roof_details = models.TextField(blank=True, default='')
    energy_needs = models.TextField(blank=True, default='')
    installation_date = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('-created_at', '-id')
        indexes = [
            models.Index(fields=['status', '-created_at'], name='project_status_created_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.status}) {self.current_funding}/{self.total_funding}"

    def can_transition_to(self, new_status):
        return new_status in self.TRANSITIONS.get(self.status, set())

    @property
    def remaining_funding(self):
        return max(self.total_funding - self.current_funding, Decimal('0.00'))

    @property
    def funding_progress(self):
        if not self.total_funding:
            return Decimal('0.00')
        return (self.current_funding / self.total_funding * 100).quantize(Decimal('0.01'))


class FundingEntry(models.Model):
    """
    Append-only journal of funding ledger increments. The sum of a project's
    entries equals its ``current_funding``.
    """
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='funding_entries')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    balance_after = models.DecimalField(max_digits=12, decimal_places=2)
    timestamp = models.DateTimeField(auto_now_add=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ('-timestamp', '-id')
        verbose_name_plural = 'funding entries'

"""
Kopqela Subscription Models

1. SubscriptionPlan - Platform plan tiers (Basic, Professional, Enterprise)
2. BusinessSubscription - A business's current subscription and period

State changes go through SubscriptionManager
(apps.subscriptions.services.manager); the model methods below are the
row-level transitions it composes.
"""

from decimal import Decimal

from dateutil.relativedelta import relativedelta
from django.db import models
from django.utils import timezone

from . import limits


class SubscriptionPlan(models.Model):
    """
    Platform subscription plans purchased by businesses.
    """

    PLAN_NAMES = (
        (limits.BASIC, 'Basic'),
        (limits.PROFESSIONAL, 'Professional'),
        (limits.ENTERPRISE, 'Enterprise'),
    )

    # Basic Info
    name = models.CharField(max_length=50, unique=True, choices=PLAN_NAMES)
    display_name = models.CharField(max_length=100)
    display_name_sw = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True)
    description_sw = models.TextField(blank=True)

    # Pricing
    price_monthly = models.DecimalField(max_digits=12, decimal_places=2)
    price_yearly = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Defaults to 12 x monthly when empty"
    )
    currency = models.CharField(max_length=3, default='TZS')

    # Limits and feature flags (see apps.subscriptions.limits)
    features = models.JSONField(default=dict, blank=True)

    # Display
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    # Metadata
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['price_monthly', 'sort_order']
        verbose_name = 'Subscription Plan'
        verbose_name_plural = 'Subscription Plans'

    def __str__(self):
        return f"{self.display_name} ({self.currency} {self.price_monthly}/mo)"

    @property
    def yearly_price(self) -> Decimal:
        if self.price_yearly is not None:
            return self.price_yearly
        return self.price_monthly * 12


class BusinessSubscription(models.Model):
    """
    A business's subscription to the platform.
    Each business has at most one subscription row.
    """

    TRIAL = 'TRIAL'
    ACTIVE = 'ACTIVE'
    EXPIRED = 'EXPIRED'
    CANCELLED = 'CANCELLED'

    STATUS_CHOICES = (
        (TRIAL, 'Trial'),
        (ACTIVE, 'Active'),
        (EXPIRED, 'Expired'),
        (CANCELLED, 'Cancelled'),
    )

    MONTHLY = 'MONTHLY'
    YEARLY = 'YEARLY'

    BILLING_CYCLE_CHOICES = (
        (MONTHLY, 'Monthly'),
        (YEARLY, 'Yearly'),
    )

    # Relationships
    business = models.OneToOneField(
        'core.Business',
        on_delete=models.CASCADE,
        related_name='subscription'
    )
    plan = models.ForeignKey(
        SubscriptionPlan,
        on_delete=models.PROTECT,
        related_name='subscriptions'
    )

    # Status
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=TRIAL, db_index=True)
    billing_cycle = models.CharField(
        max_length=20,
        choices=BILLING_CYCLE_CHOICES,
        default=MONTHLY
    )

    # Period tracking
    current_period_start = models.DateTimeField()
    current_period_end = models.DateTimeField()
    trial_ends_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    # Metadata
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Business Subscription'
        verbose_name_plural = 'Business Subscriptions'

    def __str__(self):
        return f"{self.business.name} - {self.plan.name} ({self.status})"

    @staticmethod
    def period_end_for(start, billing_cycle: str):
        """Calendar month or calendar year after ``start``"""
        if billing_cycle == BusinessSubscription.YEARLY:
            return start + relativedelta(years=1)
        return start + relativedelta(months=1)

    @property
    def is_active(self) -> bool:
        """TRIAL or ACTIVE"""
        return self.status in (self.TRIAL, self.ACTIVE)

    @property
    def is_trial(self) -> bool:
        return self.status == self.TRIAL

    def start_period(self, billing_cycle: str = None, now=None):
        """Begin a fresh paid period and return to ACTIVE."""
        now = now or timezone.now()
        if billing_cycle:
            self.billing_cycle = billing_cycle
        self.status = self.ACTIVE
        self.current_period_start = now
        self.current_period_end = self.period_end_for(now, self.billing_cycle)
        self.cancelled_at = None

    def cancel(self):
        self.status = self.CANCELLED
        self.cancelled_at = timezone.now()
        self.save(update_fields=['status', 'cancelled_at', 'updated_at'])

"""
Payment Models

PaymentTransaction records every Azampay checkout for a subscription
plan, from initiation to a terminal status.
"""

from django.db import models
from django.utils import timezone


class PaymentTransaction(models.Model):
    """
    One mobile-money payment for a subscription plan.

    ``reference`` is our id (sent to Azampay as externalId);
    ``azampay_transaction_id`` is theirs.
    """

    STATUS_PENDING = 'PENDING'
    STATUS_SUCCESS = 'SUCCESS'
    STATUS_FAILED = 'FAILED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_EXPIRED = 'EXPIRED'

    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_SUCCESS, 'Success'),
        (STATUS_FAILED, 'Failed'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_EXPIRED, 'Expired'),
    )

    TERMINAL_STATUSES = (STATUS_SUCCESS, STATUS_FAILED, STATUS_CANCELLED, STATUS_EXPIRED)

    PROVIDER_CHOICES = (
        ('AZAMPESA', 'Azampesa'),
        ('TIGOPESA', 'Tigopesa'),
        ('AIRTEL', 'Airtel Money'),
        ('HALOPESA', 'Halopesa'),
    )

    business = models.ForeignKey(
        'core.Business',
        on_delete=models.CASCADE,
        related_name='payment_transactions'
    )
    subscription = models.ForeignKey(
        'subscriptions.BusinessSubscription',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payment_transactions'
    )
    plan = models.ForeignKey(
        'subscriptions.SubscriptionPlan',
        on_delete=models.PROTECT,
        related_name='payment_transactions'
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='TZS')
    provider = models.CharField(max_length=20, choices=PROVIDER_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)

    reference = models.CharField(max_length=100, unique=True)
    azampay_transaction_id = models.CharField(max_length=100, blank=True, db_index=True)
    phone_number = models.CharField(max_length=20)

    metadata = models.JSONField(default=dict, blank=True)
    failure_reason = models.TextField(blank=True)

    initiated_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Payment Transaction'
        verbose_name_plural = 'Payment Transactions'
        indexes = [
            models.Index(fields=['business', 'status'], name='payments_tx_biz_status_idx'),
        ]

    def __str__(self):
        return f"{self.reference} - {self.currency} {self.amount} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def mark_completed(self, gateway_id: str = None):
        self.status = self.STATUS_SUCCESS
        self.failure_reason = ''
        self.completed_at = timezone.now()
        if gateway_id:
            self.azampay_transaction_id = gateway_id

    def mark_failed(self, status: str, reason: str = ''):
        self.status = status
        self.failure_reason = reason or ''
        self.completed_at = timezone.now()

"""
Payment Service

Drives a subscription payment from checkout to activation.

Every status change goes through ``apply_gateway_result``, which locks
the row and ignores updates to transactions that are already terminal.
Azampay may deliver the same callback more than once and the status
poll and reconciliation task can race the callback; only the first
terminal result is applied and the plan is activated once. The one
exception is EXPIRED, which only records our own timeout: a gateway
SUCCESS arriving after it is still applied.
"""

import logging
from datetime import timedelta
from typing import Optional, Tuple

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.subscriptions.exceptions import SubscriptionError
from apps.subscriptions.models import BusinessSubscription, SubscriptionPlan
from apps.subscriptions.services.manager import SubscriptionManager

from ..exceptions import InvalidPaymentRequest
from ..models import PaymentTransaction
from .azampay import (
    AzampayClient,
    AzampayError,
    MobileMoneyProvider,
    PaymentStatus,
)

logger = logging.getLogger(__name__)


class PaymentService:
    """
    Usage:
        service = PaymentService()

        txn = service.initiate(business, plan_id, '0712 345 678', 'AIRTEL', user)
        txn, applied = service.apply_gateway_result(txn, PaymentStatus.SUCCESS, 'AZ-1')
        txn = service.refresh_status(txn)
        expired = service.expire_stale_pending()
    """

    def __init__(self, client: AzampayClient = None, manager: SubscriptionManager = None):
        self.client = client or AzampayClient()
        self.manager = manager or SubscriptionManager()

    # ─────────────────────────────────────────────────────────────
    #  INITIATION
    # ─────────────────────────────────────────────────────────────

    def initiate(self, business, plan, phone_number: str, provider: str, user) -> PaymentTransaction:
        """
        Create a PENDING transaction and push the checkout to the handset.

        Raises:
            InvalidPaymentRequest: unknown/inactive plan or unknown provider
            InvalidPhoneNumber: phone is not a Tanzanian mobile number
            AzampayError: gateway rejected the checkout (transaction is FAILED)
        """
        plan = self._get_active_plan(plan)

        try:
            mobile_provider = MobileMoneyProvider.parse(provider)
        except ValueError:
            raise InvalidPaymentRequest('Invalid mobile money provider', code='invalid_provider')

        formatted_phone = self.client.format_phone_number(phone_number)

        subscription = BusinessSubscription.objects.filter(business=business).first()
        payment = PaymentTransaction.objects.create(
            business=business,
            subscription=subscription,
            plan=plan,
            amount=plan.price_monthly,
            currency=getattr(settings, 'AZAMPAY_CURRENCY', 'TZS'),
            provider=mobile_provider.name,
            status=PaymentTransaction.STATUS_PENDING,
            reference=self.client.generate_reference(),
            phone_number=formatted_phone,
            metadata={
                'userId': user.pk,
                'userEmail': user.email,
                'planName': plan.name,
                'planDisplayName': plan.display_name,
            },
        )

        try:
            checkout = self.client.initiate_mobile_checkout(
                account_number=formatted_phone,
                amount=plan.price_monthly,
                external_id=payment.reference,
                provider=mobile_provider,
                currency=payment.currency,
                additional_properties={
                    'businessName': business.name,
                    'planName': plan.display_name,
                },
            )
        except AzampayError as e:
            payment.mark_failed(PaymentTransaction.STATUS_FAILED, e.message)
            payment.save(update_fields=['status', 'failure_reason', 'completed_at', 'updated_at'])
            logger.error(f"Azampay checkout failed for {payment.reference}: {e.message}")
            raise

        payment.azampay_transaction_id = checkout.transaction_id
        payment.save(update_fields=['azampay_transaction_id', 'updated_at'])

        logger.info(
            f"Initiated payment {payment.reference} for business {business.pk}: "
            f"{payment.currency} {payment.amount} via {mobile_provider.value}"
        )
        return payment

    @staticmethod
    def _get_active_plan(plan) -> SubscriptionPlan:
        if isinstance(plan, SubscriptionPlan):
            if plan.is_active:
                return plan
            raise InvalidPaymentRequest('Invalid or inactive plan', code='invalid_plan')
        try:
            return SubscriptionPlan.objects.get(pk=plan, is_active=True)
        except (SubscriptionPlan.DoesNotExist, ValueError, TypeError):
            raise InvalidPaymentRequest('Invalid or inactive plan', code='invalid_plan')

    # ─────────────────────────────────────────────────────────────
    #  STATUS TRANSITIONS
    # ─────────────────────────────────────────────────────────────

    @transaction.atomic
    def apply_gateway_result(
        self,
        payment: PaymentTransaction,
        status: PaymentStatus,
        gateway_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Tuple[PaymentTransaction, bool]:
        """
        Apply a gateway status to ``payment``.

        Returns the locked, updated transaction and whether anything changed.
        PENDING and already-terminal transactions are left untouched, except
        that SUCCESS still lands on a transaction we expired locally.
        """
        locked = PaymentTransaction.objects.select_for_update().get(pk=payment.pk)

        # EXPIRED is our own timeout, not a gateway verdict; a late SUCCESS still counts
        late_success = (
            locked.status == PaymentTransaction.STATUS_EXPIRED
            and status is PaymentStatus.SUCCESS
        )

        if locked.is_terminal and not late_success:
            logger.info(
                f"Ignoring {status.value} for {locked.reference}: already {locked.status}"
            )
            return locked, False

        if status is PaymentStatus.PENDING:
            if gateway_id and not locked.azampay_transaction_id:
                locked.azampay_transaction_id = gateway_id
                locked.save(update_fields=['azampay_transaction_id', 'updated_at'])
            return locked, False

        if status is PaymentStatus.SUCCESS:
            locked.mark_completed(gateway_id)
            locked.save()
            if late_success:
                logger.warning(f"Payment {locked.reference} confirmed after local expiry")
            logger.info(f"Payment {locked.reference} succeeded")
            self._activate_plan(locked)
        else:
            if gateway_id:
                locked.azampay_transaction_id = gateway_id
            locked.mark_failed(status.value, reason)
            locked.save()
            logger.info(f"Payment {locked.reference} ended as {locked.status}: {locked.failure_reason}")

        return locked, True

    def _activate_plan(self, payment: PaymentTransaction):
        """Activate the paid plan; a failure is recorded, the payment stays SUCCESS."""
        try:
            with transaction.atomic():
                subscription = self.manager.activate(
                    payment.business, payment.plan, BusinessSubscription.MONTHLY
                )
        except (SubscriptionError, DatabaseError) as e:
            error = getattr(e, 'message', str(e))
            logger.error(
                f"Failed to activate subscription after payment {payment.reference}: {error}",
                exc_info=True
            )
            payment.metadata = {
                **(payment.metadata or {}),
                'activationError': error,
                'activationAttempted': timezone.now().isoformat(),
            }
            payment.save(update_fields=['metadata', 'updated_at'])
            return

        payment.subscription = subscription
        payment.save(update_fields=['subscription', 'updated_at'])
        logger.info(f"Subscription activated for business {payment.business_id} ({payment.plan.name})")

    # ─────────────────────────────────────────────────────────────
    #  POLLING & HOUSEKEEPING
    # ─────────────────────────────────────────────────────────────

    def refresh_status(self, payment: PaymentTransaction) -> PaymentTransaction:
        """
        Ask Azampay about a PENDING transaction and apply the answer.
        Gateway errors leave the stored status in place.
        """
        if payment.status != PaymentTransaction.STATUS_PENDING or not payment.azampay_transaction_id:
            return payment

        try:
            result = self.client.check_payment_status(payment.azampay_transaction_id)
        except AzampayError as e:
            logger.warning(f"Status check failed for {payment.reference}: {e.message}")
            return payment

        payment, _ = self.apply_gateway_result(payment, result.status, reason=result.reason)
        return payment

    def reconcile_pending(self, min_age_minutes: int = 1) -> dict:
        """Poll every PENDING transaction that Azampay knows about."""
        cutoff = timezone.now() - timedelta(minutes=min_age_minutes)
        pending = PaymentTransaction.objects.filter(
            status=PaymentTransaction.STATUS_PENDING,
            initiated_at__lt=cutoff,
        ).exclude(azampay_transaction_id='')

        checked = 0
        resolved = 0
        for payment in pending.select_related('plan', 'business'):
            checked += 1
            if self.refresh_status(payment).is_terminal:
                resolved += 1

        return {'checked': checked, 'resolved': resolved}

    def expire_stale_pending(self, max_age_minutes: int = None) -> int:
        """Mark PENDING transactions older than the timeout as EXPIRED."""
        if max_age_minutes is None:
            max_age_minutes = getattr(settings, 'AZAMPAY_PENDING_TIMEOUT_MINUTES', 30)
        cutoff = timezone.now() - timedelta(minutes=max_age_minutes)

        stale = PaymentTransaction.objects.filter(
            status=PaymentTransaction.STATUS_PENDING,
            initiated_at__lt=cutoff,
        )

        count = 0
        for payment in stale:
            _, applied = self.apply_gateway_result(
                payment,
                PaymentStatus.EXPIRED,
                reason=f"Payment not confirmed within {max_age_minutes} minutes",
            )
            if applied:
                count += 1

        if count:
            logger.info(f"Expired {count} stale pending payments")
        return count

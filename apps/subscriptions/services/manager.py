"""
Subscription Manager

Owns every status change of a BusinessSubscription:

    (none) --create_trial--> TRIAL --assign_plan--> ACTIVE
    TRIAL  --extend_trial--> TRIAL
    ACTIVE --cancel--> CANCELLED --renew--> ACTIVE
    TRIAL/ACTIVE --check_and_update_expired--> EXPIRED

Used by the REST views, the Azampay reconciliation service, the
post_save signal, the management commands and the Celery beat task.
"""

import logging
from datetime import timedelta
from typing import Tuple

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.core.models import Business

from .. import limits
from ..exceptions import (
    InvalidTransition,
    PlanNotFound,
    SubscriptionError,
    SubscriptionExists,
    SubscriptionNotFound,
)
from ..models import BusinessSubscription, SubscriptionPlan

logger = logging.getLogger(__name__)

MIN_TRIAL_EXTENSION_DAYS = 1
MAX_TRIAL_EXTENSION_DAYS = 365


class SubscriptionManager:
    """
    Usage:
        manager = SubscriptionManager()

        subscription = manager.create_trial(business)
        subscription = manager.assign_plan(business, plan, 'YEARLY')
        subscription, direction = manager.change_plan(business, plan)
        counts = manager.check_and_update_expired()
    """

    # ─────────────────────────────────────────────────────────────
    #  LOOKUPS
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def get_plan(plan) -> SubscriptionPlan:
        """Accept a plan instance, a primary key or a plan name"""
        if isinstance(plan, SubscriptionPlan):
            return plan
        lookup = {'name': plan} if isinstance(plan, str) and not plan.isdigit() else {'pk': plan}
        try:
            return SubscriptionPlan.objects.get(**lookup)
        except (SubscriptionPlan.DoesNotExist, ValueError):
            raise PlanNotFound()

    @staticmethod
    def get_subscription(business, for_update: bool = False) -> BusinessSubscription:
        queryset = BusinessSubscription.objects.select_related('plan', 'business')
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(business=business)
        except BusinessSubscription.DoesNotExist:
            raise SubscriptionNotFound()

    # ─────────────────────────────────────────────────────────────
    #  TRANSITIONS
    # ─────────────────────────────────────────────────────────────

    @transaction.atomic
    def assign_plan(
        self,
        business: Business,
        plan,
        billing_cycle: str = BusinessSubscription.MONTHLY
    ) -> BusinessSubscription:
        """
        Put ``business`` on ``plan`` with a fresh ACTIVE period.

        Creates the subscription when the business has none. Trial and
        cancellation markers are cleared.
        """
        plan = self.get_plan(plan)
        if billing_cycle != BusinessSubscription.YEARLY:
            billing_cycle = BusinessSubscription.MONTHLY

        try:
            subscription = self.get_subscription(business, for_update=True)
        except SubscriptionNotFound:
            subscription = BusinessSubscription(business=business)

        subscription.plan = plan
        subscription.trial_ends_at = None
        subscription.start_period(billing_cycle)
        subscription.save()

        logger.info(
            f"Assigned {plan.name} ({billing_cycle}) to business {business.pk}; "
            f"period ends {subscription.current_period_end.isoformat()}"
        )
        return subscription

    def activate(self, business, plan, billing_cycle: str = BusinessSubscription.MONTHLY):
        return self.assign_plan(business, plan, billing_cycle)

    def upgrade(self, business, plan) -> BusinessSubscription:
        return self.assign_plan(business, plan, BusinessSubscription.MONTHLY)

    def downgrade(self, business, plan) -> BusinessSubscription:
        return self.assign_plan(business, plan, BusinessSubscription.MONTHLY)

    @transaction.atomic
    def change_plan(self, business, plan) -> Tuple[BusinessSubscription, str]:
        """
        Move an existing subscription to another plan.

        Returns the subscription and ``'upgraded'`` or ``'downgraded'``,
        decided by comparing monthly prices.
        """
        current = self.get_subscription(business, for_update=True)
        plan = self.get_plan(plan)

        if plan.price_monthly > current.plan.price_monthly:
            return self.upgrade(business, plan), 'upgraded'
        return self.downgrade(business, plan), 'downgraded'

    @transaction.atomic
    def cancel(self, business) -> Tuple[BusinessSubscription, str]:
        """Cancel now; access runs until the end of the current period."""
        subscription = self.get_subscription(business, for_update=True)
        subscription.cancel()

        message = (
            f"Subscription will expire on "
            f"{timezone.localtime(subscription.current_period_end).date().isoformat()}"
        )
        logger.info(f"Cancelled subscription for business {business.pk}. {message}")
        return subscription, message

    @transaction.atomic
    def renew(self, business) -> BusinessSubscription:
        """Start a new period from now using the stored billing cycle."""
        subscription = self.get_subscription(business, for_update=True)
        subscription.start_period()
        subscription.save()

        logger.info(
            f"Renewed subscription for business {business.pk} until "
            f"{subscription.current_period_end.isoformat()}"
        )
        return subscription

    @transaction.atomic
    def extend_trial(self, business, days: int) -> Tuple[BusinessSubscription, str]:
        if not MIN_TRIAL_EXTENSION_DAYS <= days <= MAX_TRIAL_EXTENSION_DAYS:
            raise SubscriptionError(
                f"Days must be between {MIN_TRIAL_EXTENSION_DAYS} and {MAX_TRIAL_EXTENSION_DAYS}",
                code='invalid_days'
            )

        subscription = self.get_subscription(business, for_update=True)
        if subscription.status != BusinessSubscription.TRIAL:
            raise InvalidTransition('Subscription is not in trial period')

        current_end = subscription.trial_ends_at or subscription.current_period_end
        new_end = current_end + timedelta(days=days)
        subscription.trial_ends_at = new_end
        subscription.current_period_end = new_end
        subscription.save(update_fields=['trial_ends_at', 'current_period_end', 'updated_at'])

        logger.info(f"Extended trial for business {business.pk} by {days} days to {new_end.isoformat()}")
        return subscription, f"Trial extended by {days} days"

    @transaction.atomic
    def create_trial(self, business) -> BusinessSubscription:
        """
        Start the free trial on the trial plan (BASIC by default).
        Fails if the business already has a subscription.
        """
        if BusinessSubscription.objects.filter(business=business).exists():
            raise SubscriptionExists()

        plan_name = getattr(settings, 'SUBSCRIPTION_TRIAL_PLAN', limits.BASIC)
        try:
            plan = SubscriptionPlan.objects.get(name=plan_name)
        except SubscriptionPlan.DoesNotExist:
            raise PlanNotFound(f"{plan_name} plan not found")

        now = timezone.now()
        trial_end = now + timedelta(days=getattr(settings, 'SUBSCRIPTION_TRIAL_DAYS', 30))

        subscription = BusinessSubscription.objects.create(
            business=business,
            plan=plan,
            status=BusinessSubscription.TRIAL,
            billing_cycle=BusinessSubscription.MONTHLY,
            current_period_start=now,
            current_period_end=trial_end,
            trial_ends_at=trial_end,
        )

        logger.info(f"Created trial for business {business.pk}; ends {trial_end.isoformat()}")
        return subscription

    # ─────────────────────────────────────────────────────────────
    #  BATCH OPERATIONS
    # ─────────────────────────────────────────────────────────────

    def check_and_update_expired(self) -> dict:
        """Expire lapsed trials and lapsed paid periods."""
        now = timezone.now()

        with transaction.atomic():
            expired_trials = BusinessSubscription.objects.filter(
                status=BusinessSubscription.TRIAL,
                trial_ends_at__lt=now,
            ).update(status=BusinessSubscription.EXPIRED, updated_at=now)

            expired_active = BusinessSubscription.objects.filter(
                status=BusinessSubscription.ACTIVE,
                current_period_end__lt=now,
            ).update(status=BusinessSubscription.EXPIRED, updated_at=now)

        if expired_trials or expired_active:
            logger.info(
                f"Expired {expired_trials} trial(s) and {expired_active} active subscription(s)"
            )

        return {
            'expired_trials': expired_trials,
            'expired_active': expired_active,
        }

    def migrate_existing(self) -> dict:
        """Create trials for every business that has no subscription."""
        businesses = Business.objects.filter(subscription__isnull=True).order_by('id')

        results = {
            'total': businesses.count(),
            'success': 0,
            'failed': 0,
            'errors': [],
        }

        for business in businesses:
            try:
                self.create_trial(business)
                results['success'] += 1
                logger.info(f"Created trial for business: {business.name} (ID: {business.pk})")
            except SubscriptionError as e:
                results['failed'] += 1
                results['errors'].append({
                    'business_id': business.pk,
                    'business_name': business.name,
                    'error': e.message,
                })
                logger.error(f"Failed to create trial for business {business.pk}: {e.message}")

        return results

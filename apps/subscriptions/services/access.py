"""
Subscription status, usage and limit checks.

Read-only helpers the rest of the platform calls before creating
businesses, stores or staff, or before exposing a gated feature.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from django.utils import timezone

from apps.core.models import Business, BusinessUser, Order, Product, Store

from .. import limits
from ..models import BusinessSubscription

logger = logging.getLogger(__name__)

NO_SUBSCRIPTION_REASON = 'No active subscription found'


@dataclass
class LimitCheck:
    """Answer to "may this business create one more X?"."""
    allowed: bool
    current_count: int
    limit: Optional[int]
    reason: Optional[str] = None
    plan_name: Optional[str] = None


@dataclass
class FeatureCheck:
    allowed: bool
    reason: Optional[str] = None
    plan_name: Optional[str] = None
    required_plan: Optional[str] = None


def get_business_subscription(business) -> Optional[BusinessSubscription]:
    return (
        BusinessSubscription.objects
        .select_related('plan', 'business')
        .filter(business=business)
        .first()
    )


def is_subscription_active(business) -> bool:
    subscription = get_business_subscription(business)
    return bool(subscription and subscription.is_active)


def _days_until(moment, now) -> int:
    if not moment:
        return 0
    seconds = (moment - now).total_seconds()
    return max(0, math.ceil(seconds / 86400))


def check_subscription_status(business) -> dict:
    subscription = get_business_subscription(business)

    if not subscription:
        return {
            'has_subscription': False,
            'is_active': False,
            'is_trial': False,
            'is_expired': True,
            'is_cancelled': False,
            'status': BusinessSubscription.EXPIRED,
            'plan_name': None,
            'days_remaining': 0,
        }

    now = timezone.now()
    status = subscription.status
    is_trial = status == BusinessSubscription.TRIAL
    is_paid = status == BusinessSubscription.ACTIVE

    days_remaining = 0
    if is_trial:
        days_remaining = _days_until(subscription.trial_ends_at, now)
    elif is_paid:
        days_remaining = _days_until(subscription.current_period_end, now)

    return {
        'has_subscription': True,
        'is_active': is_trial or is_paid,
        'is_trial': is_trial,
        'is_expired': status == BusinessSubscription.EXPIRED,
        'is_cancelled': status == BusinessSubscription.CANCELLED,
        'status': status,
        'plan_name': subscription.plan.name,
        'days_remaining': days_remaining,
        'current_period_end': subscription.current_period_end,
        'trial_ends_at': subscription.trial_ends_at,
    }


def get_subscription_usage(business) -> dict:
    """Counts the limit checks compare against."""
    month_start = timezone.localtime().replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    return {
        'businesses': Business.objects.filter(owner_id=business.owner_id).count(),
        'stores': Store.objects.filter(business=business, is_active=True).count(),
        'users': BusinessUser.objects.filter(
            business=business, is_active=True, is_deleted=False
        ).count(),
        'products': Product.objects.filter(business=business, is_active=True).count(),
        'orders': Order.objects.filter(business=business, order_date__gte=month_start).count(),
    }


def _limit_check(current_count, plan_name, feature, noun) -> LimitCheck:
    limit = limits.get_limit(plan_name, feature)
    if limit is None:
        return LimitCheck(allowed=True, current_count=current_count, limit=None, plan_name=plan_name)

    allowed = current_count < limit
    return LimitCheck(
        allowed=allowed,
        current_count=current_count,
        limit=limit,
        plan_name=plan_name,
        reason=None if allowed else (
            f"You've reached the maximum of {limit} {noun}(s) for your {plan_name} plan"
        ),
    )


def can_create_business(user) -> LimitCheck:
    """
    The owner's first business decides the limit. A user with no
    business yet may always create one (it starts on a trial).
    """
    businesses = Business.objects.filter(owner=user).order_by('id')
    current_count = businesses.count()

    if current_count == 0:
        return LimitCheck(allowed=True, current_count=0, limit=1, plan_name=limits.BASIC)

    subscription = get_business_subscription(businesses.first())
    if not subscription:
        return LimitCheck(allowed=True, current_count=current_count, limit=1)

    return _limit_check(current_count, subscription.plan.name, 'max_businesses', 'business')


def can_create_store(business) -> LimitCheck:
    subscription = get_business_subscription(business)
    if not subscription:
        return LimitCheck(allowed=False, current_count=0, limit=0, reason=NO_SUBSCRIPTION_REASON)

    current_count = Store.objects.filter(business=business, is_active=True).count()
    return _limit_check(current_count, subscription.plan.name, 'max_stores_per_business', 'store')


def can_add_user(business) -> LimitCheck:
    subscription = get_business_subscription(business)
    if not subscription:
        return LimitCheck(allowed=False, current_count=0, limit=0, reason=NO_SUBSCRIPTION_REASON)

    current_count = BusinessUser.objects.filter(
        business=business, is_active=True, is_deleted=False
    ).count()
    return _limit_check(current_count, subscription.plan.name, 'max_users_per_business', 'user')


def check_feature_access(business, feature: str) -> FeatureCheck:
    subscription = get_business_subscription(business)
    if not subscription:
        return FeatureCheck(allowed=False, reason=NO_SUBSCRIPTION_REASON)

    plan_name = subscription.plan.name
    if limits.has_feature(plan_name, feature):
        return FeatureCheck(allowed=True, plan_name=plan_name)

    required_plan = limits.required_plan_for(feature)
    return FeatureCheck(
        allowed=False,
        reason=f"This feature requires {required_plan} plan or higher",
        plan_name=plan_name,
        required_plan=required_plan,
    )

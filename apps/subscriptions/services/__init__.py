"""
Subscription services
"""
from .manager import SubscriptionManager
from .access import (
    LimitCheck,
    FeatureCheck,
    get_business_subscription,
    is_subscription_active,
    check_subscription_status,
    get_subscription_usage,
    can_create_business,
    can_create_store,
    can_add_user,
    check_feature_access,
)

__all__ = [
    'SubscriptionManager',
    'LimitCheck',
    'FeatureCheck',
    'get_business_subscription',
    'is_subscription_active',
    'check_subscription_status',
    'get_subscription_usage',
    'can_create_business',
    'can_create_store',
    'can_add_user',
    'check_feature_access',
]

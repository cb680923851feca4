"""
Plan limits and feature flags.

The table below is the authority the rest of the platform consults.
``None`` means unlimited, ``False`` means disabled.
"""

BASIC = 'BASIC'
PROFESSIONAL = 'PROFESSIONAL'
ENTERPRISE = 'ENTERPRISE'

# Usage (percent) from which a limit is reported as nearly reached
APPROACHING_LIMIT_PERCENT = 80

PLAN_LIMITS = {
    BASIC: {
        'max_businesses': 1,
        'max_stores_per_business': 1,
        'max_users_per_business': 2,
        'enable_credit_sales': False,
        'enable_advanced_reports': False,
        'enable_accounting': False,
        'enable_multi_store': False,
    },
    PROFESSIONAL: {
        'max_businesses': 3,
        'max_stores_per_business': 3,
        'max_users_per_business': None,
        'enable_credit_sales': True,
        'enable_advanced_reports': False,
        'enable_accounting': False,
        'enable_multi_store': True,
    },
    ENTERPRISE: {
        'max_businesses': None,
        'max_stores_per_business': None,
        'max_users_per_business': None,
        'enable_credit_sales': True,
        'enable_advanced_reports': True,
        'enable_accounting': True,
        'enable_multi_store': True,
    },
}

LIMIT_FEATURES = ('max_businesses', 'max_stores_per_business', 'max_users_per_business')

ENTERPRISE_FEATURES = ('enable_advanced_reports', 'enable_accounting')


def get_plan_limits(plan_name):
    """Limits for a plan; unknown names fall back to BASIC"""
    return PLAN_LIMITS.get(plan_name, PLAN_LIMITS[BASIC])


def has_feature(plan_name, feature) -> bool:
    return get_plan_limits(plan_name).get(feature) is True


def get_limit(plan_name, feature):
    """
    Numeric limit for ``feature``.

    Returns the number itself, ``None`` for unlimited (``None`` or ``True``
    in the table) and ``0`` for disabled (``False`` or missing).
    """
    value = get_plan_limits(plan_name).get(feature, False)
    if value is None or value is True:
        return None
    if value is False:
        return 0
    return value


def is_unlimited(plan_name, feature) -> bool:
    return get_limit(plan_name, feature) is None


def is_within_limit(usage, plan_name, feature) -> bool:
    limit = get_limit(plan_name, feature)
    if limit is None:
        return True
    if limit == 0:
        return False
    return usage < limit


def get_limit_usage_percentage(usage, plan_name, feature) -> float:
    limit = get_limit(plan_name, feature)
    if limit is None:
        return 0
    if limit == 0:
        return 100
    return min(100, usage / limit * 100)


def is_approaching_limit(usage, plan_name, feature) -> bool:
    percentage = get_limit_usage_percentage(usage, plan_name, feature)
    return APPROACHING_LIMIT_PERCENT <= percentage < 100


def is_limit_reached(usage, plan_name, feature) -> bool:
    limit = get_limit(plan_name, feature)
    if limit is None:
        return False
    if limit == 0:
        return True
    return usage >= limit


def required_plan_for(feature) -> str:
    """Cheapest plan that unlocks ``feature``"""
    if feature in ENTERPRISE_FEATURES:
        return ENTERPRISE
    return PROFESSIONAL


def limits_summary(plan_name) -> dict:
    return {feature: get_limit(plan_name, feature) for feature in LIMIT_FEATURES}

"""
Default plan catalogue, seeded by ``manage.py seed_subscription_plans``.
"""
from decimal import Decimal

from django.db import transaction

from . import limits
from .models import SubscriptionPlan

_COMMON_FEATURES = {
    'enable_inventory_tracking': True,
    'enable_pos': True,
    'enable_basic_reports': True,
    'enable_customer_management': True,
    'enable_product_management': True,
    'max_products': None,
    'max_customers': None,
    'max_orders_per_month': None,
}

DEFAULT_PLANS = [
    {
        'name': limits.BASIC,
        'display_name': 'Basic Plan',
        'display_name_sw': 'Mpango wa Msingi',
        'description': 'Perfect for small businesses getting started',
        'description_sw': 'Bora kwa biashara ndogo zinazoanza',
        'price_monthly': Decimal('20000'),
        'sort_order': 1,
        'features': {**limits.PLAN_LIMITS[limits.BASIC], **_COMMON_FEATURES},
    },
    {
        'name': limits.PROFESSIONAL,
        'display_name': 'Professional Plan',
        'display_name_sw': 'Mpango wa Kitaaluma',
        'description': 'For growing businesses with multiple locations',
        'description_sw': 'Kwa biashara zinazokua zenye maeneo mengi',
        'price_monthly': Decimal('40000'),
        'sort_order': 2,
        'features': {**limits.PLAN_LIMITS[limits.PROFESSIONAL], **_COMMON_FEATURES},
    },
    {
        'name': limits.ENTERPRISE,
        'display_name': 'Enterprise Plan',
        'display_name_sw': 'Mpango wa Biashara Kubwa',
        'description': 'Complete solution for large businesses',
        'description_sw': 'Suluhisho kamili kwa biashara kubwa',
        'price_monthly': Decimal('75000'),
        'sort_order': 3,
        'features': {
            **limits.PLAN_LIMITS[limits.ENTERPRISE],
            **_COMMON_FEATURES,
            'priority_support': True,
            'custom_integrations': True,
        },
    },
]


@transaction.atomic
def seed_plans():
    """Upsert the default plans by name. Returns [(plan, created), ...]"""
    results = []
    for plan_data in DEFAULT_PLANS:
        defaults = {k: v for k, v in plan_data.items() if k != 'name'}
        defaults['currency'] = 'TZS'
        defaults['is_active'] = True
        plan, created = SubscriptionPlan.objects.update_or_create(
            name=plan_data['name'],
            defaults=defaults,
        )
        results.append((plan, created))
    return results

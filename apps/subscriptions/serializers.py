"""
Subscription Serializers
"""

from rest_framework import serializers

from .models import SubscriptionPlan, BusinessSubscription


class SubscriptionPlanSerializer(serializers.ModelSerializer):
    """Serializer for plan listing"""

    price_yearly = serializers.DecimalField(
        source='yearly_price', max_digits=12, decimal_places=2, read_only=True
    )

    class Meta:
        model = SubscriptionPlan
        fields = [
            'id', 'name', 'display_name', 'display_name_sw',
            'description', 'description_sw',
            'price_monthly', 'price_yearly', 'currency',
            'features', 'sort_order',
        ]


class BusinessSubscriptionSerializer(serializers.ModelSerializer):
    """Serializer for a business's subscription"""

    plan_name = serializers.CharField(source='plan.name', read_only=True)
    plan_display_name = serializers.CharField(source='plan.display_name', read_only=True)
    plan_display_name_sw = serializers.CharField(source='plan.display_name_sw', read_only=True)
    price_monthly = serializers.DecimalField(
        source='plan.price_monthly', max_digits=12, decimal_places=2, read_only=True
    )
    features = serializers.JSONField(source='plan.features', read_only=True)

    class Meta:
        model = BusinessSubscription
        fields = [
            'id', 'business', 'status', 'billing_cycle',
            'plan', 'plan_name', 'plan_display_name', 'plan_display_name_sw',
            'price_monthly', 'features',
            'current_period_start', 'current_period_end',
            'trial_ends_at', 'cancelled_at',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class SubscriptionStatusSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()
    is_trial = serializers.BooleanField()
    is_expired = serializers.BooleanField()
    is_cancelled = serializers.BooleanField()
    days_remaining = serializers.IntegerField()


class ActivateSubscriptionSerializer(serializers.Serializer):
    """Any billing cycle other than YEARLY is treated as MONTHLY"""

    businessId = serializers.IntegerField()
    planId = serializers.IntegerField()
    billingCycle = serializers.CharField(required=False, allow_blank=True, default='MONTHLY')

    def validate_billingCycle(self, value):
        if value == BusinessSubscription.YEARLY:
            return BusinessSubscription.YEARLY
        return BusinessSubscription.MONTHLY


class ChangePlanSerializer(serializers.Serializer):
    businessId = serializers.IntegerField()
    planId = serializers.IntegerField()


class ExtendTrialSerializer(serializers.Serializer):
    businessId = serializers.IntegerField()
    days = serializers.IntegerField(min_value=1, max_value=365)

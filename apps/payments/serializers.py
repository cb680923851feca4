"""
Payment Serializers
"""

from rest_framework import serializers

from .models import PaymentTransaction


class InitiatePaymentSerializer(serializers.Serializer):
    businessId = serializers.IntegerField()
    planId = serializers.IntegerField()
    phoneNumber = serializers.CharField(max_length=30)
    provider = serializers.CharField(max_length=20)


class AzampayCallbackSerializer(serializers.Serializer):
    """Azampay callback body; unknown keys are ignored"""

    transactionId = serializers.CharField()
    externalId = serializers.CharField()
    status = serializers.CharField(required=False, allow_blank=True, default='')
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')
    amount = serializers.CharField(required=False, allow_blank=True)
    currency = serializers.CharField(required=False, allow_blank=True)
    provider = serializers.CharField(required=False, allow_blank=True)
    timestamp = serializers.CharField(required=False, allow_blank=True)


class PaymentTransactionSerializer(serializers.ModelSerializer):
    plan_name = serializers.CharField(source='plan.name', read_only=True)
    plan_display_name = serializers.CharField(source='plan.display_name', read_only=True)

    class Meta:
        model = PaymentTransaction
        fields = [
            'id', 'reference', 'azampay_transaction_id',
            'business', 'subscription', 'plan', 'plan_name', 'plan_display_name',
            'amount', 'currency', 'provider', 'phone_number', 'status',
            'failure_reason', 'initiated_at', 'completed_at', 'created_at',
        ]
        read_only_fields = fields

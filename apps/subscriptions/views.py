"""
Subscription Views for Kopqela

Plan catalogue, current subscription and usage, lifecycle changes,
and the machine-triggered expiry check and trial migration.
"""

import logging

from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.base_views import BusinessScopedMixin
from apps.core.models import Business
from apps.core.permissions import IsBearerSecret

from . import limits
from .exceptions import PlanNotFound, SubscriptionError, SubscriptionNotFound
from .models import SubscriptionPlan
from .serializers import (
    SubscriptionPlanSerializer,
    BusinessSubscriptionSerializer,
    SubscriptionStatusSerializer,
    ActivateSubscriptionSerializer,
    ChangePlanSerializer,
    ExtendTrialSerializer,
)
from .services import (
    SubscriptionManager,
    check_subscription_status,
    get_business_subscription,
    get_subscription_usage,
)

logger = logging.getLogger(__name__)


def subscription_error_response(exc: SubscriptionError) -> Response:
    if isinstance(exc, (PlanNotFound, SubscriptionNotFound)):
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_400_BAD_REQUEST
    return Response({'success': False, 'error': exc.message}, status=code)


def invalid_request_response(serializer, message: str) -> Response:
    return Response(
        {'success': False, 'error': message, 'details': serializer.errors},
        status=status.HTTP_400_BAD_REQUEST
    )


# ─────────────────────────────────────────────────────────────
#  PLANS
# ─────────────────────────────────────────────────────────────

class SubscriptionPlanViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Public plan catalogue.

    GET /api/v1/subscriptions/plans/
    GET /api/v1/subscriptions/plans/{id}/
    """

    serializer_class = SubscriptionPlanSerializer
    permission_classes = [AllowAny]
    authentication_classes = []
    pagination_class = None

    def get_queryset(self):
        return SubscriptionPlan.objects.filter(is_active=True).order_by('price_monthly', 'sort_order')


# ─────────────────────────────────────────────────────────────
#  CURRENT SUBSCRIPTION & USAGE
# ─────────────────────────────────────────────────────────────

class CurrentSubscriptionView(BusinessScopedMixin, APIView):
    """
    GET /api/v1/subscriptions/current/?businessId=
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        business = self.get_business(request)
        subscription = get_business_subscription(business)

        if not subscription:
            return Response({
                'success': True,
                'data': {
                    'has_subscription': False,
                    'subscription': None,
                    'status': None,
                    'usage': None,
                    'limits': None,
                }
            })

        subscription_status = check_subscription_status(business)

        return Response({
            'success': True,
            'data': {
                'has_subscription': True,
                'subscription': BusinessSubscriptionSerializer(subscription).data,
                'status': SubscriptionStatusSerializer(subscription_status).data,
                'usage': get_subscription_usage(business),
                'limits': limits.limits_summary(subscription.plan.name),
            }
        })


class SubscriptionUsageView(BusinessScopedMixin, APIView):
    """
    GET /api/v1/subscriptions/usage/?businessId=
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        business = self.get_business(request)
        subscription = get_business_subscription(business)

        if not subscription:
            return Response(
                {'success': False, 'error': 'No subscription found'},
                status=status.HTTP_404_NOT_FOUND
            )

        plan_name = subscription.plan.name
        return Response({
            'success': True,
            'data': {
                'usage': get_subscription_usage(business),
                'limits': {
                    'businesses': limits.get_limit(plan_name, 'max_businesses'),
                    'stores': limits.get_limit(plan_name, 'max_stores_per_business'),
                    'users': limits.get_limit(plan_name, 'max_users_per_business'),
                },
                'plan_name': plan_name,
            }
        })


# ─────────────────────────────────────────────────────────────
#  LIFECYCLE CHANGES
# ─────────────────────────────────────────────────────────────

class ActivateSubscriptionView(BusinessScopedMixin, APIView):
    """
    Manual activation by platform staff (paid activation goes through
    the Azampay flow in apps.payments).

    POST /api/v1/subscriptions/activate/
    {"businessId": 1, "planId": 2, "billingCycle": "MONTHLY"}
    """

    permission_classes = [IsAdminUser]

    def post(self, request):
        serializer = ActivateSubscriptionSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request_response(serializer, 'Business ID and Plan ID are required')

        data = serializer.validated_data
        business = get_object_or_404(Business, pk=data['businessId'])

        try:
            subscription = SubscriptionManager().activate(business, data['planId'], data['billingCycle'])
        except SubscriptionError as e:
            return subscription_error_response(e)

        logger.info(f"{request.user} activated {subscription.plan.name} for business {business.pk}")
        return Response({
            'success': True,
            'data': BusinessSubscriptionSerializer(subscription).data,
            'message': 'Subscription activated successfully',
        })


class ChangePlanView(BusinessScopedMixin, APIView):
    """
    POST /api/v1/subscriptions/change-plan/
    {"businessId": 1, "planId": 3}
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ChangePlanSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request_response(serializer, 'Business ID and Plan ID are required')

        business = self.get_business(request, owner_only=True)

        try:
            subscription, direction = SubscriptionManager().change_plan(
                business, serializer.validated_data['planId']
            )
        except SubscriptionError as e:
            return subscription_error_response(e)

        return Response({
            'success': True,
            'data': BusinessSubscriptionSerializer(subscription).data,
            'message': f"Plan {direction} successfully",
        })


class CancelSubscriptionView(BusinessScopedMixin, APIView):
    """
    POST /api/v1/subscriptions/cancel/
    {"businessId": 1}
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        business = self.get_business(request, owner_only=True)

        try:
            subscription, message = SubscriptionManager().cancel(business)
        except SubscriptionError as e:
            return subscription_error_response(e)

        return Response({
            'success': True,
            'data': BusinessSubscriptionSerializer(subscription).data,
            'message': message,
        })


class ExtendTrialView(BusinessScopedMixin, APIView):
    """
    Platform staff only.

    POST /api/v1/subscriptions/extend-trial/
    {"businessId": 1, "days": 14}
    """

    permission_classes = [IsAdminUser]

    def post(self, request):
        serializer = ExtendTrialSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request_response(
                serializer, 'Business ID and days (1-365) are required'
            )

        data = serializer.validated_data
        business = get_object_or_404(Business, pk=data['businessId'])

        try:
            subscription, message = SubscriptionManager().extend_trial(business, data['days'])
        except SubscriptionError as e:
            return subscription_error_response(e)

        return Response({
            'success': True,
            'data': BusinessSubscriptionSerializer(subscription).data,
            'message': message,
        })


# ─────────────────────────────────────────────────────────────
#  MACHINE TRIGGERS
# ─────────────────────────────────────────────────────────────

class CheckStatusView(APIView):
    """
    Cron trigger for expiring lapsed subscriptions.
    Open when CRON_SECRET is empty, otherwise needs the Bearer secret.

    POST|GET /api/v1/subscriptions/check-status/
    """

    permission_classes = [IsBearerSecret]
    authentication_classes = []
    bearer_secret_setting = 'CRON_SECRET'
    bearer_secret_required = False

    def post(self, request):
        result = SubscriptionManager().check_and_update_expired()
        return Response({
            'success': True,
            'data': {
                'expired_trials': result['expired_trials'],
                'expired_active': result['expired_active'],
                'total_expired': result['expired_trials'] + result['expired_active'],
            },
            'message': 'Subscription status checked successfully',
        })

    def get(self, request):
        return self.post(request)


class MigrateExistingView(APIView):
    """
    One-off: start trials for businesses created before subscriptions.
    Always needs ``Authorization: Bearer <MIGRATION_SECRET>``.

    POST /api/v1/subscriptions/migrate-existing/
    """

    permission_classes = [IsBearerSecret]
    authentication_classes = []
    bearer_secret_setting = 'MIGRATION_SECRET'
    bearer_secret_required = True

    def post(self, request):
        results = SubscriptionManager().migrate_existing()
        return Response({
            'success': True,
            'data': results,
            'message': (
                f"Migration completed. {results['success']} successful, "
                f"{results['failed']} failed."
            ),
        })

"""
Azampay Payment Views

Authenticated endpoints for business owners to pay for a plan and follow
the payment, plus the PUBLIC callback Azampay posts results to.
"""

import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.base_views import BusinessScopedMixin
from apps.core.permissions import IsBusinessOwner

from .exceptions import InvalidPaymentRequest
from .models import PaymentTransaction
from .serializers import (
    InitiatePaymentSerializer,
    AzampayCallbackSerializer,
    PaymentTransactionSerializer,
)
from .services import (
    AzampayClient,
    AzampayError,
    InvalidPhoneNumber,
    PaymentService,
    map_gateway_status,
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


class InitiatePaymentView(BusinessScopedMixin, APIView):
    """
    Start a mobile-money payment for a plan.

    POST /api/v1/payments/azampay/initiate/
    {"businessId": 1, "planId": 2, "phoneNumber": "0712345678", "provider": "AIRTEL"}
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = InitiatePaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({
                'success': False,
                'error': 'Missing required fields: businessId, planId, phoneNumber, provider',
                'details': serializer.errors,
            }, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        business = self.get_business(request, owner_only=True)

        try:
            payment = PaymentService().initiate(
                business=business,
                plan=data['planId'],
                phone_number=data['phoneNumber'],
                provider=data['provider'],
                user=request.user,
            )
        except (InvalidPaymentRequest, InvalidPhoneNumber) as e:
            return Response({'success': False, 'error': e.message}, status=status.HTTP_400_BAD_REQUEST)
        except AzampayError as e:
            return Response({'success': False, 'error': e.message}, status=status.HTTP_502_BAD_GATEWAY)

        return Response({
            'success': True,
            'data': {
                'transaction_id': payment.pk,
                'reference': payment.reference,
                'azampay_transaction_id': payment.azampay_transaction_id,
                'amount': str(payment.amount),
                'currency': payment.currency,
                'provider': payment.provider,
                'phone_number': payment.phone_number,
                'instructions': 'Please check your phone and enter your PIN to complete the payment.',
            },
            'message': 'Payment initiated successfully',
        }, status=status.HTTP_201_CREATED)


class PaymentStatusView(APIView):
    """
    Current status of one payment; PENDING payments are re-checked with Azampay.

    GET /api/v1/payments/azampay/status/{id}/
    """

    permission_classes = [IsAuthenticated]

    def get(self, request, transaction_id):
        payment = get_object_or_404(
            PaymentTransaction.objects.select_related('plan', 'business'),
            pk=transaction_id
        )

        permission = IsBusinessOwner()
        if not permission.has_object_permission(request, self, payment):
            return Response({'success': False, 'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)

        payment = PaymentService().refresh_status(payment)

        data = PaymentTransactionSerializer(payment).data
        return Response({'success': True, 'data': data})


class AzampayCallbackView(APIView):
    """
    Azampay payment callback. PUBLIC, no auth.

    POST /api/v1/payments/azampay/callback/
    """

    permission_classes = [AllowAny]
    authentication_classes = []
    signature_header = 'X-Azampay-Signature'

    def verify_signature(self, request) -> bool:
        signature = request.headers.get(self.signature_header, '')
        return AzampayClient().verify_webhook_signature(request.body, signature)

    def post(self, request):
        logger.info("Received Azampay callback")

        if not self.verify_signature(request):
            logger.warning("Invalid Azampay callback signature")
            return Response({'success': False, 'error': 'Invalid signature'}, status=status.HTTP_401_UNAUTHORIZED)

        serializer = AzampayCallbackSerializer(data=request.data)
        if not serializer.is_valid():
            logger.error(f"Azampay callback missing data: {serializer.errors}")
            return Response(
                {'success': False, 'error': 'Missing required webhook data'},
                status=status.HTTP_400_BAD_REQUEST
            )

        payload = serializer.validated_data
        reference = payload['externalId']

        payment = PaymentTransaction.objects.filter(reference=reference).first()
        if not payment:
            logger.error(f"Transaction not found for reference: {reference}")
            return Response({'success': False, 'error': 'Transaction not found'}, status=status.HTTP_404_NOT_FOUND)

        payment, applied = PaymentService().apply_gateway_result(
            payment,
            map_gateway_status(payload['status']),
            gateway_id=payload['transactionId'],
            reason=payload.get('reason') or '',
        )

        return Response({
            'success': True,
            'message': 'Webhook processed successfully' if applied else 'Webhook already processed',
            'data': {
                'reference': reference,
                'status': payment.status,
            },
        })


class TransactionListView(BusinessScopedMixin, APIView):
    """
    Payment history for one business, newest first.

    GET /api/v1/payments/transactions/?businessId=1&status=SUCCESS&limit=20&offset=0
    """

    permission_classes = [IsAuthenticated]

    @staticmethod
    def _int_param(request, name, default, minimum, maximum=None):
        try:
            value = int(request.query_params.get(name, default))
        except (TypeError, ValueError):
            value = default
        value = max(minimum, value)
        if maximum is not None:
            value = min(maximum, value)
        return value

    def get(self, request):
        business = self.get_business(request, owner_only=True)

        queryset = (
            PaymentTransaction.objects
            .filter(business=business)
            .select_related('plan')
            .order_by('-created_at', '-id')
        )

        status_filter = request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter.upper())

        limit = self._int_param(request, 'limit', DEFAULT_PAGE_SIZE, 1, MAX_PAGE_SIZE)
        offset = self._int_param(request, 'offset', 0, 0)

        total = queryset.count()
        page = queryset[offset:offset + limit]

        return Response({
            'success': True,
            'data': PaymentTransactionSerializer(page, many=True).data,
            'pagination': {
                'total': total,
                'limit': limit,
                'offset': offset,
                'has_more': offset + limit < total,
            },
        })

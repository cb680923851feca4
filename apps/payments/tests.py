import hashlib
import hmac
import json
import re
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

import requests
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.core.models import Business
from apps.subscriptions import limits
from apps.subscriptions.catalogue import seed_plans
from apps.subscriptions.exceptions import SubscriptionError
from apps.subscriptions.models import BusinessSubscription, SubscriptionPlan

from .exceptions import InvalidPaymentRequest
from .models import PaymentTransaction
from .services import (
    AzampayAuthError,
    AzampayCheckoutError,
    AzampayClient,
    AzampayError,
    AzampayTimeoutError,
    InvalidPhoneNumber,
    MobileMoneyProvider,
    PaymentService,
    PaymentStatus,
    map_gateway_status,
)
from .tasks import expire_stale_pending_payments, reconcile_pending_payments

User = get_user_model()

REQUEST_PATH = 'apps.payments.services.azampay.requests.request'

TOKEN_BODY = {
    'success': True,
    'data': {'accessToken': 'test-token', 'expire': '2030-01-01T00:00:00Z'},
    'message': 'Token generated successfully',
    'statusCode': 200,
}


def mock_response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.reason = 'OK' if status_code < 400 else 'Error'
    response.text = json.dumps(body) if body is not None else ''
    response.json.return_value = body
    return response


def fake_gateway(checkout=None, status_body=None):
    """Route requests.request calls by Azampay endpoint."""
    def _request(method=None, url=None, **kwargs):
        if url.endswith('/AppRegistration/GenerateToken'):
            return mock_response(200, TOKEN_BODY)
        if url.endswith('/azampay/mno/checkout'):
            return checkout or mock_response(200, {'success': True, 'data': 'AZ-123', 'message': 'Checkout initiated'})
        if '/api/v1/payment/status/' in url:
            return mock_response(200, status_body)
        raise AssertionError(f"Unexpected Azampay call: {method} {url}")
    return _request


class StatusMappingTests(SimpleTestCase):
    def test_map_gateway_status(self):
        self.assertEqual(map_gateway_status('success'), PaymentStatus.SUCCESS)
        self.assertEqual(map_gateway_status('Successful'), PaymentStatus.SUCCESS)
        self.assertEqual(map_gateway_status('CANCELED'), PaymentStatus.CANCELLED)
        self.assertEqual(map_gateway_status('cancelled'), PaymentStatus.CANCELLED)
        self.assertEqual(map_gateway_status('failed'), PaymentStatus.FAILED)
        self.assertEqual(map_gateway_status('expired'), PaymentStatus.EXPIRED)
        self.assertEqual(map_gateway_status('processing'), PaymentStatus.PENDING)
        self.assertEqual(map_gateway_status(None), PaymentStatus.PENDING)

    def test_provider_parse(self):
        self.assertEqual(MobileMoneyProvider.parse('airtel'), MobileMoneyProvider.AIRTEL)
        self.assertEqual(MobileMoneyProvider.parse('Tigopesa'), MobileMoneyProvider.TIGOPESA)
        with self.assertRaises(ValueError):
            MobileMoneyProvider.parse('MPESA')


class PhoneAndReferenceTests(SimpleTestCase):
    def test_format_phone_number(self):
        self.assertEqual(AzampayClient.format_phone_number('+255 712 345 678'), '255712345678')
        self.assertEqual(AzampayClient.format_phone_number('0712-345-678'), '255712345678')
        self.assertEqual(AzampayClient.format_phone_number('255612345678'), '255612345678')
        self.assertEqual(AzampayClient.format_phone_number('(0)754123456'), '255754123456')
        self.assertEqual(AzampayClient.format_phone_number('712345678'), '255712345678')

    def test_rejects_bad_prefix(self):
        with self.assertRaisesMessage(InvalidPhoneNumber, 'Invalid Tanzanian phone number'):
            AzampayClient.format_phone_number('0812345678')

    def test_rejects_bad_length(self):
        with self.assertRaisesMessage(InvalidPhoneNumber, 'Invalid phone number length'):
            AzampayClient.format_phone_number('071234567')

    def test_generate_reference(self):
        reference = AzampayClient.generate_reference()
        self.assertRegex(reference, r'^KPQ-\d{13}-[A-Z0-9]{7}$')
        self.assertNotEqual(reference, AzampayClient.generate_reference())


class AzampayClientTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = AzampayClient()

    @patch(REQUEST_PATH)
    def test_token_is_cached(self, mock_request):
        mock_request.return_value = mock_response(200, TOKEN_BODY)

        self.assertEqual(self.client.get_access_token(), 'test-token')
        self.assertEqual(AzampayClient().get_access_token(), 'test-token')

        self.assertEqual(mock_request.call_count, 1)
        kwargs = mock_request.call_args.kwargs
        self.assertEqual(kwargs['url'], 'https://sandbox.azampay.test/AppRegistration/GenerateToken')
        self.assertEqual(kwargs['json']['clientId'], 'test-client')

    @patch(REQUEST_PATH)
    def test_token_failure(self, mock_request):
        mock_request.return_value = mock_response(401, {'message': 'bad credentials'})
        with self.assertRaises(AzampayAuthError):
            self.client.get_access_token()

    @patch(REQUEST_PATH)
    def test_token_without_access_token(self, mock_request):
        mock_request.return_value = mock_response(200, {'success': False, 'message': 'nope'})
        with self.assertRaises(AzampayAuthError):
            self.client.get_access_token()

    @override_settings(AZAMPAY_CLIENT_ID='')
    def test_missing_credentials(self):
        with self.assertRaises(AzampayAuthError):
            AzampayClient().get_access_token()

    @patch(REQUEST_PATH)
    def test_checkout(self, mock_request):
        mock_request.side_effect = fake_gateway()

        checkout = self.client.initiate_mobile_checkout(
            account_number='255712345678',
            amount=Decimal('40000.00'),
            external_id='KPQ-1-ABCDEFG',
            provider='AIRTEL',
            additional_properties={'planName': 'Professional Plan'},
        )

        self.assertEqual(checkout.transaction_id, 'AZ-123')
        kwargs = mock_request.call_args.kwargs
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer test-token')
        self.assertEqual(kwargs['headers']['X-API-Key'], 'test-api-key')
        self.assertEqual(kwargs['json'], {
            'accountNumber': '255712345678',
            'amount': '40000',
            'currency': 'TZS',
            'externalId': 'KPQ-1-ABCDEFG',
            'provider': 'Airtel',
            'additionalProperties': {'planName': 'Professional Plan'},
        })

    @patch(REQUEST_PATH)
    def test_checkout_rejected(self, mock_request):
        mock_request.side_effect = fake_gateway(
            checkout=mock_response(200, {'success': False, 'message': 'Insufficient balance'})
        )
        with self.assertRaisesMessage(AzampayCheckoutError, 'Insufficient balance'):
            self.client.initiate_mobile_checkout('255712345678', 1000, 'REF', 'Azampesa')

    @patch(REQUEST_PATH)
    def test_checkout_http_error(self, mock_request):
        mock_request.side_effect = fake_gateway(checkout=mock_response(500, {'message': 'down'}))
        with self.assertRaises(AzampayCheckoutError):
            self.client.initiate_mobile_checkout('255712345678', 1000, 'REF', 'Halopesa')

    @patch(REQUEST_PATH)
    def test_timeout(self, mock_request):
        mock_request.side_effect = requests.exceptions.Timeout()
        with self.assertRaises(AzampayTimeoutError):
            self.client.get_access_token()

    @patch(REQUEST_PATH)
    def test_connection_error(self, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError('refused')
        with self.assertRaises(AzampayError):
            self.client.get_access_token()

    @patch(REQUEST_PATH)
    def test_check_payment_status(self, mock_request):
        mock_request.side_effect = fake_gateway(status_body={
            'success': True,
            'data': {
                'transactionId': 'AZ-123',
                'status': 'FAILED',
                'amount': '40000',
                'currency': 'TZS',
                'provider': 'Airtel',
                'externalId': 'KPQ-1-ABCDEFG',
                'reason': 'Insufficient funds',
            },
        })

        result = self.client.check_payment_status('AZ-123')

        self.assertEqual(result.status, PaymentStatus.FAILED)
        self.assertEqual(result.amount, Decimal('40000'))
        self.assertEqual(result.reason, 'Insufficient funds')
        self.assertEqual(
            mock_request.call_args.kwargs['url'],
            'https://sandbox.azampay.test/api/v1/payment/status/AZ-123'
        )

    def test_signature_skipped_without_secret(self):
        self.assertTrue(self.client.verify_webhook_signature(b'{}', ''))

    def test_signature_with_secret(self):
        body = b'{"externalId":"KPQ-1"}'
        signature = hmac.new(b'hook-secret', body, hashlib.sha256).hexdigest()
        self.assertTrue(self.client.verify_webhook_signature(body, signature, secret='hook-secret'))
        self.assertFalse(self.client.verify_webhook_signature(body, 'bad', secret='hook-secret'))
        self.assertFalse(self.client.verify_webhook_signature(body, '', secret='hook-secret'))

    def test_signature_over_raw_bytes(self):
        body = b'\xff\xfe{}'
        signature = hmac.new(b'hook-secret', body, hashlib.sha256).hexdigest()
        self.assertTrue(self.client.verify_webhook_signature(body, signature, secret='hook-secret'))
        self.assertFalse(self.client.verify_webhook_signature(body, 'forged', secret='hook-secret'))


class PaymentTestMixin:
    def setUp(self):
        cache.clear()
        seed_plans()
        self.professional = SubscriptionPlan.objects.get(name=limits.PROFESSIONAL)
        self.owner = User.objects.create_user(username='owner', email='owner@example.com', password='testpass123')
        self.business = Business.objects.create(name='Duka Letu', slug='duka-letu', owner=self.owner)

    def make_payment(self, **kwargs):
        defaults = {
            'business': self.business,
            'plan': self.professional,
            'amount': self.professional.price_monthly,
            'provider': 'AIRTEL',
            'reference': AzampayClient.generate_reference(),
            'phone_number': '255712345678',
            'azampay_transaction_id': 'AZ-123',
        }
        defaults.update(kwargs)
        return PaymentTransaction.objects.create(**defaults)

    def subscription(self):
        return BusinessSubscription.objects.get(business=self.business)


class PaymentServiceTests(PaymentTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.service = PaymentService()

    @patch(REQUEST_PATH)
    def test_initiate(self, mock_request):
        mock_request.side_effect = fake_gateway()

        payment = self.service.initiate(self.business, self.professional.pk, '0712 345 678', 'airtel', self.owner)

        self.assertEqual(payment.status, PaymentTransaction.STATUS_PENDING)
        self.assertEqual(payment.amount, Decimal('40000'))
        self.assertEqual(payment.currency, 'TZS')
        self.assertEqual(payment.provider, 'AIRTEL')
        self.assertEqual(payment.phone_number, '255712345678')
        self.assertEqual(payment.azampay_transaction_id, 'AZ-123')
        self.assertEqual(payment.subscription, self.subscription())
        self.assertEqual(payment.metadata, {
            'userId': self.owner.pk,
            'userEmail': 'owner@example.com',
            'planName': 'PROFESSIONAL',
            'planDisplayName': 'Professional Plan',
        })

    @patch(REQUEST_PATH)
    def test_initiate_gateway_failure_marks_failed(self, mock_request):
        mock_request.side_effect = fake_gateway(
            checkout=mock_response(200, {'success': False, 'message': 'Provider unavailable'})
        )

        with self.assertRaises(AzampayCheckoutError):
            self.service.initiate(self.business, self.professional, '0712345678', 'AIRTEL', self.owner)

        payment = PaymentTransaction.objects.get()
        self.assertEqual(payment.status, PaymentTransaction.STATUS_FAILED)
        self.assertIn('Provider unavailable', payment.failure_reason)

    def test_initiate_rejects_unknown_provider(self):
        with self.assertRaises(InvalidPaymentRequest):
            self.service.initiate(self.business, self.professional, '0712345678', 'MPESA', self.owner)
        self.assertFalse(PaymentTransaction.objects.exists())

    def test_initiate_rejects_bad_phone(self):
        with self.assertRaises(InvalidPhoneNumber):
            self.service.initiate(self.business, self.professional, '12345', 'AIRTEL', self.owner)
        self.assertFalse(PaymentTransaction.objects.exists())

    def test_initiate_rejects_inactive_plan(self):
        SubscriptionPlan.objects.filter(pk=self.professional.pk).update(is_active=False)
        with self.assertRaises(InvalidPaymentRequest):
            self.service.initiate(self.business, self.professional.pk, '0712345678', 'AIRTEL', self.owner)

    def test_success_activates_plan(self):
        payment = self.make_payment()

        payment, applied = self.service.apply_gateway_result(payment, PaymentStatus.SUCCESS, 'AZ-999')

        self.assertTrue(applied)
        self.assertEqual(payment.status, PaymentTransaction.STATUS_SUCCESS)
        self.assertEqual(payment.azampay_transaction_id, 'AZ-999')
        self.assertIsNotNone(payment.completed_at)
        subscription = self.subscription()
        self.assertEqual(subscription.status, BusinessSubscription.ACTIVE)
        self.assertEqual(subscription.plan, self.professional)
        self.assertEqual(subscription.billing_cycle, BusinessSubscription.MONTHLY)
        self.assertEqual(payment.subscription, subscription)

    def test_repeated_success_is_ignored(self):
        payment = self.make_payment()
        self.service.apply_gateway_result(payment, PaymentStatus.SUCCESS)
        period_end = self.subscription().current_period_end

        payment, applied = self.service.apply_gateway_result(payment, PaymentStatus.SUCCESS)

        self.assertFalse(applied)
        self.assertEqual(self.subscription().current_period_end, period_end)

    def test_terminal_failure_is_final(self):
        payment = self.make_payment()
        payment, _ = self.service.apply_gateway_result(payment, PaymentStatus.FAILED, reason='Wrong PIN')
        self.assertEqual(payment.failure_reason, 'Wrong PIN')

        payment, applied = self.service.apply_gateway_result(payment, PaymentStatus.SUCCESS)

        self.assertFalse(applied)
        self.assertEqual(payment.status, PaymentTransaction.STATUS_FAILED)
        self.assertEqual(self.subscription().status, BusinessSubscription.TRIAL)

    def test_pending_is_noop(self):
        payment = self.make_payment()
        payment, applied = self.service.apply_gateway_result(payment, PaymentStatus.PENDING)
        self.assertFalse(applied)
        self.assertEqual(payment.status, PaymentTransaction.STATUS_PENDING)

    def test_activation_failure_is_recorded(self):
        payment = self.make_payment()
        manager = MagicMock()
        manager.activate.side_effect = SubscriptionError('Plan not found')
        service = PaymentService(manager=manager)

        payment, applied = service.apply_gateway_result(payment, PaymentStatus.SUCCESS)

        self.assertTrue(applied)
        payment.refresh_from_db()
        self.assertEqual(payment.status, PaymentTransaction.STATUS_SUCCESS)
        self.assertEqual(payment.metadata['activationError'], 'Plan not found')
        self.assertIn('activationAttempted', payment.metadata)

    def test_refresh_status_applies_gateway_result(self):
        payment = self.make_payment()
        client = MagicMock()
        client.check_payment_status.return_value = MagicMock(status=PaymentStatus.SUCCESS, reason=None)

        payment = PaymentService(client=client).refresh_status(payment)

        client.check_payment_status.assert_called_once_with('AZ-123')
        self.assertEqual(payment.status, PaymentTransaction.STATUS_SUCCESS)
        self.assertEqual(self.subscription().status, BusinessSubscription.ACTIVE)

    def test_refresh_status_survives_gateway_error(self):
        payment = self.make_payment()
        client = MagicMock()
        client.check_payment_status.side_effect = AzampayError('down')

        payment = PaymentService(client=client).refresh_status(payment)

        self.assertEqual(payment.status, PaymentTransaction.STATUS_PENDING)

    def test_refresh_status_skips_without_gateway_id(self):
        payment = self.make_payment(azampay_transaction_id='')
        client = MagicMock()
        PaymentService(client=client).refresh_status(payment)
        client.check_payment_status.assert_not_called()

    def test_expire_stale_pending(self):
        stale = self.make_payment(initiated_at=timezone.now() - timedelta(minutes=45))
        fresh = self.make_payment(initiated_at=timezone.now() - timedelta(minutes=5))

        self.assertEqual(self.service.expire_stale_pending(), 1)

        stale.refresh_from_db()
        fresh.refresh_from_db()
        self.assertEqual(stale.status, PaymentTransaction.STATUS_EXPIRED)
        self.assertEqual(fresh.status, PaymentTransaction.STATUS_PENDING)

    def test_success_after_local_expiry_activates(self):
        payment = self.make_payment(initiated_at=timezone.now() - timedelta(minutes=31))
        self.service.expire_stale_pending()

        payment, applied = self.service.apply_gateway_result(payment, PaymentStatus.SUCCESS, 'AZ-555')

        self.assertTrue(applied)
        self.assertEqual(payment.status, PaymentTransaction.STATUS_SUCCESS)
        self.assertEqual(payment.failure_reason, '')
        self.assertEqual(self.subscription().status, BusinessSubscription.ACTIVE)

    def test_expired_ignores_late_failure(self):
        payment = self.make_payment(status=PaymentTransaction.STATUS_EXPIRED)

        payment, applied = self.service.apply_gateway_result(payment, PaymentStatus.FAILED, reason='Timeout')

        self.assertFalse(applied)
        self.assertEqual(payment.status, PaymentTransaction.STATUS_EXPIRED)

    def test_cancelled_stays_final(self):
        payment = self.make_payment(status=PaymentTransaction.STATUS_CANCELLED)

        payment, applied = self.service.apply_gateway_result(payment, PaymentStatus.SUCCESS)

        self.assertFalse(applied)
        self.assertEqual(self.subscription().status, BusinessSubscription.TRIAL)


class PaymentTaskTests(PaymentTestMixin, TestCase):
    @patch(REQUEST_PATH)
    def test_reconcile_pending_payments(self, mock_request):
        mock_request.side_effect = fake_gateway(status_body={
            'success': True,
            'data': {'transactionId': 'AZ-123', 'status': 'SUCCESS'},
        })
        self.make_payment(initiated_at=timezone.now() - timedelta(minutes=3))

        result = reconcile_pending_payments()

        self.assertEqual(result, {'checked': 1, 'resolved': 1})
        self.assertEqual(self.subscription().status, BusinessSubscription.ACTIVE)

    def test_expire_stale_pending_payments(self):
        self.make_payment(initiated_at=timezone.now() - timedelta(hours=2))
        self.assertEqual(expire_stale_pending_payments(), {'expired': 1})


class InitiatePaymentAPITests(PaymentTestMixin, APITestCase):
    url = '/api/v1/payments/azampay/initiate/'

    def setUp(self):
        super().setUp()
        self.client.force_authenticate(user=self.owner)

    def payload(self, **overrides):
        data = {
            'businessId': self.business.pk,
            'planId': self.professional.pk,
            'phoneNumber': '0712345678',
            'provider': 'TIGOPESA',
        }
        data.update(overrides)
        return data

    @patch(REQUEST_PATH)
    def test_initiate(self, mock_request):
        mock_request.side_effect = fake_gateway()

        response = self.client.post(self.url, self.payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['azampay_transaction_id'], 'AZ-123')
        self.assertEqual(data['phone_number'], '255712345678')
        self.assertEqual(data['provider'], 'TIGOPESA')
        self.assertTrue(re.match(r'^KPQ-', data['reference']))

    def test_missing_fields(self):
        response = self.client.post(self.url, {'businessId': self.business.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])

    def test_unknown_business(self):
        response = self.client.post(self.url, self.payload(businessId=99999), format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_non_owner(self):
        other = User.objects.create_user(username='other', password='testpass123')
        self.client.force_authenticate(user=other)
        response = self.client.post(self.url, self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_invalid_phone(self):
        response = self.client.post(self.url, self.payload(phoneNumber='0812345678'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid Tanzanian phone number')

    def test_invalid_provider(self):
        response = self.client.post(self.url, self.payload(provider='MPESA'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid mobile money provider')

    def test_invalid_plan(self):
        response = self.client.post(self.url, self.payload(planId=99999), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid or inactive plan')

    @patch(REQUEST_PATH)
    def test_gateway_failure(self, mock_request):
        mock_request.side_effect = fake_gateway(checkout=mock_response(503, {'message': 'maintenance'}))

        response = self.client.post(self.url, self.payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(PaymentTransaction.objects.get().status, PaymentTransaction.STATUS_FAILED)


class AzampayCallbackAPITests(PaymentTestMixin, APITestCase):
    url = '/api/v1/payments/azampay/callback/'

    def post_callback(self, body, **extra):
        return self.client.post(self.url, data=json.dumps(body), content_type='application/json', **extra)

    def test_missing_data(self):
        response = self.post_callback({'status': 'SUCCESS'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Missing required webhook data')

    def test_unknown_reference(self):
        response = self.post_callback({'transactionId': 'AZ-1', 'externalId': 'KPQ-0-NOPE', 'status': 'SUCCESS'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_success_activates_once(self):
        payment = self.make_payment()
        body = {
            'transactionId': 'AZ-777',
            'externalId': payment.reference,
            'status': 'SUCCESSFUL',
            'amount': '40000',
            'currency': 'TZS',
            'provider': 'Airtel',
        }

        response = self.post_callback(body)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'], {'reference': payment.reference, 'status': 'SUCCESS'})
        self.assertEqual(response.data['message'], 'Webhook processed successfully')
        subscription = self.subscription()
        self.assertEqual(subscription.status, BusinessSubscription.ACTIVE)
        period_end = subscription.current_period_end

        response = self.post_callback(body)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Webhook already processed')
        self.assertEqual(self.subscription().current_period_end, period_end)

    def test_failure_records_reason(self):
        payment = self.make_payment()
        response = self.post_callback({
            'transactionId': 'AZ-778',
            'externalId': payment.reference,
            'status': 'failed',
            'reason': 'Insufficient funds',
        })

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        payment.refresh_from_db()
        self.assertEqual(payment.status, PaymentTransaction.STATUS_FAILED)
        self.assertEqual(payment.failure_reason, 'Insufficient funds')
        self.assertEqual(self.subscription().status, BusinessSubscription.TRIAL)

    @override_settings(AZAMPAY_WEBHOOK_SECRET='hook-secret')
    def test_signature_checked_when_configured(self):
        payment = self.make_payment()
        raw = json.dumps({'transactionId': 'AZ-1', 'externalId': payment.reference, 'status': 'SUCCESS'})

        response = self.client.post(
            self.url, data=raw, content_type='application/json',
            HTTP_X_AZAMPAY_SIGNATURE='forged'
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        signature = hmac.new(b'hook-secret', raw.encode(), hashlib.sha256).hexdigest()
        response = self.client.post(
            self.url, data=raw, content_type='application/json',
            HTTP_X_AZAMPAY_SIGNATURE=signature
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    @override_settings(AZAMPAY_WEBHOOK_SECRET='hook-secret')
    def test_non_utf8_body(self):
        raw = b'\xff\xfe{}'

        response = self.client.post(
            self.url, data=raw, content_type='application/json',
            HTTP_X_AZAMPAY_SIGNATURE='forged'
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        signature = hmac.new(b'hook-secret', raw, hashlib.sha256).hexdigest()
        response = self.client.post(
            self.url, data=raw, content_type='application/json',
            HTTP_X_AZAMPAY_SIGNATURE=signature
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])

    def test_success_after_local_expiry(self):
        payment = self.make_payment(initiated_at=timezone.now() - timedelta(minutes=31))
        self.assertEqual(PaymentService().expire_stale_pending(), 1)

        response = self.post_callback({
            'transactionId': 'AZ-901',
            'externalId': payment.reference,
            'status': 'SUCCESS',
        })

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Webhook processed successfully')
        self.assertEqual(response.data['data']['status'], 'SUCCESS')
        self.assertEqual(self.subscription().status, BusinessSubscription.ACTIVE)

        response = self.post_callback({
            'transactionId': 'AZ-901',
            'externalId': payment.reference,
            'status': 'SUCCESS',
        })
        self.assertEqual(response.data['message'], 'Webhook already processed')


class PaymentStatusAPITests(PaymentTestMixin, APITestCase):
    def setUp(self):
        super().setUp()
        self.client.force_authenticate(user=self.owner)

    @patch(REQUEST_PATH)
    def test_pending_is_refreshed(self, mock_request):
        mock_request.side_effect = fake_gateway(status_body={
            'success': True,
            'data': {'transactionId': 'AZ-123', 'status': 'success'},
        })
        payment = self.make_payment()

        response = self.client.get(f'/api/v1/payments/azampay/status/{payment.pk}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'SUCCESS')
        self.assertEqual(self.subscription().status, BusinessSubscription.ACTIVE)

    def test_terminal_is_not_refreshed(self):
        payment = self.make_payment(status=PaymentTransaction.STATUS_FAILED)
        with patch(REQUEST_PATH) as mock_request:
            response = self.client.get(f'/api/v1/payments/azampay/status/{payment.pk}/')
            mock_request.assert_not_called()
        self.assertEqual(response.data['data']['status'], 'FAILED')

    def test_non_owner(self):
        payment = self.make_payment()
        other = User.objects.create_user(username='other', password='testpass123')
        self.client.force_authenticate(user=other)
        response = self.client.get(f'/api/v1/payments/azampay/status/{payment.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_transaction(self):
        response = self.client.get('/api/v1/payments/azampay/status/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class TransactionListAPITests(PaymentTestMixin, APITestCase):
    url = '/api/v1/payments/transactions/'

    def setUp(self):
        super().setUp()
        self.client.force_authenticate(user=self.owner)
        self.payments = [self.make_payment() for _ in range(3)]
        self.make_payment(status=PaymentTransaction.STATUS_FAILED)

    def test_pagination(self):
        response = self.client.get(self.url, {'businessId': self.business.pk, 'limit': 2, 'offset': 0})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']), 2)
        self.assertEqual(response.data['pagination'], {'total': 4, 'limit': 2, 'offset': 0, 'has_more': True})

        response = self.client.get(self.url, {'businessId': self.business.pk, 'limit': 2, 'offset': 2})
        self.assertFalse(response.data['pagination']['has_more'])

    def test_newest_first(self):
        response = self.client.get(self.url, {'businessId': self.business.pk})
        ids = [row['id'] for row in response.data['data']]
        self.assertEqual(ids, sorted(ids, reverse=True))

    def test_status_filter(self):
        response = self.client.get(self.url, {'businessId': self.business.pk, 'status': 'failed'})
        self.assertEqual(response.data['pagination']['total'], 1)
        self.assertEqual(response.data['data'][0]['status'], 'FAILED')

    def test_other_business_hidden(self):
        other_owner = User.objects.create_user(username='other', password='testpass123')
        other = Business.objects.create(name='Other', slug='other', owner=other_owner)
        self.make_payment(business=other)

        response = self.client.get(self.url, {'businessId': self.business.pk})
        self.assertEqual(response.data['pagination']['total'], 4)

        response = self.client.get(self.url, {'businessId': other.pk})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

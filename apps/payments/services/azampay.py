"""
Azampay Payment Gateway Client

Mobile-money checkout (Azampesa, Tigopesa, Airtel Money, Halopesa) for
Kopqela subscription payments in Tanzania.

Documentation: https://developerdocs.azampay.co.tz
"""

import hashlib
import hmac
import json
import logging
import re
import secrets
import string
import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Union

import phonenumbers
import requests
from phonenumbers import PhoneNumberFormat

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)


class AzampayError(Exception):
    """Base exception for Azampay API errors"""

    def __init__(self, message: str, code: str = None, response: Dict = None):
        self.message = message
        self.code = code
        self.response = response or {}
        super().__init__(self.message)


class AzampayAuthError(AzampayError):
    """Token generation failed or credentials are missing"""
    pass


class AzampayCheckoutError(AzampayError):
    """Checkout request rejected by Azampay"""
    pass


class AzampayTimeoutError(AzampayError):
    """Timeout error when calling Azampay API"""
    pass


class InvalidPhoneNumber(AzampayError):
    """Phone number is not a valid Tanzanian mobile number"""

    def __init__(self, message: str = 'Invalid Tanzanian phone number'):
        super().__init__(message, code='INVALID_PHONE')


class PaymentStatus(Enum):
    """Local payment status"""
    PENDING = 'PENDING'
    SUCCESS = 'SUCCESS'
    FAILED = 'FAILED'
    CANCELLED = 'CANCELLED'
    EXPIRED = 'EXPIRED'

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


class MobileMoneyProvider(Enum):
    """Mobile network operators accepted by the MNO checkout"""
    AZAMPESA = 'Azampesa'
    TIGOPESA = 'Tigopesa'
    AIRTEL = 'Airtel'
    HALOPESA = 'Halopesa'

    @classmethod
    def parse(cls, value: str) -> 'MobileMoneyProvider':
        """Accept the enum name or the Azampay value, any case"""
        if isinstance(value, cls):
            return value
        normalized = str(value or '').strip().lower()
        for provider in cls:
            if normalized in (provider.name.lower(), provider.value.lower()):
                return provider
        raise ValueError(f"Unknown mobile money provider: {value}")


STATUS_MAPPING = {
    'SUCCESS': PaymentStatus.SUCCESS,
    'SUCCESSFUL': PaymentStatus.SUCCESS,
    'FAILED': PaymentStatus.FAILED,
    'CANCELLED': PaymentStatus.CANCELLED,
    'CANCELED': PaymentStatus.CANCELLED,
    'EXPIRED': PaymentStatus.EXPIRED,
}


def map_gateway_status(gateway_status: Optional[str]) -> PaymentStatus:
    """Map an Azampay status string to PaymentStatus; unknown is PENDING"""
    return STATUS_MAPPING.get(str(gateway_status or '').strip().upper(), PaymentStatus.PENDING)


@dataclass
class CheckoutResponse:
    """Response from MNO checkout initiation"""
    transaction_id: str
    message: str
    raw_response: Dict


@dataclass
class PaymentStatusResponse:
    """Response from payment status query"""
    status: PaymentStatus
    gateway_status: str
    transaction_id: Optional[str]
    external_id: Optional[str]
    amount: Optional[Decimal]
    provider: Optional[str]
    reason: Optional[str]
    raw_response: Dict


class AzampayClient:
    """
    Azampay API Client for MNO checkout and status queries.

    Usage:
        client = AzampayClient()
        checkout = client.initiate_mobile_checkout(
            account_number='255712345678',
            amount=20000,
            external_id=client.generate_reference(),
            provider=MobileMoneyProvider.AIRTEL,
        )
        print(checkout.transaction_id)
    """

    SANDBOX_BASE_URL = 'https://sandbox.azampay.co.tz'

    TOKEN_ENDPOINT = '/AppRegistration/GenerateToken'
    CHECKOUT_ENDPOINT = '/azampay/mno/checkout'
    STATUS_ENDPOINT = '/api/v1/payment/status/{transaction_id}'

    TOKEN_CACHE_KEY = 'azampay:access_token'
    # Tokens live one hour; refresh five minutes early
    TOKEN_TTL_SECONDS = 55 * 60

    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        app_name: str = None,
        client_id: str = None,
        client_secret: str = None,
        api_key: str = None,
        base_url: str = None,
        environment: str = None,
    ):
        self.app_name = app_name or getattr(settings, 'AZAMPAY_APP_NAME', 'Kopqela')
        self.client_id = client_id or getattr(settings, 'AZAMPAY_CLIENT_ID', '')
        self.client_secret = client_secret or getattr(settings, 'AZAMPAY_CLIENT_SECRET', '')
        self.api_key = api_key or getattr(settings, 'AZAMPAY_API_KEY', '')
        self.environment = environment or getattr(settings, 'AZAMPAY_ENV', 'sandbox')
        self.base_url = (base_url or getattr(settings, 'AZAMPAY_BASE_URL', '') or self.SANDBOX_BASE_URL).rstrip('/')
        self.timeout = getattr(settings, 'AZAMPAY_TIMEOUT', self.DEFAULT_TIMEOUT)

        if not self.client_id or not self.client_secret or not self.api_key:
            logger.warning("Azampay credentials not configured. Payment functionality will not work.")
        else:
            logger.debug(f"Azampay client initialized: env={self.environment}, app={self.app_name}")

    def _validate_credentials(self):
        if not self.client_id or not self.client_secret or not self.api_key:
            raise AzampayAuthError(
                message="Azampay credentials not configured. Set AZAMPAY_CLIENT_ID, "
                        "AZAMPAY_CLIENT_SECRET and AZAMPAY_API_KEY in environment.",
                code="MISSING_CREDENTIALS"
            )

    def _make_request(
        self,
        method: str,
        endpoint: str,
        data: Dict = None,
        headers: Dict = None,
        error_class=AzampayError,
    ) -> Dict:
        """
        Make HTTP request to Azampay.

        Raises:
            error_class: on a non-2xx response
            AzampayTimeoutError: if the request times out
            AzampayError: for connection and other transport errors
        """
        url = f"{self.base_url}{endpoint}"
        request_headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }
        request_headers.update(headers or {})

        logger.info(f"Azampay API Request: {method} {url}")
        logger.debug(f"Request data: {json.dumps(data, default=str) if data else 'None'}")

        try:
            response = requests.request(
                method=method,
                url=url,
                headers=request_headers,
                json=data,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            raise AzampayTimeoutError(
                message=f"Request to Azampay timed out after {self.timeout}s",
                code="TIMEOUT"
            )
        except requests.exceptions.ConnectionError as e:
            raise AzampayError(
                message=f"Failed to connect to Azampay: {str(e)}",
                code="CONNECTION_ERROR"
            )
        except requests.exceptions.RequestException as e:
            raise AzampayError(
                message=f"Azampay request failed: {str(e)}",
                code="REQUEST_ERROR"
            )

        logger.info(f"Azampay API Response: {response.status_code}")
        logger.debug(f"Response body: {response.text[:500]}")

        try:
            body = response.json() if response.text else {}
        except ValueError:
            body = {'raw': response.text[:500]}

        if not 200 <= response.status_code < 300:
            detail = body.get('message', '') if isinstance(body, dict) else ''
            raise error_class(
                message=f"Azampay request failed: {response.status_code} {response.reason or ''}. {detail}".strip(),
                code=f"HTTP_{response.status_code}",
                response=body if isinstance(body, dict) else {'data': body}
            )

        return body if isinstance(body, dict) else {'data': body}

    # ─────────────────────────────────────────────────────────────
    #  AUTH
    # ─────────────────────────────────────────────────────────────

    def get_access_token(self) -> str:
        """Bearer token from GenerateToken, cached for 55 minutes"""
        token = cache.get(self.TOKEN_CACHE_KEY)
        if token:
            return token

        self._validate_credentials()

        response = self._make_request(
            method='POST',
            endpoint=self.TOKEN_ENDPOINT,
            data={
                'appName': self.app_name,
                'clientId': self.client_id,
                'clientSecret': self.client_secret,
            },
            error_class=AzampayAuthError,
        )

        token = (response.get('data') or {}).get('accessToken')
        if not response.get('success') or not token:
            raise AzampayAuthError(
                message=f"Azampay authentication failed: {response.get('message', 'no token returned')}",
                code="AUTH_ERROR",
                response=response
            )

        cache.set(self.TOKEN_CACHE_KEY, token, self.TOKEN_TTL_SECONDS)
        logger.info("Azampay access token generated")
        return token

    def _auth_headers(self) -> Dict:
        return {
            'Authorization': f"Bearer {self.get_access_token()}",
            'X-API-Key': self.api_key,
        }

    # ─────────────────────────────────────────────────────────────
    #  CHECKOUT & STATUS
    # ─────────────────────────────────────────────────────────────

    def initiate_mobile_checkout(
        self,
        account_number: str,
        amount: Union[int, float, Decimal],
        external_id: str,
        provider: Union[MobileMoneyProvider, str],
        currency: str = None,
        additional_properties: Dict = None,
    ) -> CheckoutResponse:
        """
        Push a payment prompt to the customer's handset.

        Args:
            account_number: Phone number, already formatted as 255XXXXXXXXX
            amount: Amount in TZS
            external_id: Our reference, echoed back in the callback
            provider: Mobile network operator

        Returns:
            CheckoutResponse whose transaction_id is Azampay's id

        Raises:
            AzampayCheckoutError: if Azampay rejects the checkout
        """
        provider = MobileMoneyProvider.parse(provider)

        payload = {
            'accountNumber': account_number,
            'amount': str(int(Decimal(str(amount)))),
            'currency': currency or getattr(settings, 'AZAMPAY_CURRENCY', 'TZS'),
            'externalId': external_id,
            'provider': provider.value,
        }
        if additional_properties:
            payload['additionalProperties'] = {k: str(v) for k, v in additional_properties.items()}

        response = self._make_request(
            method='POST',
            endpoint=self.CHECKOUT_ENDPOINT,
            data=payload,
            headers=self._auth_headers(),
            error_class=AzampayCheckoutError,
        )

        if not response.get('success'):
            raise AzampayCheckoutError(
                message=f"Azampay checkout failed: {response.get('message', 'unknown error')}",
                code="CHECKOUT_REJECTED",
                response=response
            )

        return CheckoutResponse(
            transaction_id=str(response.get('data') or ''),
            message=response.get('message', 'Checkout initiated'),
            raw_response=response
        )

    def check_payment_status(self, transaction_id: str) -> PaymentStatusResponse:
        """Query Azampay for the status of ``transaction_id``"""
        response = self._make_request(
            method='GET',
            endpoint=self.STATUS_ENDPOINT.format(transaction_id=transaction_id),
            headers=self._auth_headers(),
        )

        data = response.get('data') or {}
        gateway_status = data.get('status', '')
        amount = data.get('amount')

        return PaymentStatusResponse(
            status=map_gateway_status(gateway_status),
            gateway_status=gateway_status,
            transaction_id=data.get('transactionId') or transaction_id,
            external_id=data.get('externalId'),
            amount=Decimal(str(amount)) if amount not in (None, '') else None,
            provider=data.get('provider'),
            reason=data.get('reason'),
            raw_response=response
        )

    # ─────────────────────────────────────────────────────────────
    #  HELPERS
    # ─────────────────────────────────────────────────────────────

    def verify_webhook_signature(
        self,
        payload: Union[str, bytes, Dict],
        signature: str,
        secret: str = None
    ) -> bool:
        """
        Verify an Azampay callback signature (HMAC-SHA256 of the raw body).

        Returns True when no secret is configured.
        """
        secret = secret or getattr(settings, 'AZAMPAY_WEBHOOK_SECRET', '')

        if not secret:
            logger.warning("Azampay webhook secret not configured, skipping verification")
            return True

        if not signature:
            return False

        if isinstance(payload, dict):
            payload = json.dumps(payload, separators=(',', ':'))
        if isinstance(payload, str):
            payload = payload.encode()

        expected_signature = hmac.new(
            secret.encode(),
            payload,
            hashlib.sha256
        ).hexdigest()

        # Header values may carry arbitrary characters; compare as bytes
        return hmac.compare_digest(expected_signature.encode(), signature.encode())

    @staticmethod
    def format_phone_number(phone: str) -> str:
        """
        Normalize a Tanzanian mobile number to 255XXXXXXXXX.

        Raises:
            InvalidPhoneNumber: unless the local part is 9 digits starting with 6 or 7
        """
        formatted = re.sub(r'[\s\-()]', '', str(phone or '').strip())

        if formatted.startswith('+255'):
            formatted = formatted[4:]
        elif formatted.startswith('255'):
            formatted = formatted[3:]
        elif formatted.startswith('0'):
            formatted = formatted[1:]

        if formatted[:1] not in ('6', '7'):
            raise InvalidPhoneNumber('Invalid Tanzanian phone number')

        if len(formatted) != 9 or not formatted.isdigit():
            raise InvalidPhoneNumber('Invalid phone number length')

        try:
            parsed = phonenumbers.parse(formatted, 'TZ')
        except phonenumbers.NumberParseException:
            raise InvalidPhoneNumber('Invalid Tanzanian phone number')

        # Azampay wants E.164 without the leading '+'
        return phonenumbers.format_number(parsed, PhoneNumberFormat.E164).lstrip('+')

    @staticmethod
    def generate_reference() -> str:
        """KPQ-<epoch ms>-<7 uppercase alphanumerics>"""
        alphabet = string.ascii_uppercase + string.digits
        suffix = ''.join(secrets.choice(alphabet) for _ in range(7))
        return f"KPQ-{int(time.time() * 1000)}-{suffix}"

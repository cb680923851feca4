"""
Payment services
"""
from .azampay import (
    AzampayClient,
    AzampayError,
    AzampayAuthError,
    AzampayCheckoutError,
    AzampayTimeoutError,
    InvalidPhoneNumber,
    MobileMoneyProvider,
    PaymentStatus,
    map_gateway_status,
)
from .payment_service import PaymentService

__all__ = [
    'AzampayClient',
    'AzampayError',
    'AzampayAuthError',
    'AzampayCheckoutError',
    'AzampayTimeoutError',
    'InvalidPhoneNumber',
    'MobileMoneyProvider',
    'PaymentStatus',
    'map_gateway_status',
    'PaymentService',
]

"""
Payment URLs
"""

from django.urls import path

from .views import (
    InitiatePaymentView,
    PaymentStatusView,
    AzampayCallbackView,
    TransactionListView,
)

app_name = 'payments'

urlpatterns = [
    path('azampay/initiate/', InitiatePaymentView.as_view(), name='azampay-initiate'),
    path('azampay/status/<int:transaction_id>/', PaymentStatusView.as_view(), name='azampay-status'),
    path('azampay/callback/', AzampayCallbackView.as_view(), name='azampay-callback'),
    path('transactions/', TransactionListView.as_view(), name='transactions'),
]

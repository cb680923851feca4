"""
Subscription URLs
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    SubscriptionPlanViewSet,
    CurrentSubscriptionView,
    SubscriptionUsageView,
    ActivateSubscriptionView,
    ChangePlanView,
    CancelSubscriptionView,
    ExtendTrialView,
    CheckStatusView,
    MigrateExistingView,
)

app_name = 'subscriptions'

router = DefaultRouter()
router.register(r'plans', SubscriptionPlanViewSet, basename='plans')

urlpatterns = [
    path('', include(router.urls)),

    # Subscription management
    path('current/', CurrentSubscriptionView.as_view(), name='current'),
    path('usage/', SubscriptionUsageView.as_view(), name='usage'),
    path('activate/', ActivateSubscriptionView.as_view(), name='activate'),
    path('change-plan/', ChangePlanView.as_view(), name='change-plan'),
    path('cancel/', CancelSubscriptionView.as_view(), name='cancel'),
    path('extend-trial/', ExtendTrialView.as_view(), name='extend-trial'),

    # Machine triggers
    path('check-status/', CheckStatusView.as_view(), name='check-status'),
    path('migrate-existing/', MigrateExistingView.as_view(), name='migrate-existing'),
]

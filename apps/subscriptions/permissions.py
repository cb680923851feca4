"""
Feature gating for DRF views
"""
import logging

from rest_framework import permissions
from rest_framework.exceptions import PermissionDenied

from apps.core.models import Business

from .services.access import FeatureCheck, check_feature_access

logger = logging.getLogger(__name__)


class FeatureLocked(PermissionDenied):
    """403 carrying the upgrade hint the dashboard shows"""

    def __init__(self, feature: str, check: FeatureCheck):
        super().__init__(check.reason)
        self.payload = {
            'feature': feature,
            'plan_name': check.plan_name,
            'required_plan': check.required_plan,
            'upgrade_required': True,
        }


class RequiresFeature(permissions.BasePermission):
    """
    Deny access unless the business's plan includes ``feature``.

        permission_classes = [IsAuthenticated, RequiresFeature('enable_accounting')]

    The business comes from ``view.get_business(request)`` when the view
    provides it, otherwise from the business id the middleware attached.
    """

    def __init__(self, feature: str):
        self.feature = feature

    def __call__(self):
        # DRF instantiates entries of permission_classes
        return self

    def _resolve_business(self, request, view):
        if hasattr(view, 'get_business'):
            return view.get_business(request)
        try:
            business_id = int(getattr(request, 'business_id', None))
        except (TypeError, ValueError):
            return None
        return Business.objects.filter(pk=business_id).first()

    def has_permission(self, request, view):
        business = self._resolve_business(request, view)
        if business is None:
            raise PermissionDenied('Business context is required')

        result = check_feature_access(business, self.feature)
        if result.allowed:
            return True

        logger.info(f"Business {business.pk} blocked from {self.feature} ({result.plan_name})")
        raise FeatureLocked(self.feature, result)

"""
Base view helpers for business-scoped (multi-tenant) endpoints
"""
from django.shortcuts import get_object_or_404
from rest_framework.exceptions import PermissionDenied, ValidationError

from .models import Business
from .permissions import IsBusinessMember, IsBusinessOwner


class BusinessScopedMixin:
    """
    Resolve the Business a request is about and enforce tenant access.

    - ``businessId`` is read from the body, then the query string, then the
      middleware-provided ``request.business_id``
    - Superusers can reach every business
    - Owners and active members pass; ``owner_only`` narrows to owners
    """

    business_param = 'businessId'

    def get_business_id(self, request):
        raw = None
        if hasattr(request, 'data') and isinstance(request.data, dict):
            raw = request.data.get(self.business_param)
        if raw in (None, ''):
            raw = request.query_params.get(self.business_param)
        if raw in (None, ''):
            raw = getattr(request, 'business_id', None)
        if raw in (None, ''):
            raise ValidationError({'error': 'Business ID is required'})
        try:
            return int(raw)
        except (TypeError, ValueError):
            raise ValidationError({'error': 'Invalid business ID'})

    def get_business(self, request, owner_only: bool = False) -> Business:
        business = get_object_or_404(Business, pk=self.get_business_id(request))
        permission = IsBusinessOwner() if owner_only else IsBusinessMember()
        if not permission.has_object_permission(request, self, business):
            raise PermissionDenied(permission.message)
        return business

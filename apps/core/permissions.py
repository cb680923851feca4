"""
Custom permission classes for Kopqela Billing
"""
from django.conf import settings
from rest_framework import permissions, status
from rest_framework.exceptions import APIException


class Unauthorized(APIException):
    """401 that survives views without authenticators"""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Unauthorized'
    default_code = 'unauthorized'


class IsBusinessOwner(permissions.BasePermission):
    """
    Object permission: only the business owner (or a superuser).
    Works on a Business or on any object with a ``business`` attribute.
    """
    message = 'You do not have permission to manage this business'

    def has_object_permission(self, request, view, obj):
        if request.user.is_superuser:
            return True
        business = getattr(obj, 'business', obj)
        return business.owner_id == request.user.id


class IsBusinessMember(permissions.BasePermission):
    """
    Object permission: the owner or an active staff member.
    """
    message = 'Access denied'

    def has_object_permission(self, request, view, obj):
        if request.user.is_superuser:
            return True
        business = getattr(obj, 'business', obj)
        return business.is_member(request.user)


class IsBearerSecret(permissions.BasePermission):
    """
    Shared-secret check for machine callers (cron, one-off migrations).

    The view names the settings attribute in ``bearer_secret_setting``.
    ``bearer_secret_required`` controls what happens when that setting is
    empty: deny (True) or allow (False).
    """

    def has_permission(self, request, view):
        secret = getattr(settings, view.bearer_secret_setting, '')
        if not secret:
            if getattr(view, 'bearer_secret_required', False):
                raise Unauthorized()
            return True
        if request.headers.get('Authorization', '') != f'Bearer {secret}':
            raise Unauthorized()
        return True

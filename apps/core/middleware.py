"""
Middleware for core functionality
"""
from django.utils.deprecation import MiddlewareMixin


class BusinessContextMiddleware(MiddlewareMixin):
    """
    Attach the caller's business context to the request.

    The dashboard sends the active business either as an
    ``X-Business-ID`` header or a ``businessId`` query parameter.
    Resolution and access checks happen in the views; this only
    records the raw id.
    """

    HEADER = 'HTTP_X_BUSINESS_ID'

    def process_request(self, request):
        request.business_id = (
            request.META.get(self.HEADER)
            or request.GET.get('businessId')
            or None
        )
        return None

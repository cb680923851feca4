"""
Error handlers for Django and DRF
"""
import logging

from django.http import JsonResponse
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    Wrap DRF errors in the platform's envelope:
    {"success": false, "error": "...", "details": {...}}
    """
    response = exception_handler(exc, context)
    if response is None:
        return None

    data = response.data
    if isinstance(data, dict) and 'detail' in data and len(data) == 1:
        error = str(data['detail'])
        details = None
    elif isinstance(data, dict) and 'error' in data:
        error = str(data['error'])
        details = {k: v for k, v in data.items() if k != 'error'} or None
    else:
        error = 'Validation error'
        details = data

    body = {'success': False, 'error': error}
    if details:
        body['details'] = details
    # Exceptions may carry extra top-level keys (e.g. upgrade hints)
    body.update(getattr(exc, 'payload', None) or {})

    if response.status_code >= 500:
        logger.error(f"API error in {context.get('view').__class__.__name__}: {error}")

    response.data = body
    return response


def bad_request(request, exception):
    return JsonResponse({
        'success': False,
        'error': 'Bad Request',
        'message': str(exception),
        'status_code': 400
    }, status=400)


def permission_denied(request, exception):
    return JsonResponse({
        'success': False,
        'error': 'Permission Denied',
        'message': str(exception),
        'status_code': 403
    }, status=403)


def page_not_found(request, exception):
    return JsonResponse({
        'success': False,
        'error': 'Page Not Found',
        'message': 'The requested resource was not found',
        'status_code': 404
    }, status=404)


def server_error(request):
    return JsonResponse({
        'success': False,
        'error': 'Internal Server Error',
        'message': 'An unexpected error occurred',
        'status_code': 500
    }, status=500)

"""
Core Views - Health Checks and Error Handling
"""
import logging

from django.http import JsonResponse
from django.views import View
from django.utils import timezone
from django.db import connection
from django.core.cache import cache
from django.conf import settings
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class HealthCheckView(View):
    """
    Health check endpoint for load balancers and uptime probes
    """

    def get(self, request):
        """Check database and cache"""
        checks = {}

        # Database check
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
            checks['database'] = {'status': 'healthy', 'vendor': connection.vendor}
        except Exception as e:
            logger.error(f"Health check: database unavailable: {e}")
            checks['database'] = {'status': 'unhealthy', 'error': str(e)}

        # Cache check (rate limiting and slug lookups depend on it)
        try:
            cache.set('health_check', 'ok', 1)
            if cache.get('health_check') == 'ok':
                checks['cache'] = {'status': 'healthy'}
            else:
                checks['cache'] = {'status': 'unhealthy', 'error': 'Cache not working'}
        except Exception as e:
            logger.error(f"Health check: cache unavailable: {e}")
            checks['cache'] = {'status': 'unhealthy', 'error': str(e)}

        all_healthy = all(check['status'] == 'healthy' for check in checks.values())

        response = {
            'status': 'healthy' if all_healthy else 'unhealthy',
            'timestamp': timezone.now().isoformat(),
            'checks': checks
        }

        return JsonResponse(response, status=200 if all_healthy else 503)


class RateLimitExceededView(View):
    """
    Custom view for rate limit exceeded errors
    """

    def dispatch(self, request, *args, **kwargs):
        return JsonResponse(
            {
                "detail": "Rate limit exceeded. Please try again later.",
                "code": "rate_limit_exceeded"
            },
            status=429
        )


# ============================================================================
# ERROR HANDLERS (Called automatically by Django)
# ============================================================================

def bad_request_view(request, exception=None):
    """400 Bad Request"""
    return JsonResponse({"detail": "Bad request.", "code": "bad_request"}, status=400)


def permission_denied_view(request, exception=None):
    """403 Forbidden"""
    return JsonResponse({"detail": "Permission denied.", "code": "permission_denied"}, status=403)


def page_not_found_view(request, exception=None):
    """404 Not Found"""
    return JsonResponse(
        {
            "detail": f"Route {request.path} not found.",
            "code": "not_found",
            "path": request.path
        },
        status=404
    )


def server_error_view(request, exception=None):
    """500 Internal Server Error"""
    if settings.DEBUG and exception:
        error_detail = str(exception)
    else:
        error_detail = "Internal server error"

    return JsonResponse({"detail": error_detail, "code": "server_error"}, status=500)


def csrf_failure(request, reason=""):
    """Custom JSON response for CSRF failures"""
    return JsonResponse(
        {
            "detail": "CSRF verification failed. Request aborted.",
            "code": "csrf_failure",
            "reason": reason,
        },
        status=403
    )


# ============================================================================
# DRF EXCEPTION HANDLER
# ============================================================================

def api_exception_handler(exc, context):
    """DRF default handling plus error codes and balance details"""
    response = exception_handler(exc, context)
    if response is None:
        return None

    codes = exc.get_codes() if hasattr(exc, 'get_codes') else None
    if isinstance(response.data, dict) and 'detail' in response.data and isinstance(codes, str):
        response.data['code'] = codes

    # InsufficientBalance carries the numbers the caller needs to show
    current_balance = getattr(exc, 'current_balance', None)
    if current_balance is not None:
        response.data['current_balance'] = current_balance
        response.data['required'] = exc.required
        response.data['shortfall'] = exc.shortfall

    if response.status_code >= 500:
        logger.error(f"{response.status_code} - {exc}")
    else:
        logger.warning(f"{response.status_code} - {exc}")

    return response

# core/middleware.py
import jwt
import logging
from django.conf import settings
from django.http import JsonResponse
from django.core.cache import cache
from django.contrib.auth import get_user_model
from django_ratelimit.decorators import ratelimit
from django_ratelimit.exceptions import Ratelimited

# ✅ CRITICAL: Import thread-local utilities from utils
from .authentication import decode_token, get_bearer_token
from .utils import get_current_business, set_current_business, set_current_request, clear_thread_locals
from .models import Business

logger = logging.getLogger(__name__)


class BusinessContextMiddleware:
    """
    Attaches the caller's business to the request and to thread-local
    storage (for log records). Authorization itself happens in the views
    through loyalty.scoping.
    """

    # Paths that never carry a business context
    EXEMPT_PATHS = [
        '/admin/',
        '/static/',
        '/media/',
        '/health/',
    ]

    PUBLIC_PREFIX = '/api/client/'

    def __init__(self, get_response):
        self.get_response = get_response
        self.rate_limit_config = getattr(settings, 'BUSINESS_RATE_LIMIT', '100/m')

    def __call__(self, request):
        """Main middleware entry point"""

        # Store request in thread-local for logging
        set_current_request(request)

        # 🛡️ 1. Allow exempt routes
        if self._is_exempt_path(request.path):
            request.business = None
            set_current_business(None)
            try:
                return self.get_response(request)
            finally:
                clear_thread_locals()

        # 🚦 2. Rate limit API traffic per IP
        try:
            self._apply_rate_limiting(request)
        except Ratelimited:
            clear_thread_locals()
            return JsonResponse({
                "detail": "Too many requests. Please try again later.",
                "code": "rate_limit_exceeded"
            }, status=429)

        # 🔍 3. Identify business (priority: JWT > session user > public slug)
        business, detection_method = self._get_business_from_jwt(request)

        if not business:
            business, detection_method = self._get_business_from_session(request)

        if not business and request.path.startswith(self.PUBLIC_PREFIX):
            slug = request.path[len(self.PUBLIC_PREFIX):].split('/', 1)[0]
            if slug:
                business, detection_method = self._get_business_by_slug(slug)

        # 🔗 4. Attach business to request and thread-local
        request.business = business
        set_current_business(business)

        if business:
            request.META['BUSINESS_ID'] = str(business.id)
            request.META['BUSINESS_SLUG'] = business.slug
            logger.debug(
                f"Business identified: {business.slug} via {detection_method}",
                extra={'business_id': business.id, 'detection_method': detection_method}
            )

        try:
            response = self.get_response(request)

            # 🛡️ 5. Add security headers
            self._add_security_headers(response)

            return response
        finally:
            # 🧹 6. Always clean up thread-local storage
            clear_thread_locals()

    def _is_exempt_path(self, path):
        """Check if path is exempt from business resolution"""
        return any(path.startswith(exempt) for exempt in self.EXEMPT_PATHS)

    def _apply_rate_limiting(self, request):
        """Apply rate limiting per client IP"""
        @ratelimit(key='ip', rate=self.rate_limit_config, method=ratelimit.ALL)
        def rate_limit_check(req):
            return None

        rate_limit_check(request)

    def _get_business_by_slug(self, slug):
        """Get business by slug with caching"""
        cache_key = f'business:slug:{slug}'
        business = cache.get(cache_key)

        if business is None:  # Cache miss (None means not cached yet)
            business = Business.objects.filter(slug=slug).first()

            if business:
                cache.set(cache_key, business, settings.BUSINESS_CACHE_TIMEOUT)
            else:
                # Cache negative results to prevent DB hammering
                cache.set(cache_key, False, 60)
                return None, None

        return (business, 'slug') if business else (None, None)

    def _get_business_from_session(self, request):
        """Business of a session-authenticated operator"""
        user = getattr(request, 'user', None)
        if user is None or not user.is_authenticated:
            return None, None
        business = getattr(user, 'business', None)
        return (business, 'session') if business else (None, None)

    def _get_business_from_jwt(self, request):
        """Business of the user named by a verified bearer token"""
        token = get_bearer_token(request)
        if not token:
            return None, None

        try:
            payload = decode_token(token)
        except jwt.InvalidTokenError:
            # Authentication classes reject the request with a proper 401
            return None, None

        User = get_user_model()
        business = Business.objects.filter(
            pk__in=User.objects.filter(pk=payload.get('sub')).values('business_id')
        ).first()
        return (business, 'jwt') if business else (None, None)

    def _add_security_headers(self, response):
        """Add security headers to response"""
        response['X-Content-Type-Options'] = 'nosniff'
        response['X-Frame-Options'] = 'DENY'

        # Business context header (safe to expose)
        business = get_current_business()
        if business:
            response['X-Business-ID'] = str(business.id)

        if not settings.DEBUG:
            response['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
            response['Content-Security-Policy'] = "default-src 'self'"

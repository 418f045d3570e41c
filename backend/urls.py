"""
Main URL Configuration - Multi-Tenant Loyalty Points Platform
"""
from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from core.views import HealthCheckView, RateLimitExceededView
from loyalty.urls import admin_urlpatterns, business_urlpatterns, public_urlpatterns

urlpatterns = [
    # ============================================================================
    # 1. ADMIN INTERFACE
    # ============================================================================
    path(settings.ADMIN_URL, admin.site.urls),

    # ============================================================================
    # 2. API ENDPOINTS (Business-aware via middleware)
    # ============================================================================
    path('api/admin/', include(admin_urlpatterns)),
    path('api/business/', include(business_urlpatterns)),
    path('api/client/', include(public_urlpatterns)),

    # ============================================================================
    # 3. HEALTH & MONITORING (No business required)
    # ============================================================================
    path('health/', HealthCheckView.as_view(), name='health_check'),
    path('health/ready/', HealthCheckView.as_view(), name='health_ready'),
    path('health/live/', HealthCheckView.as_view(), name='health_live'),

    # ============================================================================
    # 4. ERROR HANDLERS
    # ============================================================================
    path('rate-limit-exceeded/', RateLimitExceededView.as_view(), name='rate_limit_exceeded'),
]

# ============================================================================
# ERROR HANDLING (Django will use these automatically)
# ============================================================================
handler400 = 'core.views.bad_request_view'
handler403 = 'core.views.permission_denied_view'
handler404 = 'core.views.page_not_found_view'
handler500 = 'core.views.server_error_view'

# ============================================================================
# DEVELOPMENT ONLY
# ============================================================================
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

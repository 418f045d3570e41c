"""
Loyalty API URL Configuration
Mounted three times by backend.urls: admin, business and public client routes
"""
from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import (
    AdminBusinessViewSet,
    AdminTransactionListView,
    BusinessClientViewSet,
    BusinessProfileView,
    BusinessTransactionListView,
    ItemViewSet,
    PublicActivateView,
    PublicDashboardView,
    PublicQRView,
)

# Admin endpoints
# Generates:
# - /api/admin/businesses/ (list, create)
# - /api/admin/businesses/{id}/ (detail, update, cascade delete)
# - /api/admin/businesses/{id}/users/ (@action)
# - /api/admin/businesses/{id}/clients/ (@action)
# - /api/admin/businesses/{id}/clients/generate/ (@action)
admin_router = SimpleRouter()
admin_router.register(r'businesses', AdminBusinessViewSet, basename='admin-business')

admin_urlpatterns = [
    path('', include(admin_router.urls)),
    path('transactions/', AdminTransactionListView.as_view(), name='admin-transactions'),
]

# Business operator endpoints
# Generates:
# - /api/business/items/ (CRUD)
# - /api/business/clients/search/ (@action)
# - /api/business/clients/{ref}/ (profile)
# - /api/business/clients/{ref}/points/ (@action)
# - /api/business/clients/{ref}/manual/ (@action)
business_router = SimpleRouter()
business_router.register(r'items', ItemViewSet, basename='business-item')
business_router.register(r'clients', BusinessClientViewSet, basename='business-client')

business_urlpatterns = [
    path('', include(business_router.urls)),
    path('transactions/', BusinessTransactionListView.as_view(), name='business-transactions'),
    path('profile/', BusinessProfileView.as_view(), name='business-profile'),
]

public_urlpatterns = [
    path('<slug:business_slug>/<str:client_id>/', PublicDashboardView.as_view(), name='client-dashboard'),
    path('<slug:business_slug>/<str:client_id>/activate/', PublicActivateView.as_view(), name='client-activate'),
    path('<slug:business_slug>/<str:client_id>/qr/', PublicQRView.as_view(), name='client-qr'),
]

# Available Endpoints:
#
# POINTS:
# POST   /api/business/clients/{ref}/points/   - Apply an earn/redeem item
# POST   /api/business/clients/{ref}/manual/   - Manual adjustment
#
# Apply item payload:
# {
#   "item_id": 12,
#   "note": "Birthday bonus"
# }
#
# Manual adjustment payload:
# {
#   "points_change": -40,
#   "note": "Correction"
# }
#
# {ref} is the numeric primary key or the business-scoped client id (MYCO-X7F4P2).

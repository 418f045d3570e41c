"""
Loyalty API Views - admin, business-operator and public client endpoints
"""
import logging

from django.conf import settings
from django.db.models import Q
from django_ratelimit.core import is_ratelimited
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import Throttled
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core import services as business_services
from core.models import Business, User
from core.permissions import IsBusinessOperator, IsPlatformAdmin
from core.serializers import BusinessProfileSerializer, BusinessSerializer, BusinessUserSerializer

from . import clients as client_services
from . import ledger, operations, scoping
from .exceptions import NotFound
from .models import Item
from .qr import client_dashboard_url, generate_qr_data_url
from .serializers import (
    ActivateClientSerializer,
    ClientCreateSerializer,
    ClientSerializer,
    GenerateClientsSerializer,
    ItemSerializer,
    LedgerEntrySerializer,
    LedgerQuerySerializer,
    ManualAdjustmentSerializer,
    PointsOperationSerializer,
    PublicClientSerializer,
    PublicItemSerializer,
    PublicLedgerEntrySerializer,
    points_result_payload,
)

logger = logging.getLogger(__name__)


def _operator_business(request):
    """
    Business a request on the /api/business/ routes acts for: the caller's
    own business, or for admins the one named by ?business= / body.
    """
    user = request.user
    if user.is_platform_admin:
        business_ref = request.query_params.get('business') or request.data.get('business')
        if not business_ref:
            raise NotFound('Specify the business to act on.')
        return scoping.resolve_business(user, business_ref)
    return scoping.resolve_business(user, user.business_id)


def _ledger_page(request, queryset, business=None):
    """Validated query params -> paginated ledger response body"""
    params = LedgerQuerySerializer(data=request.query_params)
    params.is_valid(raise_exception=True)
    data = params.validated_data

    page = ledger.list_entries(
        queryset=queryset,
        business=business or data.get('business'),
        client=data.get('client'),
        item=data.get('item'),
        date_from=data.get('start_date'),
        date_to=data.get('end_date'),
        page=data['page'],
        page_size=data['limit'],
    )
    return {
        'success': True,
        'transactions': LedgerEntrySerializer(page.entries, many=True).data,
        'pagination': page.as_pagination(),
    }


def _search_clients(queryset, query):
    if query:
        queryset = queryset.filter(
            Q(client_id__icontains=query) |
            Q(name__icontains=query) |
            Q(phone__icontains=query) |
            Q(email__icontains=query)
        )
    return queryset


# ============================================================================
# ADMIN API
# ============================================================================

class AdminBusinessViewSet(viewsets.ModelViewSet):
    """
    Business management for platform admins
    DELETE removes the business and all of its data atomically
    """
    serializer_class = BusinessSerializer
    permission_classes = [IsPlatformAdmin]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'category', 'city']
    ordering_fields = ['name', 'created_at']
    ordering = ['-created_at']

    def get_queryset(self):
        queryset = Business.objects.all()
        # Detail actions (users, clients, generate) read their own ?q=
        if self.action != 'list':
            return queryset

        city = self.request.query_params.get('city')
        if city:
            queryset = queryset.filter(city__icontains=city)
        q = self.request.query_params.get('q')
        if q:
            queryset = queryset.filter(
                Q(name__icontains=q) | Q(category__icontains=q) | Q(city__icontains=q)
            )
        return queryset

    def perform_create(self, serializer):
        serializer.instance = business_services.create_business(
            created_by=self.request.user,
            **serializer.validated_data
        )

    def perform_update(self, serializer):
        serializer.instance = business_services.update_business(
            serializer.instance,
            **serializer.validated_data
        )

    def destroy(self, request, *args, **kwargs):
        business = self.get_object()
        counts = business_services.delete_business(business.pk)
        return Response({
            'success': True,
            'message': 'Business and all associated data deleted successfully',
            'deleted': counts,
        })

    @action(detail=True, methods=['get', 'post'])
    def users(self, request, pk=None):
        """GET/POST /api/admin/businesses/{id}/users/"""
        business = self.get_object()

        if request.method == 'GET':
            users = User.objects.filter(
                business=business,
                role=User.ROLE_BUSINESS_USER
            ).order_by('-date_joined')
            return Response(BusinessUserSerializer(users, many=True).data)

        serializer = BusinessUserSerializer(data=request.data, context={'business': business})
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"Created business user {user.email} for {business.slug}")
        return Response(BusinessUserSerializer(user).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get', 'post'])
    def clients(self, request, pk=None):
        """GET/POST /api/admin/businesses/{id}/clients/"""
        business = self.get_object()

        if request.method == 'GET':
            queryset = _search_clients(
                scoping.scope_clients(request.user, business=business),
                request.query_params.get('q')
            ).order_by('-created_at')
            page = self.paginate_queryset(queryset)
            return self.get_paginated_response(ClientSerializer(page, many=True).data)

        serializer = ClientCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        client = client_services.create_client(business, **serializer.validated_data)

        return Response({
            'success': True,
            'client': ClientSerializer(client).data,
            'dashboard_url': client_dashboard_url(business.slug, client.client_id),
            'qr_data_url': generate_qr_data_url(business.slug, client.client_id),
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='clients/generate')
    def generate_clients(self, request, pk=None):
        """POST /api/admin/businesses/{id}/clients/generate/"""
        business = self.get_object()
        serializer = GenerateClientsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        created = client_services.generate_clients(business, serializer.validated_data['count'])
        return Response({
            'success': True,
            'count': len(created),
            'message': f'Successfully generated {len(created)} clients',
            'client_ids': [client.client_id for client in created],
        }, status=status.HTTP_201_CREATED)


class AdminTransactionListView(APIView):
    """GET /api/admin/transactions/ - platform-wide ledger"""
    permission_classes = [IsPlatformAdmin]

    def get(self, request):
        return Response(_ledger_page(request, scoping.scope_entries(request.user)))


# ============================================================================
# BUSINESS OPERATOR API
# ============================================================================

class ItemViewSet(viewsets.ModelViewSet):
    """Earn/redeem catalog of the caller's business"""
    serializer_class = ItemSerializer
    permission_classes = [IsBusinessOperator]

    def get_queryset(self):
        business = _operator_business(self.request)
        queryset = Item.objects.filter(business=business).order_by('kind', 'name')
        kind = self.request.query_params.get('kind')
        if kind in (Item.KIND_EARN, Item.KIND_REDEEM):
            queryset = queryset.filter(kind=kind)
        return queryset

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self.request.user.is_authenticated and self.action == 'create':
            context['business'] = _operator_business(self.request)
        return context


class BusinessClientViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Client cards of the caller's business. `{ref}` is either the global
    primary key or the business-scoped client id.
    """
    serializer_class = ClientSerializer
    permission_classes = [IsBusinessOperator]
    lookup_value_regex = '[^/]+'

    def get_object(self):
        user = self.request.user
        business = None
        if user.is_platform_admin and self.request.query_params.get('business'):
            business = scoping.resolve_business(user, self.request.query_params['business'])
        return scoping.resolve_client(user, self.kwargs[self.lookup_field], business=business)

    def get_queryset(self):
        return scoping.scope_clients(self.request.user)

    def _check_rate_limit(self, request):
        limited = is_ratelimited(
            request._request,
            group='points-operations',
            key=lambda group, req: str(request.user.pk),
            rate=settings.POINTS_RATE_LIMIT,
            increment=True,
        )
        if limited:
            raise Throttled(detail='Too many points operations. Please slow down.')

    @action(detail=False, methods=['get'])
    def search(self, request):
        """GET /api/business/clients/search/?q=..."""
        business = _operator_business(request)
        queryset = _search_clients(
            scoping.scope_clients(request.user, business=business),
            request.query_params.get('q')
        ).order_by('name', 'client_id')
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(ClientSerializer(page, many=True).data)

    def retrieve(self, request, *args, **kwargs):
        """Client profile with its 20 most recent ledger entries"""
        client = self.get_object()
        recent = ledger.filter_entries(client=client).select_related('item', 'performed_by')[:20]

        return Response({
            'success': True,
            'client': ClientSerializer(client).data,
            'transactions': LedgerEntrySerializer(recent, many=True).data,
            'qr_data_url': generate_qr_data_url(client.business.slug, client.client_id),
        })

    @action(detail=True, methods=['post'])
    def points(self, request, pk=None):
        """POST /api/business/clients/{ref}/points/ - earn or redeem an item"""
        self._check_rate_limit(request)
        client = self.get_object()

        serializer = PointsOperationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = operations.apply_item(
            client.pk,
            serializer.validated_data['item_id'],
            actor=request.user,
            note=serializer.validated_data.get('note'),
        )
        return Response(points_result_payload(result))

    @action(detail=True, methods=['post'])
    def manual(self, request, pk=None):
        """POST /api/business/clients/{ref}/manual/ - manual adjustment"""
        self._check_rate_limit(request)
        client = self.get_object()

        serializer = ManualAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = operations.apply_manual(
            client.pk,
            serializer.validated_data['points_change'],
            actor=request.user,
            note=serializer.validated_data.get('note'),
        )
        return Response(points_result_payload(result))


class BusinessTransactionListView(APIView):
    """GET /api/business/transactions/ - ledger of the caller's business"""
    permission_classes = [IsBusinessOperator]

    def get(self, request):
        business = _operator_business(request)
        queryset = scoping.scope_entries(request.user, business=business)
        return Response(_ledger_page(request, queryset, business=business))


class BusinessProfileView(APIView):
    """GET/PUT /api/business/profile/ - the caller's own business"""
    permission_classes = [IsBusinessOperator]

    def get(self, request):
        business = _operator_business(request)
        return Response({'success': True, 'business': BusinessProfileSerializer(business).data})

    def put(self, request):
        business = _operator_business(request)
        serializer = BusinessProfileSerializer(business, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        business = business_services.update_business(
            business,
            allowed_fields=['name', 'city', 'logo_url', 'card_design'],
            **serializer.validated_data
        )
        return Response({'success': True, 'business': BusinessProfileSerializer(business).data})

    patch = put


# ============================================================================
# PUBLIC CLIENT API (read-only dashboard, card activation, QR)
# ============================================================================

class PublicClientMixin:
    permission_classes = [AllowAny]
    authentication_classes = []


class PublicDashboardView(PublicClientMixin, APIView):
    """GET /api/client/{business_slug}/{client_id}/"""

    def get(self, request, business_slug, client_id):
        data = client_services.dashboard(business_slug, client_id)
        business = data['business']

        return Response({
            'success': True,
            'client': PublicClientSerializer(data['client']).data,
            'business': {
                'name': business.name,
                'slug': business.slug,
                'category': business.category,
                'city': business.city,
                'logo_url': business.logo_url,
                'card_design': business.card_design,
            },
            'available_rewards': PublicItemSerializer(data['available_rewards'], many=True).data,
            'transactions': PublicLedgerEntrySerializer(data['transactions'], many=True).data,
        })


class PublicActivateView(PublicClientMixin, APIView):
    """POST /api/client/{business_slug}/{client_id}/activate/"""

    def post(self, request, business_slug, client_id):
        serializer = ActivateClientSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        client = client_services.activate_client(
            business_slug,
            client_id,
            name=serializer.validated_data['name'],
            activation_code=serializer.validated_data['activation_code'],
        )
        return Response({
            'success': True,
            'message': 'Card activated successfully',
            'client': PublicClientSerializer(client).data,
        })


class PublicQRView(PublicClientMixin, APIView):
    """GET /api/client/{business_slug}/{client_id}/qr/"""

    def get(self, request, business_slug, client_id):
        business, client = client_services.get_public_client(business_slug, client_id)
        return Response({
            'success': True,
            'client_id': client.client_id,
            'dashboard_url': client_dashboard_url(business.slug, client.client_id),
            'qr_data_url': generate_qr_data_url(business.slug, client.client_id),
        })

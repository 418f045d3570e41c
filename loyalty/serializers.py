"""
Loyalty Serializers - Request validation and response shapes for the REST API
"""
from rest_framework import serializers

from core.serializers import BusinessScopedSerializer

from .models import Client, Item, LedgerEntry


# ============================================================================
# ITEM SERIALIZER
# ============================================================================

class ItemSerializer(BusinessScopedSerializer):
    """Earn/redeem items; business is taken from the caller"""

    class Meta:
        model = Item
        fields = [
            'id', 'business', 'name', 'description', 'points', 'kind',
            'visible_to_client', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'business', 'created_at', 'updated_at']

    def validate_points(self, value):
        if value < 1:
            raise serializers.ValidationError("Points must be at least 1.")
        return value


class PublicItemSerializer(serializers.ModelSerializer):
    """Reward shown on the public dashboard"""

    class Meta:
        model = Item
        fields = ['id', 'name', 'description', 'points']


# ============================================================================
# CLIENT SERIALIZERS
# ============================================================================

class ClientSerializer(serializers.ModelSerializer):
    """Full client card as seen by admins and operators"""
    business_slug = serializers.CharField(source='business.slug', read_only=True)

    class Meta:
        model = Client
        fields = [
            'id', 'business', 'business_slug', 'client_id', 'name', 'phone',
            'email', 'points', 'is_activated', 'metadata', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ClientCreateSerializer(serializers.Serializer):
    """Payload for creating one client; client_id is always allocated server-side"""
    name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    email = serializers.EmailField(required=False, allow_blank=True, default='')
    initial_points = serializers.IntegerField(required=False, default=0)
    metadata = serializers.DictField(required=False, default=dict)


class GenerateClientsSerializer(serializers.Serializer):
    count = serializers.IntegerField(min_value=1)


class PublicClientSerializer(serializers.ModelSerializer):
    """Card summary for the public dashboard (no contact data, no metadata)"""

    class Meta:
        model = Client
        fields = ['client_id', 'name', 'points', 'is_activated']


class ActivateClientSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    activation_code = serializers.CharField(max_length=50)


# ============================================================================
# POINTS OPERATION SERIALIZERS
# ============================================================================

class PointsOperationSerializer(serializers.Serializer):
    item_id = serializers.IntegerField(min_value=1)
    note = serializers.CharField(max_length=500, required=False, allow_blank=True)


class ManualAdjustmentSerializer(serializers.Serializer):
    points_change = serializers.IntegerField()
    note = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate_points_change(self, value):
        if value == 0:
            raise serializers.ValidationError("Points change cannot be zero.")
        return value


# ============================================================================
# LEDGER SERIALIZERS
# ============================================================================

class LedgerEntrySerializer(serializers.ModelSerializer):
    """Ledger entry with the references a dashboard needs to render it"""
    client_ref = serializers.SerializerMethodField()
    item_ref = serializers.SerializerMethodField()
    performed_by_ref = serializers.SerializerMethodField()

    class Meta:
        model = LedgerEntry
        fields = [
            'id', 'client', 'client_ref', 'business', 'item', 'item_ref',
            'points', 'before_points', 'after_points', 'performed_by',
            'performed_by_ref', 'note', 'created_at',
        ]
        read_only_fields = fields

    def get_client_ref(self, obj):
        return {'client_id': obj.client.client_id, 'name': obj.client.name}

    def get_item_ref(self, obj):
        item = obj.item_or_none
        if item is None:
            return None
        return {'name': item.name, 'kind': item.kind, 'points': item.points}

    def get_performed_by_ref(self, obj):
        user = obj.performed_by
        return {'name': user.get_full_name() or user.username, 'email': user.email}


class PublicLedgerEntrySerializer(serializers.ModelSerializer):
    item_ref = serializers.SerializerMethodField()

    class Meta:
        model = LedgerEntry
        fields = ['points', 'before_points', 'after_points', 'note', 'item_ref', 'created_at']

    def get_item_ref(self, obj):
        item = obj.item_or_none
        if item is None:
            return None
        return {'name': item.name, 'kind': item.kind}


class LedgerQuerySerializer(serializers.Serializer):
    """Query parameters accepted by the transaction listings"""
    business = serializers.IntegerField(required=False, min_value=1)
    client = serializers.IntegerField(required=False, min_value=1)
    item = serializers.IntegerField(required=False, min_value=1)
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=200, default=50)

    def validate(self, data):
        start, end = data.get('start_date'), data.get('end_date')
        if start and end and start > end:
            raise serializers.ValidationError({"end_date": "End date must be after start date."})
        return data


def points_result_payload(result):
    """Response body shared by the item and manual points endpoints"""
    return {
        'success': True,
        'before_points': result.before_points,
        'after_points': result.after_points,
        'points_change': result.points_change,
        'transaction': LedgerEntrySerializer(result.entry).data,
    }

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Business

User = get_user_model()


class BusinessScopedSerializer(serializers.ModelSerializer):
    """Base serializer that automatically handles the business field"""

    def create(self, validated_data):
        """Create instance with the business from serializer context or request"""
        request = self.context.get('request')

        # Security: Remove business if user tries to set it manually
        validated_data.pop('business', None)
        validated_data.pop('business_id', None)

        # 1. Explicit business passed by the view (admin routes)
        business = self.context.get('business')

        # 2. Otherwise the caller's own business
        if business is None and request is not None:
            business = getattr(request.user, 'business', None)

        # 3. Final Validation
        if business is None:
            raise serializers.ValidationError({
                "business": "No business associated with this account. Cannot create resource."
            })

        validated_data['business'] = business
        return super().create(validated_data)

    def update(self, instance, validated_data):
        """Update instance, ensuring business cannot be changed"""
        # Security: Prevent moving objects between businesses
        validated_data.pop('business', None)
        validated_data.pop('business_id', None)

        return super().update(instance, validated_data)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)

        # User experience: Make business field read-only in API forms
        if 'business' in self.fields:
            self.fields['business'].read_only = True


class BusinessSerializer(serializers.ModelSerializer):
    """Admin view of a business"""

    class Meta:
        model = Business
        fields = [
            'id', 'name', 'slug', 'category', 'city', 'region',
            'contact_email', 'logo_url', 'allow_negative_points',
            'activation_code', 'card_design', 'created_by',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'slug', 'created_by', 'created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        existing = Business.objects.filter(name__iexact=value)
        if self.instance:
            existing = existing.exclude(pk=self.instance.pk)
        if existing.exists():
            raise serializers.ValidationError("A business with this name already exists.")
        return value

    def validate_card_design(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Card design must be an object.")
        return value


class BusinessProfileSerializer(BusinessSerializer):
    """Fields a business user may change on their own business"""

    class Meta(BusinessSerializer.Meta):
        fields = ['id', 'name', 'slug', 'city', 'logo_url', 'card_design', 'allow_negative_points', 'updated_at']
        read_only_fields = ['id', 'slug', 'allow_negative_points', 'updated_at']


class BusinessUserSerializer(serializers.ModelSerializer):
    """Operator accounts created by admins for a business"""
    password = serializers.CharField(write_only=True, min_length=8, required=False)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'role', 'business', 'password', 'date_joined']
        read_only_fields = ['id', 'role', 'business', 'date_joined']
        extra_kwargs = {'username': {'required': False}}

    def create(self, validated_data):
        password = validated_data.pop('password', None)
        if not password:
            raise serializers.ValidationError({"password": "Password is required."})

        validated_data.setdefault('username', validated_data['email'])
        validated_data['role'] = User.ROLE_BUSINESS_USER
        validated_data['business'] = self.context['business']
        return User.objects.create_user(password=password, **validated_data)

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        instance = super().update(instance, validated_data)
        if password:
            instance.set_password(password)
            instance.save(update_fields=['password'])
        return instance

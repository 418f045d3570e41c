"""
Core Admin - Business and platform user management
"""
from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.db.models import Count
from django.utils.html import format_html

from .models import Business, User
from .services import delete_business
from .slugs import unique_business_slug


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    """
    Admin interface for managing businesses (tenants)
    Deleting goes through the cascading service so ledgers leave in one transaction
    """
    list_display = [
        'name', 'slug', 'city', 'category',
        'overdraft_badge', 'client_count', 'created_at'
    ]
    list_filter = ['allow_negative_points', 'category', 'created_at']
    search_fields = ['name', 'slug', 'city', 'contact_email']
    readonly_fields = ['slug', 'created_by', 'created_at', 'updated_at']

    fieldsets = (
        ('Business Identification', {
            'fields': ('name', 'slug')
        }),
        ('Business Information', {
            'fields': ('category', 'city', 'region', 'contact_email', 'logo_url')
        }),
        ('Loyalty Policy', {
            'fields': ('allow_negative_points', 'activation_code')
        }),
        ('Card Design', {
            'fields': ('card_design',),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_by', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(client_total=Count('client_set', distinct=True))

    def client_count(self, obj):
        return obj.client_total
    client_count.short_description = "Clients"
    client_count.admin_order_field = 'client_total'

    def overdraft_badge(self, obj):
        if obj.allow_negative_points:
            return format_html('<span style="color: {};">{}</span>', '#e67e22', 'Allowed')
        return format_html('<span style="color: {};">{}</span>', '#27ae60', 'Blocked')
    overdraft_badge.short_description = "Overdraft"

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
            obj.slug = unique_business_slug(obj.name)
        elif 'name' in form.changed_data:
            obj.slug = unique_business_slug(obj.name, exclude_pk=obj.pk)
        super().save_model(request, obj, form, change)

    def delete_model(self, request, obj):
        delete_business(obj.pk)

    def delete_queryset(self, request, queryset):
        for business_id in queryset.values_list('pk', flat=True):
            delete_business(business_id)
        messages.warning(request, "Deleted businesses together with their clients and ledgers.")


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    """Platform admins and business operators"""
    list_display = ['username', 'email', 'role', 'business', 'is_active', 'date_joined']
    list_filter = ['role', 'is_active', 'business']
    search_fields = ['username', 'email', 'first_name', 'last_name', 'business__name']
    list_select_related = ['business']

    fieldsets = DjangoUserAdmin.fieldsets + (
        ('Loyalty Platform', {
            'fields': ('role', 'business')
        }),
    )
    add_fieldsets = DjangoUserAdmin.add_fieldsets + (
        ('Loyalty Platform', {
            'fields': ('email', 'role', 'business')
        }),
    )

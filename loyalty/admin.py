"""
Loyalty Admin - Clients, items and the read-only points ledger
Balances are never edited here; use the manual adjustment endpoint instead
"""
from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from .models import Client, Item, LedgerEntry


def business_link(obj):
    url = reverse('admin:core_business_change', args=[obj.business_id])
    return format_html('<a href="{}">{}</a>', url, obj.business.name)
business_link.short_description = "Business"
business_link.admin_order_field = 'business__name'


class LedgerEntryInline(admin.TabularInline):
    model = LedgerEntry
    fk_name = 'client'
    extra = 0
    max_num = 0
    fields = ['created_at', 'points', 'before_points', 'after_points', 'item', 'performed_by', 'note']
    readonly_fields = fields
    ordering = ['-created_at', '-id']
    can_delete = False
    show_change_link = True
    classes = ['collapse']
    verbose_name_plural = "Ledger (most recent first)"


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['client_id', 'name', business_link, 'points', 'is_activated', 'created_at']
    list_filter = ['is_activated', 'business']
    search_fields = ['client_id', 'name', 'phone', 'email', 'business__name']
    list_select_related = ['business']
    list_per_page = 50
    readonly_fields = ['business', 'client_id', 'points', 'created_at', 'updated_at']
    inlines = [LedgerEntryInline]

    fieldsets = (
        ('Card', {
            'fields': ('business', 'client_id', 'points', 'is_activated')
        }),
        ('Holder', {
            'fields': ('name', 'phone', 'email', 'metadata')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def has_add_permission(self, request):
        # Cards need an allocated client id
        return False


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ['name', business_link, 'kind', 'points', 'visible_to_client', 'updated_at']
    list_filter = ['kind', 'visible_to_client', 'business']
    search_fields = ['name', 'description', 'business__name']
    list_select_related = ['business']


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    """Audit view only"""
    list_display = [
        'created_at', 'client', business_link, 'points_display',
        'before_points', 'after_points', 'item', 'performed_by'
    ]
    list_filter = ['business', 'created_at']
    search_fields = ['client__client_id', 'client__name', 'note', 'performed_by__email']
    list_select_related = ['client', 'business', 'item', 'performed_by']
    date_hierarchy = 'created_at'
    list_per_page = 100

    def points_display(self, obj):
        color = '#27ae60' if obj.points > 0 else '#e74c3c'
        return format_html('<span style="color: {};">{}</span>', color, f"{obj.points:+d}")
    points_display.short_description = "Change"
    points_display.admin_order_field = 'points'

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

"""
Business lifecycle services - creation, renaming and cascading deletion
"""
import logging

from django.db import transaction

from .models import Business, User
from .slugs import unique_business_slug
from .utils import business_context

logger = logging.getLogger(__name__)

BUSINESS_UPDATE_FIELDS = [
    'name', 'category', 'city', 'region', 'contact_email', 'logo_url',
    'allow_negative_points', 'activation_code', 'card_design',
]


def create_business(name, created_by=None, **fields):
    """Create a business and assign its slug explicitly"""
    business = Business(name=name, created_by=created_by, **fields)
    business.slug = unique_business_slug(name)
    business.full_clean()
    business.save()

    logger.info(f"Created business {business.slug}", extra={'business_id': business.pk})
    return business


def regenerate_slug(business):
    """Re-derive the slug from the current name (only when explicitly asked)"""
    business.slug = unique_business_slug(business.name, exclude_pk=business.pk)
    business.save(update_fields=['slug', 'updated_at'])
    return business


def update_business(business, allowed_fields=None, **changes):
    """
    Apply whitelisted field changes. A new name gets a new slug; otherwise the
    slug stays stable.
    """
    allowed = set(allowed_fields or BUSINESS_UPDATE_FIELDS)
    renamed = 'name' in changes and changes['name'] != business.name

    for field, value in changes.items():
        if field not in allowed:
            continue
        if field == 'card_design' and isinstance(value, dict):
            value = {**(business.card_design or {}), **value}
        setattr(business, field, value)

    if renamed:
        business.slug = unique_business_slug(business.name, exclude_pk=business.pk)

    business.full_clean()
    business.save()
    return business


def _delete_rows(queryset):
    """Delete and return how many rows of the queryset's own model went"""
    _, per_model = queryset.delete()
    return per_model.get(queryset.model._meta.label, 0)


def delete_business(business_id):
    """
    Delete a business with its clients, items, ledger entries and operator
    accounts in one transaction. Client rows are locked first so the delete
    waits for in-flight points operations.
    """
    from loyalty.models import Client, Item, LedgerEntry

    with transaction.atomic():
        business = Business.objects.filter(pk=business_id).first()
        if business is None:
            return None

        list(
            Client.objects.select_for_update()
            .filter(business=business)
            .order_by('pk')
            .values_list('pk', flat=True)
        )

        counts = {
            'transactions': _delete_rows(LedgerEntry.objects.filter(business=business)),
            'clients': _delete_rows(Client.objects.filter(business=business)),
            'items': _delete_rows(Item.objects.filter(business=business)),
            'users': _delete_rows(User.objects.filter(business=business)),
        }
        business.delete()

    with business_context(business):
        logger.warning(f"Deleted business {business.slug} and related data: {counts}")
    return counts

"""
Client lifecycle - card creation, bulk generation and public activation
"""
import logging

from django.conf import settings
from django.db import IntegrityError, transaction

from core.models import Business
from core.utils import business_context

from . import identifiers
from .exceptions import Forbidden, NotFound, ValidationFailure
from .models import Client, Item, LedgerEntry

logger = logging.getLogger(__name__)

# Insert-time collisions (two requests allocating the same id) are retried here
CREATE_RETRIES = 3


def create_client(business, name='', phone='', email='', initial_points=0, metadata=None):
    """Create a client card with a freshly allocated business-scoped id"""
    if isinstance(initial_points, bool) or not isinstance(initial_points, int):
        raise ValidationFailure('Initial points must be an integer')
    if initial_points < 0 and not business.allow_negative_points:
        raise ValidationFailure('Initial points cannot be negative for this business')
    if metadata is not None and not isinstance(metadata, dict):
        raise ValidationFailure('Metadata must be an object')

    for attempt in range(1, CREATE_RETRIES + 1):
        client_id = identifiers.allocate(business)
        try:
            with transaction.atomic():
                client = Client.objects.create(
                    business=business,
                    client_id=client_id,
                    name=name or '',
                    phone=phone or '',
                    email=email or '',
                    points=initial_points,
                    metadata=metadata or {},
                )
        except IntegrityError:
            logger.warning(
                f"Client id {client_id} collided on insert (attempt {attempt})",
                extra={'business_id': business.pk}
            )
            continue

        logger.info(f"Created client {client.client_id} for {business.slug}")
        return client

    raise ValidationFailure('Could not allocate a unique client ID; please retry.')


def generate_clients(business, count):
    """Bulk-create `count` unclaimed cards; returns the created clients"""
    max_bulk = getattr(settings, 'LOYALTY', {}).get('MAX_BULK_CLIENTS', 500)
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise ValidationFailure('Invalid count. Must be a positive number.')
    if count > max_bulk:
        raise ValidationFailure(f'Invalid count. At most {max_bulk} clients per request.')

    with business_context(business):
        client_ids = identifiers.allocate_many(business, count)

        with transaction.atomic():
            created = Client.objects.bulk_create([
                Client(
                    business=business,
                    client_id=client_id,
                    name='',
                    points=0,
                    is_activated=False,
                )
                for client_id in client_ids
            ])

        logger.info(f"Generated {len(created)} clients for {business.slug}")
    return created


def get_public_client(business_slug, client_id):
    """(business, client) pair addressed by a public dashboard link"""
    business = Business.objects.filter(slug=business_slug).first()
    if business is None:
        raise NotFound('Business not found')

    client = Client.objects.filter(business=business, client_id=client_id).first()
    if client is None:
        raise NotFound('Client not found')

    return business, client


def dashboard(business_slug, client_id, recent=10):
    """Read-only data shown on a client's public dashboard"""
    business, client = get_public_client(business_slug, client_id)

    rewards = Item.objects.filter(
        business=business,
        kind=Item.KIND_REDEEM,
        visible_to_client=True,
    ).order_by('points', 'name')

    entries = LedgerEntry.objects.filter(client=client).select_related('item').order_by('-created_at', '-id')[:recent]

    return {
        'business': business,
        'client': client,
        'available_rewards': list(rewards),
        'transactions': list(entries),
    }


def activate_client(business_slug, client_id, name, activation_code):
    """Claim a pre-created card with the business's activation code"""
    if not name or not activation_code:
        raise ValidationFailure('Name and activation code are required')

    with transaction.atomic():
        business, client = get_public_client(business_slug, client_id)

        if business.activation_code and business.activation_code != activation_code:
            raise Forbidden('Invalid activation code')

        client = Client.objects.select_for_update().get(pk=client.pk)
        if client.is_activated:
            raise ValidationFailure('Client is already activated')

        client.name = name
        client.is_activated = True
        client.save(update_fields=['name', 'is_activated', 'updated_at'])

    logger.info(f"Activated client {client.client_id} of {business.slug}")
    return client

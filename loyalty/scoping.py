"""
Access Scoping Layer - Which clients and businesses a caller may act on

Admins reach every tenant; business users only their own business.
"""
import logging

from core.models import Business

from .exceptions import Forbidden, NotFound, ValidationFailure
from .models import Client, LedgerEntry

logger = logging.getLogger(__name__)


def _is_admin(actor):
    return getattr(actor, 'is_platform_admin', False)


def _affiliation(actor):
    """Business id of a business user; Forbidden when the account has none"""
    business_id = getattr(actor, 'business_id', None)
    if business_id is None:
        raise Forbidden('No business associated with this account.')
    return business_id


def _business_pk(business):
    if business is None:
        return None
    return business.pk if isinstance(business, Business) else business


def resolve_business(actor, business_ref):
    """Business the caller may manage; operators are pinned to their own"""
    business = None
    if isinstance(business_ref, Business):
        business = business_ref
    elif business_ref is not None:
        try:
            business = Business.objects.filter(pk=business_ref).first()
        except (ValueError, TypeError):
            business = None

    if business is None:
        raise NotFound('Business not found')

    if not _is_admin(actor) and business.pk != _affiliation(actor):
        raise Forbidden('Access denied. You do not have access to this business.')

    return business


def resolve_client(actor, reference, business=None):
    """
    Resolve a client by global primary key or business-scoped client_id.

    Numeric references are tried as primary keys first. Business users who
    reach another tenant's client by primary key get Forbidden. Admins
    looking up a client_id without naming a business get the single match,
    or ValidationFailure when several businesses share that id.
    """
    reference = str(reference or '').strip()
    if not reference:
        raise ValidationFailure('Client ID is required.')

    client = None
    if reference.isascii() and reference.isdigit():
        client = Client.objects.filter(pk=int(reference)).first()

    if client is None:
        candidates = Client.objects.filter(client_id=reference)

        if _is_admin(actor):
            business_pk = _business_pk(business)
            if business_pk is not None:
                candidates = candidates.filter(business_id=business_pk)
            matches = list(candidates[:2])
            if len(matches) > 1:
                raise ValidationFailure(
                    'Client ID is shared by several businesses; specify the business.'
                )
            client = matches[0] if matches else None
        else:
            client = candidates.filter(business_id=_affiliation(actor)).first()

    if client is None:
        raise NotFound('Client not found.')

    if not _is_admin(actor) and client.business_id != _affiliation(actor):
        logger.warning(
            f"Business user {actor.pk} denied access to client {client.pk}",
            extra={'client_business_id': client.business_id}
        )
        raise Forbidden('Access denied. This client does not belong to your business.')

    return client


def scope_clients(actor, business=None):
    """Clients visible to the caller, optionally narrowed to one business"""
    queryset = Client.objects.all()
    if not _is_admin(actor):
        queryset = queryset.filter(business_id=_affiliation(actor))
    business_pk = _business_pk(business)
    if business_pk is not None:
        queryset = queryset.filter(business_id=business_pk)
    return queryset


def scope_entries(actor, business=None):
    """Ledger entries visible to the caller"""
    queryset = LedgerEntry.objects.all()
    if not _is_admin(actor):
        queryset = queryset.filter(business_id=_affiliation(actor))
    business_pk = _business_pk(business)
    if business_pk is not None:
        queryset = queryset.filter(business_id=business_pk)
    return queryset

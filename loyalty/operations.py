"""
Points Operation Engine - The only code path that changes a client's balance

Both entry points run the same procedure inside one database transaction:
lock the client row, load the item/business policy, compute the new balance,
persist it and append the ledger entry. Any failure rolls back both writes.
"""
import logging
from dataclasses import dataclass

from django.db import IntegrityError, transaction

from core.models import Business

from . import ledger
from .exceptions import CrossTenant, InsufficientBalance, NotFound, PolicyViolation, ValidationFailure
from .models import Client, Item, LedgerEntry

logger = logging.getLogger(__name__)


@dataclass
class PointsResult:
    before_points: int
    after_points: int
    points_change: int
    entry: LedgerEntry


def _client_pk(client_ref):
    return client_ref.pk if isinstance(client_ref, Client) else client_ref


def _lock_client(client_ref):
    try:
        return Client.objects.select_for_update().get(pk=_client_pk(client_ref))
    except (Client.DoesNotExist, ValueError, TypeError):
        raise NotFound('Client not found')


def _load_business(client):
    business = Business.objects.filter(pk=client.business_id).first()
    if business is None:
        raise PolicyViolation('Business not found for this client')
    return business


def _apply(client, business, delta, actor, item=None, note=None, required=None):
    """Steps 2-5 of the procedure; the caller owns the transaction"""
    before = client.points
    after = before + delta

    if after < 0 and not business.allow_negative_points:
        logger.warning(
            f"Rejected points change {delta:+d} for client {client.client_id}: balance {before}",
            extra={'business_id': business.pk, 'client_pk': client.pk}
        )
        raise InsufficientBalance(
            current_balance=before,
            required=required if required is not None else max(-delta, 0),
            resulting_balance=after,
        )

    client.points = after
    client.save(update_fields=['points', 'updated_at'])

    entry = ledger.append_entry(
        client=client,
        business=business,
        item=item,
        delta=delta,
        before=before,
        after=after,
        actor=actor,
        note=note,
    )

    return PointsResult(
        before_points=before,
        after_points=after,
        points_change=delta,
        entry=entry,
    )


def _default_item_note(item):
    verb = 'Earned' if item.kind == Item.KIND_EARN else 'Redeemed'
    return f"{verb}: {item.name}"


def _default_manual_note(delta):
    sign = '+' if delta > 0 else ''
    return f"Manual adjustment: {sign}{delta} points"


def apply_item(client_id, item_id, actor, note=None) -> PointsResult:
    """Earn or redeem an item for a client"""
    try:
        with transaction.atomic():
            client = _lock_client(client_id)

            item_pk = item_id.pk if isinstance(item_id, Item) else item_id
            try:
                item = Item.objects.get(pk=item_pk)
            except (Item.DoesNotExist, ValueError, TypeError):
                raise NotFound('Item not found')

            if item.business_id != client.business_id:
                logger.warning(
                    f"Cross-tenant item {item.pk} rejected for client {client.client_id}",
                    extra={'item_business_id': item.business_id, 'client_business_id': client.business_id}
                )
                raise CrossTenant()

            if item.kind not in (Item.KIND_EARN, Item.KIND_REDEEM):
                raise ValidationFailure('Invalid item type')

            business = _load_business(client)

            result = _apply(
                client,
                business,
                item.signed_points,
                actor,
                item=item,
                note=note or _default_item_note(item),
                required=item.points if item.kind == Item.KIND_REDEEM else 0,
            )
    except IntegrityError as exc:
        logger.error(f"Points operation aborted at commit: {exc}")
        raise NotFound('Client, item or business no longer exists')

    logger.info(
        f"Applied {item.kind} item '{item.name}' to {result.entry.client.client_id}: "
        f"{result.before_points} -> {result.after_points}",
        extra={'business_id': item.business_id, 'entry_id': result.entry.pk}
    )
    return result


def apply_manual(client_id, delta, actor, note=None) -> PointsResult:
    """Add (positive delta) or deduct (negative delta) points without an item"""
    if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
        raise ValidationFailure('Points change must be a non-zero integer')

    try:
        with transaction.atomic():
            client = _lock_client(client_id)
            business = _load_business(client)

            result = _apply(
                client,
                business,
                delta,
                actor,
                note=note or _default_manual_note(delta),
            )
    except IntegrityError as exc:
        logger.error(f"Manual adjustment aborted at commit: {exc}")
        raise NotFound('Client or business no longer exists')

    logger.info(
        f"Manual adjustment {delta:+d} on {result.entry.client.client_id}: "
        f"{result.before_points} -> {result.after_points}",
        extra={'business_id': result.entry.business_id, 'entry_id': result.entry.pk}
    )
    return result

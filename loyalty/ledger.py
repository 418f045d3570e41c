"""
Balance Ledger - Read and append access to client balances and their history
"""
from dataclasses import dataclass
from typing import List, Optional

from django.conf import settings
from django.core.paginator import EmptyPage, Paginator

from .exceptions import NotFound, ValidationFailure
from .models import Client, LedgerEntry


@dataclass
class LedgerPage:
    entries: List[LedgerEntry]
    page: int
    page_size: int
    total: int
    pages: int

    def as_pagination(self):
        return {
            'page': self.page,
            'limit': self.page_size,
            'total': self.total,
            'pages': self.pages,
        }


def _loyalty_setting(key, default):
    return getattr(settings, 'LOYALTY', {}).get(key, default)


def get_balance(client_ref):
    """Current authoritative balance for a client instance or primary key"""
    if isinstance(client_ref, Client):
        client_ref = client_ref.pk

    points = Client.objects.filter(pk=client_ref).values_list('points', flat=True).first()
    if points is None:
        raise NotFound('Client not found')
    return points


def append_entry(client, business, item, delta, before, after, actor, note=''):
    """
    Record one balance change. The caller computes before/after; they are
    checked here, never re-derived.
    """
    if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
        raise ValidationFailure('Points change must be a non-zero integer')
    if after != before + delta:
        raise ValidationFailure(
            f"Inconsistent ledger entry: {before} + {delta} != {after}"
        )

    return LedgerEntry.objects.create(
        client=client,
        business=business,
        item=item,
        points=delta,
        before_points=before,
        after_points=after,
        performed_by=actor,
        note=note or '',
    )


def filter_entries(queryset=None, client=None, business=None, item=None,
                   date_from=None, date_to=None):
    """Apply the standard ledger filters to `queryset` (all entries by default)"""
    if queryset is None:
        queryset = LedgerEntry.objects.all()

    if client is not None:
        queryset = queryset.filter(client=client)
    if business is not None:
        queryset = queryset.filter(business=business)
    if item is not None:
        queryset = queryset.filter(item=item)
    if date_from is not None:
        queryset = queryset.filter(created_at__gte=date_from)
    if date_to is not None:
        queryset = queryset.filter(created_at__lte=date_to)

    return queryset.order_by('-created_at', '-id')


def list_entries(client=None, business=None, item=None, date_from=None, date_to=None,
                 page=1, page_size=None, queryset=None) -> LedgerPage:
    """Newest-first, paginated ledger entries matching the given filters"""
    max_page_size = _loyalty_setting('MAX_PAGE_SIZE', 200)
    page_size = page_size or _loyalty_setting('DEFAULT_PAGE_SIZE', 50)
    page_size = max(1, min(int(page_size), max_page_size))

    entries = filter_entries(
        queryset=queryset,
        client=client,
        business=business,
        item=item,
        date_from=date_from,
        date_to=date_to,
    ).select_related('client', 'item', 'performed_by')

    paginator = Paginator(entries, page_size)
    page_number = max(1, int(page or 1))

    try:
        page_obj = paginator.page(page_number)
        rows = list(page_obj.object_list)
    except EmptyPage:
        rows = []

    return LedgerPage(
        entries=rows,
        page=page_number,
        page_size=page_size,
        total=paginator.count,
        pages=paginator.num_pages if paginator.count else 0,
    )


def latest_entry(client) -> Optional[LedgerEntry]:
    return filter_entries(client=client).first()

# loyalty/identifiers.py
"""
Identifier Allocator - Business-scoped, human-presentable client ids

Format: {BUSINESS_PREFIX}-{6-char-random}, e.g. CAFE-X7F4P2
"""
import logging
import re
import secrets
import time

from django.conf import settings

from core.models import Business

from .exceptions import NotFound, ValidationFailure
from .models import Client

logger = logging.getLogger(__name__)

# No 0/O, 1/I: ids are read aloud and typed from printed cards
SUFFIX_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
SUFFIX_LENGTH = 6
PREFIX_LENGTH = 4
DEFAULT_MAX_ATTEMPTS = 5

CLIENT_ID_PATTERN = re.compile(r'^[A-Z0-9]{4}-[A-Z0-9]{6,}$')
_NON_ALNUM = re.compile(r'[^A-Z0-9]')
_BASE36 = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ'


def business_prefix(name):
    """'My Coffee Shop' -> 'MYCO'; short names are padded with X"""
    cleaned = _NON_ALNUM.sub('', (name or '').upper())
    return cleaned[:PREFIX_LENGTH].ljust(PREFIX_LENGTH, 'X')


def random_suffix(length=SUFFIX_LENGTH):
    return ''.join(secrets.choice(SUFFIX_ALPHABET) for _ in range(length))


def _to_base36(number):
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return ''.join(reversed(digits)) or '0'


def fallback_identifier(prefix):
    """Timestamp + random composite used once the bounded retries are exhausted"""
    timestamp = _to_base36(time.time_ns() // 1_000_000)
    return f"{prefix}-{timestamp}{secrets.token_hex(2).upper()}"


def is_valid_format(candidate):
    return isinstance(candidate, str) and bool(CLIENT_ID_PATTERN.match(candidate))


def _resolve_business(business_ref):
    if isinstance(business_ref, Business):
        return business_ref
    business = Business.objects.filter(pk=business_ref).first()
    if business is None:
        raise NotFound('Business not found')
    return business


def allocate(business_ref, max_attempts=None):
    """
    Return a client id not yet used within the business.

    The (business, client_id) unique constraint stays the final authority:
    an insert that still collides must be retried by the caller.
    """
    business = _resolve_business(business_ref)
    if max_attempts is None:
        max_attempts = getattr(settings, 'LOYALTY', {}).get('CLIENT_ID_MAX_ATTEMPTS', DEFAULT_MAX_ATTEMPTS)

    prefix = business_prefix(business.name)

    for _ in range(max_attempts):
        candidate = f"{prefix}-{random_suffix()}"
        if not Client.objects.filter(business=business, client_id=candidate).exists():
            return candidate

    logger.warning(
        f"Client id space crowded for business {business.slug}; using timestamp fallback",
        extra={'business_id': business.pk, 'attempts': max_attempts}
    )
    return fallback_identifier(prefix)


def allocate_many(business_ref, count):
    """`count` distinct ids for bulk card creation, checked in one query"""
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise ValidationFailure('Count must be a positive integer')

    business = _resolve_business(business_ref)
    prefix = business_prefix(business.name)

    taken = set(
        Client.objects.filter(business=business, client_id__startswith=f"{prefix}-")
        .values_list('client_id', flat=True)
    )

    allocated = []
    while len(allocated) < count:
        candidate = f"{prefix}-{random_suffix()}"
        if candidate in taken:
            continue
        taken.add(candidate)
        allocated.append(candidate)

    return allocated

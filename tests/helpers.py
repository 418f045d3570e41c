"""
Factory helpers shared by the loyalty test suite
"""
import time

import jwt
from django.conf import settings

from core.models import User
from core.services import create_business
from loyalty.models import Client, Item


def make_admin(username='admin', **extra):
    return User.objects.create_user(
        username=username,
        email=f'{username}@platform.test',
        password='testpass123',
        role=User.ROLE_ADMIN,
        **extra
    )


def make_business(name='My Coffee Shop', **fields):
    return create_business(name, **fields)


def make_operator(business, username=None):
    username = username or f'operator-{business.slug}'
    return User.objects.create_user(
        username=username,
        email=f'{username}@business.test',
        password='testpass123',
        role=User.ROLE_BUSINESS_USER,
        business=business,
    )


def make_item(business, name='Free Coffee', points=50, kind=Item.KIND_REDEEM, **fields):
    return Item.objects.create(business=business, name=name, points=points, kind=kind, **fields)


def make_client(business, client_id='TEST-AAAAAA', points=0, **fields):
    """Client row with a known id and starting balance (no ledger history)"""
    return Client.objects.create(business=business, client_id=client_id, points=points, **fields)


def make_token(user, lifetime=3600, **claims):
    now = int(time.time())
    payload = {'sub': str(user.pk), 'iat': now, 'exp': now + lifetime, **claims}
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

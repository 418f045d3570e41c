# core/slugs.py
import re

_NON_ALNUM = re.compile(r'[^a-z0-9]')
_DASH_RUNS = re.compile(r'-+')


def slugify_business_name(name):
    """
    Deterministic URL slug for a business name.

    'My Coffee Shop!' -> 'my-coffee-shop'
    """
    slug = _NON_ALNUM.sub('-', (name or '').lower())
    slug = _DASH_RUNS.sub('-', slug)
    return slug.strip('-')


def unique_business_slug(name, exclude_pk=None):
    """Slug for `name` that no other business uses; appends -1, -2, ... on collision"""
    from .models import Business

    base_slug = slugify_business_name(name) or 'business'
    slug = base_slug
    counter = 1

    taken = Business.objects.all()
    if exclude_pk is not None:
        taken = taken.exclude(pk=exclude_pk)

    while taken.filter(slug=slug).exists():
        slug = f"{base_slug}-{counter}"
        counter += 1

    return slug

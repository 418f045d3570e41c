# core/utils.py
"""
Per-thread business/request context read by the logging filters
"""
import threading
from contextlib import contextmanager

_thread_locals = threading.local()


def get_current_business():
    return getattr(_thread_locals, 'business', None)


def set_current_business(business):
    _thread_locals.business = business


def get_current_request():
    return getattr(_thread_locals, 'request', None)


def set_current_request(request):
    _thread_locals.request = request


def clear_thread_locals():
    """Drop request and business context (end of every request)"""
    for attr in ('business', 'request'):
        if hasattr(_thread_locals, attr):
            delattr(_thread_locals, attr)


@contextmanager
def business_context(business):
    """
    Attribute log records to `business` for the duration of the block, then
    restore whatever context was active before (nested use inside requests).
    """
    previous = get_current_business()
    set_current_business(business)
    try:
        yield business
    finally:
        set_current_business(previous)


def get_client_ip(request):
    """First X-Forwarded-For hop (behind the proxy) or REMOTE_ADDR"""
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip() or 'unknown'
    return request.META.get('REMOTE_ADDR') or 'unknown'

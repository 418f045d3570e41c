# core/logging.py
import logging

from .utils import get_client_ip, get_current_business, get_current_request


class BusinessContextFilter(logging.Filter):
    """
    Add business context to log records: the business of the current
    request/command, else the `business_id` passed through `extra`.
    """

    def filter(self, record):
        business = get_current_business()
        if business:
            record.business = f"[{business.slug}]"
        elif getattr(record, 'business_id', None):
            record.business = f"[business:{record.business_id}]"
        else:
            record.business = "[no-business]"
        return True


class RequestContextFilter(logging.Filter):
    """Add caller and HTTP context to log records"""

    def filter(self, record):
        request = get_current_request()
        if request is None:
            record.user = 'system'
            record.path = record.method = record.ip = '-'
            return True

        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated:
            record.user = f"{user.get_username()}({getattr(user, 'role', '?')})"
        else:
            record.user = 'anonymous'
        record.path = request.path
        record.method = request.method
        record.ip = get_client_ip(request)
        return True

"""
Loyalty Exceptions - Typed failures raised by the points core
Rendered by DRF as {"detail": ..., "code": ...}
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class PointsError(APIException):
    """Base class for every failure of the points core"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Points operation failed.'
    default_code = 'points_error'


class NotFound(PointsError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'not_found'


class CrossTenant(PointsError):
    default_detail = 'Item does not belong to the same business as the client.'
    default_code = 'cross_tenant'


class Forbidden(PointsError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Access denied. This resource does not belong to your business.'
    default_code = 'forbidden'


class ValidationFailure(PointsError):
    default_detail = 'Invalid input.'
    default_code = 'validation_failure'


class PolicyViolation(PointsError):
    default_detail = 'Business policy could not be loaded.'
    default_code = 'policy_violation'


class InsufficientBalance(PointsError):
    default_code = 'insufficient_balance'

    def __init__(self, current_balance, required, resulting_balance=None):
        if resulting_balance is None:
            resulting_balance = current_balance - required
        self.current_balance = current_balance
        self.required = required
        # Points missing to end the operation at zero
        self.shortfall = -resulting_balance
        super().__init__(
            f"Insufficient points. Current balance: {current_balance}, required: {required}"
        )


class ImmutableLedgerError(Exception):
    """Raised when code tries to edit or delete a recorded ledger entry"""

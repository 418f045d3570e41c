"""
JWT bearer authentication for the REST API
Tokens are issued elsewhere; this module only verifies them.
"""
import logging

import jwt
from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import authentication, exceptions

logger = logging.getLogger(__name__)


def decode_token(token):
    """Verify signature and expiry; returns the payload or raises jwt.InvalidTokenError"""
    return jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        options={
            "require": ["exp", "iat", "sub"],
            "verify_exp": True,
            "verify_iat": True,
        }
    )


def get_bearer_token(request):
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


class JWTAuthentication(authentication.BaseAuthentication):
    """Authorization: Bearer <token> where `sub` is the user's primary key"""

    www_authenticate_realm = 'api'

    def authenticate(self, request):
        token = get_bearer_token(request)
        if token is None:
            return None

        try:
            payload = decode_token(token)
        except jwt.ExpiredSignatureError:
            raise exceptions.AuthenticationFailed('Token expired')
        except jwt.InvalidTokenError:
            raise exceptions.AuthenticationFailed('Invalid token')

        User = get_user_model()
        user = User.objects.filter(pk=payload.get('sub'), is_active=True).select_related('business').first()
        if user is None:
            logger.warning(f"Token for unknown or inactive user {payload.get('sub')}")
            raise exceptions.AuthenticationFailed('User not found or inactive')

        return user, payload

    def authenticate_header(self, request):
        return f'Bearer realm="{self.www_authenticate_realm}"'

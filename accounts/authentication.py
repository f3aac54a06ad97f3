"""
Identity gate: HS256 bearer tokens in, a verified caller identity out.

Tokens carry the user's id in ``sub``; ``caller_identity`` turns the
authenticated request back into that string for the projects app.
"""
import logging
from datetime import datetime, timedelta, timezone

import jwt
from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed

from .models import User

logger = logging.getLogger(__name__)


def issue_token(user):
    now = datetime.now(tz=timezone.utc)
    payload = {
        'sub': str(user.pk),
        'name': user.name,
        'email': user.email,
        'iat': now,
        'exp': now + timedelta(seconds=settings.JWT_EXPIRES_SECONDS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token):
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        options={'require': ['sub', 'exp']},
    )


def caller_identity(request):
    return str(request.user.pk)


class JWTAuthentication(BaseAuthentication):
    keyword = 'Bearer'

    def authenticate(self, request):
        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None
        if len(auth) != 2:
            raise AuthenticationFailed('Invalid token header.')

        try:
            payload = decode_token(auth[1].decode())
        except (jwt.InvalidTokenError, UnicodeError) as e:
            logger.info("Rejected bearer token: %s", e)
            raise AuthenticationFailed('Invalid or expired token.')

        try:
            user = User.objects.filter(pk=payload['sub'], is_active=True).first()
        except DjangoValidationError:
            user = None
        if user is None:
            raise AuthenticationFailed('User not found.')
        return (user, payload)

    def authenticate_header(self, request):
        return self.keyword

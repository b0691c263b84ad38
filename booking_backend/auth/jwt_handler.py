"""Signed bearer tokens for administrator sessions."""

from datetime import datetime, timedelta, timezone

import jwt

from booking_backend.core import config

ADMIN_TOKEN_AUDIENCE = 'appointment-booking-admin'
REQUIRED_CLAIMS = ['sub', 'aud', 'iat', 'exp']


def issue_admin_token(admin_email: str, expires_minutes: int | None = None, now: datetime | None = None) -> str:
    lifetime = config.JWT_EXPIRES_MINUTES if expires_minutes is None else expires_minutes
    issued_at = now or datetime.now(timezone.utc)
    claims = {
        'sub': admin_email.strip().lower(),
        'aud': ADMIN_TOKEN_AUDIENCE,
        'iat': issued_at,
        'exp': issued_at + timedelta(minutes=lifetime),
    }
    return jwt.encode(claims, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def read_admin_email(token: str) -> str:
    """Return the administrator email a token was issued for.

    Raises ``jwt.PyJWTError`` when the token is expired, signed with another
    key, missing a required claim or issued for a different audience.
    """
    claims = jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        audience=ADMIN_TOKEN_AUDIENCE,
        options={'require': REQUIRED_CLAIMS},
    )
    subject = claims['sub']
    if not isinstance(subject, str) or not subject:
        raise jwt.InvalidTokenError('Token subject must be an email address')
    return subject

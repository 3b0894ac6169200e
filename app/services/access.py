"""
Access control — operator policy for admin routes, shared secret for cron routes.

Identity comes from the authentication layer in front of this service, which
sets AUTH_IDENTITY_HEADER to the signed-in user's email. Which identities are
operators is configuration (OPERATOR_EMAILS), injected into create_app().
"""
import hmac
import logging
from functools import wraps

from flask import current_app, request

from app.config import AUTH_IDENTITY_HEADER, OPERATOR_EMAILS
from app.errors import AuthorizationError

logger = logging.getLogger('services.access')


class OperatorPolicy:
    """Capability check: may this identity run admin ingestion actions?"""

    def __init__(self, emails=()):
        self.emails = frozenset(e.strip().lower() for e in emails if e and e.strip())

    @classmethod
    def from_config(cls, raw=OPERATOR_EMAILS):
        return cls((raw or '').split(','))

    def is_operator(self, identity) -> bool:
        if not identity:
            return False
        return identity.strip().lower() in self.emails


def current_identity():
    header = current_app.config.get('AUTH_IDENTITY_HEADER', AUTH_IDENTITY_HEADER)
    return request.headers.get(header, '')


def require_operator(view):
    """Route decorator — AuthorizationError (401) unless the caller passes the OperatorPolicy."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        policy = current_app.extensions['operator_policy']
        if not policy.is_operator(current_identity()):
            logger.warning("Rejected non-operator on %s", request.path)
            raise AuthorizationError()
        return view(*args, **kwargs)
    return wrapper


def verify_cron_secret(authorization_header, secret) -> bool:
    """
    Bearer-token check for scheduled jobs.

    With no secret configured the check passes: scheduled endpoints are then
    open, and create_app() logs a warning at startup.
    """
    if not secret:
        return True
    return hmac.compare_digest(authorization_header or '', f'Bearer {secret}')


def require_cron_secret(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        secret = current_app.config.get('CRON_SECRET')
        if not verify_cron_secret(request.headers.get('Authorization'), secret):
            raise AuthorizationError()
        return view(*args, **kwargs)
    return wrapper

"""
Token authentication for the clinic API.

Kept apart from the views so that DRF can import the authentication
classes named in settings without pulling in view modules.  Accounts
switched to ``Inactive`` by a nurse stop authenticating immediately,
even with a previously issued token.
"""
from __future__ import annotations

from rest_framework import authentication, exceptions


class TokenAuthentication(authentication.TokenAuthentication):
    """DRF token auth using the ``Token`` keyword and honouring account status."""

    keyword = 'Token'

    def authenticate_credentials(self, key):
        user, token = super().authenticate_credentials(key)
        if getattr(user, 'status', 'Active') != 'Active':
            raise exceptions.AuthenticationFailed('Account is inactive.')
        return user, token

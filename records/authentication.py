"""
Bearer-token authentication.

The session token is a signed JWT minted by :mod:`records.services.tokens`.
Verification is stateless: the signature and expiry are checked by
simplejwt and the claims are turned straight into a principal, so no
database round trip or server-side session is involved.  Keeping this
class in its own module avoids circular imports when DRF loads its
authentication classes during start-up.
"""
from __future__ import annotations

from rest_framework_simplejwt.authentication import JWTAuthentication

from .principals import principal_from_claims


class PrincipalJWTAuthentication(JWTAuthentication):
    """Authenticate ``Authorization: Bearer <jwt>`` and attach a principal.

    Missing headers leave the request anonymous (the permission classes
    then answer 401); malformed, expired or badly signed tokens raise
    ``InvalidToken`` which DRF also renders as 401.
    """

    def get_user(self, validated_token):
        return principal_from_claims(validated_token)

"""
Credential issuer: check an email/password pair and mint a session token.

Tokens are simplejwt access tokens carrying the user id, role and
hospital id.  Their lifetime comes from ``SIMPLE_JWT['ACCESS_TOKEN_LIFETIME']``
(seven days by default).  Nothing is stored server-side.
"""
from __future__ import annotations

from dataclasses import dataclass

from django.contrib.auth import get_user_model
from rest_framework_simplejwt.tokens import AccessToken

from records.exceptions import AccountPending, InvalidCredentials
from records.models import Hospital
from records.principals import HOSPITAL_CLAIM, ROLE_CLAIM, Principal, principal_from_claims

User = get_user_model()


@dataclass
class IssuedSession:
    token: str
    user: User
    principal: Principal


def issue_token(user) -> AccessToken:
    token = AccessToken.for_user(user)
    token[ROLE_CLAIM] = user.role
    token[HOSPITAL_CLAIM] = user.hospital_id
    return token


def authenticate(email: str, password: str) -> IssuedSession:
    """Return a fresh session for valid credentials.

    The password is checked before the activation state so that a caller
    without the password cannot learn whether a hospital is still pending.
    """
    email = (email or '').strip().lower()
    user = User.objects.select_related('hospital').filter(email=email).first()
    if user is None:
        # Hash anyway so timing does not reveal unknown emails.
        User().set_password(password)
        raise InvalidCredentials()
    if not user.check_password(password):
        raise InvalidCredentials()
    if not user.is_active:
        if user.role == User.ROLE_HOSPITAL_ADMIN:
            raise AccountPending()
        raise InvalidCredentials()

    # is_active can drift from the hospital status, so check both.
    if user.role == User.ROLE_HOSPITAL_ADMIN and (
        user.hospital is None or user.hospital.status != Hospital.STATUS_APPROVED
    ):
        raise AccountPending()

    token = issue_token(user)
    return IssuedSession(token=str(token), user=user, principal=principal_from_claims(token))

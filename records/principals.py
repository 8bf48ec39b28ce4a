"""
Authenticated principals.

A principal is the verified identity behind a request, rebuilt from the
session token's claims without touching the database.  The set of
principal classes is closed: one per role.  Code that branches on the
kind of principal must handle all of them and raise on anything else so
that adding a role fails loudly instead of silently widening access.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from rest_framework_simplejwt.exceptions import InvalidToken
from rest_framework_simplejwt.settings import api_settings

ROLE_SUPER_ADMIN = 'SUPER_ADMIN'
ROLE_HOSPITAL_ADMIN = 'HOSPITAL_ADMIN'
ROLE_PATIENT = 'PATIENT'

ROLE_CLAIM = 'role'
HOSPITAL_CLAIM = 'hospital_id'


@dataclass(frozen=True)
class Principal:
    user_id: int
    role = ''

    # DRF reads these off ``request.user``.
    is_authenticated = True
    is_anonymous = False

    @property
    def pk(self) -> int:
        return self.user_id

    @property
    def hospital(self) -> Optional[int]:
        return None


@dataclass(frozen=True)
class SuperAdminPrincipal(Principal):
    """The system owner: global visibility, no tenant."""
    role = ROLE_SUPER_ADMIN


@dataclass(frozen=True)
class HospitalAdminPrincipal(Principal):
    """Staff of one hospital; every patient operation is scoped to it."""
    hospital_id: int = 0
    role = ROLE_HOSPITAL_ADMIN

    @property
    def hospital(self) -> Optional[int]:
        return self.hospital_id


@dataclass(frozen=True)
class PatientPrincipal(Principal):
    """A patient logged into the portal; may only see its own record."""
    hospital_id: Optional[int] = None
    role = ROLE_PATIENT

    @property
    def hospital(self) -> Optional[int]:
        return self.hospital_id


def _int_claim(claims: Mapping[str, Any], key: str) -> int:
    value = claims.get(key)
    if value is None or value == '':
        raise InvalidToken(f'Token is missing the {key} claim')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidToken(f'Token has a malformed {key} claim')


def principal_from_claims(claims: Mapping[str, Any]) -> Principal:
    """Build the principal for a validated token payload."""
    user_id = _int_claim(claims, api_settings.USER_ID_CLAIM)
    role = claims.get(ROLE_CLAIM)
    if role == ROLE_SUPER_ADMIN:
        return SuperAdminPrincipal(user_id=user_id)
    if role == ROLE_HOSPITAL_ADMIN:
        return HospitalAdminPrincipal(user_id=user_id, hospital_id=_int_claim(claims, HOSPITAL_CLAIM))
    if role == ROLE_PATIENT:
        hospital_id = _int_claim(claims, HOSPITAL_CLAIM) if claims.get(HOSPITAL_CLAIM) is not None else None
        return PatientPrincipal(user_id=user_id, hospital_id=hospital_id)
    raise InvalidToken('Token carries an unknown role')

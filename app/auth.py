"""
Authorization gate.

Resolves a bearer credential to an immutable ``Identity`` and exposes the
role predicates handlers use. The user row is re-read on every request, so
a block or role change takes effect on the caller's next call even while
their token is still valid.
"""
from dataclasses import dataclass
from typing import Optional
from uuid import UUID
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import APIError, ErrorKind, Failure, Result, is_failure, unwrap
from app.core.security import decode_token, is_token_revoked
from app.db.models.user import RoleEnum
from app.db.repositories import get_user
from app.db.session import get_session

# Missing credentials are reported by resolve_identity, not by HTTPBearer
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as threaded through a single request."""

    id: UUID
    role: RoleEnum

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.admin

    @property
    def is_organizer_or_admin(self) -> bool:
        return self.role in (RoleEnum.organizer, RoleEnum.admin)

    def can_manage(self, owner_id) -> bool:
        """Owner of the resource, or an admin."""
        return self.is_admin or str(self.id) == str(owner_id)


async def resolve_identity(session: AsyncSession, token: Optional[str]) -> Result[Identity]:
    """
    Turn a bearer token into an Identity.

    Failure kinds: ``unauthenticated`` for a missing, revoked, expired or
    malformed token; ``account_not_found`` if the user was deleted;
    ``account_blocked`` if an admin blocked the account.
    """
    if not token:
        return Failure(ErrorKind.unauthenticated, "Access denied. No token provided.")

    if await is_token_revoked(token):
        return Failure(ErrorKind.unauthenticated, "Token has been revoked")

    try:
        payload = decode_token(token)
    except ValueError:
        return Failure(ErrorKind.unauthenticated, "Invalid or expired token")

    if payload.get("type") != "access":
        return Failure(ErrorKind.unauthenticated, "Invalid token type")

    try:
        user_id = UUID(str(payload["sub"]))
    except ValueError:
        return Failure(ErrorKind.unauthenticated, "Invalid or expired token")

    user = await get_user(session, user_id)
    if user is None:
        return Failure(ErrorKind.account_not_found, "User not found")
    if user.is_blocked:
        return Failure(ErrorKind.account_blocked, "Your account has been blocked. Please contact support.")

    # Role comes from the store, not from the token claim
    return Identity(id=user.id, role=user.role)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_session),
) -> Identity:
    token = credentials.credentials if credentials else None
    return unwrap(await resolve_identity(session, token))


async def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_session),
) -> Optional[Identity]:
    """Identity for endpoints that anonymous callers may also use; never fails."""
    if credentials is None:
        return None
    result = await resolve_identity(session, credentials.credentials)
    return None if is_failure(result) else result


def role_required(required_role: RoleEnum):
    """
    Dependency requiring ``required_role``; admins always pass.

    Args:
        required_role: Role name required (e.g. RoleEnum.organizer)
    """
    async def role_checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role != required_role and not identity.is_admin:
            if required_role == RoleEnum.admin:
                message = "Access denied. Admin privileges required."
            else:
                message = "Access denied. Organizer or Admin privileges required."
            raise APIError(Failure(ErrorKind.forbidden, message))
        return identity
    return role_checker


admin_required = role_required(RoleEnum.admin)
organizer_required = role_required(RoleEnum.organizer)


def forbidden(message: str = "Access denied") -> Failure:
    return Failure(ErrorKind.forbidden, message)

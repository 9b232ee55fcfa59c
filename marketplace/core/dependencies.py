from fastapi import Depends, Request
from loguru import logger
from typing import Optional

from marketplace.core.exceptions import (
    UnauthenticatedError, ForbiddenError, InvalidTokenError,
)
from marketplace.core.security import SessionClaims, SessionIssuer, get_session_issuer
from marketplace.models.users import UserRole

BEARER_PREFIX = "Bearer "


def extract_token(request: Request) -> Optional[str]:
    """Authorization header first, then the ``token`` query parameter."""
    token = request.headers.get("Authorization") or request.query_params.get("token")
    if not token:
        return None

    if token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):]
    return token.strip() or None


async def get_current_identity(
        request: Request,
        issuer: SessionIssuer = Depends(get_session_issuer),
) -> SessionClaims:
    """
    Verifies the session token and stores the identity on request.state
    """
    token = extract_token(request)
    if token is None:
        raise UnauthenticatedError("Acceso denegado, token requerido.")

    try:
        identity = issuer.verify(token)
    except InvalidTokenError as e:
        logger.warning(f"Rejected session token {token[:5]}...: {e.message}")
        raise ForbiddenError("Token inválido o expirado.")

    request.state.identity = identity
    return identity


def authorize(identity: SessionClaims, role: UserRole) -> None:
    if identity.role != role:
        raise ForbiddenError("Acceso denegado: Solo administradores pueden acceder a este recurso."
                             if role == UserRole.ADMIN else "Acceso denegado.")


def can_act_on(identity: SessionClaims, owner_sid: Optional[str]) -> bool:
    """The resource owner and admins may act on a resource."""
    return identity.role == UserRole.ADMIN or (owner_sid is not None and identity.user_id == owner_sid)


def ensure_can_act_on(identity: SessionClaims, owner_sid: Optional[str], message: str = "No tienes permiso para realizar esta acción.") -> None:
    if not can_act_on(identity, owner_sid):
        raise ForbiddenError(message)


def require_role(role: UserRole):
    """
    Builds a dependency that requires the given role
    """

    async def role_checker(
            identity: SessionClaims = Depends(get_current_identity),
    ) -> SessionClaims:
        authorize(identity, role)
        return identity

    return role_checker


require_admin = require_role(UserRole.ADMIN)

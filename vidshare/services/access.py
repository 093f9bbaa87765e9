"""Request-level role enforcement for the API routers."""

import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from vidshare.db import get_db
from vidshare.errors import ApiError, Forbidden, Unauthorized
from vidshare.models.account import Account, Role
from vidshare.services.tokens import Principal, TokenKind, TokenService, get_token_service

logger = logging.getLogger(__name__)


def bearer_token(request: Request) -> str | None:
    header = (request.headers.get("Authorization") or "").strip()
    scheme, _, token = header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or token == "null":
        return None
    return token


def _check_role(
    principal: Principal,
    required_role: Role | None,
    allow_any_authenticated: bool,
    db: Session,
) -> Principal:
    if required_role is Role.ADMIN:
        # The admin is a configured identity, never a stored account.
        if principal.role is not Role.ADMIN:
            raise Forbidden("Access denied")
        return principal

    account = db.get(Account, principal.subject_id)
    if account is None:
        raise Unauthorized("User not found")
    role = Role(account.role)
    if allow_any_authenticated or required_role is None:
        return Principal(subject_id=account.id, role=role)
    if required_role is Role.CREATOR or required_role is Role.CONSUMER:
        if role is not required_role:
            raise Forbidden("Access denied")
        return Principal(subject_id=account.id, role=role)
    raise ValueError(f"Unhandled role requirement: {required_role!r}")


def require_role(required_role: Role | None = None, allow_any_authenticated: bool = False):
    """Build a dependency that admits only callers matching ``required_role``.

    With ``allow_any_authenticated`` every stored account passes, whatever
    its role. The resolved principal is also stored on ``request.state``.
    """

    def dependency(
        request: Request,
        db: Session = Depends(get_db),
        tokens: TokenService = Depends(get_token_service),
    ) -> Principal:
        token = bearer_token(request)
        if token is None:
            raise Unauthorized("Authentication token required")
        principal = tokens.verify(token, TokenKind.SESSION)
        principal = _check_role(principal, required_role, allow_any_authenticated, db)
        request.state.principal = principal
        return principal

    return dependency


def authenticated_principal(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
) -> Principal:
    """Decode the session token without consulting the account table."""
    token = bearer_token(request)
    if token is None:
        raise Unauthorized("Unauthorized")
    principal = tokens.verify(token, TokenKind.SESSION)
    request.state.principal = principal
    return principal


def optional_principal(
    request: Request,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> Principal | None:
    token = bearer_token(request)
    if token is None:
        return None
    try:
        principal = tokens.verify(token, TokenKind.SESSION)
        if principal.role is not Role.ADMIN:
            principal = _check_role(principal, None, True, db)
    except ApiError as exc:
        logger.debug("ignoring unusable bearer token on public route: %s", exc.message)
        return None
    request.state.principal = principal
    return principal

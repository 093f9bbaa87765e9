"""Signed, time-limited credentials.

Session tokens and invitation tokens are signed with different secrets and
carry a ``typ`` claim, so neither can stand in for the other. Tokens are
stateless: validity is signature plus expiry, there is no revocation list.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

import jwt
from fastapi import Depends

from vidshare.config import Settings, get_settings
from vidshare.errors import TokenExpired, Unauthorized
from vidshare.models.account import Role

ALGORITHM = "HS256"


class TokenKind(str, Enum):
    SESSION = "session"
    INVITATION = "invitation"


@dataclass(frozen=True)
class Principal:
    subject_id: str
    role: Role


class TokenService:
    def __init__(self, settings: Settings) -> None:
        self._secrets = {
            TokenKind.SESSION: settings.session_secret,
            TokenKind.INVITATION: settings.invitation_secret,
        }
        self._ttls = {
            TokenKind.SESSION: settings.session_ttl,
            TokenKind.INVITATION: settings.invitation_ttl,
        }

    def issue(
        self,
        subject_id: str,
        role: Role,
        kind: TokenKind = TokenKind.SESSION,
        ttl: timedelta | None = None,
    ) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(subject_id),
            "role": Role(role).value,
            "typ": kind.value,
            "iat": now,
            "exp": now + (ttl if ttl is not None else self._ttls[kind]),
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=ALGORITHM)

    def verify(self, token: str, kind: TokenKind = TokenKind.SESSION) -> Principal:
        try:
            claims = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except jwt.InvalidTokenError as exc:
            raise Unauthorized("Invalid token") from exc

        if claims.get("typ") != kind.value:
            raise Unauthorized("Invalid token")
        try:
            role = Role(claims.get("role"))
        except ValueError as exc:
            raise Unauthorized("Invalid token") from exc
        return Principal(subject_id=claims["sub"], role=role)


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(settings)

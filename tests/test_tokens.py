from datetime import timedelta

import jwt
import pytest

from vidshare.errors import TokenExpired, Unauthorized
from vidshare.models.account import Role
from vidshare.services.tokens import ALGORITHM, Principal, TokenKind


def test_session_token_carries_subject_and_role(tokens):
    token = tokens.issue("user-1", Role.CONSUMER)
    assert tokens.verify(token) == Principal(subject_id="user-1", role=Role.CONSUMER)


def test_expired_token_is_distinguished_from_invalid(tokens):
    token = tokens.issue("user-1", Role.CREATOR, ttl=timedelta(seconds=-30))
    with pytest.raises(TokenExpired) as info:
        tokens.verify(token)
    assert info.value.message == "Token expired"


def test_foreign_signature_is_invalid_not_expired(tokens):
    forged = jwt.encode(
        {"sub": "user-1", "role": "consumer", "typ": "session", "exp": 9999999999},
        "some-other-secret-0123456789abcdef",
        algorithm=ALGORITHM,
    )
    with pytest.raises(Unauthorized) as info:
        tokens.verify(forged)
    assert not isinstance(info.value, TokenExpired)


def test_garbage_token_is_invalid(tokens):
    with pytest.raises(Unauthorized):
        tokens.verify("not-a-token")


def test_invitation_token_cannot_be_used_as_session(tokens):
    invite = tokens.issue("creator-1", Role.CREATOR, TokenKind.INVITATION)
    with pytest.raises(Unauthorized):
        tokens.verify(invite, TokenKind.SESSION)
    assert tokens.verify(invite, TokenKind.INVITATION).subject_id == "creator-1"


def test_session_token_cannot_be_used_as_invitation(tokens):
    session = tokens.issue("creator-1", Role.CREATOR, TokenKind.SESSION)
    with pytest.raises(Unauthorized):
        tokens.verify(session, TokenKind.INVITATION)


def test_kind_claim_is_checked_even_with_matching_secret(settings, tokens):
    token = jwt.encode(
        {"sub": "user-1", "role": "consumer", "typ": "invitation", "exp": 9999999999},
        settings.session_secret,
        algorithm=ALGORITHM,
    )
    with pytest.raises(Unauthorized):
        tokens.verify(token, TokenKind.SESSION)


def test_unknown_role_claim_is_rejected(settings, tokens):
    token = jwt.encode(
        {"sub": "user-1", "role": "superuser", "typ": "session", "exp": 9999999999},
        settings.session_secret,
        algorithm=ALGORITHM,
    )
    with pytest.raises(Unauthorized):
        tokens.verify(token)


def test_default_ttls_follow_settings(settings, tokens):
    session = jwt.decode(tokens.issue("u", Role.CONSUMER), settings.session_secret, algorithms=[ALGORITHM])
    invite = jwt.decode(
        tokens.issue("u", Role.CREATOR, TokenKind.INVITATION),
        settings.invitation_secret,
        algorithms=[ALGORITHM],
    )
    assert session["exp"] - session["iat"] == int(settings.session_ttl.total_seconds())
    assert invite["exp"] - invite["iat"] == int(settings.invitation_ttl.total_seconds())

"""Account persistence plus the login and invitation flows."""

import hmac
import logging

from passlib.context import CryptContext
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vidshare.config import Settings
from vidshare.db import escape_like
from vidshare.errors import Conflict, Forbidden, NotFound, TokenExpired, Unauthorized, ValidationError
from vidshare.models.account import Account, Role
from vidshare.services.engagement import aggregate_for_creator
from vidshare.services.mailer import Mailer
from vidshare.services.tokens import Principal, TokenKind, TokenService

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_account(db: Session, account_id: str) -> Account:
    account = db.get(Account, account_id)
    if account is None:
        raise NotFound("User not found")
    return account


def find_by_email(db: Session, email: str) -> Account | None:
    return db.query(Account).filter(Account.email == normalize_email(email)).first()


def create_account(db: Session, username: str, email: str, password: str, role: Role) -> Account:
    if role is Role.ADMIN:
        raise ValidationError("Admin accounts are configured, not stored")
    username = (username or "").strip()
    email = normalize_email(email)
    if not username or not email or not password:
        raise ValidationError("username, email and password are required")

    existing = (
        db.query(Account)
        .filter((Account.email == email) | (Account.username == username))
        .first()
    )
    if existing:
        raise Conflict("User already exists")

    account = Account(
        username=username,
        email=email,
        hashed_password=hash_password(password),
        role=role.value,
    )
    db.add(account)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("User already exists") from exc
    db.refresh(account)
    logger.info("registered %s account %s", role.value, account.id)
    return account


def register_consumer(db: Session, username: str, email: str, password: str) -> Account:
    return create_account(db, username, email, password, Role.CONSUMER)


def authenticate_consumer(db: Session, tokens: TokenService, email: str, password: str) -> str:
    account = find_by_email(db, email)
    if account is None or not verify_password(password, account.hashed_password):
        raise Unauthorized("Invalid email or password")
    # Creators sign in through their invitation link.
    if account.role == Role.CREATOR.value:
        raise Unauthorized("Invalid email or password")
    return tokens.issue(account.id, Role(account.role), TokenKind.SESSION)


def authenticate_admin(settings: Settings, tokens: TokenService, email: str, password: str) -> str:
    if not settings.admin_email or not settings.admin_password:
        raise Unauthorized("Invalid email or password")
    email_ok = hmac.compare_digest(normalize_email(email).encode(), settings.admin_email.encode())
    password_ok = hmac.compare_digest((password or "").encode(), settings.admin_password.encode())
    if not (email_ok and password_ok):
        raise Unauthorized("Invalid email or password")
    return tokens.issue(settings.admin_id, Role.ADMIN, TokenKind.SESSION)


def invitation_url(settings: Settings, token: str) -> str:
    return f"{settings.client_url}/creator/login?token={token}"


def _send_invitation(
    settings: Settings,
    tokens: TokenService,
    mailer: Mailer,
    account: Account,
    subject: str,
    intro: str,
) -> bool:
    token = tokens.issue(account.id, Role.CREATOR, TokenKind.INVITATION)
    login_url = invitation_url(settings, token)
    html = (
        f"<p>{intro}</p>"
        f"<p>Email: {account.email}</p>"
        f'<p><a href="{login_url}" target="_blank">Click here to login</a></p>'
    )
    try:
        return mailer.send(account.email, subject, html)
    except OSError:
        # smtplib errors are OSError subclasses; delivery is best effort.
        logger.exception("invitation mail to %s failed", account.email)
        return False


def register_creator(
    db: Session,
    settings: Settings,
    tokens: TokenService,
    mailer: Mailer,
    username: str,
    email: str,
    password: str,
) -> tuple[Account, bool]:
    account = create_account(db, username, email, password, Role.CREATOR)
    sent = _send_invitation(
        settings,
        tokens,
        mailer,
        account,
        "Creator Account Created - Login Information",
        "Your creator account has been created. Use the link below to sign in.",
    )
    return account, sent


def resend_invitation(
    db: Session,
    settings: Settings,
    tokens: TokenService,
    mailer: Mailer,
    email: str,
) -> bool:
    account = find_by_email(db, email)
    if account is None:
        raise NotFound("User not found", body_key="err")
    if account.role != Role.CREATOR.value:
        raise Forbidden("Access denied. Creator account required.", body_key="err")
    return _send_invitation(
        settings,
        tokens,
        mailer,
        account,
        "Creator Account Refresh - Login Information",
        "Your creator login link has been refreshed.",
    )


def login_creator_with_invitation(
    db: Session,
    tokens: TokenService,
    token: str | None,
    email: str,
    password: str,
) -> str:
    if not token:
        raise Unauthorized("Unauthorized access", body_key="err")
    try:
        claims = tokens.verify(token, TokenKind.INVITATION)
    except TokenExpired as exc:
        raise TokenExpired("Login link expired", body_key="err") from exc
    except Unauthorized as exc:
        raise Unauthorized("Invalid login link", body_key="err") from exc

    account = db.get(Account, claims.subject_id)
    if account is None or account.role != Role.CREATOR.value:
        raise Forbidden("Access denied. Creator account required.", body_key="err")
    if account.email != normalize_email(email):
        raise Unauthorized("Invalid Account", body_key="err")
    if not verify_password(password, account.hashed_password):
        raise Unauthorized("Invalid Account", body_key="err")
    return tokens.issue(account.id, Role.CREATOR, TokenKind.SESSION)


def current_identity(db: Session, settings: Settings, principal: Principal) -> dict:
    if principal.role is Role.ADMIN:
        if principal.subject_id != settings.admin_id:
            raise Unauthorized("Unauthorized")
        return {
            "id": settings.admin_id,
            "email": settings.admin_email,
            "username": "Admin",
            "role": Role.ADMIN.value,
        }
    account = get_account(db, principal.subject_id)
    return {
        "id": account.id,
        "email": account.email,
        "username": account.username,
        "role": account.role,
        "created_at": account.created_at,
    }


def delete_account(db: Session, account_id: str) -> None:
    account = get_account(db, account_id)
    db.delete(account)
    db.commit()
    logger.info("deleted account %s", account_id)


def list_creators(db: Session) -> list[Account]:
    return (
        db.query(Account)
        .filter(Account.role == Role.CREATOR.value)
        .order_by(Account.created_at.desc())
        .all()
    )


def role_counts(db: Session) -> dict[str, int]:
    rows = db.query(Account.role, func.count(Account.id)).group_by(Account.role).all()
    counts = {role: total for role, total in rows}
    return {
        "creators": counts.get(Role.CREATOR.value, 0),
        "users": counts.get(Role.CONSUMER.value, 0),
    }


def search_accounts(db: Session, term: str | None) -> list[Account]:
    term = (term or "").strip()
    if not term:
        raise ValidationError("Search query is required")
    keyword = f"%{escape_like(term.lower())}%"
    return (
        db.query(Account)
        .filter(func.lower(Account.username).like(keyword, escape="\\"))
        .order_by(Account.username)
        .all()
    )


def creator_details(db: Session, account_id: str) -> dict:
    account = get_account(db, account_id)
    return {
        "user": {"id": account.id, "username": account.username, "email": account.email},
        "videos": aggregate_for_creator(db, account.id),
    }

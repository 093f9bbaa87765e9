from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vidshare.config import Settings, get_settings
from vidshare.db import get_db
from vidshare.models.account import Role
from vidshare.schemas.account import (
    AccountOut,
    AccountSummary,
    CreatorLoginIn,
    LoginIn,
    RegisterIn,
    ResendInvitationIn,
)
from vidshare.schemas.engagement import CreatorVideoStats
from vidshare.services import accounts
from vidshare.services.access import authenticated_principal, require_role
from vidshare.services.mailer import Mailer, get_mailer
from vidshare.services.tokens import Principal, TokenService, get_token_service

router = APIRouter(prefix="/users", tags=["users"])

admin_only = require_role(Role.ADMIN)


@router.post("/consumer/register", status_code=201)
def register_consumer(payload: RegisterIn, db: Session = Depends(get_db)):
    account = accounts.register_consumer(db, payload.username, payload.email, payload.password)
    return {
        "message": "User registered successfully",
        "user": AccountOut.model_validate(account),
    }


@router.post("/consumer/login")
def consumer_login(
    payload: LoginIn,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    token = accounts.authenticate_consumer(db, tokens, payload.email, payload.password)
    return {"message": "Login successful", "token": token}


@router.post("/admin/login")
def admin_login(
    payload: LoginIn,
    settings: Settings = Depends(get_settings),
    tokens: TokenService = Depends(get_token_service),
):
    token = accounts.authenticate_admin(settings, tokens, payload.email, payload.password)
    return {"message": "Login successful", "token": token}


@router.post("/admin/register-creator", status_code=201)
def register_creator(
    payload: RegisterIn,
    _: Principal = Depends(admin_only),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    tokens: TokenService = Depends(get_token_service),
    mailer: Mailer = Depends(get_mailer),
):
    account, sent = accounts.register_creator(
        db, settings, tokens, mailer, payload.username, payload.email, payload.password
    )
    message = "Creator user registered successfully, email sent"
    if not sent:
        message = "Creator user registered successfully, email not sent"
    return {"message": message, "email_sent": sent, "user": AccountOut.model_validate(account)}


@router.post("/admin/refresh-token")
def refresh_invitation(
    payload: ResendInvitationIn,
    _: Principal = Depends(admin_only),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    tokens: TokenService = Depends(get_token_service),
    mailer: Mailer = Depends(get_mailer),
):
    sent = accounts.resend_invitation(db, settings, tokens, mailer, payload.email)
    message = "Refresh Token Email Sent" if sent else "Refresh token issued, email not sent"
    return {"message": message, "email_sent": sent}


@router.get("/admin/creators/all", response_model=list[AccountOut])
def list_creators(_: Principal = Depends(admin_only), db: Session = Depends(get_db)):
    return accounts.list_creators(db)


@router.get("/admin/dashboard")
def dashboard(_: Principal = Depends(admin_only), db: Session = Depends(get_db)):
    return accounts.role_counts(db)


@router.post("/creator/login")
def creator_login(
    payload: CreatorLoginIn,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    token = accounts.login_creator_with_invitation(
        db, tokens, payload.token, payload.email, payload.password
    )
    return {"message": "Login successful", "token": token}


@router.get("/me")
def me(
    principal: Principal = Depends(authenticated_principal),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return accounts.current_identity(db, settings, principal)


@router.get("/search", response_model=list[AccountSummary])
def search_users(search: str | None = None, db: Session = Depends(get_db)):
    return accounts.search_accounts(db, search)


@router.get("/{user_id}", response_model=AccountOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    return accounts.get_account(db, user_id)


@router.get("/{user_id}/details")
def get_user_details(user_id: str, db: Session = Depends(get_db)):
    details = accounts.creator_details(db, user_id)
    return {
        "user": details["user"],
        "videos": [CreatorVideoStats(**row) for row in details["videos"]],
    }


@router.delete("/{user_id}")
def delete_user(user_id: str, _: Principal = Depends(admin_only), db: Session = Depends(get_db)):
    accounts.delete_account(db, user_id)
    return {"message": "User deleted successfully"}

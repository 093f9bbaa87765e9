from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


class RegisterIn(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class CreatorLoginIn(BaseModel):
    token: str | None = None
    email: EmailStr
    password: str


class ResendInvitationIn(BaseModel):
    email: EmailStr


class AccountOut(BaseModel):
    id: str
    username: str
    email: str
    role: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class AccountSummary(BaseModel):
    id: str
    username: str
    email: str

    class Config:
        from_attributes = True

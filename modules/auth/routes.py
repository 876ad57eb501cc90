"""
Auth Module - Routes
=====================
JSON API: signup, login, current user, profile update, password change.
Auth: `Authorization: Bearer <token>` header.
"""

import re
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import PASSWORD_MIN_LENGTH
from modules.auth.service import auth_service
from modules.auth.deps import require_login

router = APIRouter(prefix="/api/auth", tags=["auth"])

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# ==========================================
# Schemas
# ==========================================

def _check_email(v: str) -> str:
    v = (v or "").strip().lower()
    if not _EMAIL_RE.match(v):
        raise ValueError("Please provide a valid email")
    return v


def _check_name(v: str) -> str:
    v = (v or "").strip()
    if len(v) < 2:
        raise ValueError("Name must be at least 2 characters")
    return v


class SignupRequest(BaseModel):
    name: str
    email: str
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _check_name(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)


class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _check_name(v) if v is not None else v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v) if v is not None else v


class ChangePasswordRequest(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=PASSWORD_MIN_LENGTH)


def _auth_payload(user, token: str) -> dict:
    return {"id": user.id, "name": user.name, "email": user.email, "role": user.role, "token": token}


# ==========================================
# POST /api/auth/signup
# ==========================================

@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest, db: Session = Depends(get_db)):
    user, token = auth_service.signup(db, body.name, body.email, body.password)
    db.commit()
    return {
        "success": True,
        "message": "User registered successfully",
        "data": _auth_payload(user, token),
    }


# ==========================================
# POST /api/auth/login
# ==========================================

@router.post("/login")
async def login(body: LoginRequest, db: Session = Depends(get_db)):
    user, token = auth_service.login(db, body.email, body.password)
    return {
        "success": True,
        "message": "Login successful",
        "data": _auth_payload(user, token),
    }


# ==========================================
# GET /api/auth/me
# ==========================================

@router.get("/me")
async def me(user=Depends(require_login)):
    return {"success": True, "data": user.to_dict()}


# ==========================================
# PUT /api/auth/updateprofile
# ==========================================

@router.put("/updateprofile")
async def update_profile(
    body: ProfileUpdateRequest,
    db: Session = Depends(get_db),
    user=Depends(require_login),
):
    auth_service.update_profile(db, user, name=body.name, email=body.email)
    db.commit()
    return {
        "success": True,
        "message": "Profile updated successfully",
        "data": user.to_dict(),
    }


# ==========================================
# PUT /api/auth/changepassword
# ==========================================

@router.put("/changepassword")
async def change_password(
    body: ChangePasswordRequest,
    db: Session = Depends(get_db),
    user=Depends(require_login),
):
    token = auth_service.change_password(db, user, body.currentPassword, body.newPassword)
    db.commit()
    return {
        "success": True,
        "message": "Password changed successfully",
        "data": {"token": token},
    }

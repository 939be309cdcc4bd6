# homeland/api/routers/auth.py
import logging
from typing import Dict, Any

from fastapi import APIRouter, Depends, HTTPException, status, Body
from sqlalchemy.ext.asyncio import AsyncSession
from jose import JWTError

from homeland.api.dependencies import get_current_user
from homeland.core.config import get_settings
from homeland.db.session import get_db
from homeland.db import crud_users
from homeland.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    ResetTokenRequest,
    Token,
)
from homeland.schemas.user import UserCreate, UserOut
from homeland.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    verify_password,
)
from homeland.services.notifications import notification_service

logger = logging.getLogger(__name__)

router = APIRouter()

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent."


def _token_response(user, access: str, refresh: str) -> Dict[str, Any]:
    """
    Return a simple dict matching the Token pydantic model:
    { access_token, refresh_token, token_type, user }
    """
    return {
        "access_token": access,
        "refresh_token": refresh,
        "token_type": "bearer",
        "user": UserOut.model_validate(user),
    }


async def issue_tokens(db: AsyncSession, user) -> Dict[str, Any]:
    data = {"user_id": user.id, "role": user.role}
    access = create_access_token(data)
    refresh = create_refresh_token(data)
    await crud_users.save_refresh_token(db, user.id, refresh)
    return _token_response(user, access, refresh)


def _check_new_password(new_password: str, confirm_password: str) -> None:
    if new_password != confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match")
    min_length = get_settings().MIN_PASSWORD_LENGTH
    if len(new_password) < min_length:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {min_length} characters long",
        )


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    min_length = get_settings().MIN_PASSWORD_LENGTH
    if len(payload.password) < min_length:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {min_length} characters long",
        )

    existing = await crud_users.get_user_by_email(db, payload.email)
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    user = await crud_users.create_user(
        db=db,
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        email=payload.email,
        password=payload.password,
        phone=payload.phone,
    )
    logger.info("Registered user %s", user.id)
    return await issue_tokens(db, user)


@router.post("/login", response_model=Token)
async def login(
    form_data: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
):
    email = form_data.get("email")
    password = form_data.get("password")

    if not email or not password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing email or password")

    user = await crud_users.get_user_by_email(db, str(email))
    if not user or not verify_password(str(password), user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    return await issue_tokens(db, user)


@router.post("/refresh", response_model=Token)
async def refresh(
    body: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
):
    # Accept both "refresh" (frontend) and "refresh_token"
    token = body.get("refresh") or body.get("refresh_token")
    if not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing token")

    try:
        payload = decode_refresh_token(token)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )

    if not await crud_users.is_refresh_token_active(db, token):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token revoked")

    try:
        uid = int(payload.get("user_id"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user id in token")

    user = await crud_users.get_user(db, uid)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return await issue_tokens(db, user)


@router.post("/logout")
async def logout(
    body: Dict[str, Any] | None = Body(None),
    db: AsyncSession = Depends(get_db),
):
    # Body is optional; without a token there is nothing to revoke.
    token = (body or {}).get("refresh") or (body or {}).get("refresh_token")
    if token:
        await crud_users.revoke_refresh_token(db, token)
    return {"ok": True}


@router.post("/forgot-password")
async def forgot_password(body: ForgotPasswordRequest, db: AsyncSession = Depends(get_db)):
    """
    Same answer whether or not the account exists.
    """
    user = await crud_users.get_user_by_email(db, body.email)
    if user:
        token = await crud_users.issue_reset_token(
            db, user, get_settings().PASSWORD_RESET_EXPIRE_MINUTES
        )
        logger.info("Password reset requested for user %s", user.id)
        await notification_service.send_password_reset(user, token)
    return {"message": FORGOT_PASSWORD_MESSAGE}


@router.post("/verify-reset-token")
async def verify_reset_token(body: ResetTokenRequest, db: AsyncSession = Depends(get_db)):
    user = await crud_users.get_user_by_reset_token(db, body.token)
    if not user:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")
    return {"valid": True, "email": user.email, "first_name": user.first_name}


@router.post("/reset-password")
async def reset_password(body: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    _check_new_password(body.new_password, body.confirm_password)
    user = await crud_users.get_user_by_reset_token(db, body.token)
    if not user:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    user = await crud_users.set_password(db, user, body.new_password)
    await notification_service.send_password_reset_confirmation(user)
    return {"message": "Password has been reset successfully"}


@router.post("/change-password")
async def change_password(
    body: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    if not verify_password(body.current_password, current_user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    _check_new_password(body.new_password, body.confirm_password)

    user = await crud_users.set_password(db, current_user, body.new_password)
    await notification_service.send_password_change_confirmation(user)
    return {"message": "Password changed successfully"}

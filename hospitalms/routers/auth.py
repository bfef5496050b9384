# hospitalms/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from hospitalms.core.config import Settings
from hospitalms.db.session import get_session
from hospitalms.dependencies import get_current_user, get_settings
from hospitalms.modules.users.models import User
from hospitalms.modules.users.schemas import (
    LoginRequest,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenPair,
)
from hospitalms.modules.users.service import (
    InvalidCredentials,
    login_user,
    refresh_tokens,
    register_user,
    to_public,
)

router = APIRouter(tags=["auth"])


def _unauthorized(exc: InvalidCredentials) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=str(exc) or "invalid_credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.post(
    "/auth/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new patient account",
    responses={
        201: {"description": "User created"},
        409: {"description": "Email already registered"},
        422: {"description": "Invalid payload"},
    },
)
async def auth_register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_session),
):
    """
    Register a new user. Self-registration always yields a `patient`;
    doctors and admins are created by an admin through `/users`.

    Notes:
    - Email is normalized to lowercase.
    - Password must pass strength checks (8-64 chars, at least one letter and one digit).
    """
    return await register_user(session, payload)


@router.post(
    "/auth/login",
    response_model=TokenPair,
    summary="Obtain a Bearer token with email and password (JSON body)",
    responses={401: {"description": "Invalid credentials"}},
)
async def auth_login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_session),
    cfg: Settings = Depends(get_settings),
):
    try:
        return await login_user(session, payload, cfg)
    except InvalidCredentials as exc:
        raise _unauthorized(exc)


@router.post(
    "/auth/token",
    response_model=TokenPair,
    summary="OAuth2 password flow login (for Swagger UI)",
    responses={401: {"description": "Invalid credentials"}},
)
async def auth_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_session),
    cfg: Settings = Depends(get_settings),
):
    """
    Swagger sends form data: `username` is the user's email.
    """
    try:
        login_payload = LoginRequest(email=form_data.username, password=form_data.password)
    except PydanticValidationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_credentials",
        )
    try:
        return await login_user(session, login_payload, cfg)
    except InvalidCredentials as exc:
        raise _unauthorized(exc)


@router.get(
    "/auth/me",
    response_model=MeResponse,
    summary="Return the current user's profile",
)
async def auth_me(current_user: User = Depends(get_current_user)):
    return to_public(current_user)


@router.post(
    "/auth/refresh",
    response_model=TokenPair,
    summary="Exchange a refresh token for a new access token",
    responses={401: {"description": "Invalid refresh token"}},
)
async def auth_refresh(
    request: RefreshRequest,
    session: AsyncSession = Depends(get_session),
    cfg: Settings = Depends(get_settings),
):
    try:
        return await refresh_tokens(session, request.refresh_token, cfg)
    except InvalidCredentials as exc:
        raise _unauthorized(exc)

# hospitalms/dependencies.py
from __future__ import annotations

from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from hospitalms.core.config import Settings, settings as default_settings
from hospitalms.core.security import InvalidTokenError, decode_token, is_access_token
from hospitalms.db.session import get_session
from hospitalms.modules.users.models import User
from hospitalms.modules.users.repository import get_by_id

# use /auth/token here so Swagger sends username/password to that endpoint
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{default_settings.API_PREFIX}/auth/token"
)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session),
    cfg: Settings = Depends(get_settings),
) -> User:
    try:
        payload = decode_token(token, cfg)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not is_access_token(payload):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token_type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token",
        )

    user = await get_by_id(session, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="user_not_found",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="user_inactive",
        )
    return user


def require_roles(*roles: str):
    """
    Role guard factory. Example: Depends(require_roles("admin", "doctor"))
    """
    async def _guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="insufficient_role",
            )
        return user

    return _guard

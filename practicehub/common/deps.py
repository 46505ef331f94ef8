"""Shared FastAPI dependencies for authentication, authorization, and context."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session

from practicehub.auth.service import InvalidTokenError, decode_access_token
from practicehub.db.session import get_db
from practicehub.features.users.models import User


logger = logging.getLogger("auth.deps")
security = HTTPBearer(auto_error=True)
optional_security = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Minimal user identity shared across endpoints."""
    id: int
    username: str
    role: str


def _load_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


async def _resolve(request: Request, token: str, db: Session) -> CurrentUser:
    try:
        claims = decode_access_token(token)
        user_id = int(claims["sub"])
    except (InvalidTokenError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication credentials") from exc

    db_user = await run_in_threadpool(_load_user, db, user_id)
    if db_user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User no longer exists")

    current = CurrentUser(id=db_user.id, username=db_user.username, role=db_user.role)
    request.state.current_user = current
    logger.info(
        "auth_resolved user_id=%s role=%s request_id=%s path=%s",
        current.id,
        current.role,
        getattr(request.state, "request_id", None),
        request.url.path,
    )
    return current


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Resolve the bearer token to a persisted user."""
    cached: CurrentUser | None = getattr(request.state, "current_user", None)
    if cached is not None:
        return cached
    return await _resolve(request, credentials.credentials, db)


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db),
) -> Optional[CurrentUser]:
    """Like ``get_current_user`` but anonymous callers resolve to ``None``."""
    if credentials is None:
        return None
    return await _resolve(request, credentials.credentials, db)


def require_role(*roles: str) -> Callable[[CurrentUser], CurrentUser]:
    allowed = {r.lower() for r in roles}

    async def _checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role.lower() not in allowed:
            logger.warning("role_denied user_id=%s role=%s required=%s", user.id, user.role, sorted(allowed))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user

    return _checker


def require_admin() -> Callable[[CurrentUser], CurrentUser]:
    return require_role("admin")

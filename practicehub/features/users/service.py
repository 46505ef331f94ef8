"""User service functions (SQLAlchemy-backed)."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from practicehub.auth.service import hash_password, verify_password
from practicehub.common.errors import NotFoundError, PracticeHubError
from . import repository
from .models import User
from .schemas import UserCreate, UserResponse, UserUpdate

logger = logging.getLogger("users.service")


class UsernameTakenError(PracticeHubError):
    status_code = 409
    error_code = "username_taken"

    def __init__(self, username: str) -> None:
        super().__init__(f"Username '{username}' is already taken", username=username)


def to_response(db: Session, user: User) -> UserResponse:
    out = UserResponse.model_validate(user)
    return out.model_copy(update={"solved_count": repository.solved_count(db, user.id)})


def register_user_sync(db: Session, data: UserCreate) -> UserResponse:
    if repository.get_user_by_username(db, data.username) is not None:
        raise UsernameTakenError(data.username)
    try:
        user = repository.create_user(db, data.username, hash_password(data.password))
    except IntegrityError as exc:
        db.rollback()
        raise UsernameTakenError(data.username) from exc
    logger.info("user_registered user_id=%s", user.id)
    return to_response(db, user)


async def register_user(db: Session, data: UserCreate) -> UserResponse:
    return await run_in_threadpool(register_user_sync, db, data)


def authenticate_sync(db: Session, username: str, password: str) -> Optional[UserResponse]:
    user = repository.get_user_by_username(db, username.strip())
    if user is None or not verify_password(password, user.password_hash):
        logger.info("login_failed username=%s", username)
        return None
    return to_response(db, user)


async def authenticate(db: Session, username: str, password: str) -> Optional[UserResponse]:
    return await run_in_threadpool(authenticate_sync, db, username, password)


def get_profile_sync(db: Session, user_id: int) -> UserResponse:
    user = repository.get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found", user_id=user_id)
    return to_response(db, user)


async def get_profile(db: Session, user_id: int) -> UserResponse:
    return await run_in_threadpool(get_profile_sync, db, user_id)


def update_profile_sync(db: Session, user_id: int, data: UserUpdate) -> UserResponse:
    user = repository.get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found", user_id=user_id)
    if data.username is not None and data.username != user.username:
        if repository.get_user_by_username(db, data.username) is not None:
            raise UsernameTakenError(data.username)
    password_hash = hash_password(data.password) if data.password is not None else None
    try:
        user = repository.update_user(db, user, username=data.username, password_hash=password_hash)
    except IntegrityError as exc:
        db.rollback()
        raise UsernameTakenError(data.username or "") from exc
    logger.info("profile_updated user_id=%s username_changed=%s password_changed=%s",
                user_id, data.username is not None, data.password is not None)
    return to_response(db, user)


async def update_profile(db: Session, user_id: int, data: UserUpdate) -> UserResponse:
    return await run_in_threadpool(update_profile_sync, db, user_id, data)

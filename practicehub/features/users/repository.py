"""User persistence helpers (sync; callers run them in the threadpool)."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import User


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.scalar(select(User).where(User.username == username))


def create_user(db: Session, username: str, password_hash: str, role: str = "student") -> User:
    db_user = User(username=username, password_hash=password_hash, role=role)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_user(db: Session, user: User, username: str | None = None, password_hash: str | None = None) -> User:
    if username is not None:
        user.username = username
    if password_hash is not None:
        user.password_hash = password_hash
    db.commit()
    db.refresh(user)
    return user


def solved_count(db: Session, user_id: int) -> int:
    from practicehub.features.submissions.models import SolvedFact

    stmt = select(func.count(SolvedFact.id)).where(SolvedFact.user_id == user_id)
    return int(db.scalar(stmt) or 0)

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class UserBase(BaseModel):
    username: str = Field(min_length=3, max_length=50)


class UserCreate(UserBase):
    password: str = Field(min_length=6, max_length=128)

    @model_validator(mode="after")
    def strip_username(self) -> "UserCreate":
        self.username = self.username.strip()
        if len(self.username) < 3:
            raise ValueError("username must be at least 3 non-blank characters")
        return self


class UserUpdate(BaseModel):
    """Profile update; at least one field must be supplied."""
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    password: Optional[str] = Field(default=None, min_length=6, max_length=128)

    @model_validator(mode="after")
    def ensure_payload(self) -> "UserUpdate":
        if self.username is None and self.password is None:
            raise ValueError("username or password is required")
        if self.username is not None:
            self.username = self.username.strip()
        return self


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: str
    created_at: Optional[datetime] = None
    solved_count: int = 0

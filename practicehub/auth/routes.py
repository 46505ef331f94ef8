"""Registration, login and identity lookup."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from practicehub.common.deps import CurrentUser, get_current_user
from practicehub.common.errors import PracticeHubError, to_http
from practicehub.db.session import get_db
from practicehub.features.users.schemas import UserCreate, UserResponse
from practicehub.features.users import service as users_service
from .schemas import LoginRequest, TokenResponse
from .service import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(req: UserCreate, db: Session = Depends(get_db)):
    try:
        user = await users_service.register_user(db, req)
    except PracticeHubError as e:
        raise to_http(e)
    return TokenResponse(access_token=create_access_token(user.id, user.role), user=user)


@router.post("/login", response_model=TokenResponse)
async def login(req: LoginRequest, db: Session = Depends(get_db)):
    user = await users_service.authenticate(db, req.username, req.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")
    return TokenResponse(access_token=create_access_token(user.id, user.role), user=user)


@router.get("/me", response_model=UserResponse)
async def me(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return await users_service.get_profile(db, current_user.id)
    except PracticeHubError as e:
        raise to_http(e)

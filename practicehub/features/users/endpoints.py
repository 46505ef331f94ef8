from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from practicehub.common.deps import CurrentUser, get_current_user
from practicehub.common.errors import PracticeHubError, to_http
from practicehub.db.session import get_db
from .schemas import UserResponse, UserUpdate
from .service import update_profile

router = APIRouter(prefix="/users", tags=["users"])


@router.put("/me", response_model=UserResponse)
async def update_me(
    req: UserUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return await update_profile(db, current_user.id, req)
    except PracticeHubError as e:
        raise to_http(e)

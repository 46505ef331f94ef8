from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from practicehub.common.deps import CurrentUser, get_optional_user
from practicehub.common.errors import _err
from practicehub.db.session import get_db
from practicehub.features.problems.schemas import ProblemSummary
from practicehub.features.problems import service as problems_service
from .repository import get_company, list_companies
from .schemas import CompanyResponse

router = APIRouter(prefix="/companies", tags=["companies"])


@router.get("", response_model=List[CompanyResponse])
async def get_companies(db: Session = Depends(get_db)):
    return await run_in_threadpool(list_companies, db)


@router.get("/{company_id}/problems", response_model=List[ProblemSummary])
async def get_company_problems(
    company_id: int,
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    company = await run_in_threadpool(get_company, db, company_id)
    if company is None:
        raise _err(404, "not_found", "Company not found")
    return await problems_service.list_problems(
        db, user_id=current_user.id if current_user else None, company_id=company_id
    )

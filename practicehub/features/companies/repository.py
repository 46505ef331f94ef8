from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from practicehub.features.problems.models import Problem
from .models import Company
from .schemas import CompanyResponse


def list_companies(db: Session) -> List[CompanyResponse]:
    stmt = (
        select(Company, func.count(Problem.id))
        .outerjoin(Problem, Problem.company_id == Company.id)
        .group_by(Company.id)
        .order_by(Company.name.asc())
    )
    return [
        CompanyResponse.model_validate(company).model_copy(update={"problem_count": int(count)})
        for company, count in db.execute(stmt).all()
    ]


def get_company(db: Session, company_id: int) -> Optional[Company]:
    return db.get(Company, company_id)

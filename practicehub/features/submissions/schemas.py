from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import SubmissionStatus


class SubmitRequest(BaseModel):
    """Fields are checked by the grading service so that missing values map to ``validation_error``."""
    problem_id: Optional[int] = None
    code: Optional[str] = None
    language: Optional[str] = None


class TestRunResultSchema(BaseModel):
    test_case_id: int
    passed: bool
    output: Optional[str] = None
    expected: Optional[str] = None


class GradingErrorSchema(BaseModel):
    kind: str
    message: str
    stderr: Optional[str] = None


class SubmissionResult(BaseModel):
    success: bool
    passed: int
    failed: int
    total: int
    results: List[TestRunResultSchema] = Field(default_factory=list)
    error: Optional[GradingErrorSchema] = None
    submission_id: Optional[int] = None
    newly_solved: bool = False


class SubmissionHistoryItem(BaseModel):
    id: int
    problem_id: int
    problem_title: str
    language: str
    success: bool
    status: SubmissionStatus
    passed: int
    total: int
    created_at: Optional[datetime] = None

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .models import Difficulty, Visibility


class TestCaseSchema(BaseModel):
    """A stored test case as handed to the grading engine."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    problem_id: int
    input: str = ""
    expected_output: str
    visibility: Visibility = Visibility.hidden
    order_index: int = 0


class PublicTestCase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    input: str
    expected_output: str
    order_index: int = 0


class TestCaseCreate(BaseModel):

    input: str = ""
    expected_output: str
    visibility: Visibility = Visibility.hidden
    order_index: int = 0


class ProblemSummary(BaseModel):
    id: int
    title: str
    difficulty: Difficulty
    company_id: Optional[int] = None
    company_name: Optional[str] = None
    is_solved: bool = False
    created_at: Optional[datetime] = None


class ProblemDetail(ProblemSummary):
    description: str = ""
    function_signature: Optional[str] = None
    test_cases: List[PublicTestCase] = Field(default_factory=list)


class ProblemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    difficulty: Difficulty
    function_signature: Optional[str] = None
    company_id: Optional[int] = None
    test_cases: List[TestCaseCreate] = Field(default_factory=list)

    @model_validator(mode="after")
    def ensure_title(self) -> "ProblemCreate":
        if not self.title.strip():
            raise ValueError("title must not be blank")
        return self


class ProblemUpdate(BaseModel):
    """Partial update; ``test_cases`` replaces the whole set when supplied."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    function_signature: Optional[str] = None
    company_id: Optional[int] = None
    test_cases: Optional[List[TestCaseCreate]] = None

from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


# EXECUTION RESULT SCHEMAS

class ExecutionCompleted(BaseModel):
    """The sandbox ran the program; ``exit_code`` is the process status."""
    kind: Literal["completed"] = "completed"
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0


class ExecutionTransportFailure(BaseModel):
    """No usable result came back (timeout, network error, non-2xx, malformed body)."""
    kind: Literal["transport_failure"] = "transport_failure"
    reason: str
    detail: Optional[str] = None


ExecutionResult = Union[ExecutionCompleted, ExecutionTransportFailure]


# RUN (UNGRADED) SCHEMAS

class RunRequest(BaseModel):
    code: str
    language: str
    stdin: str = ""

    @model_validator(mode="after")
    def ensure_payload(self) -> "RunRequest":
        if not self.code or not self.code.strip():
            raise ValueError("code is required")
        if not self.language or not self.language.strip():
            raise ValueError("language is required")
        return self


class RunResponse(BaseModel):
    output: str
    success: bool
    stderr: Optional[str] = None
    exit_code: Optional[int] = None


class LanguageInfo(BaseModel):
    """Programming language information"""
    name: str
    backend_name: str
    version: Optional[str] = None
    aliases: List[str] = Field(default_factory=list)


class SupportedLanguagesResponse(BaseModel):
    backend: str
    languages: List[LanguageInfo]
    total_count: int

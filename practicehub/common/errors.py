"""Error taxonomy shared by the grading pipeline and its endpoints."""

from __future__ import annotations

import enum

from fastapi import HTTPException


class ErrorKind(str, enum.Enum):
    validation_error = "validation_error"
    not_found = "not_found"
    configuration_error = "configuration_error"
    execution_error = "execution_error"
    compile_or_runtime_error = "compile_or_runtime_error"
    wrong_answer = "wrong_answer"
    persistence_error = "persistence_error"


class PracticeHubError(Exception):
    """Base class; ``kind`` and ``status_code`` drive the HTTP mapping."""

    kind: ErrorKind = ErrorKind.validation_error
    status_code: int = 400
    error_code: str | None = None

    def __init__(self, message: str, **details) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidSubmissionError(PracticeHubError):
    kind = ErrorKind.validation_error
    status_code = 400


class UnsupportedLanguageError(InvalidSubmissionError):
    def __init__(self, language: str) -> None:
        super().__init__(f"Unsupported language: {language}", language=language)
        self.language = language


class NotFoundError(PracticeHubError):
    kind = ErrorKind.not_found
    status_code = 404


class NoHiddenTestsError(PracticeHubError):
    """A problem without hidden test cases cannot be graded."""

    kind = ErrorKind.configuration_error
    status_code = 409


class ExecutionTransportError(PracticeHubError):
    kind = ErrorKind.execution_error
    status_code = 502


class PersistenceError(PracticeHubError):
    kind = ErrorKind.persistence_error
    status_code = 503


def _err(status: int, code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status, detail={"error_code": code, "message": message})


def to_http(exc: PracticeHubError) -> HTTPException:
    return _err(exc.status_code, exc.error_code or exc.kind.value, exc.message)

"""Ordered hidden-test grading.

The engine walks ``Idle -> Fetching -> Running(i) -> {Passed, Failed, Aborted}``.
Cases run one at a time in stored order and the first failure or abort ends
the run; later cases are never sent to the execution service.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from practicehub.common.errors import ErrorKind, UnsupportedLanguageError
from practicehub.features.execution.schemas import ExecutionTransportFailure
from practicehub.features.execution.service import ExecutionClient

logger = logging.getLogger("submissions.grading")


def normalize_output(value: Optional[str]) -> str:
    """CRLF -> LF, then trim surrounding whitespace. Idempotent."""
    return (value or "").replace("\r\n", "\n").strip()


class GradingState(str, enum.Enum):
    idle = "idle"
    fetching = "fetching"
    running = "running"
    passed = "passed"
    failed = "failed"
    aborted = "aborted"


class AbortReason(str, enum.Enum):
    no_hidden_tests = "no_hidden_tests"
    execution_error = "execution_error"
    compile_or_runtime_error = "compile_or_runtime_error"


class GradableCase(Protocol):
    id: int
    input: str
    expected_output: str


@dataclass
class CaseResult:
    test_case_id: int
    passed: bool
    output: Optional[str] = None
    expected: Optional[str] = None


@dataclass
class Verdict:
    state: GradingState
    total: int
    results: List[CaseResult] = field(default_factory=list)
    abort_reason: Optional[AbortReason] = None
    stderr: Optional[str] = None
    transport_reason: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.state is GradingState.passed

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.passed)

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        if self.state is GradingState.failed:
            return ErrorKind.wrong_answer
        if self.abort_reason is AbortReason.no_hidden_tests:
            return ErrorKind.configuration_error
        if self.abort_reason is AbortReason.execution_error:
            return ErrorKind.execution_error
        if self.abort_reason is AbortReason.compile_or_runtime_error:
            return ErrorKind.compile_or_runtime_error
        return None


class GradingEngine:
    def __init__(self, client: ExecutionClient) -> None:
        self.client = client
        self.state = GradingState.idle

    def _move(self, state: GradingState, **ctx) -> None:
        logger.debug("grading_state %s -> %s %s", self.state.value, state.value, ctx or "")
        self.state = state

    async def grade(self, code: str, language: str, cases: Sequence[GradableCase]) -> Verdict:
        """Grade ``code`` against ``cases`` (already ordered by order index)."""
        if not self.client.supports(language):
            raise UnsupportedLanguageError(language)

        self.state = GradingState.idle
        self._move(GradingState.fetching)
        total = len(cases)
        if total == 0:
            self._move(GradingState.aborted, reason=AbortReason.no_hidden_tests.value)
            return Verdict(state=GradingState.aborted, total=0, abort_reason=AbortReason.no_hidden_tests)

        results: List[CaseResult] = []
        for index, case in enumerate(cases):
            self._move(GradingState.running, case=index, test_case_id=case.id)
            result = await self.client.execute(code, language, case.input)

            if isinstance(result, ExecutionTransportFailure):
                self._move(GradingState.aborted, reason=AbortReason.execution_error.value)
                logger.warning("grading_aborted test_case_id=%s transport=%s", case.id, result.reason)
                return Verdict(
                    state=GradingState.aborted,
                    total=total,
                    results=results,
                    abort_reason=AbortReason.execution_error,
                    transport_reason=result.reason,
                )

            if result.exit_code != 0:
                results.append(CaseResult(test_case_id=case.id, passed=False))
                self._move(GradingState.aborted, reason=AbortReason.compile_or_runtime_error.value)
                logger.info("grading_aborted test_case_id=%s exit_code=%s", case.id, result.exit_code)
                return Verdict(
                    state=GradingState.aborted,
                    total=total,
                    results=results,
                    abort_reason=AbortReason.compile_or_runtime_error,
                    stderr=result.stderr,
                )

            observed = normalize_output(result.stdout)
            expected = normalize_output(case.expected_output)
            if observed != expected:
                results.append(CaseResult(test_case_id=case.id, passed=False, output=observed, expected=expected))
                self._move(GradingState.failed, test_case_id=case.id)
                return Verdict(state=GradingState.failed, total=total, results=results)

            results.append(CaseResult(test_case_id=case.id, passed=True))

        self._move(GradingState.passed)
        return Verdict(state=GradingState.passed, total=total, results=results)

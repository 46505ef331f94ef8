import pytest

from practicehub.common.errors import ErrorKind, UnsupportedLanguageError
from practicehub.features.execution.schemas import ExecutionCompleted, ExecutionTransportFailure
from practicehub.features.problems.schemas import TestCaseSchema as CaseSchema
from practicehub.features.submissions.grading import AbortReason, GradingEngine, GradingState

from conftest import FakeExecutionClient, doubling_program

pytestmark = pytest.mark.anyio("asyncio")


def _cases(n=3):
    return [
        CaseSchema(id=100 + i, problem_id=1, input=str(i + 1), expected_output=str((i + 1) * 2), order_index=i)
        for i in range(n)
    ]


async def test_all_cases_pass():
    client = FakeExecutionClient(doubling_program)
    verdict = await GradingEngine(client).grade("correct", "python", _cases())

    assert verdict.state is GradingState.passed
    assert verdict.success is True
    assert (verdict.passed, verdict.failed, verdict.total) == (3, 0, 3)
    assert [c[2] for c in client.calls] == ["1", "2", "3"]
    assert all(r.output is None and r.expected is None for r in verdict.results)


async def test_first_mismatch_stops_the_run():
    client = FakeExecutionClient(doubling_program)
    verdict = await GradingEngine(client).grade("wrong", "python", _cases())

    assert verdict.state is GradingState.failed
    assert verdict.error_kind is ErrorKind.wrong_answer
    assert (verdict.passed, verdict.failed, verdict.total) == (1, 1, 3)
    # exactly k calls and k entries when case k fails
    assert len(client.calls) == 2
    assert len(verdict.results) == 2
    failing = verdict.results[-1]
    assert failing.test_case_id == 101
    assert failing.output == "5"
    assert failing.expected == "4"


async def test_no_hidden_tests_is_never_passed():
    client = FakeExecutionClient(doubling_program)
    verdict = await GradingEngine(client).grade("correct", "python", [])

    assert verdict.state is GradingState.aborted
    assert verdict.abort_reason is AbortReason.no_hidden_tests
    assert verdict.error_kind is ErrorKind.configuration_error
    assert verdict.success is False
    assert client.calls == []


async def test_nonzero_exit_aborts_with_stderr():
    client = FakeExecutionClient(lambda code, stdin: ExecutionCompleted(stdout="", stderr="SyntaxError", exit_code=1))
    verdict = await GradingEngine(client).grade("print(", "python", _cases())

    assert verdict.state is GradingState.aborted
    assert verdict.abort_reason is AbortReason.compile_or_runtime_error
    assert verdict.stderr == "SyntaxError"
    assert len(client.calls) == 1
    assert verdict.passed == 0


async def test_transport_failure_aborts_run():
    def responder(code, stdin):
        if stdin == "2":
            return ExecutionTransportFailure(reason="timeout")
        return doubling_program(code, stdin)

    client = FakeExecutionClient(responder)
    verdict = await GradingEngine(client).grade("correct", "python", _cases())

    assert verdict.abort_reason is AbortReason.execution_error
    assert verdict.transport_reason == "timeout"
    assert verdict.error_kind is ErrorKind.execution_error
    assert verdict.passed == 1
    assert len(client.calls) == 2


async def test_unsupported_language_raises_before_execution():
    client = FakeExecutionClient(doubling_program)
    with pytest.raises(UnsupportedLanguageError):
        await GradingEngine(client).grade("x", "brainfuck", _cases())
    assert client.calls == []

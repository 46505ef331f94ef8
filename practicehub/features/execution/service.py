"""Remote code execution clients.

``ExecutionClient`` is the single interface the grading engine talks to. Each
backend adapter only knows how to build its request body and read its response;
timeouts, transport errors and language checks live in the base class.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

import httpx

from practicehub.common.errors import ExecutionTransportError, UnsupportedLanguageError
from practicehub.core.config import Settings, get_settings
from .schemas import (
    ExecutionCompleted,
    ExecutionResult,
    ExecutionTransportFailure,
    LanguageInfo,
    RunResponse,
)

logger = logging.getLogger("execution.service")

LANGUAGE_ALIASES: Dict[str, str] = {
    "py": "python",
    "python3": "python",
    "js": "javascript",
    "node": "javascript",
    "nodejs": "javascript",
    "ts": "typescript",
    "c++": "cpp",
    "cplusplus": "cpp",
    "c#": "csharp",
    "cs": "csharp",
    "golang": "go",
    "rb": "ruby",
    "rs": "rust",
}


def normalize_language(language: Optional[str]) -> str:
    key = (language or "").strip().lower()
    return LANGUAGE_ALIASES.get(key, key)


class ExecutionClient:
    """Base adapter. Subclasses fill ``languages`` and the payload/parse hooks."""

    name = "base"
    # canonical language -> backend specific identifier
    languages: Dict[str, Any] = {}

    def __init__(self, base_url: str, timeout_s: float = 10.0) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.timeout_s = float(timeout_s)
        self.headers = {"Content-Type": "application/json"}
        self._logger = logging.getLogger(f"execution.{self.name}")

    def supports(self, language: Optional[str]) -> bool:
        return normalize_language(language) in self.languages

    def list_languages(self) -> List[LanguageInfo]:
        aliases: Dict[str, List[str]] = {}
        for alias, canonical in LANGUAGE_ALIASES.items():
            aliases.setdefault(canonical, []).append(alias)
        return [
            LanguageInfo(name=lang, backend_name=str(self._backend_name(lang)), aliases=sorted(aliases.get(lang, [])))
            for lang in sorted(self.languages)
        ]

    def _backend_name(self, language: str) -> Any:
        return self.languages[language]

    def _build_payload(self, code: str, language: str, stdin: str) -> Dict[str, Any]:
        raise NotImplementedError

    def _parse(self, data: Dict[str, Any]) -> ExecutionResult:
        raise NotImplementedError

    def _preflight(self) -> Optional[ExecutionTransportFailure]:
        if not self.base_url:
            return ExecutionTransportFailure(reason="not_configured", detail=f"{self.name} base URL is empty")
        return None

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Perform one HTTP request against the backend; no retries."""
        if not path.startswith("/"):
            path = "/" + path
        url = self.base_url + path
        timeout = httpx.Timeout(self.timeout_s, connect=min(3.0, self.timeout_s))
        limits = httpx.Limits(max_connections=20, max_keepalive_connections=10)
        async with httpx.AsyncClient(timeout=timeout, limits=limits) as client:
            return await client.request(method, url, headers=self.headers, **kwargs)

    async def execute(self, code: str, language: str, stdin: str = "") -> ExecutionResult:
        lang = normalize_language(language)
        if lang not in self.languages:
            raise UnsupportedLanguageError(language)

        failure = self._preflight()
        if failure is not None:
            self._logger.error("execution_not_configured backend=%s detail=%s", self.name, failure.detail)
            return failure

        payload = self._build_payload(code, lang, stdin or "")
        try:
            resp = await self._request("POST", "/execute", json=payload)
        except httpx.TimeoutException as e:
            self._logger.warning("execution_timeout backend=%s language=%s timeout_s=%s", self.name, lang, self.timeout_s)
            return ExecutionTransportFailure(reason="timeout", detail=str(e) or None)
        except httpx.HTTPError as e:
            self._logger.warning("execution_network_error backend=%s error=%s", self.name, e)
            return ExecutionTransportFailure(reason="network", detail=str(e))

        if not 200 <= resp.status_code < 300:
            self._logger.warning("execution_http_error backend=%s status=%s", self.name, resp.status_code)
            return ExecutionTransportFailure(reason=f"http_{resp.status_code}", detail=(resp.text or "")[:500])
        try:
            data = resp.json()
        except ValueError:
            return ExecutionTransportFailure(reason="invalid_response", detail=(resp.text or "")[:500])
        if not isinstance(data, dict):
            return ExecutionTransportFailure(reason="invalid_response")

        result = self._parse(data)
        self._logger.debug("execution_result backend=%s language=%s result=%s", self.name, lang, result.kind)
        return result


class PistonClient(ExecutionClient):
    name = "piston"
    languages = {
        "python": "python",
        "javascript": "javascript",
        "typescript": "typescript",
        "java": "java",
        "c": "c",
        "cpp": "c++",
        "csharp": "csharp",
        "go": "go",
        "ruby": "ruby",
        "rust": "rust",
    }

    def _build_payload(self, code: str, language: str, stdin: str) -> Dict[str, Any]:
        return {
            "language": self.languages[language],
            "version": "*",
            "files": [{"content": code}],
            "stdin": stdin,
        }

    @staticmethod
    def _exit_code(stage: Dict[str, Any]) -> int:
        code = stage.get("code")
        if code is None:
            # killed by a signal
            return 1 if stage.get("signal") else 0
        return int(code)

    def _parse(self, data: Dict[str, Any]) -> ExecutionResult:
        compile_stage = data.get("compile")
        if isinstance(compile_stage, dict) and self._exit_code(compile_stage) != 0:
            return ExecutionCompleted(
                stdout=compile_stage.get("stdout") or "",
                stderr=compile_stage.get("stderr") or compile_stage.get("output") or "",
                exit_code=self._exit_code(compile_stage),
            )
        run = data.get("run")
        if not isinstance(run, dict):
            return ExecutionTransportFailure(reason="backend_error", detail=str(data.get("message") or "missing run stage"))
        return ExecutionCompleted(
            stdout=run.get("stdout") or "",
            stderr=run.get("stderr") or "",
            exit_code=self._exit_code(run),
        )


class JDoodleClient(ExecutionClient):
    name = "jdoodle"
    # canonical language -> (jdoodle language, versionIndex)
    languages = {
        "python": ("python3", "4"),
        "javascript": ("nodejs", "4"),
        "java": ("java", "4"),
        "c": ("c", "5"),
        "cpp": ("cpp17", "1"),
        "csharp": ("csharp", "4"),
        "go": ("go", "4"),
        "ruby": ("ruby", "4"),
        "rust": ("rust", "4"),
    }

    def __init__(self, base_url: str, client_id: str, client_secret: str, timeout_s: float = 10.0) -> None:
        super().__init__(base_url, timeout_s)
        self.client_id = client_id
        self.client_secret = client_secret

    def _backend_name(self, language: str) -> str:
        return self.languages[language][0]

    def _preflight(self) -> Optional[ExecutionTransportFailure]:
        if not self.client_id or not self.client_secret:
            return ExecutionTransportFailure(reason="not_configured", detail="JDoodle credentials missing")
        return super()._preflight()

    def _build_payload(self, code: str, language: str, stdin: str) -> Dict[str, Any]:
        jd_lang, version_index = self.languages[language]
        return {
            "clientId": self.client_id,
            "clientSecret": self.client_secret,
            "script": code,
            "stdin": stdin,
            "language": jd_lang,
            "versionIndex": version_index,
        }

    def _parse(self, data: Dict[str, Any]) -> ExecutionResult:
        if data.get("error"):
            return ExecutionTransportFailure(reason="backend_error", detail=str(data["error"]))
        output = data.get("output") or ""
        if data.get("isCompiled") is False or data.get("isExecutionSuccess") is False:
            return ExecutionCompleted(stdout="", stderr=output, exit_code=1)
        return ExecutionCompleted(stdout=output, stderr="", exit_code=0)


def build_execution_client(settings: Optional[Settings] = None) -> ExecutionClient:
    settings = settings or get_settings()
    backend = settings.execution_backend
    if backend == "jdoodle":
        return JDoodleClient(
            settings.jdoodle_api_url,
            settings.jdoodle_client_id,
            settings.jdoodle_client_secret,
            timeout_s=settings.execution_timeout_s,
        )
    if backend != "piston":
        raise RuntimeError(f"Unknown EXECUTION_BACKEND '{backend}' (expected piston or jdoodle)")
    return PistonClient(settings.piston_api_url, timeout_s=settings.execution_timeout_s)


@lru_cache()
def get_execution_client() -> ExecutionClient:
    return build_execution_client()


def _run_output(result: ExecutionCompleted) -> Tuple[str, bool]:
    if result.exit_code == 0:
        return result.stdout, True
    return result.stderr or result.stdout, False


async def run_code(client: ExecutionClient, code: str, language: str, stdin: str = "") -> RunResponse:
    """Execute once without grading (the problem page's Run button)."""
    result = await client.execute(code, language, stdin)
    if isinstance(result, ExecutionTransportFailure):
        raise ExecutionTransportError(f"Code execution service unavailable ({result.reason})", reason=result.reason)
    output, success = _run_output(result)
    return RunResponse(output=output, success=success, stderr=result.stderr or None, exit_code=result.exit_code)

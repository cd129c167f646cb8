from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Any

import httpx

from app.core.config import ANALYSIS_ENDPOINT, settings
from app.core.errors import (
    AnalyzerError,
    Cancelled,
    EmptyResponse,
    EndpointMisconfigured,
    MissingInput,
    TransportError,
)
from app.schemas.analysis import AnalysisResult
from app.services.analysis_normalizer import normalize_analysis_response

logger = logging.getLogger(__name__)

_REQUEST_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}
_POST_REJECTED_MARKER = "POST requests"


class CancellationToken:
    """Single-use signal marking one in-flight analysis as obsolete."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


def build_request_payload(jd_text: str, resume_text: str, email: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"jd_text": jd_text, "resume_text": resume_text}
    if email:
        payload["email"] = email
    return payload


def _validate_inputs(jd_text: str | None, resume_text: str | None) -> None:
    if not jd_text or not jd_text.strip():
        raise MissingInput("jd_text")
    if not resume_text or not resume_text.strip():
        raise MissingInput("resume_text")


class AnalysisClient:
    def __init__(
        self,
        endpoint: str | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float | None = None,
    ):
        self.endpoint = endpoint or ANALYSIS_ENDPOINT
        self._timeout_s = settings.analyze_timeout_s if timeout_s is None else timeout_s
        self._client = http_client
        self._owns_client = http_client is None

    async def __aenter__(self) -> "AnalysisClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout_s)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def analyze(
        self,
        jd_text: str,
        resume_text: str,
        email: str | None = None,
        token: CancellationToken | None = None,
    ) -> AnalysisResult:
        if token is not None and token.cancelled:
            raise Cancelled()
        _validate_inputs(jd_text, resume_text)

        payload = build_request_payload(jd_text, resume_text, email)
        started = time.perf_counter()
        response = await self._send(payload, token)
        latency_ms = int((time.perf_counter() - started) * 1000)
        body = response.text

        if not response.is_success:
            logger.warning(
                "analysis_request_failed status=%s latency_ms=%s body_len=%s",
                response.status_code,
                latency_ms,
                len(body),
            )
            if response.status_code == 404 and _POST_REJECTED_MARKER in body:
                raise EndpointMisconfigured(response.status_code, body)
            raise TransportError(response.status_code, body)

        if not body.strip():
            raise EmptyResponse()

        logger.info("analysis_response_received status=%s latency_ms=%s", response.status_code, latency_ms)
        return normalize_analysis_response(body)

    async def _send(self, payload: dict[str, Any], token: CancellationToken | None) -> httpx.Response:
        request = asyncio.ensure_future(self._http().post(self.endpoint, json=payload, headers=_REQUEST_HEADERS))
        waiter = asyncio.ensure_future(token.wait()) if token is not None else None
        try:
            pending = {request} if waiter is None else {request, waiter}
            await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if waiter is not None:
                waiter.cancel()
            if not request.done():
                request.cancel()
                with contextlib.suppress(asyncio.CancelledError, httpx.HTTPError):
                    await request

        if token is not None and token.cancelled:
            logger.info("analysis_request_cancelled endpoint=%s", self.endpoint)
            raise Cancelled()
        try:
            return request.result()
        except httpx.HTTPError as exc:
            logger.warning("analysis_transport_error endpoint=%s: %s", self.endpoint, exc)
            raise TransportError(None, str(exc) or type(exc).__name__) from exc


class AnalysisSession:
    """Keeps at most one live analysis; a new call supersedes the outstanding one."""

    def __init__(self, client: AnalysisClient):
        self._client = client
        self._current: CancellationToken | None = None

    @property
    def busy(self) -> bool:
        return self._current is not None

    def cancel(self) -> None:
        if self._current is not None:
            self._current.cancel()

    async def analyze(self, jd_text: str, resume_text: str, email: str | None = None) -> AnalysisResult:
        self.cancel()
        token = CancellationToken()
        self._current = token
        try:
            result = await self._client.analyze(jd_text, resume_text, email, token=token)
        except AnalyzerError:
            if token.cancelled:
                raise Cancelled() from None
            raise
        finally:
            if self._current is token:
                self._current = None
        if token.cancelled:
            raise Cancelled()
        return result


async def analyze(
    jd_text: str,
    resume_text: str,
    email: str | None = None,
    token: CancellationToken | None = None,
) -> AnalysisResult:
    async with AnalysisClient() as client:
        return await client.analyze(jd_text, resume_text, email, token=token)

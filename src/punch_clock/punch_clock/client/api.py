from __future__ import annotations

import asyncio
from datetime import date, datetime
from typing import Any, Optional

import httpx

from ..adjustments.model import CorrectionRequest
from ..common.datetime_utils import format_instant
from ..common.serialization import punch_from_dict, request_from_dict
from ..core.constants import DEFAULT_REQUEST_TIMEOUT
from ..core.enums import PunchKind, SequenceRule
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    InvalidStateTransition,
    NotFoundError,
    SequenceViolation,
    TransientNetworkError,
    ValidationError,
)
from ..core.logging_config import get_logger
from ..punches.model import Punch
from .endpoints import EndpointResolver

logger = get_logger(__name__)

_ERRORS_BY_CODE = {
    ValidationError.code: ValidationError,
    NotFoundError.code: NotFoundError,
    InvalidStateTransition.code: InvalidStateTransition,
    AuthenticationError.code: AuthenticationError,
    AuthorizationError.code: AuthorizationError,
}


def _domain_error(status: int, body: Any) -> DomainError:
    body = body if isinstance(body, dict) else {}
    message = body.get("message") or f"HTTP {status}"
    code = body.get("error")

    if code == SequenceViolation.code:
        expected = body.get("expected_kind")
        return SequenceViolation(
            message,
            rule=SequenceRule(body.get("rule") or SequenceRule.OUT_OF_SEQUENCE.value),
            expected_kind=PunchKind(expected) if expected else None,
        )
    error_type = _ERRORS_BY_CODE.get(code)
    if error_type is None:
        error_type = {401: AuthenticationError, 403: AuthorizationError, 404: NotFoundError}.get(status, DomainError)
    return error_type(message)


class PunchClockClient:
    """Async HTTP binding of the punch clock API for one signed-in subject."""

    def __init__(
        self,
        resolver: EndpointResolver,
        *,
        token: str,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._resolver = resolver
        self._token = token
        self._timeout = float(timeout)
        self._http = httpx.AsyncClient(transport=transport, timeout=self._timeout)

    @property
    def resolver(self) -> EndpointResolver:
        return self._resolver

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "PunchClockClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, *, json: Optional[dict] = None, params: Optional[dict] = None) -> dict:
        """Send one API call; each candidate endpoint is tried at most once."""

        tried: list[str] = []
        headers = {"Authorization": f"Bearer {self._token}"}
        params = {k: v for k, v in (params or {}).items() if v is not None}
        last_error: Optional[TransientNetworkError] = None

        while len(tried) < len(self._resolver.candidates):
            base = await self._resolver.resolve(self._http, exclude=tried)
            tried.append(base)
            try:
                response = await asyncio.wait_for(
                    self._http.request(method, f"{base}{path}", json=json, params=params, headers=headers),
                    timeout=self._timeout,
                )
            except (httpx.TimeoutException, asyncio.TimeoutError):
                last_error = TransientNetworkError(f"{method} {path} timed out on {base}")
            except httpx.RequestError as e:
                last_error = TransientNetworkError(f"{method} {path} failed on {base}: {e}")
            else:
                if response.status_code >= 500:
                    last_error = TransientNetworkError(f"{method} {path} answered HTTP {response.status_code} on {base}")
                else:
                    return self._decode(response)

            logger.warning("%s", last_error)
            self._resolver.invalidate()

        raise last_error or TransientNetworkError(f"{method} {path}: no endpoint available")

    @staticmethod
    def _decode(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            body = None
        if response.status_code >= 400:
            raise _domain_error(response.status_code, body)
        if not isinstance(body, dict):
            raise TransientNetworkError(f"Unexpected response body (HTTP {response.status_code})")
        return body

    async def submit_punch(
        self,
        kind: PunchKind,
        timestamp: datetime,
        *,
        note: Optional[str] = None,
        client_ref: Optional[str] = None,
    ) -> Punch:
        body = await self._request(
            "POST",
            "/api/punches",
            json={"kind": kind.value, "timestamp": format_instant(timestamp), "note": note, "client_ref": client_ref},
        )
        return punch_from_dict(body["punch"])

    async def today_punches(self, day: Optional[date] = None) -> list[Punch]:
        body = await self._request("GET", "/api/punches/today", params={"day": day.isoformat() if day else None})
        return [punch_from_dict(d) for d in body.get("punches", [])]

    async def history(self, *, day: Optional[date] = None, limit: Optional[int] = None) -> list[Punch]:
        body = await self._request(
            "GET",
            "/api/punches/history",
            params={"day": day.isoformat() if day else None, "limit": limit},
        )
        return [punch_from_dict(d) for d in body.get("punches", [])]

    async def hours_report(self, start: date, end: date) -> dict:
        body = await self._request(
            "GET", "/api/punches/report", params={"start": start.isoformat(), "end": end.isoformat()}
        )
        return {"rows": body.get("rows", []), "summary": body.get("summary", {})}

    async def submit_correction(
        self,
        *,
        punch_id: int,
        proposed_timestamp: datetime,
        justification: str,
        client_ref: Optional[str] = None,
    ) -> CorrectionRequest:
        body = await self._request(
            "POST",
            "/api/corrections",
            json={
                "punch_id": int(punch_id),
                "proposed_timestamp": format_instant(proposed_timestamp),
                "justification": justification,
                "client_ref": client_ref,
            },
        )
        return request_from_dict(body["request"])

    async def list_corrections(self) -> list[CorrectionRequest]:
        body = await self._request("GET", "/api/corrections")
        return [request_from_dict(d) for d in body.get("requests", [])]

    async def withdraw_correction(self, request_id: int) -> None:
        await self._request("DELETE", f"/api/corrections/{int(request_id)}")

    async def review_queue(self, status: Optional[str] = None) -> list[dict]:
        body = await self._request("GET", "/api/admin/corrections", params={"status": status})
        return list(body.get("requests", []))

    async def decide_correction(
        self, request_id: int, decision: str, reviewer_response: Optional[str] = None
    ) -> CorrectionRequest:
        body = await self._request(
            "POST",
            f"/api/admin/corrections/{int(request_id)}/decision",
            json={"decision": decision, "reviewer_response": reviewer_response},
        )
        return request_from_dict(body["request"])

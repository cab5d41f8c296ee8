"""Device-side reconciliation.

Every user action is written to the local queue before it is sent, so a tap is
never lost to a flaky network. Reads merge server state with whatever is still
queued and fall back to the last snapshot when the server is unreachable.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from ..adjustments.model import CorrectionRequest, EffectivePunch
from ..adjustments.projection import project_effective
from ..common.datetime_utils import format_instant, now_local, parse_instant
from ..common.serialization import effective_from_dict, effective_to_dict
from ..common.validators import optional_text, parse_punch_kind, require_max_length, require_min_length
from ..core.constants import MAX_JUSTIFICATION_LENGTH, MIN_JUSTIFICATION_LENGTH
from ..core.enums import ActionKind, PunchKind, RequestStatus
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    TransientNetworkError,
    ValidationError,
)
from ..core.logging_config import get_logger
from ..hours.engine import DailySummary, summarize_day
from .api import PunchClockClient
from .endpoints import EndpointResolver
from .queue import ActionQueue, PendingAction
from .settings import ClientSettings
from .storage import DECISIONS_KEY, SNAPSHOTS_KEY, LocalStore

logger = get_logger(__name__)

SAVED_LOCALLY = "Saved locally, will sync when the server is reachable"


@dataclass(frozen=True)
class SubmitResult:
    synced: bool
    message: str
    local_id: Optional[str] = None
    record: Union[EffectivePunch, CorrectionRequest, None] = None


@dataclass(frozen=True)
class SyncReport:
    delivered: list[str] = field(default_factory=list)
    rejected: list[tuple[str, str]] = field(default_factory=list)
    remaining: int = 0
    offline: bool = False


@dataclass(frozen=True)
class TodayView:
    day: date
    punches: list[EffectivePunch]
    summary: DailySummary
    offline: bool = False


@dataclass(frozen=True)
class HistoryView:
    punches: list[EffectivePunch]
    offline: bool = False


@dataclass(frozen=True)
class DecisionNotice:
    request_id: int
    punch_id: int
    status: RequestStatus
    reviewer_response: Optional[str] = None


Notifier = Callable[[DecisionNotice], Union[None, Awaitable[None]]]

# Auth problems keep the action queued: the punch is still valid once the
# subject signs in again.
_KEEP_QUEUED = (AuthenticationError, AuthorizationError)


async def _gather_all(*calls):
    """Run calls concurrently; once all settle, raise the first failure."""
    results = await asyncio.gather(*calls, return_exceptions=True)
    for r in results:
        if isinstance(r, BaseException):
            raise r
    return results


class PunchReconciler:
    def __init__(
        self,
        api: PunchClockClient,
        store: LocalStore,
        *,
        subject_id: int,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._api = api
        self._store = store
        self._queue = ActionQueue(store, clock=clock)
        self._subject_id = int(subject_id)
        self._notifier = notifier
        self._clock = clock
        self._locks = {kind: asyncio.Lock() for kind in ActionKind}

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        *,
        token: str,
        subject_id: int,
        notifier: Optional[Notifier] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "PunchReconciler":
        store = LocalStore(settings.state_file)
        resolver = EndpointResolver(settings.endpoints, store=store, probe_timeout=settings.probe_timeout)
        api = PunchClockClient(resolver, token=token, timeout=settings.request_timeout, transport=transport)
        return cls(api, store, subject_id=subject_id, notifier=notifier)

    @property
    def queue(self) -> ActionQueue:
        return self._queue

    async def aclose(self) -> None:
        await self._api.aclose()

    # ---- writes -------------------------------------------------------

    async def submit_punch(self, kind, timestamp=None, note: Optional[str] = None) -> SubmitResult:
        kind = parse_punch_kind(kind)
        timestamp = parse_instant(timestamp or self._clock())

        async with self._locks[ActionKind.PUNCH]:
            queued = self._queue.find_punch(kind, timestamp.date())
            if queued is not None:
                logger.info("%s for %s is already queued as %s", kind.value, timestamp.date(), queued.local_id)
                return SubmitResult(synced=False, message=SAVED_LOCALLY, local_id=queued.local_id,
                                    record=self._queued_effective(queued))

            action = self._queue.enqueue(
                ActionKind.PUNCH,
                {"kind": kind.value, "timestamp": format_instant(timestamp), "note": optional_text(note, "note")},
            )
            return await self._drain(ActionKind.PUNCH, target=action.local_id)

    async def submit_correction(self, punch_id: int, proposed_timestamp, justification: str) -> SubmitResult:
        justification = require_min_length(justification, "justification", MIN_JUSTIFICATION_LENGTH)
        require_max_length(justification, "justification", MAX_JUSTIFICATION_LENGTH)
        proposed = parse_instant(proposed_timestamp, "proposed_timestamp")
        if punch_id is None:
            raise ValidationError("Only punches that reached the server can be corrected")

        async with self._locks[ActionKind.CORRECTION]:
            action = self._queue.enqueue(
                ActionKind.CORRECTION,
                {"punch_id": int(punch_id), "proposed_timestamp": format_instant(proposed), "justification": justification},
            )
            return await self._drain(ActionKind.CORRECTION, target=action.local_id)

    async def sync_pending(self) -> SyncReport:
        delivered: list[str] = []
        rejected: list[tuple[str, str]] = []
        offline = False
        for kind in (ActionKind.PUNCH, ActionKind.CORRECTION):
            async with self._locks[kind]:
                outcome = await self._drain(kind, delivered=delivered, rejected=rejected)
                offline = offline or not outcome.synced
        report = SyncReport(delivered=delivered, rejected=rejected, remaining=len(self._queue), offline=offline)
        logger.info(
            "Sync finished: delivered=%s rejected=%s remaining=%s", len(delivered), len(rejected), report.remaining
        )
        return report

    async def _drain(
        self,
        kind: ActionKind,
        *,
        target: Optional[str] = None,
        delivered: Optional[list[str]] = None,
        rejected: Optional[list[tuple[str, str]]] = None,
    ) -> SubmitResult:
        """Deliver queued actions of one kind in order; stop at the first network failure.

        Returns the outcome for ``target`` when given, otherwise a summary
        outcome whose ``synced`` is False if anything stayed queued. A
        rejection of ``target`` itself is raised to the caller.
        """

        result = SubmitResult(synced=True, message="Nothing to sync")
        for action in self._queue.pending(kind):
            self._queue.mark_in_flight(action.local_id)
            try:
                record = await self._send(action)
            except TransientNetworkError as e:
                self._queue.requeue(action.local_id)
                logger.info("Action %s stays queued: %s", action.local_id, e)
                if target is not None:
                    queued = self._queue.get(target)
                    record = None
                    if queued is not None and kind == ActionKind.PUNCH:
                        record = self._queued_effective(queued)
                    return SubmitResult(synced=False, message=SAVED_LOCALLY, local_id=target, record=record)
                return SubmitResult(synced=False, message=SAVED_LOCALLY)
            except _KEEP_QUEUED:
                self._queue.requeue(action.local_id)
                raise
            except DomainError as e:
                self._queue.remove(action.local_id)
                logger.warning("Server rejected %s action %s: %s", kind.value, action.local_id, e)
                if action.local_id == target:
                    raise
                if rejected is not None:
                    rejected.append((action.local_id, str(e)))
                continue

            if kind == ActionKind.CORRECTION:
                self._remember_submitted(record)
            self._queue.remove(action.local_id)
            if delivered is not None:
                delivered.append(action.local_id)
            if action.local_id == target:
                result = SubmitResult(synced=True, message="Synced", local_id=target, record=record)
        return result

    async def _send(self, action: PendingAction):
        p = action.payload
        if action.kind == ActionKind.PUNCH:
            punch = await self._api.submit_punch(
                PunchKind(p["kind"]),
                parse_instant(p["timestamp"]),
                note=p.get("note"),
                client_ref=action.local_id,
            )
            return EffectivePunch.from_punch(punch)
        return await self._api.submit_correction(
            punch_id=int(p["punch_id"]),
            proposed_timestamp=parse_instant(p["proposed_timestamp"]),
            justification=p["justification"],
            client_ref=action.local_id,
        )

    def _queued_effective(self, action: PendingAction) -> EffectivePunch:
        return EffectivePunch(
            punch_id=None,
            subject_id=self._subject_id,
            kind=PunchKind(action.payload["kind"]),
            timestamp=parse_instant(action.payload["timestamp"]),
            note=action.payload.get("note"),
            synced=False,
            local_id=action.local_id,
        )

    # ---- reads --------------------------------------------------------

    async def today(self, day: Optional[date] = None) -> TodayView:
        day = day or self._clock().date()
        try:
            punches, requests = await _gather_all(self._api.today_punches(day), self._api.list_corrections())
        except TransientNetworkError as e:
            logger.info("Showing cached day %s: %s", day, e)
            cached = self._snapshot("today")
            synced = cached["punches"] if cached and cached.get("day") == day.isoformat() else []
            return self._today_view(day, synced, offline=True)

        await self._check_decisions(requests)
        effective = project_effective(punches, [r for r in requests if r.subject_id == self._subject_id])
        self._save_snapshot("today", {"day": day.isoformat(), "punches": [effective_to_dict(p) for p in effective]})
        return self._today_view(day, effective, offline=False)

    def _today_view(self, day: date, synced: list, *, offline: bool) -> TodayView:
        merged = [p if isinstance(p, EffectivePunch) else effective_from_dict(p) for p in synced]
        merged += [self._queued_effective(a) for a in self._queue.queued_punches(day)]
        merged.sort(key=lambda p: p.timestamp)
        return TodayView(day=day, punches=merged, summary=summarize_day(day, merged), offline=offline)

    async def history(self, *, day: Optional[date] = None, limit: Optional[int] = None) -> HistoryView:
        try:
            punches, requests = await _gather_all(
                self._api.history(day=day, limit=limit), self._api.list_corrections()
            )
        except TransientNetworkError as e:
            logger.info("Showing cached history: %s", e)
            cached = self._snapshot("history") or {}
            synced = [effective_from_dict(d) for d in cached.get("punches", [])]
            if day is not None:
                synced = [p for p in synced if p.recorded_timestamp.date() == day]
            return HistoryView(punches=self._merge_history(synced, day), offline=True)

        await self._check_decisions(requests)
        effective = project_effective(punches, [r for r in requests if r.subject_id == self._subject_id])
        if day is None:
            self._save_snapshot("history", {"punches": [effective_to_dict(p) for p in effective]})
        return HistoryView(punches=self._merge_history(effective, day), offline=False)

    def _merge_history(self, synced: list[EffectivePunch], day: Optional[date]) -> list[EffectivePunch]:
        merged = list(synced) + [self._queued_effective(a) for a in self._queue.queued_punches(day)]
        merged.sort(key=lambda p: p.timestamp, reverse=True)
        return merged

    def _snapshot(self, name: str) -> Optional[dict]:
        return (self._store.get(SNAPSHOTS_KEY) or {}).get(name)

    def _save_snapshot(self, name: str, data: dict) -> None:
        snapshots = dict(self._store.get(SNAPSHOTS_KEY) or {})
        snapshots[name] = data
        self._store.set(SNAPSHOTS_KEY, snapshots)

    # ---- decision notices ---------------------------------------------

    async def refresh_decisions(self) -> list[DecisionNotice]:
        return await self._check_decisions(await self._api.list_corrections())

    def _remember_submitted(self, request: CorrectionRequest) -> None:
        # Seen as PENDING so a decision made before the next poll still notifies.
        statuses = dict(self._store.get(DECISIONS_KEY) or {})
        key = str(request.request_id)
        if key not in statuses:
            statuses[key] = RequestStatus.PENDING.value
            self._store.set(DECISIONS_KEY, statuses)

    async def _check_decisions(self, requests: list[CorrectionRequest]) -> list[DecisionNotice]:
        previous: dict[str, Any] = dict(self._store.get(DECISIONS_KEY) or {})
        notices = []
        for r in requests:
            before = previous.get(str(r.request_id))
            if before is not None and before != r.status.value and r.status != RequestStatus.PENDING:
                notices.append(
                    DecisionNotice(
                        request_id=r.request_id,
                        punch_id=r.punch_id,
                        status=r.status,
                        reviewer_response=r.reviewer_response,
                    )
                )

        current = {str(r.request_id): r.status.value for r in requests}
        if current != previous:
            self._store.set(DECISIONS_KEY, current)

        for notice in notices:
            logger.info("Correction %s is now %s", notice.request_id, notice.status.value)
            await self._notify(notice)
        return notices

    async def _notify(self, notice: DecisionNotice) -> None:
        if self._notifier is None:
            return
        try:
            outcome = self._notifier(notice)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            # A broken notifier must not stall syncing.
            logger.exception("Notifier failed for correction %s", notice.request_id)

    # ---- background ---------------------------------------------------

    async def run_periodic_sync(self, interval: float, stop_event: asyncio.Event) -> None:
        """Sync the queue and poll decisions every ``interval`` seconds until stopped."""

        while not stop_event.is_set():
            try:
                report = await self.sync_pending()
                if not report.offline:
                    await self.refresh_decisions()
            except TransientNetworkError as e:
                logger.info("Background sync skipped: %s", e)
            except DomainError as e:
                # Typically an expired token; queued actions wait for the next round.
                logger.error("Background sync failed, will retry: %s", e)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

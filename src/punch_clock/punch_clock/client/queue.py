from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, replace
from datetime import date, datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local, parse_instant
from ..core.enums import ActionKind, ActionState, PunchKind
from ..core.logging_config import get_logger
from .storage import QUEUE_KEY, LocalStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class PendingAction:
    """A device-side action waiting for server confirmation.

    ``local_id`` doubles as the idempotency key sent to the server.
    """

    local_id: str
    kind: ActionKind
    payload: dict
    state: ActionState
    created_at: str
    attempts: int = 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["state"] = self.state.value
        return data

    @classmethod
    def from_dict(cls, d: dict) -> "PendingAction":
        return cls(
            local_id=str(d["local_id"]),
            kind=ActionKind(d["kind"]),
            payload=dict(d.get("payload") or {}),
            state=ActionState(d.get("state", ActionState.QUEUED.value)),
            created_at=str(d["created_at"]),
            attempts=int(d.get("attempts", 0)),
        )


class ActionQueue:
    """FIFO of pending actions, persisted on every change.

    Actions found IN_FLIGHT at load time were interrupted and go back to
    QUEUED; the idempotency key makes resending them safe.
    """

    def __init__(self, store: LocalStore, *, clock: Callable[[], datetime] = now_local):
        self._store = store
        self._clock = clock
        self._items: list[PendingAction] = [PendingAction.from_dict(d) for d in store.get(QUEUE_KEY, [])]
        if any(a.state == ActionState.IN_FLIGHT for a in self._items):
            self._items = [replace(a, state=ActionState.QUEUED) for a in self._items]
            self._save()

    def __len__(self) -> int:
        return len(self._items)

    def _save(self) -> None:
        self._store.set(QUEUE_KEY, [a.to_dict() for a in self._items])

    def enqueue(self, kind: ActionKind, payload: dict) -> PendingAction:
        action = PendingAction(
            local_id=uuid.uuid4().hex,
            kind=kind,
            payload=dict(payload),
            state=ActionState.QUEUED,
            created_at=self._clock().isoformat(),
        )
        self._items.append(action)
        self._save()
        logger.info("Queued %s action %s", kind.value, action.local_id)
        return action

    def get(self, local_id: str) -> Optional[PendingAction]:
        for a in self._items:
            if a.local_id == local_id:
                return a
        return None

    def pending(self, kind: Optional[ActionKind] = None) -> list[PendingAction]:
        return [a for a in self._items if kind is None or a.kind == kind]

    def queued_punches(self, day: Optional[date] = None) -> list[PendingAction]:
        out = []
        for a in self.pending(ActionKind.PUNCH):
            if day is None or parse_instant(a.payload["timestamp"]).date() == day:
                out.append(a)
        return out

    def find_punch(self, kind: PunchKind, day: date) -> Optional[PendingAction]:
        for a in self.queued_punches(day):
            if a.payload.get("kind") == kind.value:
                return a
        return None

    def _swap(self, local_id: str, **changes) -> PendingAction:
        for i, a in enumerate(self._items):
            if a.local_id == local_id:
                self._items[i] = replace(a, **changes)
                self._save()
                return self._items[i]
        raise KeyError(local_id)

    def mark_in_flight(self, local_id: str) -> PendingAction:
        return self._swap(local_id, state=ActionState.IN_FLIGHT)

    def requeue(self, local_id: str) -> PendingAction:
        current = self.get(local_id)
        if current is None:
            raise KeyError(local_id)
        return self._swap(local_id, state=ActionState.QUEUED, attempts=current.attempts + 1)

    def remove(self, local_id: str) -> None:
        before = len(self._items)
        self._items = [a for a in self._items if a.local_id != local_id]
        if len(self._items) != before:
            self._save()

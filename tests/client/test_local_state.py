from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import date, datetime

from punch_clock.client.queue import ActionQueue
from punch_clock.client.reconciler import PunchReconciler
from punch_clock.client.settings import ClientSettings
from punch_clock.client.storage import QUEUE_KEY, LocalStore
from punch_clock.core.enums import ActionKind, ActionState, PunchKind


def test_store_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "state.json"
    LocalStore(path).set("last_endpoint", "http://primary.test")

    assert LocalStore(path).get("last_endpoint") == "http://primary.test"
    assert not list(path.parent.glob("*.tmp"))


def test_unreadable_state_is_set_aside_and_starts_empty(tmp_path, caplog):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.ERROR, logger="punch_clock"):
        store = LocalStore(path)
    assert store.get(QUEUE_KEY) is None
    assert any("starting empty" in r.getMessage() for r in caplog.records)

    store.set(QUEUE_KEY, [])
    assert json.loads(path.read_text(encoding="utf-8")) == {QUEUE_KEY: []}

    kept = list(tmp_path.glob("state.json.*.corrupt"))
    assert len(kept) == 1
    assert kept[0].read_text(encoding="utf-8") == "{not json"


def test_queue_is_fifo_and_tracks_attempts(tmp_path):
    queue = ActionQueue(LocalStore(tmp_path / "s.json"), clock=lambda: datetime(2026, 3, 2, 12))
    a = queue.enqueue(ActionKind.PUNCH, {"kind": "clock_in", "timestamp": "2026-03-02T08:00:00"})
    b = queue.enqueue(ActionKind.CORRECTION, {"punch_id": 1})

    assert [x.local_id for x in queue.pending()] == [a.local_id, b.local_id]
    assert [x.local_id for x in queue.pending(ActionKind.CORRECTION)] == [b.local_id]

    queue.mark_in_flight(a.local_id)
    requeued = queue.requeue(a.local_id)
    assert requeued.state == ActionState.QUEUED
    assert requeued.attempts == 1

    queue.remove(a.local_id)
    assert len(queue) == 1


def test_interrupted_in_flight_actions_are_requeued_on_load(tmp_path):
    store = LocalStore(tmp_path / "s.json")
    queue = ActionQueue(store)
    a = queue.enqueue(ActionKind.PUNCH, {"kind": "clock_in", "timestamp": "2026-03-02T08:00:00"})
    queue.mark_in_flight(a.local_id)

    reloaded = ActionQueue(LocalStore(tmp_path / "s.json"))
    assert reloaded.get(a.local_id).state == ActionState.QUEUED


def test_find_punch_matches_kind_and_day(tmp_path):
    queue = ActionQueue(LocalStore(tmp_path / "s.json"))
    a = queue.enqueue(ActionKind.PUNCH, {"kind": "clock_in", "timestamp": "2026-03-02T08:00:00"})

    assert queue.find_punch(PunchKind.CLOCK_IN, date(2026, 3, 2)).local_id == a.local_id
    assert queue.find_punch(PunchKind.CLOCK_IN, date(2026, 3, 3)) is None
    assert queue.find_punch(PunchKind.LUNCH_OUT, date(2026, 3, 2)) is None


def test_client_settings_come_from_the_testing_module():
    settings = ClientSettings.load("config.testing")

    assert settings.endpoints == ("http://primary.test", "http://fallback.test")
    assert settings.probe_timeout == 1.0
    assert settings.state_file.name == "device_state.json"


def test_reconciler_can_be_built_from_settings(tmp_path):
    settings = replace(ClientSettings.load("config.testing"), state_dir=tmp_path)
    reconciler = PunchReconciler.from_settings(settings, token="t", subject_id=1)

    assert len(reconciler.queue) == 0

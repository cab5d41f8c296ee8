from __future__ import annotations

from collections import Counter

import httpx
import pytest

from punch_clock.client.api import PunchClockClient
from punch_clock.client.endpoints import EndpointResolver
from punch_clock.client.reconciler import PunchReconciler
from punch_clock.client.storage import LocalStore

PRIMARY = "http://primary.test"
FALLBACK = "http://fallback.test"


class FlaskBridge:
    """httpx handler that serves requests from the Flask test client.

    Hosts listed in ``down`` are unreachable. With ``lose_next_response`` set,
    the next API call is processed by the server but the reply never arrives.
    """

    def __init__(self, flask_client):
        self.flask = flask_client
        self.down: set[str] = set()
        self.lose_next_response = False
        self.health_calls: Counter = Counter()
        self.api_calls: Counter = Counter()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        if host in self.down:
            raise httpx.ConnectError(f"{host} unreachable", request=request)

        if request.url.path == "/health":
            self.health_calls[host] += 1
        else:
            self.api_calls[host] += 1

        headers = {k: v for k, v in request.headers.items() if k.lower() in ("authorization", "content-type")}
        resp = self.flask.open(
            request.url.raw_path.decode("ascii"),
            method=request.method,
            data=request.content,
            headers=headers,
        )

        if self.lose_next_response and request.url.path != "/health":
            self.lose_next_response = False
            raise httpx.ReadTimeout("response lost", request=request)

        return httpx.Response(resp.status_code, content=resp.data, headers={"content-type": resp.content_type})


@pytest.fixture
def bridge(http):
    return FlaskBridge(http)


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "device_state.json"


@pytest.fixture
def make_reconciler(bridge, container, clock, state_path):
    def _make(endpoints=(PRIMARY, FALLBACK), *, subject_id=1, notifier=None, token=None):
        store = LocalStore(state_path)
        resolver = EndpointResolver(endpoints, store=store, probe_timeout=1.0)
        api = PunchClockClient(
            resolver,
            token=token or container.identity.issue(subject_id),
            timeout=2.0,
            transport=httpx.MockTransport(bridge),
        )
        reconciler = PunchReconciler(api, store, subject_id=subject_id, notifier=notifier, clock=clock)
        return reconciler

    return _make

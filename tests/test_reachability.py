# /*
# Copyright 2026 The Mesh Verifier Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

from __future__ import annotations

import pytest
import requests

from mesh_verifier.errors import PollTimeoutError, ReachabilityError, TransientObservationError
from mesh_verifier.poller import PollSpec, poll_until
from mesh_verifier.reachability import http_head, http_status_condition
from tests.conftest import FakeSession

URL = "http://istio-ingressgateway-istio-system.apps.example.com/headers"


def test_http_head_returns_status_without_following_redirects() -> None:
    session = FakeSession(302)
    assert http_head(URL, timeout=3.0, session=session) == 302
    assert session.calls == [(URL, {"timeout": 3.0, "allow_redirects": False})]
    assert session.responses[0].closed


def test_http_head_wraps_transport_errors() -> None:
    session = FakeSession(requests.ConnectionError("Name or service not known"))
    with pytest.raises(ReachabilityError) as excinfo:
        http_head(URL, session=session)
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_condition_matches_expected_status() -> None:
    assert http_status_condition(URL, 200, session=FakeSession(200))() is True
    assert http_status_condition(URL, 200, session=FakeSession(503))() is False


def test_condition_transport_error_is_transient() -> None:
    check = http_status_condition(URL, 200, session=FakeSession(requests.Timeout("read timed out")))
    with pytest.raises(TransientObservationError):
        check()


def test_polling_until_ingress_answers(clock) -> None:
    session = FakeSession(requests.ConnectionError("refused"), 503, 503, 200)
    result = poll_until(PollSpec(interval=2, timeout=30), http_status_condition(URL, 200, session=session), clock=clock)
    assert result.ticks == 4


def test_polling_ingress_times_out_with_last_status(clock) -> None:
    session = FakeSession(404)
    with pytest.raises(PollTimeoutError) as excinfo:
        poll_until(PollSpec(interval=2, timeout=6), http_status_condition(URL, 200, session=session), clock=clock)
    assert excinfo.value.ticks == 4
    assert len(session.calls) == 4

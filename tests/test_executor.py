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

import threading

import pytest

from mesh_verifier.cluster import ExecTarget
from mesh_verifier.errors import (
    CommandExitError,
    ExecError,
    ResponseParseError,
    StreamError,
    VerificationCancelled,
)
from mesh_verifier.executor import ExecRequest, RemoteCommandExecutor
from tests.conftest import HTTP_OK, ExecOutcome, stream_failure

TARGET = ExecTarget(pod="sleep-5f9d", namespace="mesh-test", container="sleep")
CURL = ("curl", "-sS", "-D", "-", "-o", "/dev/null", "http://httpbin.mesh-test:8000/ip")


def test_first_attempt_succeeds(cluster, clock) -> None:
    cluster.exec_outcomes = [ExecOutcome(stdout=b"hello\n")]
    result = RemoteCommandExecutor(cluster, clock=clock).run(TARGET, ["echo", "hello"])

    assert result.attempts == 1
    assert result.stdout_text == "hello\n"
    assert result.exit_code == 0
    assert result.status_code is None
    assert clock.sleeps == []
    assert cluster.streams[0].closed


def test_recovers_after_two_stream_failures(cluster, clock) -> None:
    cluster.exec_outcomes = [stream_failure(), stream_failure(), ExecOutcome(stdout=HTTP_OK)]
    executor = RemoteCommandExecutor(cluster, clock=clock)

    result = executor.run(TARGET, CURL, max_attempts=3, attempt_backoff=5.0, decode_response=True)

    assert result.attempts == 3
    assert result.status_code == 200
    assert result.headers["server"] == "envoy"
    assert len(cluster.exec_calls) == 3
    assert clock.sleeps == [5.0, 5.0]


def test_exhausted_attempts_raise_exec_error_chained_from_last(cluster, clock) -> None:
    third = StreamError("stream closed: EOF")
    cluster.exec_outcomes = [stream_failure("first"), stream_failure("second"), ExecOutcome(open_error=third)]

    with pytest.raises(ExecError) as excinfo:
        RemoteCommandExecutor(cluster, clock=clock).run(TARGET, CURL, max_attempts=3)

    assert excinfo.value.attempts == 3
    assert excinfo.value.__cause__ is third
    assert excinfo.value.result.error is third
    assert len(cluster.exec_calls) == 3


def test_single_attempt_does_not_sleep(cluster, clock) -> None:
    cluster.exec_outcomes = [stream_failure()]
    with pytest.raises(ExecError):
        RemoteCommandExecutor(cluster, clock=clock).run(TARGET, CURL, max_attempts=1)
    assert clock.sleeps == []
    assert len(cluster.exec_calls) == 1


def test_unparseable_response_is_retried(cluster, clock) -> None:
    cluster.exec_outcomes = [ExecOutcome(stdout=b"upstream connect error"), ExecOutcome(stdout=HTTP_OK)]
    result = RemoteCommandExecutor(cluster, clock=clock).run(TARGET, CURL, decode_response=True)
    assert result.attempts == 2
    assert result.status_code == 200


def test_unparseable_response_keeps_output_on_failure(cluster, clock) -> None:
    cluster.exec_outcomes = [ExecOutcome(stdout=b"garbage", stderr=b"warn")]
    with pytest.raises(ExecError) as excinfo:
        RemoteCommandExecutor(cluster, clock=clock).run(TARGET, CURL, max_attempts=2, decode_response=True)

    assert isinstance(excinfo.value.__cause__, ResponseParseError)
    assert excinfo.value.stdout == b"garbage"
    assert excinfo.value.stderr == b"warn"


def test_non_zero_exit_is_retried_then_reported(cluster, clock) -> None:
    cluster.exec_outcomes = [ExecOutcome(stderr=b"curl: (7) Failed to connect", exit_code=7)]
    with pytest.raises(ExecError) as excinfo:
        RemoteCommandExecutor(cluster, clock=clock).run(TARGET, CURL, max_attempts=2)

    cause = excinfo.value.__cause__
    assert isinstance(cause, CommandExitError)
    assert cause.exit_code == 7
    assert excinfo.value.result.exit_code == 7
    assert b"Failed to connect" in excinfo.value.stderr
    assert len(cluster.exec_calls) == 2


def test_stream_broken_mid_read(cluster, clock) -> None:
    cluster.exec_outcomes = [ExecOutcome(wait_error=StreamError("websocket closed")), ExecOutcome(stdout=b"ok")]
    result = RemoteCommandExecutor(cluster, clock=clock).run(TARGET, ["true"])
    assert result.attempts == 2
    assert all(stream.closed for stream in cluster.streams)


def test_cancel_during_backoff(cluster, clock) -> None:
    cancel = threading.Event()
    cluster.exec_outcomes = [stream_failure()]
    clock.on_sleep = lambda _seconds: cancel.set()

    with pytest.raises(VerificationCancelled):
        RemoteCommandExecutor(cluster, clock=clock, cancel=cancel).run(TARGET, CURL, max_attempts=5)
    assert len(cluster.exec_calls) == 1


def test_cancelled_before_first_attempt(cluster, clock) -> None:
    cancel = threading.Event()
    cancel.set()
    cluster.exec_outcomes = [ExecOutcome(stdout=b"ok")]
    with pytest.raises(VerificationCancelled):
        RemoteCommandExecutor(cluster, clock=clock, cancel=cancel).run(TARGET, ["true"])
    assert cluster.exec_calls == []


@pytest.mark.parametrize(
    "kwargs",
    [
        {"command": ()},
        {"command": ("true",), "max_attempts": 0},
        {"command": ("true",), "attempt_backoff": -1.0},
        {"command": ("true",), "stream_timeout": 0},
    ],
)
def test_request_validation(kwargs) -> None:
    with pytest.raises(ValueError):
        ExecRequest(target=TARGET, **kwargs)


def test_request_normalises_command_to_tuple() -> None:
    request = ExecRequest(target=TARGET, command=["curl", "-sS"])
    assert request.command == ("curl", "-sS")

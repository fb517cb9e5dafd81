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

import os
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import pytest

from mesh_verifier.cluster import ExecTarget, ResourceKind
from mesh_verifier.document import StructuredDocument
from mesh_verifier.errors import ResourceNotFoundError, StreamError, VerificationCancelled


class VirtualClock:
    """Clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.time = start
        self.sleeps: list[float] = []
        self.on_sleep: Callable[[float], None] | None = None

    def now(self) -> float:
        return self.time

    def sleep(self, seconds: float, cancel: threading.Event | None = None) -> None:
        self.sleeps.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep(seconds)
        if cancel is not None and cancel.is_set():
            raise VerificationCancelled("wait cancelled")
        self.time += seconds


def make_pod(name: str = "pod-0", phase: str = "Running",
             containers: Sequence[tuple[bool, bool]] = ((True, True),)) -> dict:
    """Build a serialised pod; each container is (ready, running)."""
    statuses = []
    for idx, (ready, running) in enumerate(containers):
        state = {"running": {"startedAt": "2026-01-01T00:00:00Z"}} if running else {"waiting": {"reason": "ContainerCreating"}}
        statuses.append({"name": f"c{idx}", "ready": ready, "state": state})
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": name},
        "status": {"phase": phase, "containerStatuses": statuses},
    }


@dataclass
class ExecOutcome:
    """Scripted behaviour of one exec attempt."""

    stdout: bytes = b""
    stderr: bytes = b""
    exit_code: int | None = 0
    open_error: Exception | None = None
    wait_error: Exception | None = None


class FakeExecStream:
    def __init__(self, outcome: ExecOutcome) -> None:
        self.outcome = outcome
        self.closed = False

    def __enter__(self) -> FakeExecStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def wait(self, timeout: float) -> None:
        if self.outcome.wait_error is not None:
            raise self.outcome.wait_error

    def stdout(self) -> bytes:
        return self.outcome.stdout

    def stderr(self) -> bytes:
        return self.outcome.stderr

    def exit_code(self) -> int | None:
        return self.outcome.exit_code

    def close(self) -> None:
        self.closed = True


@dataclass
class FakeClusterClient:
    """In-memory ClusterClient.

    ``pods`` maps (namespace, selector) to a list of pod dicts, or to a list of
    such lists consumed one per call (the last one repeats). Values may also be
    exceptions to raise. ``resources`` maps (plural, name, namespace) to a
    document dict or an exception.
    """

    pods: dict[tuple[str, str], Any] = field(default_factory=dict)
    resources: dict[tuple[str, str, str | None], Any] = field(default_factory=dict)
    exec_outcomes: list[ExecOutcome] = field(default_factory=list)
    list_calls: int = 0
    exec_calls: list[tuple[ExecTarget, tuple[str, ...]]] = field(default_factory=list)
    streams: list[FakeExecStream] = field(default_factory=list)

    def list_pods(self, namespace: str, label_selector: str) -> list[StructuredDocument]:
        self.list_calls += 1
        entry = self.pods.get((namespace, label_selector), [])
        if entry and isinstance(entry[0], (list, Exception)):
            value = entry.pop(0) if len(entry) > 1 else entry[0]
        else:
            value = entry
        if isinstance(value, Exception):
            raise value
        return [StructuredDocument(pod) for pod in value]

    def get_resource(self, kind: ResourceKind, name: str,
                     namespace: str | None = None) -> StructuredDocument:
        value = self.resources.get((kind.plural, name, namespace))
        if value is None:
            raise ResourceNotFoundError(f"{kind} {name!r} not found")
        if isinstance(value, Exception):
            raise value
        return StructuredDocument(value)

    def open_exec_stream(self, target: ExecTarget, command: Sequence[str],
                         timeout: float) -> FakeExecStream:
        self.exec_calls.append((target, tuple(command)))
        index = len(self.exec_calls) - 1
        outcome = self.exec_outcomes[min(index, len(self.exec_outcomes) - 1)]
        if outcome.open_error is not None:
            raise outcome.open_error
        stream = FakeExecStream(outcome)
        self.streams.append(stream)
        return stream


class FakeResponse:
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        self.closed = False

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.closed = True


class FakeSession:
    """Answers HEAD requests from a script of status codes or exceptions."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, dict]] = []
        self.responses: list[FakeResponse] = []

    def head(self, url: str, **kwargs) -> FakeResponse:
        self.calls.append((url, kwargs))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        response = FakeResponse(outcome)
        self.responses.append(response)
        return response


HTTP_OK = b"HTTP/1.1 200 OK\r\nServer: envoy\r\nContent-Length: 0\r\n\r\n"


def stream_failure(message: str = "connection reset by peer") -> ExecOutcome:
    return ExecOutcome(open_error=StreamError(message))


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def cluster() -> FakeClusterClient:
    return FakeClusterClient()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("MESH_VERIFY_"):
            monkeypatch.delenv(key)

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

"""Monotonic clock with cancellable sleep."""

from __future__ import annotations

import threading
import time
from typing import Protocol

from mesh_verifier.errors import VerificationCancelled


class Clock(Protocol):
    def now(self) -> float:
        """Return monotonic seconds."""

    def sleep(self, seconds: float, cancel: threading.Event | None = None) -> None:
        """Block for *seconds*, raising VerificationCancelled if *cancel* fires."""


class SystemClock:
    """Wall-clock implementation backed by time.monotonic and Event.wait."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float, cancel: threading.Event | None = None) -> None:
        if cancel is None:
            if seconds > 0:
                time.sleep(seconds)
            return
        if cancel.wait(max(seconds, 0.0)):
            raise VerificationCancelled("wait cancelled")


def check_cancelled(cancel: threading.Event | None) -> None:
    """Raise VerificationCancelled if *cancel* is set."""
    if cancel is not None and cancel.is_set():
        raise VerificationCancelled("operation cancelled")

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

"""Poll-until-condition primitive with timeout and cancellation."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass

from mesh_verifier import logger
from mesh_verifier.clock import Clock, SystemClock, check_cancelled
from mesh_verifier.errors import (
    ConditionError,
    FatalConditionError,
    PollTimeoutError,
    TransientObservationError,
)

Condition = Callable[[], bool]

# Absorbs float error in start + n * interval comparisons against the deadline.
_DEADLINE_SLACK = 1e-9


@dataclass(frozen=True)
class PollSpec:
    """Cadence and deadline for :func:`poll_until`.

    Attributes:
        interval: Seconds between the starts of consecutive ticks.
        timeout: Seconds from poll start after which no new tick is started.
        immediate: Evaluate at t=0 instead of waiting one interval first.
    """

    interval: float
    timeout: float
    immediate: bool = True

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError(f"poll interval must be positive, got {self.interval}")
        if self.timeout <= 0:
            raise ValueError(f"poll timeout must be positive, got {self.timeout}")


@dataclass(frozen=True)
class PollResult:
    ticks: int
    elapsed: float


def poll_until(
    spec: PollSpec,
    condition: Condition,
    *,
    clock: Clock | None = None,
    cancel: threading.Event | None = None,
    description: str = "",
) -> PollResult:
    """Evaluate *condition* once per tick until it holds or the deadline passes.

    A tick that raises TransientObservationError counts as "not yet". A tick
    that raises FatalConditionError stops polling. A tick that started before
    the deadline is always allowed to finish.

    Args:
        spec: Interval, timeout and immediate flag.
        condition: Zero-argument predicate over live cluster state.
        clock: Time source, SystemClock when omitted.
        cancel: Optional event that aborts the wait between ticks.
        description: Human-readable name used in logs and errors.

    Returns:
        PollResult with the number of ticks evaluated and elapsed seconds.

    Raises:
        PollTimeoutError: If no tick was satisfied before the deadline.
        ConditionError: If a tick raised FatalConditionError.
        VerificationCancelled: If *cancel* fired.
    """
    clock = clock or SystemClock()
    label = description or "condition"
    start = clock.now()
    deadline = start + spec.timeout
    next_tick = start if spec.immediate else start + spec.interval
    ticks = 0
    last_error: Exception | None = None

    while next_tick <= deadline + _DEADLINE_SLACK:
        delay = next_tick - clock.now()
        if delay > 0:
            clock.sleep(delay, cancel)
        check_cancelled(cancel)

        ticks += 1
        try:
            satisfied = condition()
        except TransientObservationError as err:
            logger.debug("%s: tick %d not ready: %s", label, ticks, err)
            last_error = err
            satisfied = False
        except FatalConditionError as err:
            raise ConditionError(f"{label} failed on tick {ticks}: {err}") from err

        if satisfied:
            elapsed = clock.now() - start
            logger.debug("%s: satisfied after %d ticks (%.1fs)", label, ticks, elapsed)
            return PollResult(ticks=ticks, elapsed=elapsed)
        next_tick += spec.interval

    raise PollTimeoutError(label, spec.timeout, ticks, last_error)

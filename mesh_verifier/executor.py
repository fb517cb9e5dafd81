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

"""Remote command execution into a running container with bounded retries.

Each call walks a small state machine::

    ATTEMPT(n) --stream ok--> PARSING --preamble ok--> DONE
        |                        |
        +--StreamError-----------+--ResponseParseError--> ATTEMPT(n+1) or FAILED

Retries, backoff and the stop condition are driven by tenacity. The sleep
between attempts goes through the injected clock so that tests run without
real delays and a cancellation event interrupts the backoff promptly.
"""

from __future__ import annotations

import enum
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from requests.structures import CaseInsensitiveDict
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from mesh_verifier import logger
from mesh_verifier.clock import Clock, SystemClock, check_cancelled
from mesh_verifier.cluster import ClusterClient, ExecTarget
from mesh_verifier.constants import (
    DEFAULT_EXEC_BACKOFF_SECONDS,
    DEFAULT_EXEC_MAX_ATTEMPTS,
    DEFAULT_EXEC_TIMEOUT_SECONDS,
)
from mesh_verifier.errors import CommandExitError, ExecError, ResponseParseError, StreamError
from mesh_verifier.response import parse_http_preamble

RETRYABLE_ERRORS = (StreamError, ResponseParseError)


class ExecPhase(enum.Enum):
    ATTEMPT = "attempt"
    PARSING = "parsing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ExecRequest:
    """A command to run inside a container.

    Attributes:
        target: Pod, namespace and container to exec into.
        command: Argument vector; run without a shell.
        max_attempts: Total attempts including the first, at least 1.
        attempt_backoff: Seconds to wait between failed attempts.
        stream_timeout: Seconds each attempt may take before it is abandoned.
        decode_response: Parse stdout as a raw HTTP response preamble.
    """

    target: ExecTarget
    command: tuple[str, ...]
    max_attempts: int = DEFAULT_EXEC_MAX_ATTEMPTS
    attempt_backoff: float = DEFAULT_EXEC_BACKOFF_SECONDS
    stream_timeout: float = DEFAULT_EXEC_TIMEOUT_SECONDS
    decode_response: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "command", tuple(self.command))
        if not self.command:
            raise ValueError("exec command must not be empty")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.attempt_backoff < 0:
            raise ValueError(f"attempt_backoff must not be negative, got {self.attempt_backoff}")
        if self.stream_timeout <= 0:
            raise ValueError(f"stream_timeout must be positive, got {self.stream_timeout}")


@dataclass(frozen=True)
class ExecResult:
    """Captured output of one exec call.

    ``status_code`` and ``headers`` are only set when the request asked for
    response decoding and stdout carried a well-formed HTTP preamble.
    """

    stdout: bytes = b""
    stderr: bytes = b""
    status_code: int | None = None
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    attempts: int = 0
    exit_code: int | None = None
    error: Exception | None = None

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


class RemoteCommandExecutor:
    """Run commands in live containers, absorbing transient stream failures."""

    def __init__(self, client: ClusterClient, *, clock: Clock | None = None,
                 cancel: threading.Event | None = None) -> None:
        self._client = client
        self._clock = clock or SystemClock()
        self._cancel = cancel

    def run(self, target: ExecTarget, command: Sequence[str],
            max_attempts: int = DEFAULT_EXEC_MAX_ATTEMPTS, **options) -> ExecResult:
        """Shorthand for ``exec(ExecRequest(target, command, max_attempts, ...))``."""
        return self.exec(ExecRequest(target, tuple(command), max_attempts, **options))

    def exec(self, request: ExecRequest) -> ExecResult:
        """Execute *request*, retrying StreamError and ResponseParseError.

        Args:
            request: Target, command and retry policy.

        Returns:
            ExecResult of the first successful attempt.

        Raises:
            ExecError: If every attempt failed, chained from the last cause.
            VerificationCancelled: If the cancellation event fired.
        """
        retrying = Retrying(
            stop=stop_after_attempt(request.max_attempts),
            wait=wait_fixed(request.attempt_backoff),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            sleep=self._sleep,
            before_sleep=self._log_retry(request),
        )
        try:
            for attempt in retrying:
                with attempt:
                    result = self._attempt(request, attempt.retry_state.attempt_number)
        except RetryError as err:
            last = err.last_attempt
            cause = last.exception()
            self._transition(request, ExecPhase.FAILED, last.attempt_number)
            partial = ExecResult(
                stdout=getattr(cause, "stdout", b""),
                stderr=getattr(cause, "stderr", b""),
                attempts=last.attempt_number,
                exit_code=getattr(cause, "exit_code", None),
                error=cause,
            )
            raise ExecError(
                f"exec {' '.join(request.command)!r} in {request.target} failed after "
                f"{last.attempt_number} attempt(s): {cause}",
                attempts=last.attempt_number,
                result=partial,
            ) from cause

        self._transition(request, ExecPhase.DONE, result.attempts)
        return result

    def _attempt(self, request: ExecRequest, number: int) -> ExecResult:
        check_cancelled(self._cancel)
        self._transition(request, ExecPhase.ATTEMPT, number)

        with self._client.open_exec_stream(request.target, request.command, request.stream_timeout) as stream:
            stream.wait(request.stream_timeout)
            stdout = stream.stdout()
            stderr = stream.stderr()
            exit_code = stream.exit_code()

        if exit_code:
            raise CommandExitError(exit_code, stdout, stderr)

        result = ExecResult(stdout=stdout, stderr=stderr, attempts=number, exit_code=exit_code)
        if not request.decode_response:
            return result

        self._transition(request, ExecPhase.PARSING, number)
        try:
            preamble = parse_http_preamble(stdout)
        except ResponseParseError as err:
            raise ResponseParseError(str(err), stdout, stderr) from err
        return replace(result, status_code=preamble.status_code, headers=preamble.headers)

    def _sleep(self, seconds: float) -> None:
        self._clock.sleep(seconds, self._cancel)

    @staticmethod
    def _transition(request: ExecRequest, phase: ExecPhase, attempt: int) -> None:
        logger.debug("exec %s: %s (attempt %d/%d)", request.target, phase.value, attempt, request.max_attempts)

    @staticmethod
    def _log_retry(request: ExecRequest):
        def _before_sleep(retry_state: RetryCallState) -> None:
            err = retry_state.outcome.exception() if retry_state.outcome else None
            wait = retry_state.next_action.sleep if retry_state.next_action else 0.0
            logger.warning(
                "exec in %s failed (attempt %d/%d): %s; retrying in %.1fs",
                request.target, retry_state.attempt_number, request.max_attempts, err, wait,
            )

        return _before_sleep

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

"""Error taxonomy shared by the poller, observers and executor."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mesh_verifier.executor import ExecResult


class VerificationError(RuntimeError):
    """Base class for every error raised across the public call boundary."""


class VerificationCancelled(VerificationError):
    """The caller's cancellation event fired during a wait."""


# ============================================================================
# Polling
# ============================================================================

class TransientObservationError(VerificationError):
    """A fetch, list or get failed in a way that is expected to clear up.

    The poller treats it as "not yet" and never surfaces it on its own.
    """


class ResourceNotFoundError(TransientObservationError):
    """The requested resource does not exist (yet)."""


class FatalConditionError(VerificationError):
    """Raised by a condition to stop polling immediately."""


class ConditionError(VerificationError):
    """A tick reported a fatal error; chained from the FatalConditionError."""


class PollTimeoutError(VerificationError):
    """No tick satisfied the condition before the deadline."""

    def __init__(self, description: str, timeout: float, ticks: int,
                 last_error: Exception | None = None) -> None:
        self.description = description
        self.timeout = timeout
        self.ticks = ticks
        self.last_error = last_error
        message = f"timed out after {timeout:g}s waiting for {description or 'condition'} ({ticks} ticks)"
        if last_error is not None:
            message += f"; last error: {last_error}"
        super().__init__(message)


class ResourceLookupError(VerificationError):
    """A one-shot lookup found nothing usable."""


# ============================================================================
# Remote exec
# ============================================================================

class StreamError(VerificationError):
    """The exec stream failed to open, timed out or broke mid-read."""

    def __init__(self, message: str, stdout: bytes = b"", stderr: bytes = b"") -> None:
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr


class CommandExitError(StreamError):
    """The remote command finished with a non-zero exit code."""

    def __init__(self, exit_code: int, stdout: bytes = b"", stderr: bytes = b"") -> None:
        super().__init__(f"command exited with code {exit_code}", stdout, stderr)
        self.exit_code = exit_code


class ResponseParseError(VerificationError):
    """Captured stdout does not start with a well-formed HTTP preamble."""

    def __init__(self, message: str, stdout: bytes = b"", stderr: bytes = b"") -> None:
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr


class ExecError(VerificationError):
    """Every exec attempt failed; chained from the last attempt's cause."""

    def __init__(self, message: str, attempts: int, result: ExecResult) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.result = result

    @property
    def stdout(self) -> bytes:
        return self.result.stdout

    @property
    def stderr(self) -> bytes:
        return self.result.stderr


# ============================================================================
# HTTP, manifests and scenarios
# ============================================================================

class ReachabilityError(VerificationError):
    """The HTTP probe could not complete a request."""


class ApplyError(VerificationError):
    """A manifest document could not be created or deleted."""


class ScenarioError(VerificationError):
    """A scenario step failed; chained from the core error."""

    def __init__(self, step: str, cause: Exception) -> None:
        super().__init__(f"{step}: {cause}")
        self.step = step

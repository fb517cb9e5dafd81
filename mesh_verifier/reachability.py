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

"""Single-shot HTTP HEAD probe of an externally exposed endpoint."""

from __future__ import annotations

import requests

from mesh_verifier import logger
from mesh_verifier.constants import DEFAULT_HTTP_TIMEOUT_SECONDS
from mesh_verifier.errors import ReachabilityError, TransientObservationError
from mesh_verifier.poller import Condition


def http_head(url: str, *, timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
              session: requests.Session | None = None) -> int:
    """Send one HEAD request and return the raw status code.

    Redirects are not followed, so the caller sees exactly what the ingress
    answered.

    Raises:
        ReachabilityError: If the request could not complete.
    """
    sender = session if session is not None else requests
    try:
        response = sender.head(url, timeout=timeout, allow_redirects=False)
    except requests.RequestException as err:
        raise ReachabilityError(f"HEAD {url} failed: {err}") from err
    with response:
        logger.debug("HEAD %s -> %d", url, response.status_code)
        return response.status_code


def http_status_condition(url: str, expected: int, *, timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
                          session: requests.Session | None = None) -> Condition:
    """Adapt :func:`http_head` into a pollable condition.

    Transport failures are transient; a different status code is "not yet".
    """

    def _check() -> bool:
        try:
            status = http_head(url, timeout=timeout, session=session)
        except ReachabilityError as err:
            raise TransientObservationError(str(err)) from err
        if status != expected:
            logger.debug("HEAD %s returned %d, want %d", url, status, expected)
        return status == expected

    return _check

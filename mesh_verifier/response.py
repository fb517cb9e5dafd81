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

"""Parse the status line and headers of a raw HTTP response captured from stdout."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from requests.structures import CaseInsensitiveDict

from mesh_verifier.errors import ResponseParseError

STATUS_LINE_RE = re.compile(r"^HTTP/(?P<version>1\.[01]|[23](?:\.0)?) (?P<code>\d{3})(?: (?P<reason>.*))?$")


@dataclass(frozen=True)
class HttpPreamble:
    """Status line and header block of an HTTP response.

    Attributes:
        version: Protocol version from the status line (``1.1``, ``2``...).
        status_code: Three-digit status code.
        reason: Reason phrase, empty when the server sent none.
        headers: Case-insensitive header mapping; duplicates keep the last value.
    """

    version: str
    status_code: int
    reason: str = ""
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)


def parse_http_preamble(raw: bytes | str) -> HttpPreamble:
    """Parse the preamble of a raw HTTP response (e.g. ``curl -D -`` output).

    The first line must be a status line. Following lines up to the first
    blank line are split once on the first colon into a header. The body is
    not interpreted.

    Args:
        raw: Captured response text; CRLF and LF line endings are accepted.

    Returns:
        HttpPreamble with status code and headers.

    Raises:
        ResponseParseError: If the status line or a header line is malformed.
    """
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    lines = text.split("\n")

    status_line = lines[0].rstrip("\r")
    match = STATUS_LINE_RE.match(status_line)
    if match is None:
        raise ResponseParseError(f"malformed HTTP status line: {status_line[:80]!r}")

    headers: CaseInsensitiveDict = CaseInsensitiveDict()
    for line in lines[1:]:
        line = line.rstrip("\r")
        if not line.strip():
            break
        name, sep, value = line.partition(":")
        name = name.strip()
        if not sep or not name:
            raise ResponseParseError(f"malformed HTTP header line: {line[:80]!r}")
        headers[name] = value.strip()

    return HttpPreamble(
        version=match.group("version"),
        status_code=int(match.group("code")),
        reason=(match.group("reason") or "").strip(),
        headers=headers,
    )

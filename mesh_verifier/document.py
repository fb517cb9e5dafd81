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

"""Safe nested-field access over generic resource documents."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

PathKey = str | int


class LookupStatus(enum.Enum):
    FOUND = "found"
    MISSING = "missing"
    WRONG_TYPE = "wrong-type"


@dataclass(frozen=True)
class Lookup:
    """Outcome of a nested-field lookup.

    Attributes:
        status: Whether the value was found, missing, or had the wrong type.
        value: The value at the path when found, otherwise None.
        path: The key path that was traversed.
    """

    status: LookupStatus
    value: Any = None
    path: tuple[PathKey, ...] = ()

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    def or_default(self, default: Any = None) -> Any:
        return self.value if self.found else default


class StructuredDocument:
    """Read-only view over an arbitrary nested mapping (a Kubernetes object).

    Observers read fields through :meth:`lookup` instead of indexing the raw
    mapping, so a malformed or partially populated object never raises.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None) -> None:
        self._data = data if data is not None else {}

    @property
    def raw(self) -> Mapping[str, Any]:
        return self._data

    def lookup(self, *path: PathKey, expect: type | tuple[type, ...] | None = None) -> Lookup:
        """Traverse *path* and return a :class:`Lookup`.

        String keys index mappings and integer keys index lists. A null value
        anywhere along the path counts as missing.

        Args:
            *path: Sequence of mapping keys and list indices.
            expect: Optional type (or tuple of types) the final value must have.

        Returns:
            Lookup with FOUND, MISSING or WRONG_TYPE status.
        """
        node: Any = self._data
        for key in path:
            if isinstance(key, int):
                if not isinstance(node, list):
                    return Lookup(LookupStatus.WRONG_TYPE, path=path)
                if key >= len(node) or key < -len(node):
                    return Lookup(LookupStatus.MISSING, path=path)
                node = node[key]
            else:
                if not isinstance(node, Mapping):
                    return Lookup(LookupStatus.WRONG_TYPE, path=path)
                node = node.get(key)
            if node is None:
                return Lookup(LookupStatus.MISSING, path=path)
        if expect is not None and not isinstance(node, expect):
            return Lookup(LookupStatus.WRONG_TYPE, path=path)
        return Lookup(LookupStatus.FOUND, node, path)

    def get(self, *path: PathKey, default: Any = None) -> Any:
        return self.lookup(*path).or_default(default)

    def items(self, *path: PathKey) -> list[StructuredDocument]:
        """Return the list at *path* as documents; empty when absent or not a list."""
        found = self.lookup(*path, expect=list)
        if not found.found:
            return []
        return [StructuredDocument(item if isinstance(item, Mapping) else {}) for item in found.value]

    @property
    def name(self) -> str | None:
        return self.lookup("metadata", "name", expect=str).or_default()

    def __repr__(self) -> str:
        kind = self.get("kind", default="?")
        return f"StructuredDocument(kind={kind!r}, name={self.name!r})"

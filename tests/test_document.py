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

from mesh_verifier.document import LookupStatus, StructuredDocument

SUBSCRIPTION = {
    "metadata": {"name": "servicemeshoperator", "labels": None},
    "status": {
        "installedCSV": "servicemeshoperator.v2.6.1",
        "conditions": [{"type": "CatalogSourcesUnhealthy", "status": "False"}],
        "state": 3,
    },
}


def test_lookup_found() -> None:
    doc = StructuredDocument(SUBSCRIPTION)
    found = doc.lookup("status", "installedCSV", expect=str)
    assert found.status is LookupStatus.FOUND
    assert found.value == "servicemeshoperator.v2.6.1"
    assert doc.name == "servicemeshoperator"


def test_lookup_missing_and_null_are_missing() -> None:
    doc = StructuredDocument(SUBSCRIPTION)
    assert doc.lookup("status", "currentCSV").status is LookupStatus.MISSING
    assert doc.lookup("metadata", "labels", "app").status is LookupStatus.MISSING
    assert doc.lookup("spec", "channel").status is LookupStatus.MISSING


def test_lookup_wrong_type() -> None:
    doc = StructuredDocument(SUBSCRIPTION)
    assert doc.lookup("status", "state", expect=str).status is LookupStatus.WRONG_TYPE
    assert doc.lookup("status", "installedCSV", "name").status is LookupStatus.WRONG_TYPE
    assert doc.lookup("status", 0).status is LookupStatus.WRONG_TYPE


def test_lookup_list_indices() -> None:
    doc = StructuredDocument(SUBSCRIPTION)
    assert doc.lookup("status", "conditions", 0, "type").value == "CatalogSourcesUnhealthy"
    assert doc.lookup("status", "conditions", 3, "type").status is LookupStatus.MISSING


def test_items_and_defaults() -> None:
    doc = StructuredDocument(SUBSCRIPTION)
    conditions = doc.items("status", "conditions")
    assert [c.get("status") for c in conditions] == ["False"]
    assert doc.items("status", "installedCSV") == []
    assert doc.get("status", "missing", default="n/a") == "n/a"


def test_empty_document() -> None:
    doc = StructuredDocument(None)
    assert doc.name is None
    assert doc.lookup("status").status is LookupStatus.MISSING

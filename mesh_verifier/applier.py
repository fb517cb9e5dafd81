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

"""Create and delete the resources described by a manifest file."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from kubernetes import client as k8s_client
from kubernetes.client.rest import ApiException
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import ResourceNotFoundError as UnknownKindError
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from mesh_verifier import console, logger
from mesh_verifier.document import StructuredDocument
from mesh_verifier.errors import ApplyError


def load_manifest(path: Path) -> list[dict]:
    """Load every non-empty YAML document in *path*.

    Raises:
        ApplyError: If the file cannot be read or is not valid YAML.
    """
    try:
        with open(path) as f:
            docs = list(yaml.safe_load_all(f))
    except (OSError, yaml.YAMLError) as err:
        raise ApplyError(f"cannot load manifest {path}: {err}") from err
    return [doc for doc in docs if doc]


@dataclass(frozen=True)
class AppliedObject:
    """A manifest document that exists on the cluster after a create."""

    resource: Any
    kind: str
    name: str
    namespace: str | None

    def __str__(self) -> str:
        return f"{self.kind}/{self.name}" if self.namespace is None else f"{self.kind} {self.namespace}/{self.name}"


class ManifestApplier:
    """Apply manifest files through the kubernetes dynamic client.

    The dynamic client runs API discovery when built, so it is created on
    first use.
    """

    def __init__(self, api_client: k8s_client.ApiClient | None = None, *,
                 dynamic_client: DynamicClient | None = None) -> None:
        if api_client is None and dynamic_client is None:
            raise ValueError("either api_client or dynamic_client is required")
        self._api_client = api_client
        self._dynamic = dynamic_client

    @property
    def dynamic(self) -> DynamicClient:
        """The dynamic client, built on first use.

        Raises:
            ApplyError: If API discovery fails.
        """
        if self._dynamic is None:
            try:
                self._dynamic = DynamicClient(self._api_client)
            except (ApiException, Urllib3HTTPError) as err:
                raise ApplyError(f"API discovery failed: {err}") from err
        return self._dynamic

    def create_from_file(self, path: Path, namespace: str = "") -> list[AppliedObject]:
        """Create every document in *path*; existing objects are left alone.

        Returns:
            The objects that exist once the call returns, in manifest order.
        """
        applied: list[AppliedObject] = []
        self._create_into(path, namespace, applied)
        return applied

    def delete_from_file(self, path: Path, namespace: str = "") -> None:
        """Delete every document in *path* in reverse order; missing objects are ignored."""
        for doc in reversed(load_manifest(path)):
            self._delete(self._resolve(doc, namespace, path))

    @contextmanager
    def applied(self, path: Path, namespace: str = "") -> Iterator[list[AppliedObject]]:
        """Create the manifest on enter and delete what was created on exit.

        Documents created before a failing one are deleted again before the
        error propagates.
        """
        applied: list[AppliedObject] = []
        try:
            self._create_into(path, namespace, applied)
            yield applied
        finally:
            for obj in reversed(applied):
                try:
                    self._delete(obj)
                except ApplyError as err:
                    console.print(f"[yellow]\u26a0\ufe0f  Cleanup of {obj} from {path.name} failed: {err}[/yellow]")

    def _create_into(self, path: Path, namespace: str, applied: list[AppliedObject]) -> None:
        for doc in load_manifest(path):
            obj = self._resolve(doc, namespace, path)
            try:
                obj.resource.create(body=doc, namespace=obj.namespace)
                logger.info("created %s from %s", obj, path.name)
            except ApiException as err:
                if err.status != 409:
                    raise ApplyError(f"creating {obj} from {path}: {err.status} {err.reason}") from err
                logger.info("%s already exists", obj)
            applied.append(obj)

    @staticmethod
    def _delete(obj: AppliedObject) -> None:
        try:
            obj.resource.delete(name=obj.name, namespace=obj.namespace)
            logger.info("deleted %s", obj)
        except ApiException as err:
            if err.status != 404:
                raise ApplyError(f"deleting {obj}: {err.status} {err.reason}") from err

    def _resolve(self, doc: dict, namespace: str, path: Path) -> AppliedObject:
        meta = StructuredDocument(doc)
        api_version = meta.lookup("apiVersion", expect=str)
        kind = meta.lookup("kind", expect=str)
        name = meta.lookup("metadata", "name", expect=str)
        if not (api_version.found and kind.found and name.found):
            raise ApplyError(f"{path}: document lacks apiVersion, kind or metadata.name")
        try:
            resource = self.dynamic.resources.get(api_version=api_version.value, kind=kind.value)
        except UnknownKindError as err:
            raise ApplyError(f"{path}: unknown kind {api_version.value}/{kind.value}") from err
        except (ApiException, Urllib3HTTPError) as err:
            raise ApplyError(f"{path}: resolving {api_version.value}/{kind.value}: {err}") from err
        ns = None
        if resource.namespaced:
            ns = namespace or meta.get("metadata", "namespace") or "default"
        return AppliedObject(resource, kind.value, name.value, ns)

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

"""Cluster client protocol and its Kubernetes-backed implementation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

import yaml
from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from kubernetes.stream import stream as k8s_stream
from kubernetes.stream.ws_client import ERROR_CHANNEL
from urllib3.exceptions import HTTPError as Urllib3HTTPError
from websocket import WebSocketException

from mesh_verifier import logger
from mesh_verifier.constants import EXEC_STATUS_SUCCESS
from mesh_verifier.document import StructuredDocument
from mesh_verifier.errors import (
    ResourceNotFoundError,
    StreamError,
    TransientObservationError,
    VerificationError,
)


# ============================================================================
# Resource references
# ============================================================================

@dataclass(frozen=True)
class ResourceKind:
    """A custom resource type addressed through the CustomObjects API.

    Attributes:
        group: API group (e.g. ``operators.coreos.com``).
        version: API version (e.g. ``v1alpha1``).
        plural: Plural resource name (e.g. ``subscriptions``).
        namespaced: Whether the resource lives in a namespace.
    """

    group: str
    version: str
    plural: str
    namespaced: bool = True

    def __str__(self) -> str:
        return f"{self.plural}.{self.group}/{self.version}"


SUBSCRIPTION = ResourceKind("operators.coreos.com", "v1alpha1", "subscriptions")
CLUSTER_SERVICE_VERSION = ResourceKind("operators.coreos.com", "v1alpha1", "clusterserviceversions")
ROUTE = ResourceKind("route.openshift.io", "v1", "routes")
CERT_MANAGER_OPERATOR = ResourceKind("operator.openshift.io", "v1alpha1", "certmanagers", namespaced=False)


@dataclass(frozen=True)
class ExecTarget:
    pod: str
    namespace: str
    container: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.pod}[{self.container}]"


# ============================================================================
# Protocols
# ============================================================================

class ExecStream(Protocol):
    """Bidirectional exec channel into a running container."""

    def wait(self, timeout: float) -> None:
        """Block until the remote command finishes; StreamError on timeout or transport failure."""

    def stdout(self) -> bytes: ...

    def stderr(self) -> bytes: ...

    def exit_code(self) -> int | None:
        """Exit status reported by the runtime, or None when none was reported."""

    def close(self) -> None: ...

    def __enter__(self) -> ExecStream: ...

    def __exit__(self, *exc_info: object) -> None: ...


class ClusterClient(Protocol):
    """The authenticated API calls the verification engine depends on."""

    def list_pods(self, namespace: str, label_selector: str) -> list[StructuredDocument]: ...

    def get_resource(self, kind: ResourceKind, name: str,
                     namespace: str | None = None) -> StructuredDocument: ...

    def open_exec_stream(self, target: ExecTarget, command: Sequence[str],
                         timeout: float) -> ExecStream: ...


# ============================================================================
# Kubernetes implementation
# ============================================================================

class PodExecStream:
    """ExecStream over a kubernetes WSClient opened with ``_preload_content=False``."""

    def __init__(self, ws) -> None:
        self._ws = ws
        self._stdout: bytes | None = None
        self._stderr: bytes | None = None
        self._status: str | None = None

    def __enter__(self) -> PodExecStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def wait(self, timeout: float) -> None:
        try:
            self._ws.run_forever(timeout=timeout)
        except (WebSocketException, OSError) as err:
            raise StreamError(f"exec stream broke: {err}", self.stdout(), self.stderr()) from err
        if self._ws.is_open():
            raise StreamError(f"command did not finish within {timeout:g}s", self.stdout(), self.stderr())

    def stdout(self) -> bytes:
        if self._stdout is None:
            self._stdout = self._ws.read_stdout().encode()
        return self._stdout

    def stderr(self) -> bytes:
        if self._stderr is None:
            self._stderr = self._ws.read_stderr().encode()
        return self._stderr

    def exit_code(self) -> int | None:
        """Decode the v1.Status document sent on the error channel."""
        if self._status is None:
            self._status = self._ws.read_channel(ERROR_CHANNEL) or ""
        if not self._status:
            return None
        try:
            status = StructuredDocument(yaml.safe_load(self._status))
        except yaml.YAMLError as err:
            raise StreamError(f"unreadable exec status: {err}", self.stdout(), self.stderr()) from err
        if status.get("status") == EXEC_STATUS_SUCCESS:
            return 0
        for cause in status.items("details", "causes"):
            if cause.get("reason") == "ExitCode":
                try:
                    return int(cause.get("message"))
                except (TypeError, ValueError):
                    break
        raise StreamError(
            f"exec failed: {status.get('message', default=self._status.strip())}",
            self.stdout(), self.stderr(),
        )

    def close(self) -> None:
        self._ws.close()


class KubeClusterClient:
    """ClusterClient backed by the official kubernetes Python client.

    Every instance owns its own ApiClient; the library's global default
    configuration is never touched.
    """

    def __init__(self, api_client: k8s_client.ApiClient) -> None:
        self.api_client = api_client
        self._core = k8s_client.CoreV1Api(api_client)
        self._custom = k8s_client.CustomObjectsApi(api_client)

    @classmethod
    def from_kubeconfig(cls, config_file: str | None = None,
                        context: str | None = None) -> KubeClusterClient:
        """Build a client from a kubeconfig, falling back to in-cluster config.

        Raises:
            VerificationError: If neither configuration source is usable.
        """
        try:
            return cls(k8s_config.new_client_from_config(config_file=config_file, context=context))
        except ConfigException as kube_err:
            logger.debug("kubeconfig not usable (%s), trying in-cluster config", kube_err)
            configuration = k8s_client.Configuration()
            try:
                k8s_config.load_incluster_config(client_configuration=configuration)
            except ConfigException as err:
                raise VerificationError(f"No usable cluster configuration: {kube_err}") from err
            return cls(k8s_client.ApiClient(configuration))

    def list_pods(self, namespace: str, label_selector: str) -> list[StructuredDocument]:
        try:
            pods = self._core.list_namespaced_pod(namespace=namespace, label_selector=label_selector)
        except (ApiException, Urllib3HTTPError) as err:
            raise TransientObservationError(
                f"listing pods {label_selector!r} in {namespace}: {err}") from err
        return [
            StructuredDocument(self.api_client.sanitize_for_serialization(pod))
            for pod in pods.items
        ]

    def get_resource(self, kind: ResourceKind, name: str,
                     namespace: str | None = None) -> StructuredDocument:
        if kind.namespaced and not namespace:
            raise ValueError(f"{kind} is namespaced; a namespace is required")
        try:
            if kind.namespaced:
                obj = self._custom.get_namespaced_custom_object(
                    kind.group, kind.version, namespace, kind.plural, name)
            else:
                obj = self._custom.get_cluster_custom_object(kind.group, kind.version, kind.plural, name)
        except ApiException as err:
            if err.status == 404:
                raise ResourceNotFoundError(f"{kind} {name!r} not found") from err
            raise TransientObservationError(f"getting {kind} {name!r}: {err.status} {err.reason}") from err
        except Urllib3HTTPError as err:
            raise TransientObservationError(f"getting {kind} {name!r}: {err}") from err
        return StructuredDocument(obj)

    def open_exec_stream(self, target: ExecTarget, command: Sequence[str],
                         timeout: float) -> PodExecStream:
        try:
            ws = k8s_stream(
                self._core.connect_get_namespaced_pod_exec,
                target.pod,
                target.namespace,
                container=target.container,
                command=list(command),
                stderr=True,
                stdin=False,
                stdout=True,
                tty=False,
                _preload_content=False,
                _request_timeout=timeout,
            )
        except (ApiException, WebSocketException, Urllib3HTTPError, OSError) as err:
            raise StreamError(f"opening exec stream to {target}: {err}") from err
        return PodExecStream(ws)

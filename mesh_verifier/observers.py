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

"""Condition factories over pods, operator subscriptions and operator resources."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from mesh_verifier import logger
from mesh_verifier.cluster import (
    CLUSTER_SERVICE_VERSION,
    ROUTE,
    SUBSCRIPTION,
    ClusterClient,
    ResourceKind,
)
from mesh_verifier.constants import CSV_PHASE_SUCCEEDED, POD_PHASE_RUNNING
from mesh_verifier.document import StructuredDocument
from mesh_verifier.errors import ResourceLookupError, TransientObservationError
from mesh_verifier.poller import Condition


# ============================================================================
# Pods
# ============================================================================

def pod_is_ready(pod: StructuredDocument) -> bool:
    """A pod is ready when it is Running and every container is ready and running.

    Args:
        pod: Pod document as serialised by the API (camelCase keys).

    Returns:
        True if the pod phase is Running and each reported container status
        has ``ready: true`` and a non-null ``state.running``.
    """
    if pod.get("status", "phase") != POD_PHASE_RUNNING:
        return False
    for container in pod.items("status", "containerStatuses"):
        if container.get("ready") is not True:
            return False
        if not container.lookup("state", "running", expect=Mapping).found:
            return False
    return True


def pod_readiness(client: ClusterClient, namespace: str, label_selector: str) -> Condition:
    """Condition satisfied once every pod matching *label_selector* is ready.

    An empty match is "not yet": the workload may not be scheduled yet.
    """

    def _check() -> bool:
        pods = client.list_pods(namespace, label_selector)
        if not pods:
            logger.debug("no pods match %r in %s yet", label_selector, namespace)
            return False
        return all(pod_is_ready(pod) for pod in pods)

    return _check


def first_pod_name(client: ClusterClient, namespace: str, label_selector: str) -> str:
    """Return the name of the first pod matching *label_selector*.

    Raises:
        ResourceLookupError: If no named pod matches.
    """
    for pod in client.list_pods(namespace, label_selector):
        if pod.name:
            return pod.name
    raise ResourceLookupError(f"no pod matches {label_selector!r} in {namespace}")


# ============================================================================
# Operators
# ============================================================================

def operator_installed(client: ClusterClient, namespace: str, subscription: str) -> Condition:
    """Condition satisfied once the subscription's installed CSV has Succeeded.

    Every lookup failure (missing subscription, missing ``installedCSV``,
    missing CSV, malformed status) is "not yet"; all of them are normal while
    OLM is still rolling the operator out.
    """

    def _check() -> bool:
        try:
            sub = client.get_resource(SUBSCRIPTION, subscription, namespace)
        except TransientObservationError as err:
            logger.debug("subscription %s/%s not readable: %s", namespace, subscription, err)
            return False
        csv_name = sub.lookup("status", "installedCSV", expect=str)
        if not csv_name.found or not csv_name.value:
            return False

        try:
            csv = client.get_resource(CLUSTER_SERVICE_VERSION, csv_name.value, namespace)
        except TransientObservationError as err:
            logger.debug("csv %s/%s not readable: %s", namespace, csv_name.value, err)
            return False
        phase = csv.lookup("status", "phase", expect=str)
        return phase.found and phase.value == CSV_PHASE_SUCCEEDED

    return _check


def _conditions_match(conditions: Sequence[StructuredDocument], expected: Mapping[str, str],
                      prefixes: Sequence[str]) -> bool:
    observed: dict[str, str | None] = {}
    for cond in conditions:
        cond_type = cond.lookup("type", expect=str).or_default()
        if cond_type:
            observed[cond_type] = cond.lookup("status", expect=str).or_default()

    if prefixes:
        required = {f"{prefix}{suffix}": status for prefix in prefixes for suffix, status in expected.items()}
        return all(observed.get(cond_type) == status for cond_type, status in required.items())

    matched = False
    for cond_type, status in observed.items():
        for suffix, want in expected.items():
            if cond_type.endswith(suffix):
                if status != want:
                    return False
                matched = True
    return matched


def operator_conditions(
    client: ClusterClient,
    kind: ResourceKind,
    name: str,
    expected: Mapping[str, str],
    *,
    namespace: str | None = None,
    prefixes: Sequence[str] = (),
) -> Condition:
    """Condition over the ``status.conditions`` of an operator resource.

    With *prefixes*, every ``<prefix><type>`` must be present with the
    expected status. Without, every condition whose type ends in one of the
    expected types must match, and at least one must exist.

    Args:
        client: Cluster client used to read the resource.
        kind: Resource kind (cluster-scoped or namespaced).
        name: Resource name.
        expected: Mapping of condition type suffix to expected status string.
        namespace: Namespace for namespaced kinds.
        prefixes: Controller name prefixes to require.
    """

    def _check() -> bool:
        doc = client.get_resource(kind, name, namespace)
        if doc.lookup("metadata", "deletionTimestamp").found:
            return False
        return _conditions_match(doc.items("status", "conditions"), expected, prefixes)

    return _check


# ============================================================================
# Routes
# ============================================================================

def resolve_route_host(client: ClusterClient, namespace: str, name: str) -> str:
    """Return ``spec.host`` of an OpenShift route.

    Raises:
        ResourceLookupError: If the route has no host.
        TransientObservationError: If the route cannot be read.
    """
    route = client.get_resource(ROUTE, name, namespace)
    host = route.lookup("spec", "host", expect=str)
    if not host.found or not host.value:
        raise ResourceLookupError(f"route {namespace}/{name} has no spec.host")
    return host.value

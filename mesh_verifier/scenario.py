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

"""End-to-end mesh scenario: operator health, mesh rollout, in-mesh and ingress traffic."""

from __future__ import annotations

import threading
from collections.abc import Callable
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

import requests
from requests.structures import CaseInsensitiveDict
from rich.panel import Panel

from mesh_verifier import console, logger
from mesh_verifier.applier import ManifestApplier
from mesh_verifier.clock import Clock
from mesh_verifier.cluster import CERT_MANAGER_OPERATOR, ClusterClient, ExecTarget
from mesh_verifier.config import ScenarioConfig, VerifySettings
from mesh_verifier.constants import (
    HTTPBIN_PATH,
    HTTPBIN_PORT,
    INGRESS_PROBE_PATH,
    OPERATOR_CONDITIONS_HEALTHY,
    REL_HTTPBIN_GATEWAY,
    REL_HTTPBIN_MANIFESTS,
    REL_HTTPBIN_VIRTUAL_SERVICE,
    REL_ISTIO_ISSUER,
    REL_ISTIO_SERVICE_ROLE,
    REL_ISTIO_SMCP,
    REL_ISTIO_SUBSCRIPTION,
    REL_SELF_SIGNED_CERTIFICATE,
    REL_SELF_SIGNED_ISSUER,
    REL_SLEEP_MANIFESTS,
)
from mesh_verifier.errors import ScenarioError, VerificationError
from mesh_verifier.executor import ExecRequest, ExecResult, RemoteCommandExecutor
from mesh_verifier.observers import (
    first_pod_name,
    operator_conditions,
    operator_installed,
    pod_readiness,
    resolve_route_host,
)
from mesh_verifier.poller import Condition, PollResult, poll_until
from mesh_verifier.reachability import http_status_condition

T = TypeVar("T")


@dataclass(frozen=True)
class ScenarioReport:
    """What the scenario observed once every gate passed."""

    in_mesh_status: int
    in_mesh_headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    exec_attempts: int = 1
    ingress_url: str = ""


class MeshScenario:
    """Drive the verification engine through the istio-csr end-to-end flow.

    Every gating call blocks until satisfied; the first failure aborts the
    scenario with a ScenarioError naming the step. Manifests applied along
    the way are deleted again when the scenario ends.
    """

    def __init__(
        self,
        config: ScenarioConfig,
        client: ClusterClient,
        applier: ManifestApplier,
        settings: VerifySettings,
        *,
        clock: Clock | None = None,
        cancel: threading.Event | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.applier = applier
        self.settings = settings
        self._clock = clock
        self._cancel = cancel
        self._session = session
        self.executor = RemoteCommandExecutor(client, clock=clock, cancel=cancel)

    def run(self) -> ScenarioReport:
        cfg = self.config
        console.print(Panel.fit("Verifying service mesh", style="bold blue"))

        with ExitStack() as cleanup:
            self._gate("cert-manager operator healthy", operator_conditions(
                self.client, CERT_MANAGER_OPERATOR, cfg.cert_manager_operator,
                OPERATOR_CONDITIONS_HEALTHY, prefixes=cfg.cert_manager_controllers,
            ))

            self._step("apply mesh operator subscription", self.applier.create_from_file,
                       self._manifest(REL_ISTIO_SUBSCRIPTION), cfg.operator_namespace)
            self._gate("mesh operator installed",
                       operator_installed(self.client, cfg.operator_namespace, cfg.mesh_subscription))

            self._apply(cleanup, REL_SELF_SIGNED_ISSUER, "")
            for rel in (REL_SELF_SIGNED_CERTIFICATE, REL_ISTIO_ISSUER, REL_ISTIO_SMCP, REL_ISTIO_SERVICE_ROLE):
                self._apply(cleanup, rel, cfg.mesh_namespace)

            for selector in cfg.control_plane_selectors:
                self._gate(f"pods {selector} ready in {cfg.mesh_namespace}",
                           pod_readiness(self.client, cfg.mesh_namespace, selector))

            for rel in (*REL_HTTPBIN_MANIFESTS, *REL_SLEEP_MANIFESTS):
                self._apply(cleanup, rel, cfg.test_namespace)
            for selector in (cfg.client_selector, cfg.server_selector):
                self._gate(f"pods {selector} ready in {cfg.test_namespace}",
                           pod_readiness(self.client, cfg.test_namespace, selector))

            traffic = self._step("in-mesh traffic", self._check_in_mesh_traffic)

            self._apply(cleanup, REL_HTTPBIN_GATEWAY, cfg.test_namespace)
            self._apply(cleanup, REL_HTTPBIN_VIRTUAL_SERVICE, cfg.test_namespace)
            host = self._step("resolve ingress host", resolve_route_host,
                              self.client, cfg.mesh_namespace, cfg.ingress_route)
            url = f"http://{host}{INGRESS_PROBE_PATH}"
            self._gate(f"ingress {url} returns {cfg.expected_status}", http_status_condition(
                url, cfg.expected_status, timeout=self.settings.http_timeout, session=self._session,
            ))

        console.print("[green]\u2705 Service mesh verified[/green]")
        return ScenarioReport(
            in_mesh_status=traffic.status_code,
            in_mesh_headers=traffic.headers,
            exec_attempts=traffic.attempts,
            ingress_url=url,
        )

    def _check_in_mesh_traffic(self) -> ExecResult:
        cfg = self.config
        pod = first_pod_name(self.client, cfg.test_namespace, cfg.client_selector)
        url = f"http://{cfg.server_service}.{cfg.test_namespace}:{HTTPBIN_PORT}{HTTPBIN_PATH}"
        result = self.executor.exec(ExecRequest(
            target=ExecTarget(pod, cfg.test_namespace, cfg.client_container),
            command=("curl", "-sS", "-D", "-", "-o", "/dev/null", url),
            max_attempts=self.settings.exec_max_attempts,
            attempt_backoff=self.settings.exec_backoff,
            stream_timeout=self.settings.exec_timeout,
            decode_response=True,
        ))
        if result.status_code != cfg.expected_status:
            raise VerificationError(
                f"{url} returned {result.status_code}, want {cfg.expected_status}; "
                f"stderr: {result.stderr_text.strip()}"
            )
        logger.info("in-mesh request to %s returned %d (server=%s)",
                    url, result.status_code, result.headers.get("server", "?"))
        return result

    def _manifest(self, rel: str) -> Path:
        return self.config.manifest_dir / rel

    def _apply(self, cleanup: ExitStack, rel: str, namespace: str) -> None:
        self._step(f"apply {rel}", cleanup.enter_context, self.applier.applied(self._manifest(rel), namespace))

    def _gate(self, description: str, condition: Condition) -> PollResult:
        return self._step(description, poll_until, self.settings.poll_spec(), condition,
                          clock=self._clock, cancel=self._cancel, description=description)

    @staticmethod
    def _step(name: str, fn: Callable[..., T], *args, **kwargs) -> T:
        console.print(f"[yellow]\u2139\ufe0f  {name}...[/yellow]")
        try:
            value = fn(*args, **kwargs)
        except VerificationError as err:
            console.print(f"[red]\u274c {name}: {err}[/red]")
            raise ScenarioError(name, err) from err
        console.print(f"[green]  \u2713 {name}[/green]")
        return value

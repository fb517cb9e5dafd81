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

"""Settings loaded from MESH_VERIFY_* env vars and per-scenario configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from mesh_verifier import console
from mesh_verifier.constants import (
    CERT_MANAGER_CONTROLLERS,
    CERT_MANAGER_OPERATOR_NAME,
    DEFAULT_EXEC_BACKOFF_SECONDS,
    DEFAULT_EXEC_CONTAINER,
    DEFAULT_EXEC_MAX_ATTEMPTS,
    DEFAULT_EXEC_TIMEOUT_SECONDS,
    DEFAULT_EXPECTED_STATUS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_MESH_SUBSCRIPTION,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_TIMEOUT_SECONDS,
    HTTPBIN_SERVICE,
    INGRESS_GATEWAY_ROUTE,
    NS_ISTIO_SYSTEM,
    NS_OPENSHIFT_OPERATORS,
    SELECTOR_CONTROL_PLANE,
    SELECTOR_EGRESS_GATEWAY,
    SELECTOR_HTTPBIN,
    SELECTOR_INGRESS_GATEWAY,
    SELECTOR_SLEEP,
)
from mesh_verifier.poller import PollSpec


# ============================================================================
# Settings
# ============================================================================

class VerifySettings(BaseSettings):
    """Timing and connection settings, auto-loaded from MESH_VERIFY_* env vars.

    Attributes:
        kubeconfig: Path to a kubeconfig file, or None for the default lookup.
        context: kubeconfig context name, or None for the current context.
        poll_interval: Seconds between poll ticks.
        poll_timeout: Seconds before a poll gives up; must exceed poll_interval.
        poll_immediate: Evaluate the first tick without waiting.
        exec_max_attempts: Total exec attempts per call.
        exec_backoff: Seconds between failed exec attempts.
        exec_timeout: Seconds each exec attempt may run.
        http_timeout: Seconds for each HTTP probe request.
    """

    model_config = SettingsConfigDict(env_prefix="MESH_VERIFY_", extra="ignore")

    kubeconfig: str | None = None
    context: str | None = None
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0)
    poll_timeout: float = Field(default=DEFAULT_POLL_TIMEOUT_SECONDS, gt=0)
    poll_immediate: bool = True
    exec_max_attempts: int = Field(default=DEFAULT_EXEC_MAX_ATTEMPTS, ge=1, le=20)
    exec_backoff: float = Field(default=DEFAULT_EXEC_BACKOFF_SECONDS, ge=0)
    exec_timeout: float = Field(default=DEFAULT_EXEC_TIMEOUT_SECONDS, gt=0)
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT_SECONDS, gt=0)

    @model_validator(mode="after")
    def _timeout_exceeds_interval(self) -> VerifySettings:
        if self.poll_timeout <= self.poll_interval:
            raise ValueError(
                f"poll_timeout ({self.poll_timeout}) must be greater than poll_interval ({self.poll_interval})"
            )
        return self

    def poll_spec(self) -> PollSpec:
        return PollSpec(interval=self.poll_interval, timeout=self.poll_timeout, immediate=self.poll_immediate)


# ============================================================================
# Scenario configuration
# ============================================================================

@dataclass(frozen=True)
class ScenarioConfig:
    """Names, namespaces and selectors used by the mesh scenario.

    Attributes:
        manifest_dir: Directory holding the scenario's manifest files.
        test_namespace: Pre-existing namespace for the sample workloads.
        mesh_namespace: Namespace of the mesh control plane.
        operator_namespace: Namespace the mesh operator subscription lives in.
        mesh_subscription: Name of the mesh operator subscription.
        cert_manager_operator: Name of the cluster-scoped cert-manager operator resource.
        cert_manager_controllers: Controller prefixes whose conditions must be healthy.
        control_plane_selectors: Selectors of pods that make up the control plane.
        client_selector: Selector of the pod that sends in-mesh traffic.
        server_selector: Selector of the pod that receives in-mesh traffic.
        server_service: Service name the client pod calls inside the mesh.
        client_container: Container to exec into on the client pod.
        ingress_route: Name of the route exposing the ingress gateway.
        expected_status: HTTP status code the probes must return.
    """

    manifest_dir: Path
    test_namespace: str
    mesh_namespace: str = NS_ISTIO_SYSTEM
    operator_namespace: str = NS_OPENSHIFT_OPERATORS
    mesh_subscription: str = DEFAULT_MESH_SUBSCRIPTION
    cert_manager_operator: str = CERT_MANAGER_OPERATOR_NAME
    cert_manager_controllers: tuple[str, ...] = CERT_MANAGER_CONTROLLERS
    control_plane_selectors: tuple[str, ...] = (
        SELECTOR_INGRESS_GATEWAY,
        SELECTOR_EGRESS_GATEWAY,
        SELECTOR_CONTROL_PLANE,
    )
    client_selector: str = SELECTOR_SLEEP
    server_selector: str = SELECTOR_HTTPBIN
    server_service: str = HTTPBIN_SERVICE
    client_container: str = DEFAULT_EXEC_CONTAINER
    ingress_route: str = INGRESS_GATEWAY_ROUTE
    expected_status: int = DEFAULT_EXPECTED_STATUS


def display_config(settings: VerifySettings, scenario: ScenarioConfig | None = None) -> None:
    """Print the effective configuration."""
    console.print(Panel.fit("Configuration", style="bold blue"))
    console.print(f"  Poll:  every {settings.poll_interval:g}s, timeout {settings.poll_timeout:g}s")
    console.print(
        f"  Exec:  {settings.exec_max_attempts} attempts, backoff {settings.exec_backoff:g}s, "
        f"timeout {settings.exec_timeout:g}s"
    )
    console.print(f"  HTTP:  timeout {settings.http_timeout:g}s")
    if scenario is not None:
        console.print(f"  Manifests:       {scenario.manifest_dir}")
        console.print(f"  Test namespace:  {scenario.test_namespace}")
        console.print(f"  Mesh namespace:  {scenario.mesh_namespace}")


def load_settings(**overrides) -> VerifySettings:
    """Load VerifySettings from the environment, applying non-None *overrides*.

    Raises:
        pydantic.ValidationError: If the resulting settings are inconsistent.
    """
    return VerifySettings(**{key: value for key, value in overrides.items() if value is not None})

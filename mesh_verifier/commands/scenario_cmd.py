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

"""Scenario subcommands (run)."""

from __future__ import annotations

from pathlib import Path

import typer

from mesh_verifier import console
from mesh_verifier.applier import ManifestApplier
from mesh_verifier.commands import cluster_client
from mesh_verifier.config import ScenarioConfig, display_config, load_settings
from mesh_verifier.constants import DEFAULT_MESH_SUBSCRIPTION, NS_ISTIO_SYSTEM, NS_OPENSHIFT_OPERATORS
from mesh_verifier.scenario import MeshScenario

app = typer.Typer(help="End-to-end verification scenarios.")


@app.command("run")
def run(
    manifests: Path = typer.Option(..., "--manifests", exists=True, file_okay=False,
                                   help="Directory containing the scenario manifests"),
    namespace: str = typer.Option(..., "--namespace", help="Existing namespace for the sample workloads"),
    mesh_namespace: str = typer.Option(NS_ISTIO_SYSTEM, "--mesh-namespace", help="Control plane namespace"),
    operator_namespace: str = typer.Option(
        NS_OPENSHIFT_OPERATORS, "--operator-namespace", help="Namespace of the mesh operator subscription"),
    subscription: str = typer.Option(
        DEFAULT_MESH_SUBSCRIPTION, "--subscription", help="Mesh operator subscription name"),
) -> None:
    """Verify operator health, mesh rollout, in-mesh traffic and ingress traffic."""
    settings = load_settings()
    scenario_cfg = ScenarioConfig(
        manifest_dir=manifests,
        test_namespace=namespace,
        mesh_namespace=mesh_namespace,
        operator_namespace=operator_namespace,
        mesh_subscription=subscription,
    )
    display_config(settings, scenario_cfg)

    client = cluster_client(settings)
    scenario = MeshScenario(scenario_cfg, client, ManifestApplier(client.api_client), settings)
    report = scenario.run()

    console.print(f"  In-mesh status:  {report.in_mesh_status} ({report.exec_attempts} attempt(s))")
    console.print(f"  Ingress:         {report.ingress_url}")

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

"""Wait subcommands (pods, operator)."""

from __future__ import annotations

import typer
from rich.panel import Panel

from mesh_verifier import console
from mesh_verifier.commands import cluster_client
from mesh_verifier.config import load_settings
from mesh_verifier.observers import operator_installed, pod_readiness
from mesh_verifier.poller import poll_until

app = typer.Typer(help="Block until cluster resources reach their desired state.")


@app.command("pods")
def pods(
    namespace: str = typer.Argument(..., help="Namespace of the pods"),
    selector: str = typer.Argument(..., help="Label selector, e.g. app=istiod"),
    timeout: float | None = typer.Option(None, "--timeout", help="Seconds before giving up"),
    interval: float | None = typer.Option(None, "--interval", help="Seconds between checks"),
) -> None:
    """Wait until every pod matching SELECTOR is Running with all containers ready."""
    settings = load_settings(poll_timeout=timeout, poll_interval=interval)
    client = cluster_client(settings)
    description = f"pods {selector} in {namespace}"
    console.print(Panel.fit(f"Waiting for {description}", style="bold blue"))
    result = poll_until(settings.poll_spec(), pod_readiness(client, namespace, selector),
                        description=description)
    console.print(f"[green]\u2705 {description} ready after {result.ticks} checks ({result.elapsed:.1f}s)[/green]")


@app.command("operator")
def operator(
    namespace: str = typer.Argument(..., help="Namespace of the subscription"),
    subscription: str = typer.Argument(..., help="OLM subscription name"),
    timeout: float | None = typer.Option(None, "--timeout", help="Seconds before giving up"),
    interval: float | None = typer.Option(None, "--interval", help="Seconds between checks"),
) -> None:
    """Wait until the subscription's installed CSV reaches the Succeeded phase."""
    settings = load_settings(poll_timeout=timeout, poll_interval=interval)
    client = cluster_client(settings)
    description = f"subscription {namespace}/{subscription}"
    console.print(Panel.fit(f"Waiting for {description}", style="bold blue"))
    result = poll_until(settings.poll_spec(), operator_installed(client, namespace, subscription),
                        description=description)
    console.print(f"[green]\u2705 {description} installed after {result.ticks} checks ({result.elapsed:.1f}s)[/green]")

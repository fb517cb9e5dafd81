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

"""
cli.py - Command line front end for mesh verification.

Subcommands:
    wait       Block until pods are ready or an operator is installed
    traffic    Run a command in a pod, or probe an HTTP endpoint
    scenario   Run the end-to-end mesh scenario

Examples:
    # Wait for the mesh control plane
    mesh-verify wait pods istio-system app=istiod

    # Wait for an OLM operator install
    mesh-verify wait operator openshift-operators servicemeshoperator

    # Call httpbin from the sleep pod and decode the response preamble
    mesh-verify traffic exec sleep-7d9f test --decode -- curl -sS -D - -o /dev/null http://httpbin.test:8000/ip

    # Poll an ingress until it answers 200
    mesh-verify traffic probe http://gateway.example.com/headers --expect 200 --poll

Environment Variables:
    MESH_VERIFY_POLL_INTERVAL, MESH_VERIFY_POLL_TIMEOUT, MESH_VERIFY_EXEC_MAX_ATTEMPTS,
    MESH_VERIFY_EXEC_BACKOFF, MESH_VERIFY_EXEC_TIMEOUT, MESH_VERIFY_HTTP_TIMEOUT,
    MESH_VERIFY_KUBECONFIG, MESH_VERIFY_CONTEXT
"""

from __future__ import annotations

import logging
import sys

import typer

from mesh_verifier import console
from mesh_verifier.commands import scenario_cmd, traffic_cmd, wait_cmd

app = typer.Typer(
    help="Verify operator, service mesh and workload state on a live cluster.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.add_typer(wait_cmd.app, name="wait")
app.add_typer(traffic_cmd.app, name="traffic")
app.add_typer(scenario_cmd.app, name="scenario")


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]\u274c {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()

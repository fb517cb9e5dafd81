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

"""Traffic subcommands (exec, probe)."""

from __future__ import annotations

import typer

from mesh_verifier import console
from mesh_verifier.cluster import ExecTarget
from mesh_verifier.commands import cluster_client
from mesh_verifier.config import load_settings
from mesh_verifier.constants import DEFAULT_EXEC_CONTAINER
from mesh_verifier.errors import VerificationError
from mesh_verifier.executor import ExecRequest, RemoteCommandExecutor
from mesh_verifier.poller import poll_until
from mesh_verifier.reachability import http_head, http_status_condition

app = typer.Typer(help="Exercise data-plane traffic.")


@app.command("exec")
def exec_in_pod(
    pod: str = typer.Argument(..., help="Pod to exec into"),
    namespace: str = typer.Argument(..., help="Namespace of the pod"),
    command: list[str] = typer.Argument(..., help="Command to run (put it after --)"),
    container: str = typer.Option(DEFAULT_EXEC_CONTAINER, "--container", "-c", help="Container name"),
    attempts: int | None = typer.Option(None, "--attempts", help="Total attempts"),
    backoff: float | None = typer.Option(None, "--backoff", help="Seconds between attempts"),
    timeout: float | None = typer.Option(None, "--timeout", help="Seconds per attempt"),
    decode: bool = typer.Option(False, "--decode", help="Parse stdout as an HTTP response preamble"),
) -> None:
    """Run COMMAND in a container, retrying transient stream failures."""
    settings = load_settings(exec_max_attempts=attempts, exec_backoff=backoff, exec_timeout=timeout)
    executor = RemoteCommandExecutor(cluster_client(settings))
    result = executor.exec(ExecRequest(
        target=ExecTarget(pod, namespace, container),
        command=tuple(command),
        max_attempts=settings.exec_max_attempts,
        attempt_backoff=settings.exec_backoff,
        stream_timeout=settings.exec_timeout,
        decode_response=decode,
    ))
    typer.echo(result.stdout_text, nl=False)
    if result.stderr:
        console.print(f"[yellow]{result.stderr_text.rstrip()}[/yellow]")
    if decode:
        console.print(f"[green]\u2705 HTTP {result.status_code} after {result.attempts} attempt(s)[/green]")
        for name, value in result.headers.items():
            console.print(f"  {name}: {value}")


@app.command("probe")
def probe(
    url: str = typer.Argument(..., help="URL to send a HEAD request to"),
    expect: int | None = typer.Option(None, "--expect", help="Required status code"),
    poll: bool = typer.Option(False, "--poll", help="Retry until --expect is returned or the poll times out"),
    timeout: float | None = typer.Option(None, "--timeout", help="Poll timeout in seconds"),
) -> None:
    """Send an HTTP HEAD request and report the status code."""
    settings = load_settings(poll_timeout=timeout)
    if poll:
        if expect is None:
            raise typer.BadParameter("--poll requires --expect")
        result = poll_until(settings.poll_spec(),
                            http_status_condition(url, expect, timeout=settings.http_timeout),
                            description=f"HEAD {url}")
        console.print(f"[green]\u2705 {url} returned {expect} after {result.ticks} checks[/green]")
        return

    status = http_head(url, timeout=settings.http_timeout)
    typer.echo(status)
    if expect is not None and status != expect:
        raise VerificationError(f"{url} returned {status}, want {expect}")

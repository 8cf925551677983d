#!/usr/bin/env python3
# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
datastore-services CLI - Main entry point.

Usage:
    datastore-services [OPTIONS] COMMAND DATASTORE-TYPE [ARGS]...

Manages single-container datastore services (Redis) for a
platform-as-a-service host: create, start, stop, expose, destroy.
"""

import logging
import os
from typing import List, Optional

import typer
from rich.logging import RichHandler

from . import __version__
from ..operations import OperationError
from ..service_options import CreateOptions, split_networks
from .async_typer import AsyncTyper
from .context import get_manager
from .decorators import require_docker
from .output import out


# Create the main Typer app
app = AsyncTyper(
    name="datastore-services",
    help="Lifecycle management for containerized datastore services",
    add_completion=False,
    no_args_is_help=True,
)

_TRACE = False


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        out.info(f"datastore-services version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    output_format: str = typer.Option(
        "text",
        "--format",
        help="Output format for data: text or json.",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress status output."),
    trace: bool = typer.Option(False, "--trace", help="Enable debug logging."),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    Datastore services - create and manage datastore containers.

    Every command takes the datastore type (e.g. redis) as its first argument.
    """
    global _TRACE

    if output_format not in ("text", "json"):
        out.error(f"Unknown format: {output_format}")
        out.hint("Valid formats: text, json")
        raise typer.Exit(1)

    _TRACE = trace
    out.configure(quiet=quiet, json_mode=output_format == "json")
    logging.basicConfig(
        level=logging.DEBUG if trace else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=out.err_console, show_path=False)],
    )
    if not trace:
        # Operation progress is already printed through out
        logging.getLogger("datastore_services.operations").setLevel(logging.ERROR)


# -----------------------------------------------------------------------------
# Lifecycle
# -----------------------------------------------------------------------------


@app.command()
@require_docker
async def create(
    datastore_type: str = typer.Argument(..., help="Type of datastore to create"),
    name: str = typer.Argument(..., help="Name of the service to create"),
    config_options: str = typer.Option(
        "", "--config-options", help="Extra arguments passed to the datastore process",
    ),
    custom_env: str = typer.Option(
        "", "--custom-env", help="Semicolon-delimited environment variables for the service",
    ),
    image: str = typer.Option("", "--image", "-i", help="Image name to start the service with"),
    image_version: str = typer.Option(
        "", "--image-version", "-I", help="Image version to start the service with",
    ),
    memory: Optional[int] = typer.Option(
        None, "--memory", "-m", help="Container memory limit in megabytes (default: unlimited)",
    ),
    initial_network: str = typer.Option(
        "", "--initial-network", help="Network to attach the container to when it is created",
    ),
    post_create_network: List[str] = typer.Option(
        [], "--post-create-network", help="Networks to attach after creation (comma-separated)",
    ),
    post_start_network: List[str] = typer.Option(
        [], "--post-start-network", help="Networks to attach after start (comma-separated)",
    ),
    password: str = typer.Option("", "--password", "-p", help="Override the service password"),
    shm_size: str = typer.Option("", "--shm-size", help="Shared memory size for the container"),
) -> None:
    """Create a new datastore service and wait for it to accept connections."""
    manager = get_manager()
    options = CreateOptions(
        config_options=config_options,
        custom_env=custom_env,
        image=image,
        image_version=image_version,
        memory=memory,
        shm_size=shm_size,
        initial_network=initial_network,
        post_create_networks=split_networks(post_create_network),
        post_start_networks=split_networks(post_start_network),
        password=password,
    )

    await manager.create_service(datastore_type=datastore_type, name=name, options=options)

    try:
        await manager.wait_for_ready(datastore_type=datastore_type, name=name)
    except OperationError as e:
        out.error(str(e))
        out.header(f"Start of {name} container output")
        await manager.service_logs(datastore_type=datastore_type, name=name, num=0)
        out.header(f"End of {name} container output")
        raise typer.Exit(1)

    title = manager.service_ref(datastore_type, name).datastore.title
    info = await manager.service_info(datastore_type, name)
    out.report(f"{title} container created: {name}", info)


@app.command()
@require_docker
async def destroy(
    datastore_type: str = typer.Argument(..., help="Type of datastore to destroy"),
    name: str = typer.Argument(..., help="Name of the service to destroy"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip the confirmation prompt"),
) -> None:
    """Destroy a datastore service, its container and its data."""
    manager = get_manager()
    if not manager.service_remains(datastore_type, name):
        out.error(f"service {name} does not exist")
        raise typer.Exit(1)
    if manager.links.linked_apps(manager.service_ref(datastore_type, name)):
        out.error("cannot delete linked service")
        raise typer.Exit(1)

    if not force:
        out.warning("WARNING: Potentially Destructive Action")
        out.warning(f"This command will destroy {name} {datastore_type} service.")
        answer = typer.prompt(f'To proceed, type "{name}"', default="", show_default=False)
        if answer != name:
            out.error(f"Confirmation did not match {name}. Aborted.")
            raise typer.Exit(1)

    out.info(f"Destroying {datastore_type} service {name}")
    await manager.destroy_service(datastore_type=datastore_type, name=name)


@app.command()
@require_docker
async def start(
    datastore_type: str = typer.Argument(..., help="Type of datastore"),
    name: str = typer.Argument(..., help="Name of the service to start"),
) -> None:
    """Start a service, recreating its container if needed."""
    await get_manager().start_service(datastore_type=datastore_type, name=name)


@app.command()
@require_docker
async def stop(
    datastore_type: str = typer.Argument(..., help="Type of datastore"),
    name: str = typer.Argument(..., help="Name of the service to stop"),
) -> None:
    """Stop a service and remove its container."""
    await get_manager().stop_service(datastore_type=datastore_type, name=name)


@app.command()
@require_docker
async def enter(
    datastore_type: str = typer.Argument(..., help="Type of datastore"),
    name: str = typer.Argument(..., help="Name of the service to enter"),
    command: Optional[List[str]] = typer.Argument(
        None, help="Command to run instead of an interactive shell",
    ),
) -> None:
    """Open a shell (or run a command) inside a running service container."""
    await get_manager().enter_service(
        datastore_type=datastore_type, name=name, command=command or None,
    )


@app.command()
@require_docker
async def logs(
    datastore_type: str = typer.Argument(..., help="Type of datastore"),
    name: str = typer.Argument(..., help="Name of the service"),
    num: int = typer.Option(100, "--num", "-n", help="Number of lines to display (0 for all)"),
    tail: bool = typer.Option(False, "--tail", "-t", help="Follow the log output"),
) -> None:
    """Show the logs of a service container."""
    await get_manager().service_logs(
        datastore_type=datastore_type, name=name, num=num, tail=tail,
    )


# -----------------------------------------------------------------------------
# Exposure
# -----------------------------------------------------------------------------


@app.command()
@require_docker
async def expose(
    datastore_type: str = typer.Argument(..., help="Type of datastore"),
    name: str = typer.Argument(..., help="Name of the service to expose"),
    ports: Optional[List[str]] = typer.Argument(
        None, help="Host ports, one per datastore port (random if omitted)",
    ),
) -> None:
    """Expose a service on host ports through an ambassador container."""
    await get_manager().expose_service(datastore_type=datastore_type, name=name, ports=ports)


@app.command()
@require_docker
async def unexpose(
    datastore_type: str = typer.Argument(..., help="Type of datastore"),
    name: str = typer.Argument(..., help="Name of the service to unexpose"),
) -> None:
    """Remove a service's host port exposure."""
    await get_manager().unexpose_service(datastore_type=datastore_type, name=name)


# -----------------------------------------------------------------------------
# Queries
# -----------------------------------------------------------------------------


@app.command()
@require_docker
async def info(
    datastore_type: str = typer.Argument(..., help="Type of datastore"),
    name: str = typer.Argument(..., help="Name of the service"),
    field: Optional[str] = typer.Option(
        None, "--field", help="Print only this field (e.g. dsn, status, exposed-ports)",
    ),
) -> None:
    """Show information about a service."""
    manager = get_manager()
    details = await manager.service_info(datastore_type, name)

    if field is not None:
        if field not in details:
            out.error(f"Unknown field: {field}")
            out.hint(f"Valid fields: {', '.join(details)}")
            raise typer.Exit(1)
        out.console.print(details[field], highlight=False, markup=False)
        return

    out.report(f"{name} {datastore_type} service information", details)


@app.command(name="list")
@require_docker
async def list_services(
    datastore_type: str = typer.Argument(..., help="Type of datastore to list"),
) -> None:
    """List the services of a datastore type."""
    services = await get_manager().list_services(datastore_type, trace=_TRACE)
    if not services and not out.json_mode:
        out.dim(f"There are no {datastore_type} services")
        return
    out.names(f"{datastore_type} services", services)


# -----------------------------------------------------------------------------
# Links
# -----------------------------------------------------------------------------


@app.command()
@require_docker
async def linked(
    datastore_type: str = typer.Argument(..., help="Type of datastore"),
    name: str = typer.Argument(..., help="Name of the service"),
    app_name: str = typer.Argument(..., help="Name of the app"),
) -> None:
    """Check whether a service is linked to an app (exit 1 if not)."""
    if get_manager().is_linked(datastore_type, name, app_name):
        out.info(f"Service {name} is linked to app {app_name}")
        return
    out.error(f"Service {name} is not linked to app {app_name}")
    raise typer.Exit(1)


@app.command(name="app-links")
@require_docker
async def app_links(
    datastore_type: str = typer.Argument(..., help="Type of datastore"),
    app_name: str = typer.Argument(..., help="Name of the app"),
) -> None:
    """List the services an app is linked to."""
    services = await get_manager().linked_services(datastore_type, app_name, trace=_TRACE)
    out.names(f"{app_name} {datastore_type} links", services)


@app.command()
@require_docker
async def link(
    datastore_type: str = typer.Argument(..., help="Type of datastore"),
    name: str = typer.Argument(..., help="Name of the service"),
    app_name: str = typer.Argument(..., help="Name of the app"),
) -> None:
    """Record an app as linked to a service."""
    if await get_manager().link_app(datastore_type=datastore_type, name=name, app=app_name):
        out.success(f"Linked {app_name} to {name}")


@app.command()
@require_docker
async def unlink(
    datastore_type: str = typer.Argument(..., help="Type of datastore"),
    name: str = typer.Argument(..., help="Name of the service"),
    app_name: str = typer.Argument(..., help="Name of the app"),
) -> None:
    """Forget an app's link to a service."""
    if await get_manager().unlink_app(datastore_type=datastore_type, name=name, app=app_name):
        out.success(f"Unlinked {app_name} from {name}")


def cli() -> None:
    """CLI entry point for setuptools."""
    prog_name = os.environ.get("CLI_APP_NAME", "datastore-services")
    app(prog_name=prog_name)


if __name__ == "__main__":
    cli()

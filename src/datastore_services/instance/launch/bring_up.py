# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Launch pipeline steps run once the container exists."""

from __future__ import annotations

from ...docker_client import DockerError
from ...operations import RuntimeCommandError
from ..contexts import LaunchContext
from . import launch_pipeline


@launch_pipeline.step(order=400)
async def attach_post_create_networks(ctx: LaunchContext) -> None:
    networks = ctx.networks.post_create_networks(ctx.ref)
    if networks:
        await ctx.networks.attach(ctx.container_id, networks, ctx.ref.dns_hostname, ctx.progress)


@launch_pipeline.step(order=500)
async def start_container(ctx: LaunchContext) -> None:
    ctx.info("Starting container")
    try:
        await ctx.docker.start_container(ctx.container_id)
    except DockerError as e:
        raise RuntimeCommandError(
            f"unable to start {ctx.ref.name} container: {e}", e.stderr, e.code,
        ) from e


@launch_pipeline.step(order=600)
async def reconcile_exposure(ctx: LaunchContext) -> None:
    """Bring the ambassador up if the service was exposed before."""
    await ctx.exposure.reconcile(ctx.ref, ctx.progress)


@launch_pipeline.step(order=700)
async def attach_post_start_networks(ctx: LaunchContext) -> None:
    networks = ctx.networks.post_start_networks(ctx.ref)
    if networks:
        await ctx.networks.attach(ctx.container_id, networks, ctx.ref.dns_hostname, ctx.progress)

# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Creation pipeline steps: launch the container and fire the final hook."""

from __future__ import annotations

from ...hooks import HookPhase
from ..contexts import CreateContext, LaunchContext
from ..launch import launch_pipeline
from . import create_pipeline


@create_pipeline.step(order=600)
async def launch_container(ctx: CreateContext) -> None:
    await launch_pipeline.run(LaunchContext(
        ref=ctx.ref,
        docker=ctx.docker,
        store=ctx.store,
        progress=ctx.progress,
        networks=ctx.networks,
        exposure=ctx.exposure,
        tagged_image=ctx.tagged_image,
    ))


@create_pipeline.step(order=700)
async def post_create_complete_hook(ctx: CreateContext) -> None:
    await ctx.hooks.service_action(
        HookPhase.POST_CREATE_COMPLETE, ctx.ref.prefix, ctx.ref.name,
    )

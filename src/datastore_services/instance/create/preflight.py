# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Creation pipeline steps: validate, resolve the image, run the pre-create hook."""

from __future__ import annotations

from ...hooks import HookPhase
from ...operations import AlreadyExistsError
from ...paths import validate_service_name
from ..contexts import CreateContext
from ..images import ensure_image, resolve_image
from . import create_pipeline


@create_pipeline.step(order=-500)
async def validate_name(ctx: CreateContext) -> None:
    validate_service_name(ctx.ref.name)


@create_pipeline.step(order=-400)
async def validate_not_exists(ctx: CreateContext) -> None:
    """Check that the service root doesn't already exist."""
    if ctx.ref.exists():
        raise AlreadyExistsError(f"service {ctx.ref.name} already exists")


@create_pipeline.step(order=-300)
async def resolve_service_image(ctx: CreateContext) -> None:
    """Pick the image tag and make sure it is available locally."""
    ctx.tagged_image = resolve_image(
        ctx.store, ctx.ref, ctx.opts.image, ctx.opts.image_version,
    )
    ctx.info(f"Image: {ctx.tagged_image}")
    await ensure_image(ctx.docker, ctx.ref, ctx.tagged_image, ctx.env, ctx.progress)


@create_pipeline.step(order=-200)
async def pre_create_hook(ctx: CreateContext) -> None:
    await ctx.hooks.service_action(HookPhase.PRE_CREATE, ctx.ref.prefix, ctx.ref.name)

# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Creation pipeline steps: lay down the service root and persist its settings."""

from __future__ import annotations

from ...datastores import ProvisionRequest
from ...hooks import HookPhase
from ...paths import database_name
from ..contexts import CreateContext
from . import create_pipeline


@create_pipeline.step(order=100)
async def make_directories(ctx: CreateContext) -> None:
    """Create root, config and data directories and an empty ``LINKS``."""
    folders = ctx.ref.folders
    ctx.store.make_dirs(folders.root, folders.config, folders.data)
    ctx.store.touch(ctx.ref.files.links)


@create_pipeline.step(order=200)
async def provision_instance(ctx: CreateContext) -> None:
    """Write the datastore's own configuration files."""
    ctx.dim(f"Writing {ctx.ref.datastore.title} configuration")
    ctx.ref.datastore.create_instance(ProvisionRequest(
        service=ctx.ref.name,
        folders=ctx.ref.folders,
        files=ctx.ref.files,
        store=ctx.store,
        password=ctx.opts.password,
        env=ctx.env,
    ))


@create_pipeline.step(order=300)
async def commit_config(ctx: CreateContext) -> None:
    """Persist the options the container will be launched with."""
    opts = ctx.opts
    files = ctx.ref.files

    ctx.store.write(files.env, "\n".join(opts.custom_env.split(";")))
    ctx.store.write(files.config_options, opts.config_options)
    ctx.store.write(files.memory, str(opts.memory) if opts.memory else "")
    ctx.store.write(files.shm_size, opts.shm_size)
    ctx.store.write(files.image, opts.image)
    ctx.store.write(files.image_version, opts.image_version)

    ctx.networks.commit(
        ctx.ref,
        opts.initial_network,
        opts.post_create_networks,
        opts.post_start_networks,
    )


@create_pipeline.step(order=400)
async def write_database_name(ctx: CreateContext) -> None:
    ctx.store.write(ctx.ref.files.database_name, database_name(ctx.ref.name))


@create_pipeline.step(order=500)
async def post_create_hook(ctx: CreateContext) -> None:
    await ctx.hooks.service_action(HookPhase.POST_CREATE, ctx.ref.prefix, ctx.ref.name)

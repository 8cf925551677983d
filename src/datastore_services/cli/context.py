# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Process-wide objects shared by CLI commands."""

from __future__ import annotations

from functools import lru_cache

from ..config import Settings, load_settings
from ..datastores import default_registry
from ..docker_client import DockerClient
from ..hooks import HookRunner
from ..instance import ServiceManager
from ..properties import PropertyStore
from .output import out


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def get_docker() -> DockerClient:
    return DockerClient(get_settings().docker_bin)


@lru_cache(maxsize=1)
def get_manager() -> ServiceManager:
    """Get the service manager wired to print progress through ``out``."""
    settings = get_settings()
    return ServiceManager(
        settings=settings,
        registry=default_registry(),
        docker=get_docker(),
        store=PropertyStore(settings),
        hooks=HookRunner(settings),
        progress_sink=out.progress,
    )

# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest configuration for integration tests against a real engine.

These tests create real containers and pull images, so they only run
when ``DATASTORE_SERVICES_INTEGRATION=1`` is set and the engine answers.
"""

from __future__ import annotations

import asyncio
import os
import uuid

import pytest

from datastore_services.config import Settings
from datastore_services.datastores import default_registry
from datastore_services.docker_client import DockerClient
from datastore_services.hooks import HookRunner
from datastore_services.instance import ServiceManager
from datastore_services.properties import PropertyStore

ENABLED = os.environ.get("DATASTORE_SERVICES_INTEGRATION") == "1"
DOCKER_BIN = os.environ.get("DATASTORE_SERVICES_DOCKER_BIN", "docker")


def _engine_available() -> bool:
    if not ENABLED:
        return False
    return asyncio.run(DockerClient(DOCKER_BIN).is_available())


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if _engine_available():
        return
    skip = pytest.mark.skip(reason="set DATASTORE_SERVICES_INTEGRATION=1 with a running engine")
    for item in items:
        if "integration" in item.path.parts:
            item.add_marker(skip)


@pytest.fixture
def live_manager(tmp_path) -> ServiceManager:
    lib = tmp_path / "lib"
    settings = Settings(lib_root=lib, lib_host_root=lib, plugin_path=None, docker_bin=DOCKER_BIN)
    return ServiceManager(
        settings=settings,
        registry=default_registry(),
        docker=DockerClient(DOCKER_BIN),
        store=PropertyStore(settings),
        hooks=HookRunner(settings),
    )


@pytest.fixture
def service_name() -> str:
    return f"it-{uuid.uuid4().hex[:8]}"

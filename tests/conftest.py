# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest configuration and an in-memory container engine for unit tests."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from datastore_services.config import Settings
from datastore_services.datastores import RedisDatastore, default_registry
from datastore_services.docker_client import ContainerSpec, DockerClient, DockerError
from datastore_services.hooks import HookRunner
from datastore_services.instance import ServiceManager, ServiceRef
from datastore_services.models import ContainerInspect
from datastore_services.operations import HookError
from datastore_services.process import CommandResult
from datastore_services.properties import PropertyStore


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# ---------------------------------------------------------------------------
# Fake container engine
# ---------------------------------------------------------------------------


@dataclass
class FakeContainer:
    id: str
    name: str
    image: str
    status: str = "created"
    spec: ContainerSpec | None = None
    networks: list[str] = field(default_factory=list)
    restart: str = "always"


class FakeDockerClient(DockerClient):
    """Keeps containers and images in memory and records every mutation."""

    def __init__(self) -> None:
        super().__init__("docker")
        self.containers: dict[str, FakeContainer] = {}
        self.images: set[str] = set()
        self.pullable: set[str] = set()
        self.broken_networks: set[str] = set()
        self.wait_fails = False
        self.calls: list[tuple[str, ...]] = []
        self._ids = itertools.count(1)

    # -- helpers used by tests ----------------------------------------------

    def find(self, ref: str) -> FakeContainer | None:
        if ref in self.containers:
            return self.containers[ref]
        for container in self.containers.values():
            if container.name == ref:
                return container
        return None

    def add_container(self, name: str, image: str = "redis:latest", status: str = "running") -> FakeContainer:
        container = FakeContainer(id=f"{next(self._ids):064x}", name=name, image=image, status=status)
        self.containers[container.id] = container
        return container

    def mutations(self) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] not in ("inspect", "ps")]

    def _get(self, ref: str) -> FakeContainer:
        container = self.find(ref)
        if container is None:
            raise DockerError(f"No such container: {ref}", 1, f"No such container: {ref}")
        return container

    # -- queries --------------------------------------------------------------

    async def is_available(self) -> bool:
        return True

    async def inspect(self, ref: str) -> ContainerInspect | None:
        container = self.find(ref) if ref else None
        if container is None:
            return None
        return ContainerInspect.model_validate({
            "Id": container.id,
            "Name": f"/{container.name}",
            "State": {"Status": container.status, "Running": container.status == "running"},
            "Config": {"Image": container.image, "Labels": {}},
            "NetworkSettings": {"IPAddress": "172.17.0.2"},
            "HostConfig": {"RestartPolicy": {"Name": container.restart}},
        })

    async def container_exists(self, ref: str) -> bool:
        return bool(ref) and self.find(ref) is not None

    async def live_container_id(self, name: str, status: str | None = None) -> str:
        self.calls.append(("ps", name))
        for container in self.containers.values():
            if container.name == name and (status is None or container.status == status):
                return container.id
        return ""

    async def image_exists(self, tagged_image: str) -> bool:
        return tagged_image in self.images

    # -- mutations ------------------------------------------------------------

    async def pull_image(self, tagged_image: str) -> None:
        self.calls.append(("pull", tagged_image))
        if tagged_image not in self.pullable:
            raise DockerError("command exited non-zero", 1)
        self.images.add(tagged_image)

    def _create(self, spec: ContainerSpec, status: str) -> FakeContainer:
        if self.find(spec.name) is not None:
            raise DockerError(f"Conflict. The container name /{spec.name} is already in use", 125)
        container = self.add_container(spec.name, spec.image, status)
        container.spec = spec
        if spec.network:
            container.networks.append(spec.network)
        if spec.cidfile:
            Path(spec.cidfile).write_text(container.id)
        return container

    async def create_container(self, spec: ContainerSpec) -> None:
        self.calls.append(("create", spec.name, *spec.to_args()))
        self._create(spec, "created")

    async def run_detached(self, spec: ContainerSpec) -> str:
        self.calls.append(("run", spec.name, *spec.to_args()))
        return self._create(spec, "running").id

    async def run_ephemeral(self, image: str, *command: str, volumes=None, links=None, network=None) -> CommandResult:
        self.calls.append(("run-rm", image, *command))
        if self.wait_fails and image.startswith("dokku/wait"):
            raise DockerError("command exited non-zero: timeout", 1, "timeout")
        return CommandResult(argv=[image, *command], exit_code=0)

    async def start_container(self, ref: str) -> None:
        container = self._get(ref)
        self.calls.append(("start", container.name))
        container.status = "running"

    async def stop_container(self, ref: str) -> None:
        container = self._get(ref)
        self.calls.append(("stop", container.name))
        container.status = "exited"

    async def remove_container(self, ref: str, force: bool = False) -> None:
        container = self._get(ref)
        if container.status == "running" and not force:
            raise DockerError("cannot remove a running container", 1)
        self.calls.append(("rm", container.name))
        del self.containers[container.id]

    async def update_restart_policy(self, ref: str, policy: str) -> None:
        container = self._get(ref)
        self.calls.append(("update", container.name, policy))
        container.restart = policy

    async def network_connect(self, network: str, ref: str, alias: str | None = None) -> None:
        container = self._get(ref)
        self.calls.append(("connect", network, container.name, alias or ""))
        if network in self.broken_networks:
            raise DockerError(f"network {network} not found", 1, f"network {network} not found")
        container.networks.append(network)

    async def logs(self, ref: str, tail: int | None = None, follow: bool = False) -> None:
        self.calls.append(("logs", ref, str(tail), str(follow)))

    async def exec_interactive(self, ref: str, *command: str) -> None:
        self.calls.append(("exec", ref, *command))


class RecordingHooks(HookRunner):
    """Records triggers instead of calling plugn; can fail a chosen phase."""

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.fired: list[tuple[str, ...]] = []
        self.fail_on: set[str] = set()

    async def trigger(self, name: str, *args: str, env=None, stream: bool = True) -> CommandResult:
        self.fired.append((name, *args))
        if args and args[0] in self.fail_on:
            raise HookError(f"failed to call {name} trigger: exit status 1")
        return CommandResult(argv=["plugn", "trigger", name, *args], exit_code=0)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    lib = tmp_path / "lib"
    return Settings(lib_root=lib, lib_host_root=lib, plugin_path=None)


@pytest.fixture
def store(settings: Settings) -> PropertyStore:
    return PropertyStore(settings)


@pytest.fixture
def docker() -> FakeDockerClient:
    client = FakeDockerClient()
    client.images.add("redis:latest")
    return client


@pytest.fixture
def hooks(settings: Settings) -> RecordingHooks:
    return RecordingHooks(settings)


@pytest.fixture
def progress_log() -> list[tuple[str, str]]:
    return []


@pytest.fixture
def manager(settings, docker, store, hooks, progress_log) -> ServiceManager:
    return ServiceManager(
        settings=settings,
        registry=default_registry(),
        docker=docker,
        store=store,
        hooks=hooks,
        progress_sink=lambda level, message: progress_log.append((level, message)),
    )


@pytest.fixture
def redis_ref(settings: Settings):
    def build(name: str = "cache") -> ServiceRef:
        return ServiceRef.build(settings, RedisDatastore(), name)
    return build

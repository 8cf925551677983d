# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Host port exposure through an ambassador sidecar.

The ``PORT`` file is the desired state: absent or empty means the
service is not exposed, otherwise it lists one host port per datastore
port.  The ambassador container forwards those host ports to the
service container over a legacy link.  It holds no state of its own and
may be removed and recreated at any time.
"""

from __future__ import annotations

import logging
import socket
from collections.abc import Awaitable, Callable

from ..docker_client import ContainerSpec, DockerClient, DockerError
from ..operations import OperationReporter, RuntimeCommandError, ValidationError
from ..properties import PropertyStore
from .constants import AMBASSADOR_IMAGE, AMBASSADOR_LABELS, render_labels
from .contexts import ServiceRef

logger = logging.getLogger(__name__)

StartFn = Callable[[], Awaitable[None]]


class ExposureReconciler:
    """Brings the ambassador container in line with ``PORT``."""

    def __init__(self, docker: DockerClient, store: PropertyStore):
        self._docker = docker
        self._store = store

    def ports(self, ref: ServiceRef) -> list[str]:
        return self._store.read(ref.files.port).split()

    def is_exposed(self, ref: ServiceRef) -> bool:
        return bool(self.ports(ref))

    def exposed_ports(self, ref: ServiceRef) -> str:
        """``<container-port>-><host-port>`` pairs, or ``-``."""
        ports = self.ports(ref)
        if not ports:
            return "-"
        return " ".join(
            f"{container_port}->{host_port}"
            for container_port, host_port in zip(ref.datastore.properties.ports, ports)
        )

    async def reconcile(self, ref: ServiceRef, progress: OperationReporter | None = None) -> None:
        """Converge the ambassador on the desired exposure.

        Running this twice in a row does nothing the second time.
        """
        ambassador = ref.ambassador_name
        ports = self.ports(ref)
        try:
            status = await self._docker.container_status(ambassador)

            if not ports:
                if status == "running":
                    if progress:
                        progress.dim("Stopping ambassador container")
                    await self._docker.stop_container(ambassador)
                return

            if status == "running":
                return
            if status != "missing":
                if progress:
                    progress.dim("Starting ambassador container")
                await self._docker.start_container(ambassador)
                return

            if progress:
                progress.dim("Creating ambassador container")
            await self._docker.run_detached(self._ambassador_spec(ref, ports))
        except DockerError as e:
            raise RuntimeCommandError(
                f"failed to reconcile ambassador for {ref.name}: {e}", e.stderr, e.code,
            ) from e

    def _ambassador_spec(self, ref: ServiceRef, ports: list[str]) -> ContainerSpec:
        container_ports = ref.datastore.properties.ports
        return ContainerSpec(
            name=ref.ambassador_name,
            image=AMBASSADOR_IMAGE,
            labels=render_labels(AMBASSADOR_LABELS, ref.prefix),
            links=[f"{ref.container_name}:{ref.prefix}"],
            publish=[
                f"{host_port}:{container_port}"
                for host_port, container_port in zip(ports, container_ports)
            ],
            restart="always",
        )

    async def expose(
        self,
        ref: ServiceRef,
        ports: list[str],
        start: StartFn,
        progress: OperationReporter | None = None,
    ) -> None:
        """Record host *ports* for *ref*, start it and reconcile.

        With no *ports*, one free host port is picked per datastore port.

        Raises:
            ValidationError: If the number of ports does not match.
        """
        if self.is_exposed(ref):
            if ports and progress:
                progress.warning(f"Service {ref.name} is already exposed")
            await self.reconcile(ref, progress)
            return

        if await self._docker.container_exists(ref.ambassador_name):
            if progress:
                progress.warning("Service has an untracked expose container, removing")
            await self.remove_ambassador(ref)

        container_ports = ref.datastore.properties.ports
        if not ports:
            ports = [str(port) for port in random_free_ports(len(container_ports))]
        if len(ports) != len(container_ports):
            raise ValidationError(
                f"{len(container_ports)} ports to be exposed need to be provided "
                f"in the following order: {','.join(str(p) for p in container_ports)}"
            )
        for port in ports:
            _check_port(port)

        self._store.write(ref.files.port, " ".join(ports))
        await start()
        await self.reconcile(ref, progress)
        if progress:
            progress.success(f"Exposed on port(s) [container->host]: {self.exposed_ports(ref)}")

    async def unexpose(self, ref: ServiceRef, progress: OperationReporter | None = None) -> None:
        await self.remove_ambassador(ref, progress)
        self._store.remove(ref.files.port)

    async def remove_ambassador(
        self,
        ref: ServiceRef,
        progress: OperationReporter | None = None,
    ) -> None:
        """Stop and delete the ambassador if there is one."""
        ambassador = ref.ambassador_name
        try:
            if not await self._docker.container_exists(ambassador):
                return
            if progress:
                progress.dim("Removing ambassador container")
            if await self._docker.is_running(ambassador):
                await self._docker.stop_container(ambassador)
            await self._docker.remove_container(ambassador)
        except DockerError as e:
            raise RuntimeCommandError(
                f"failed to remove ambassador for {ref.name}: {e}", e.stderr, e.code,
            ) from e


def random_free_ports(count: int) -> list[int]:
    """Ask the kernel for *count* distinct unused TCP ports."""
    sockets: list[socket.socket] = []
    try:
        for _ in range(count):
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            sock.bind(("", 0))
            sockets.append(sock)
        return [sock.getsockname()[1] for sock in sockets]
    finally:
        for sock in sockets:
            sock.close()


def _check_port(port: str) -> None:
    if not port.isdigit() or not 0 < int(port) < 65536:
        raise ValidationError(f"invalid port: {port!r}")

# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Network attachment for service containers.

A container can only join one network when it is created.  The
``initial-network`` property is that network.  Any further networks are
stored as comma-joined lists and connected one by one, either right
after the container is created or right after it is started.
"""

from __future__ import annotations

from ..docker_client import DockerClient, DockerError
from ..operations import OperationReporter, RuntimeCommandError
from ..properties import PropertyStore
from .contexts import ServiceRef

INITIAL_NETWORK = "initial-network"
POST_CREATE_NETWORK = "post-create-network"
POST_START_NETWORK = "post-start-network"


class NetworkAttacher:
    """Persists network settings and connects containers to networks."""

    def __init__(self, docker: DockerClient, store: PropertyStore):
        self._docker = docker
        self._store = store

    def initial_network(self, ref: ServiceRef) -> str:
        return self._store.property_get(ref.prefix, ref.name, INITIAL_NETWORK)

    def post_create_networks(self, ref: ServiceRef) -> list[str]:
        return _split(self._store.property_get(ref.prefix, ref.name, POST_CREATE_NETWORK))

    def post_start_networks(self, ref: ServiceRef) -> list[str]:
        return _split(self._store.property_get(ref.prefix, ref.name, POST_START_NETWORK))

    def commit(
        self,
        ref: ServiceRef,
        initial: str,
        post_create: list[str],
        post_start: list[str],
    ) -> None:
        self._store.property_write(ref.prefix, ref.name, INITIAL_NETWORK, initial)
        self._store.property_write(ref.prefix, ref.name, POST_CREATE_NETWORK, ",".join(post_create))
        self._store.property_write(ref.prefix, ref.name, POST_START_NETWORK, ",".join(post_start))

    async def attach(
        self,
        container_id: str,
        networks: list[str],
        alias: str,
        progress: OperationReporter | None = None,
    ) -> None:
        """Connect *container_id* to each network under *alias*."""
        for network in networks:
            if progress:
                progress.dim(f"Connecting to network {network}")
            try:
                await self._docker.network_connect(network, container_id, alias)
            except DockerError as e:
                raise RuntimeCommandError(
                    f"failed to connect to network {network}: {e}", e.stderr, e.code,
                ) from e


def _split(value: str) -> list[str]:
    return [network for network in value.split(",") if network]

# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Lifecycle state of a service instance.

Nothing here is persisted.  The state is observed afresh on every call
from three facts: whether the root directory exists, whether a container
with the service's name exists, and that container's engine status.
An observation is only valid for the operation that made it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from ..docker_client import DockerClient
from ..operations import ConflictError
from .contexts import ServiceRef


class ServiceState(enum.Enum):
    ABSENT = "absent"
    PROVISIONING = "provisioning"  # directory present, no container
    STOPPED = "stopped"
    RUNNING = "running"
    REMOVING = "removing"


_TRANSITIONS: dict[ServiceState, frozenset[ServiceState]] = {
    ServiceState.ABSENT: frozenset({ServiceState.PROVISIONING}),
    ServiceState.PROVISIONING: frozenset({
        ServiceState.RUNNING, ServiceState.STOPPED, ServiceState.REMOVING,
    }),
    ServiceState.STOPPED: frozenset({
        ServiceState.RUNNING, ServiceState.PROVISIONING, ServiceState.REMOVING,
    }),
    ServiceState.RUNNING: frozenset({
        ServiceState.RUNNING, ServiceState.STOPPED,
        ServiceState.PROVISIONING, ServiceState.REMOVING,
    }),
    ServiceState.REMOVING: frozenset({ServiceState.ABSENT}),
}


def can_transition(current: ServiceState, target: ServiceState) -> bool:
    return target in _TRANSITIONS[current]


def check_transition(current: ServiceState, target: ServiceState, service: str) -> None:
    if not can_transition(current, target):
        raise ConflictError(
            f"service {service} cannot go from {current.value} to {target.value}"
        )


# Engine statuses `docker container start` accepts.
STARTABLE_STATUSES = frozenset({"exited", "created"})


@dataclass(frozen=True)
class ObservedState:
    state: ServiceState
    container_id: str = ""
    status: str = "missing"


def check_startable(observed: ObservedState, service: str) -> None:
    """Raise :class:`ConflictError` for a stopped container the engine cannot start."""
    if observed.state is ServiceState.STOPPED and observed.status.lower() not in STARTABLE_STATUSES:
        raise ConflictError(
            f"service {service} container is {observed.status}, refusing to start it"
        )


async def observe(docker: DockerClient, ref: ServiceRef) -> ObservedState:
    """Derive the current state of *ref* from disk and the engine."""
    container_id = await docker.live_container_id(ref.container_name)
    if not ref.exists():
        # A leftover container without a root is still not a service.
        return ObservedState(ServiceState.ABSENT, container_id)
    if not container_id:
        return ObservedState(ServiceState.PROVISIONING)

    status = await docker.container_status(container_id)
    if status.lower() == "running":
        return ObservedState(ServiceState.RUNNING, container_id, status)
    if status == "missing":
        return ObservedState(ServiceState.PROVISIONING, "", status)
    return ObservedState(ServiceState.STOPPED, container_id, status)

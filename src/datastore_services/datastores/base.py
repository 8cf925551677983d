# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Datastore descriptors and the interface each datastore implements."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Protocol

from ..docker_client import ContainerSpec
from ..paths import ServiceFiles, ServiceFolders
from ..properties import PropertyStore


class DatastoreType(str, enum.Enum):
    """Every supported kind of datastore."""

    REDIS = "redis"


@dataclass(frozen=True)
class DatastoreProperties:
    """Immutable template describing one kind of datastore."""

    command_prefix: str
    default_image: str
    default_image_version: str
    ports: tuple[int, ...]
    wait_port: int
    config_mount: str
    data_mount: str
    config_variable: str
    env_variable: str
    image_pull_variable: str


@dataclass
class ProvisionRequest:
    """What a datastore needs to lay down a new instance's files."""

    service: str
    folders: ServiceFolders
    files: ServiceFiles
    store: PropertyStore
    password: str = ""
    env: dict[str, str] = field(default_factory=lambda: dict[str, str]())


class Datastore(Protocol):
    """Behaviour that differs between datastore kinds."""

    @property
    def type(self) -> DatastoreType: ...

    @property
    def properties(self) -> DatastoreProperties: ...

    @property
    def title(self) -> str: ...

    def create_instance(self, request: ProvisionRequest) -> None:
        """Write the engine configuration for a new instance."""
        ...

    def configure_container(self, spec: ContainerSpec, folders: ServiceFolders) -> None:
        """Add the datastore's mounts and command to *spec*."""
        ...

    def connection_url(self, hostname: str) -> str: ...

# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Service references and the context objects passed through pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..config import Settings
from ..datastores import Datastore
from ..docker_client import ContainerSpec, DockerClient
from ..hooks import HookRunner
from ..operations import OperationReporter
from ..paths import (
    ServiceFiles,
    ServiceFolders,
    ambassador_name,
    container_name,
    dns_hostname,
    service_files,
    service_folders,
)
from ..properties import PropertyStore
from ..service_options import CreateOptions

if TYPE_CHECKING:
    from .exposure import ExposureReconciler
    from .networks import NetworkAttacher


@dataclass(frozen=True)
class ServiceRef:
    """Everything derived from a ``(datastore, name)`` pair."""

    datastore: Datastore
    name: str
    folders: ServiceFolders
    files: ServiceFiles

    @classmethod
    def build(cls, settings: Settings, datastore: Datastore, name: str) -> "ServiceRef":
        prefix = datastore.properties.command_prefix
        return cls(
            datastore=datastore,
            name=name,
            folders=service_folders(settings, prefix, name),
            files=service_files(settings, prefix, name),
        )

    @property
    def prefix(self) -> str:
        return self.datastore.properties.command_prefix

    @property
    def container_name(self) -> str:
        return container_name(self.prefix, self.name)

    @property
    def ambassador_name(self) -> str:
        return ambassador_name(self.prefix, self.name)

    @property
    def dns_hostname(self) -> str:
        return dns_hostname(self.prefix, self.name)

    def exists(self) -> bool:
        """The root directory is the authoritative existence flag."""
        return self.folders.root.is_dir()


@dataclass
class _StepContext:
    ref: ServiceRef
    docker: DockerClient
    store: PropertyStore
    progress: OperationReporter | None

    def info(self, msg: str) -> None:
        if self.progress:
            self.progress.info(msg)

    def dim(self, msg: str) -> None:
        if self.progress:
            self.progress.dim(msg)

    def warning(self, msg: str) -> None:
        if self.progress:
            self.progress.warning(msg)


@dataclass
class LaunchContext(_StepContext):
    """Context for the container launch pipeline.

    ``tagged_image`` is resolved before the pipeline runs; ``spec`` and
    ``container_id`` are filled in by its steps.
    """

    networks: "NetworkAttacher"
    exposure: "ExposureReconciler"
    tagged_image: str = ""
    spec: ContainerSpec | None = None
    container_id: str = ""


@dataclass
class CreateContext(_StepContext):
    """Context for the service creation pipeline.

    Steps guard their own preconditions and build up ``tagged_image``
    for the launch step.
    """

    hooks: HookRunner
    networks: "NetworkAttacher"
    exposure: "ExposureReconciler"
    opts: CreateOptions = field(default_factory=CreateOptions)
    env: dict[str, str] = field(default_factory=lambda: dict[str, str]())
    tagged_image: str = ""

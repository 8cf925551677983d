# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""On-disk layout and naming of service instances."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from .config import Settings
from .operations import ValidationError

# Prefix shared by every container this package manages.
CONTAINER_NAMESPACE = "dokku"

SERVICE_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_service_name(name: str) -> None:
    """Raise :class:`ValidationError` unless *name* is a legal service name."""
    if not name:
        raise ValidationError("service name is required")
    if not SERVICE_NAME_RE.match(name):
        raise ValidationError(
            "service name must contain only letters, numbers, underscores, and hyphens"
        )


def container_name(prefix: str, service: str) -> str:
    return f"{CONTAINER_NAMESPACE}.{prefix}.{service}"


def ambassador_name(prefix: str, service: str) -> str:
    return f"{container_name(prefix, service)}.ambassador"


def dns_hostname(prefix: str, service: str) -> str:
    """Container name made safe for use as a DNS label."""
    return container_name(prefix, service).replace(".", "-").replace("_", "-")


def database_name(service: str) -> str:
    return service.replace(".", "_").replace("-", "_")


def cron_file(prefix: str, service: str) -> Path:
    """Backup schedule installed by the backup feature of the host."""
    return Path("/etc/cron.d") / f"dokku-{prefix}-{service}"


@dataclass(frozen=True)
class ServiceFolders:
    root: Path
    config: Path
    data: Path
    host_root: Path
    host_config: Path
    host_data: Path


@dataclass(frozen=True)
class ServiceFiles:
    config_options: Path
    database_name: Path
    env: Path
    id: Path
    image: Path
    image_version: Path
    links: Path
    memory: Path
    password: Path
    port: Path
    shm_size: Path


def service_folders(settings: Settings, prefix: str, service: str) -> ServiceFolders:
    root = settings.data_root / prefix / service
    host_root = settings.host_data_root / prefix / service
    return ServiceFolders(
        root=root,
        config=root / "config",
        data=root / "data",
        host_root=host_root,
        host_config=host_root / "config",
        host_data=host_root / "data",
    )


def service_files(settings: Settings, prefix: str, service: str) -> ServiceFiles:
    root = service_folders(settings, prefix, service).root
    return ServiceFiles(
        config_options=root / "CONFIG_OPTIONS",
        database_name=root / "DATABASE_NAME",
        env=root / "ENV",
        id=root / "ID",
        image=root / "IMAGE",
        image_version=root / "IMAGE_VERSION",
        links=root / "LINKS",
        memory=root / "MEMORY",
        password=root / "PASSWORD",
        port=root / "PORT",
        shm_size=root / "SHM_SIZE",
    )

# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Redis datastore."""

from __future__ import annotations

import logging
import secrets
import shutil
from pathlib import Path

from ..docker_client import ContainerSpec
from ..operations import OperationError
from ..paths import ServiceFolders
from .base import DatastoreProperties, DatastoreType, ProvisionRequest

logger = logging.getLogger(__name__)

_PASSWORD_HEX_LENGTH = 64
_REQUIREPASS_STUB = "# requirepass"


class RedisDatastore:
    """Single-node Redis with password auth, config under ``config/redis.conf``."""

    _properties = DatastoreProperties(
        command_prefix="redis",
        default_image="redis",
        default_image_version="latest",
        ports=(6379,),
        wait_port=6379,
        config_mount="/usr/local/etc/redis",
        data_mount="/data",
        config_variable="REDIS_CONFIG_OPTIONS",
        env_variable="REDIS_CUSTOM_ENV",
        image_pull_variable="REDIS_DISABLE_PULL",
    )

    @property
    def type(self) -> DatastoreType:
        return DatastoreType.REDIS

    @property
    def properties(self) -> DatastoreProperties:
        return self._properties

    @property
    def title(self) -> str:
        return "Redis"

    def create_instance(self, request: ProvisionRequest) -> None:
        """Write ``redis.conf`` and a ``PASSWORD`` file.

        The config is copied from ``REDIS_CONFIG_PATH`` when set, otherwise
        a stub is written.  Any ``# requirepass`` line is replaced with the
        instance password, which comes from the request, then
        ``SERVICE_PASSWORD``, and is otherwise generated.
        """
        config_file = request.folders.config / "redis.conf"

        template = request.env.get("REDIS_CONFIG_PATH", "")
        try:
            if template:
                shutil.copyfile(template, config_file)
            else:
                request.store.write(config_file, _REQUIREPASS_STUB)
        except OSError as e:
            raise OperationError(f"unable to write to {config_file}: {e}") from e

        password = (
            request.password
            or request.env.get("SERVICE_PASSWORD", "")
            or secrets.token_hex(_PASSWORD_HEX_LENGTH // 2)
        )
        request.store.write(request.files.password, password, mode=0o640)

        lines = Path(config_file).read_text(encoding="utf-8").splitlines()
        rewritten = [
            f"requirepass {password}" if line.startswith(_REQUIREPASS_STUB) else line
            for line in lines
        ]
        request.store.write(config_file, "\n".join(rewritten))
        logger.debug("Wrote %s for %s", config_file, request.service)

    def configure_container(self, spec: ContainerSpec, folders: ServiceFolders) -> None:
        spec.volumes.extend([
            f"{folders.host_config}:{self._properties.config_mount}",
            f"{folders.host_data}:{self._properties.data_mount}",
        ])
        spec.command[:0] = [
            "redis-server",
            f"{self._properties.config_mount}/redis.conf",
            "--bind",
            "0.0.0.0",
        ]

    def connection_url(self, hostname: str) -> str:
        return f"redis://{hostname}:{self._properties.ports[0]}"

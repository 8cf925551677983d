# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Runtime settings for datastore services.

Settings come from the environment the host platform exports to its
plugins.  Every value has a default so the package can be imported and
tested without any of them set:

    DOKKU_LIB_ROOT        root of all persisted state  (/var/lib/dokku)
    DOKKU_LIB_HOST_ROOT   same tree as seen by the container engine
                          (defaults to DOKKU_LIB_ROOT; differs when the
                          host platform itself runs in a container)
    PLUGIN_PATH           plugin tree; hooks are disabled when unset
    DOCKER_BIN            container engine binary       (docker)
    DOKKU_SYSTEM_USER     owner of written files        (dokku)
    DOKKU_SYSTEM_GROUP    group of written files        (dokku)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_LIB_ROOT = "/var/lib/dokku"


@dataclass(frozen=True)
class Settings:
    """Resolved settings for one invocation."""

    lib_root: Path
    lib_host_root: Path
    plugin_path: Path | None
    docker_bin: str = "docker"
    system_user: str = "dokku"
    system_group: str = "dokku"

    @property
    def data_root(self) -> Path:
        """Directory holding one sub-directory per datastore prefix."""
        return self.lib_root / "services"

    @property
    def host_data_root(self) -> Path:
        return self.lib_host_root / "services"

    @property
    def property_root(self) -> Path:
        """Directory of the generic per-plugin property table."""
        return self.lib_root / "config"

    @property
    def hooks_enabled(self) -> bool:
        return self.plugin_path is not None


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from *env* (defaults to ``os.environ``)."""
    if env is None:
        env = os.environ

    lib_root = Path(env.get("DOKKU_LIB_ROOT") or DEFAULT_LIB_ROOT)
    host_root = Path(env.get("DOKKU_LIB_HOST_ROOT") or lib_root)
    plugin_path = env.get("PLUGIN_PATH")

    return Settings(
        lib_root=lib_root,
        lib_host_root=host_root,
        plugin_path=Path(plugin_path) if plugin_path else None,
        docker_bin=env.get("DOCKER_BIN") or "docker",
        system_user=env.get("DOKKU_SYSTEM_USER") or "dokku",
        system_group=env.get("DOKKU_SYSTEM_GROUP") or "dokku",
    )

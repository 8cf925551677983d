# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Service creation options and their environment defaults.

Options arrive from the command line.  Before a service is created,
:func:`apply_environment_defaults` fills in anything the caller left
empty from the environment, in this order:

============== ====================================== ==================
option         environment variable                   final fallback
============== ====================================== ==================
config_options ``<TYPE>_CONFIG_OPTIONS``               ``""``
custom_env     ``<TYPE>_CUSTOM_ENV``                   ``""``
image          ``PLUGIN_IMAGE``                        datastore default
image_version  ``PLUGIN_IMAGE_VERSION``                datastore default
============== ====================================== ==================

The per-type variable names come from the datastore descriptor.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace

from .datastores import Datastore
from .operations import ValidationError

_SHM_SIZE_RE = re.compile(r"^[0-9]+[bkmg]?$", re.IGNORECASE)
_NETWORK_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


@dataclass
class CreateOptions:
    """Validated service creation options.

    Empty strings and empty lists mean "not set".
    """

    config_options: str = ""
    custom_env: str = ""
    image: str = ""
    image_version: str = ""
    memory: int | None = None
    shm_size: str = ""
    initial_network: str = ""
    post_create_networks: list[str] = field(default_factory=lambda: list[str]())
    post_start_networks: list[str] = field(default_factory=lambda: list[str]())
    password: str = ""

    def __post_init__(self) -> None:
        validate_options(self)


def validate_options(opts: CreateOptions) -> None:
    """Raise :class:`ValidationError` if any option is malformed."""
    if opts.memory is not None and opts.memory < 0:
        raise ValidationError("memory must be a non-negative number of megabytes")

    if opts.shm_size and not _SHM_SIZE_RE.match(opts.shm_size):
        raise ValidationError(f"invalid shm-size: {opts.shm_size}")

    networks = [opts.initial_network] if opts.initial_network else []
    networks += opts.post_create_networks + opts.post_start_networks
    for network in networks:
        if not _NETWORK_RE.match(network):
            raise ValidationError(f"invalid network name: {network!r}")


def split_networks(values: list[str]) -> list[str]:
    """Flatten repeated and comma-separated network flags."""
    networks: list[str] = []
    for value in values:
        networks.extend(part.strip() for part in value.split(",") if part.strip())
    return networks


def apply_environment_defaults(
    opts: CreateOptions,
    datastore: Datastore,
    env: Mapping[str, str],
) -> CreateOptions:
    """Return a copy of *opts* with empty fields filled from *env*."""
    properties = datastore.properties
    return replace(
        opts,
        config_options=opts.config_options or env.get(properties.config_variable, ""),
        custom_env=opts.custom_env or env.get(properties.env_variable, ""),
        image=opts.image or env.get("PLUGIN_IMAGE", "") or properties.default_image,
        image_version=(
            opts.image_version
            or env.get("PLUGIN_IMAGE_VERSION", "")
            or properties.default_image_version
        ),
    )

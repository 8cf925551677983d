# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Constants shared across the instance package."""

from __future__ import annotations

from ..paths import CONTAINER_NAMESPACE

# Helper images, pinned
AMBASSADOR_IMAGE = "dokku/ambassador:0.8.2"
BUSYBOX_IMAGE = "busybox:1.37.0-uclibc"
WAIT_IMAGE = "dokku/wait:0.9.3"

# Label templates, formatted with the datastore prefix
SERVICE_LABELS = {
    CONTAINER_NAMESPACE: "service",
    f"{CONTAINER_NAMESPACE}.service": "{prefix}",
}
AMBASSADOR_LABELS = {
    CONTAINER_NAMESPACE: "ambassador",
    f"{CONTAINER_NAMESPACE}.ambassador": "{prefix}",
}

# Mount points used by the busybox permission reset on destroy
RESET_CONFIG_MOUNT = "/config"
RESET_DATA_MOUNT = "/data"

ENTER_SHELL = "/bin/bash"

DEFAULT_LOG_LINES = 100


def render_labels(template: dict[str, str], prefix: str) -> dict[str, str]:
    return {key: value.format(prefix=prefix) for key, value in template.items()}

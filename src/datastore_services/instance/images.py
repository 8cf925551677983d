# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Image resolution for service containers.

For both the image name and its version the highest of these wins:
call-site override, the value persisted in the service root, the
datastore default.  The two fields are resolved independently.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..docker_client import DockerClient, DockerError
from ..operations import ImageUnavailableError, OperationReporter
from ..properties import PropertyStore
from .contexts import ServiceRef


def resolve_image(
    store: PropertyStore,
    ref: ServiceRef,
    image_override: str = "",
    version_override: str = "",
) -> str:
    """Return the ``name:version`` tag to launch *ref* with."""
    properties = ref.datastore.properties

    image = image_override or store.read(ref.files.image) or properties.default_image
    version = (
        version_override
        or store.read(ref.files.image_version)
        or properties.default_image_version
    )
    return f"{image}:{version}"


async def ensure_image(
    docker: DockerClient,
    ref: ServiceRef,
    tagged_image: str,
    env: Mapping[str, str],
    progress: OperationReporter | None = None,
) -> None:
    """Make sure *tagged_image* is in the local image store, pulling if allowed.

    Raises:
        ImageUnavailableError: If the image is missing and the datastore's
            pull-disable variable is ``true``, or the pull fails.
    """
    if await docker.image_exists(tagged_image):
        return

    pull_variable = ref.datastore.properties.image_pull_variable
    if env.get(pull_variable) == "true":
        raise ImageUnavailableError("\n".join([
            f"{pull_variable} environment variable detected. Not running pull command.",
            f"   docker image pull {tagged_image}",
            f"{ref.name} service creation failed",
        ]))

    if progress:
        progress.info(f"Pulling image {tagged_image}")
    try:
        await docker.pull_image(tagged_image)
    except DockerError as e:
        raise ImageUnavailableError(f"failed to pull image {tagged_image}: {e}") from e


async def require_image(docker: DockerClient, tagged_image: str) -> None:
    """Fail unless *tagged_image* is already present locally."""
    if not await docker.image_exists(tagged_image):
        raise ImageUnavailableError(f"image {tagged_image} does not exist")

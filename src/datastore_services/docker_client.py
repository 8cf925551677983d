# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Async client for the container engine command line.

Every engine interaction goes through :class:`DockerClient`, which runs
``docker`` subcommands and turns a non-zero exit into a
:class:`DockerError` carrying the captured stderr.  Existence checks
(``container_exists``, ``image_exists``, ``inspect``) never raise for a
missing object; they report absence instead so callers can stay
idempotent.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

from pydantic import ValidationError as ModelValidationError

from .models import ContainerInspect
from .process import CommandResult, run_command

logger = logging.getLogger(__name__)


class DockerError(Exception):
    """A container engine command exited non-zero."""

    def __init__(self, message: str, code: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.code = code
        self.stderr = stderr


@dataclass
class ContainerSpec:
    """Arguments for ``docker container create`` / ``run``.

    :meth:`to_args` renders the flags in a fixed order followed by the
    image and command, so the same spec always yields the same argv.
    """

    name: str
    image: str
    command: list[str] = field(default_factory=lambda: list[str]())
    cidfile: str | None = None
    env_file: str | None = None
    hostname: str | None = None
    labels: dict[str, str] = field(default_factory=lambda: dict[str, str]())
    links: list[str] = field(default_factory=lambda: list[str]())
    memory: str | None = None
    shm_size: str | None = None
    network: str | None = None
    network_alias: str | None = None
    publish: list[str] = field(default_factory=lambda: list[str]())
    restart: str | None = "always"
    volumes: list[str] = field(default_factory=lambda: list[str]())

    def to_args(self) -> list[str]:
        args: list[str] = []
        if self.cidfile:
            args.append(f"--cidfile={self.cidfile}")
        if self.env_file:
            args.append(f"--env-file={self.env_file}")
        if self.hostname:
            args.append(f"--hostname={self.hostname}")
        for key, value in self.labels.items():
            args.append(f"--label={key}={value}")
        for link in self.links:
            args.append(f"--link={link}")
        args.append(f"--name={self.name}")
        if self.memory:
            args.append(f"--memory={self.memory}")
        if self.shm_size:
            args.append(f"--shm-size={self.shm_size}")
        if self.network:
            args.append(f"--network={self.network}")
            if self.network_alias:
                args.append(f"--network-alias={self.network_alias}")
        for mapping in self.publish:
            args.append(f"--publish={mapping}")
        if self.restart:
            args.append(f"--restart={self.restart}")
        for volume in self.volumes:
            args.append(f"--volume={volume}")
        args.append(self.image)
        args.extend(self.command)
        return args


class DockerClient:
    """Runs container engine subcommands."""

    def __init__(self, docker_bin: str = "docker"):
        self._bin = docker_bin

    async def _run(
        self,
        *args: str,
        check: bool = True,
        stream: bool = False,
        interactive: bool = False,
    ) -> CommandResult:
        """Run ``docker <args>``.

        Raises:
            DockerError: If *check* is set and the command exits non-zero.
        """
        try:
            result = await run_command(
                [self._bin, *args], stream=stream, interactive=interactive,
            )
        except FileNotFoundError as e:
            raise DockerError(f"container engine not found: {self._bin}") from e

        if check and not result.ok:
            if stream or interactive:
                raise DockerError("command exited non-zero", result.exit_code)
            raise DockerError(
                f"command exited non-zero: {result.stderr_contents()}",
                result.exit_code,
                result.stderr_contents(),
            )
        return result

    async def is_available(self) -> bool:
        """Check that the engine binary runs and its daemon answers."""
        try:
            result = await self._run("version", "--format", "{{.Server.Version}}", check=False)
        except DockerError:
            return False
        return result.ok

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def inspect(self, ref: str) -> ContainerInspect | None:
        """Inspect a container by id or name, or ``None`` if it is absent."""
        if not ref:
            return None
        result = await self._run("container", "inspect", ref, check=False)
        if not result.ok:
            return None
        try:
            data = json.loads(result.stdout or "[]")
            if not data:
                return None
            return ContainerInspect.model_validate(data[0])
        except (json.JSONDecodeError, ModelValidationError) as e:
            raise DockerError(f"unexpected inspect output for {ref}: {e}") from e

    async def container_exists(self, ref: str) -> bool:
        if not ref:
            return False
        result = await self._run("container", "inspect", ref, check=False)
        return result.ok

    async def container_status(self, ref: str) -> str:
        """Engine status string (``running``, ``exited`` ...) or ``missing``."""
        info = await self.inspect(ref)
        if info is None or not info.status:
            return "missing"
        return info.status

    async def is_running(self, ref: str) -> bool:
        info = await self.inspect(ref)
        return info is not None and info.is_running

    async def live_container_id(self, name: str, status: str | None = None) -> str:
        """Id of the container named exactly *name*, or ``""``.

        Args:
            name: Container name.
            status: Optional engine status filter (``running``, ``exited``).
        """
        args = ["container", "ps", "-aq", "--no-trunc", "--filter", f"name=^/{name}$"]
        if status:
            args.extend(["--filter", f"status={status}"])
        try:
            result = await self._run(*args)
        except DockerError as e:
            logger.debug("Could not list containers named %s: %s", name, e)
            return ""
        return result.stdout_contents().splitlines()[0] if result.stdout_contents() else ""

    async def image_exists(self, tagged_image: str) -> bool:
        result = await self._run("image", "inspect", tagged_image, check=False)
        return result.ok

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def pull_image(self, tagged_image: str) -> None:
        """Pull an image, streaming progress to the terminal."""
        await self._run("image", "pull", tagged_image, stream=True)

    async def create_container(self, spec: ContainerSpec) -> None:
        await self._run("container", "create", *spec.to_args())

    async def run_detached(self, spec: ContainerSpec) -> str:
        """``docker container run -d``; returns the new container id."""
        result = await self._run("container", "run", "-d", *spec.to_args())
        return result.stdout_contents()

    async def run_ephemeral(
        self,
        image: str,
        *command: str,
        volumes: list[str] | None = None,
        links: list[str] | None = None,
        network: str | None = None,
    ) -> CommandResult:
        """``docker container run --rm`` and wait for it to exit."""
        args = ["container", "run", "--rm"]
        for link in links or []:
            args.append(f"--link={link}")
        if network:
            args.append(f"--network={network}")
        for volume in volumes or []:
            args.extend(["-v", volume])
        args.append(image)
        args.extend(command)
        return await self._run(*args)

    async def start_container(self, ref: str) -> None:
        await self._run("container", "start", ref)

    async def stop_container(self, ref: str) -> None:
        await self._run("container", "stop", ref)

    async def remove_container(self, ref: str, force: bool = False) -> None:
        args = ["container", "rm"]
        if force:
            args.append("-f")
        args.append(ref)
        await self._run(*args)

    async def update_restart_policy(self, ref: str, policy: str) -> None:
        await self._run("container", "update", f"--restart={policy}", ref)

    async def network_connect(self, network: str, ref: str, alias: str | None = None) -> None:
        args = ["network", "connect"]
        if alias:
            args.extend(["--alias", alias])
        args.extend([network, ref])
        await self._run(*args)

    # -------------------------------------------------------------------------
    # Terminal-attached commands
    # -------------------------------------------------------------------------

    async def logs(self, ref: str, tail: int | None = None, follow: bool = False) -> None:
        args = ["container", "logs", ref]
        if tail:
            args.extend(["--tail", str(tail)])
        if follow:
            args.append("--follow")
        await self._run(*args, stream=True)

    async def exec_interactive(self, ref: str, *command: str) -> None:
        await self._run("container", "exec", "-it", ref, *command, interactive=True)

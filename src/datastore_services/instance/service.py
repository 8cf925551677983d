# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Service lifecycle operations.

This module implements the lifecycle of datastore service instances
using the operation decorator for progress reporting and error naming.

Creation and container launch are structured as pipelines of step
functions (see the ``create`` and ``launch`` packages).  Each step
receives a context dataclass, checks its own preconditions, and performs
one concern.  A failed step aborts the operation without undoing the
steps before it, so every operation here is written to be re-runnable
over whatever a previous failure left behind.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
import os
import shutil
from collections.abc import Iterator, Mapping

from ..config import Settings
from ..datastores import DatastoreRegistry, DatastoreType
from ..docker_client import DockerClient, DockerError
from ..hooks import HookPhase, HookRunner
from ..operations import (
    NotFoundError,
    NotRunningError,
    OperationError,
    OperationReporter,
    ProgressSink,
    RuntimeCommandError,
    ValidationError,
    operation,
)
from ..paths import SERVICE_NAME_RE, cron_file, validate_service_name
from ..process import run_command
from ..properties import PropertyStore
from ..service_options import CreateOptions, apply_environment_defaults
from .constants import (
    BUSYBOX_IMAGE,
    DEFAULT_LOG_LINES,
    ENTER_SHELL,
    RESET_CONFIG_MOUNT,
    RESET_DATA_MOUNT,
    WAIT_IMAGE,
)
from .contexts import CreateContext, LaunchContext, ServiceRef
from .create import create_pipeline
from .exposure import ExposureReconciler
from .images import require_image, resolve_image
from .launch import launch_pipeline
from .links import LinkTracker
from .networks import NetworkAttacher
from .state import ServiceState, check_startable, check_transition, observe

logger = logging.getLogger(__name__)


class ServiceManager:
    """Lifecycle operations for datastore service instances.

    At most one lifecycle operation per service instance is assumed to be
    in flight at any time.  Callers serialize operations on the same
    instance themselves; nothing here takes a lock.

    Each public method decorated with @operation reports progress through
    ``progress_sink`` and raises :class:`OperationError` subclasses.
    """

    def __init__(
        self,
        settings: Settings,
        registry: DatastoreRegistry,
        docker: DockerClient,
        store: PropertyStore,
        hooks: HookRunner,
        progress_sink: ProgressSink | None = None,
    ):
        self._settings = settings
        self._registry = registry
        self._docker = docker
        self._store = store
        self._hooks = hooks
        self.progress_sink = progress_sink

        self.networks = NetworkAttacher(docker, store)
        self.exposure = ExposureReconciler(docker, store)
        self.links = LinkTracker(store)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def service_ref(self, datastore_type: DatastoreType | str, name: str) -> ServiceRef:
        """Resolve ``(type, name)``, validating both."""
        datastore = self._registry.get(datastore_type)
        validate_service_name(name)
        return ServiceRef.build(self._settings, datastore, name)

    def service_exists(self, datastore_type: DatastoreType | str, name: str) -> bool:
        return self.service_ref(datastore_type, name).exists()

    def service_remains(self, datastore_type: DatastoreType | str, name: str) -> bool:
        """True while anything of the service is left for destroy to remove."""
        ref = self.service_ref(datastore_type, name)
        return ref.exists() or self._store.has_properties(ref.prefix, ref.name)

    def _require_service(self, datastore_type: DatastoreType | str, name: str) -> ServiceRef:
        ref = self.service_ref(datastore_type, name)
        if not ref.exists():
            raise NotFoundError(f"service {name} does not exist")
        return ref

    # -------------------------------------------------------------------------
    # Service Lifecycle Operations
    # -------------------------------------------------------------------------

    @operation(
        "create",
        description="Creating service: {name}",
        target_param="name",
    )
    async def create_service(
        self,
        progress: OperationReporter,
        *,
        datastore_type: DatastoreType | str,
        name: str,
        options: CreateOptions | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Create a new service and launch its container.

        Args:
            progress: Operation reporter (auto-injected)
            datastore_type: Kind of datastore
            name: Service name
            options: Creation options. Empty fields are filled from *env*.
            env: Environment for option defaults and provisioning
                (defaults to ``os.environ``)
        """
        datastore = self._registry.get(datastore_type)
        environ = dict(os.environ if env is None else env)
        opts = apply_environment_defaults(options or CreateOptions(), datastore, environ)

        ctx = CreateContext(
            ref=ServiceRef.build(self._settings, datastore, name),
            docker=self._docker,
            store=self._store,
            progress=progress,
            hooks=self._hooks,
            networks=self.networks,
            exposure=self.exposure,
            opts=opts,
            env=environ,
        )
        await create_pipeline.run(ctx)

        progress.success(f"{datastore.title} container created: {name}")

    @operation(
        "start",
        description="Starting service: {name}",
        target_param="name",
    )
    async def start_service(
        self,
        progress: OperationReporter,
        *,
        datastore_type: DatastoreType | str,
        name: str,
    ) -> None:
        """Start a service, recreating its container if it is gone."""
        ref = self._require_service(datastore_type, name)
        await self._start(ref, progress)
        progress.success(f"Service {name} started")

    async def _start(self, ref: ServiceRef, progress: OperationReporter) -> None:
        observed = await observe(self._docker, ref)

        if observed.state is ServiceState.RUNNING:
            progress.dim("Container already running")
            self._store.write(ref.files.id, observed.container_id)
            return

        if observed.state is ServiceState.STOPPED:
            check_startable(observed, ref.name)
            progress.info("Starting existing container")
            with _runtime_errors(f"unable to start {ref.name} container"):
                await self._docker.start_container(observed.container_id)
            self._store.write(ref.files.id, observed.container_id)
            await self.exposure.reconcile(ref, progress)
            return

        check_transition(observed.state, ServiceState.RUNNING, ref.name)
        tagged_image = resolve_image(self._store, ref)
        await require_image(self._docker, tagged_image)

        progress.info("No container found, launching a new one")
        await launch_pipeline.run(LaunchContext(
            ref=ref,
            docker=self._docker,
            store=self._store,
            progress=progress,
            networks=self.networks,
            exposure=self.exposure,
            tagged_image=tagged_image,
        ))

    @operation(
        "stop",
        description="Stopping service: {name}",
        target_param="name",
    )
    async def stop_service(
        self,
        progress: OperationReporter,
        *,
        datastore_type: DatastoreType | str,
        name: str,
    ) -> None:
        """Stop a service and remove its container.

        The service root and its properties are left in place, so a later
        start recreates the container from them.
        """
        ref = self._require_service(datastore_type, name)
        await self._remove_service_container(ref, progress)
        progress.success(f"Service {name} stopped")

    @operation(
        "destroy",
        description="Destroying service: {name}",
        target_param="name",
    )
    async def destroy_service(
        self,
        progress: OperationReporter,
        *,
        datastore_type: DatastoreType | str,
        name: str,
    ) -> None:
        """Remove a service's container, files and properties.

        Succeeds on a service left half-destroyed by an earlier failure:
        it is only "not found" once the root and every property are gone.

        Raises:
            NotFoundError: If nothing of the service remains.
            ConflictError: If apps are still linked to it.
        """
        ref = self.service_ref(datastore_type, name)
        if not self.service_remains(datastore_type, name):
            raise NotFoundError(f"service {name} does not exist")
        self.links.ensure_unlinked(ref)

        await self._hooks.service_action(HookPhase.PRE_DELETE, ref.prefix, ref.name)

        await self._remove_backup_schedule(ref, progress)
        await self._remove_service_container(ref, progress)

        if ref.exists():
            await self._reset_permissions(ref, progress)
            progress.dim(f"Removing {ref.folders.root}")
            shutil.rmtree(ref.folders.root)
        self._store.property_destroy(ref.prefix, ref.name)

        await self._hooks.service_action(HookPhase.POST_DELETE, ref.prefix, ref.name)
        progress.success(f"Service {name} destroyed")

    @operation(
        "enter",
        description="Entering service: {name}",
        target_param="name",
    )
    async def enter_service(
        self,
        progress: OperationReporter,
        *,
        datastore_type: DatastoreType | str,
        name: str,
        command: list[str] | None = None,
    ) -> None:
        """Run an interactive command (a shell by default) in the container.

        Cancelling the running task ends the session without an error.
        """
        ref = self._require_service(datastore_type, name)
        container_id = await self._docker.live_container_id(ref.container_name, status="running")
        if not container_id:
            raise NotRunningError(f"service {name} is not running")

        try:
            await self._docker.exec_interactive(container_id, *(command or [ENTER_SHELL]))
        except asyncio.CancelledError:
            progress.dim("Session cancelled")
        except DockerError as e:
            raise RuntimeCommandError(f"failed to enter {name}: {e}", e.stderr, e.code) from e

    @operation(
        "logs",
        description="Showing logs for service: {name}",
        target_param="name",
    )
    async def service_logs(
        self,
        progress: OperationReporter,
        *,
        datastore_type: DatastoreType | str,
        name: str,
        num: int = DEFAULT_LOG_LINES,
        tail: bool = False,
    ) -> None:
        """Stream container logs to the terminal.

        Args:
            progress: Operation reporter (auto-injected)
            datastore_type: Kind of datastore
            name: Service name
            num: Number of trailing lines; ``0`` shows everything
            tail: Keep following the log until cancelled
        """
        ref = self._require_service(datastore_type, name)
        container_id = await self._docker.live_container_id(ref.container_name)
        if not container_id:
            raise NotFoundError(f"container {name} does not exist")

        try:
            await self._docker.logs(container_id, tail=num if num > 0 else None, follow=tail)
        except asyncio.CancelledError:
            progress.dim("Log stream cancelled")
        except DockerError as e:
            raise RuntimeCommandError(f"failed to read logs for {name}: {e}", e.stderr, e.code) from e

    @operation(
        "wait",
        description="Waiting for service: {name}",
        target_param="name",
    )
    async def wait_for_ready(
        self,
        progress: OperationReporter,
        *,
        datastore_type: DatastoreType | str,
        name: str,
    ) -> None:
        """Block until the datastore accepts connections on its wait port."""
        ref = self._require_service(datastore_type, name)
        alias = ref.dns_hostname
        wait_port = ref.datastore.properties.wait_port

        progress.header(f"Waiting for {name} container to be ready")
        with _runtime_errors(f"{name} container did not become ready"):
            await self._docker.run_ephemeral(
                WAIT_IMAGE, "-c", f"{alias}:{wait_port}",
                links=[f"{ref.container_name}:{alias}"],
                network=self.networks.initial_network(ref) or None,
            )

    # -------------------------------------------------------------------------
    # Exposure
    # -------------------------------------------------------------------------

    @operation(
        "expose",
        description="Exposing service: {name}",
        target_param="name",
    )
    async def expose_service(
        self,
        progress: OperationReporter,
        *,
        datastore_type: DatastoreType | str,
        name: str,
        ports: list[str] | None = None,
    ) -> None:
        """Publish the service on host ports through an ambassador.

        With no *ports*, free host ports are picked.
        """
        ref = self._require_service(datastore_type, name)
        await self.exposure.expose(
            ref, list(ports or []), functools.partial(self._start, ref, progress), progress,
        )

    @operation(
        "unexpose",
        description="Unexposing service: {name}",
        target_param="name",
    )
    async def unexpose_service(
        self,
        progress: OperationReporter,
        *,
        datastore_type: DatastoreType | str,
        name: str,
    ) -> None:
        ref = self._require_service(datastore_type, name)
        await self.exposure.unexpose(ref, progress)
        progress.success(f"Service {name} unexposed")

    # -------------------------------------------------------------------------
    # Links
    # -------------------------------------------------------------------------

    @operation(
        "link",
        description="Linking {app} to service: {name}",
        target_param="name",
    )
    async def link_app(
        self,
        progress: OperationReporter,
        *,
        datastore_type: DatastoreType | str,
        name: str,
        app: str,
    ) -> bool:
        """Record *app* as linked; returns ``False`` if it already was."""
        ref = self._require_service(datastore_type, name)
        if not app:
            raise ValidationError("app name is required")
        added = self.links.link_app(ref, app)
        if not added:
            progress.warning(f"App {app} is already linked to {name}")
        return added

    @operation(
        "unlink",
        description="Unlinking {app} from service: {name}",
        target_param="name",
    )
    async def unlink_app(
        self,
        progress: OperationReporter,
        *,
        datastore_type: DatastoreType | str,
        name: str,
        app: str,
    ) -> bool:
        """Forget *app*; returns ``False`` if it was not linked."""
        ref = self._require_service(datastore_type, name)
        removed = self.links.unlink_app(ref, app)
        if not removed:
            progress.warning(f"App {app} is not linked to {name}")
        return removed

    def linked_apps(self, datastore_type: DatastoreType | str, name: str) -> list[str]:
        return self.links.linked_apps(self._require_service(datastore_type, name))

    def is_linked(self, datastore_type: DatastoreType | str, name: str, app: str) -> bool:
        return self.links.is_linked(self._require_service(datastore_type, name), app)

    async def linked_services(
        self,
        datastore_type: DatastoreType | str,
        app: str,
        trace: bool = False,
    ) -> list[str]:
        """Services of *datastore_type* the user may see that *app* is linked to."""
        if not app:
            raise ValidationError("app name is required")
        names = await self.list_services(datastore_type, trace=trace)
        refs = [self.service_ref(datastore_type, service) for service in names]
        return self.links.linked_services(refs, app)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def list_services(
        self,
        datastore_type: DatastoreType | str,
        trace: bool = False,
    ) -> list[str]:
        """Names of every instance of *datastore_type* the user may see."""
        datastore = self._registry.get(datastore_type)
        prefix = datastore.properties.command_prefix
        root = self._settings.data_root / prefix
        if not root.is_dir():
            return []

        services = sorted(
            entry.name for entry in root.iterdir()
            if entry.is_dir() and SERVICE_NAME_RE.match(entry.name)
        )
        return await self._hooks.filter_services(prefix, services, trace)

    async def service_info(self, datastore_type: DatastoreType | str, name: str) -> dict[str, str]:
        """Report the persisted settings and container state of a service."""
        ref = self._require_service(datastore_type, name)
        container_id = await self._docker.live_container_id(ref.container_name)
        info = await self._docker.inspect(container_id) if container_id else None

        return {
            "config-dir": str(ref.folders.config),
            "config-options": self._store.read(ref.files.config_options),
            "data-dir": str(ref.folders.data),
            "dsn": ref.datastore.connection_url(ref.dns_hostname),
            "exposed-ports": self.exposure.exposed_ports(ref),
            "id": container_id,
            "internal-ip": info.ip_address if info else "",
            "initial-network": self.networks.initial_network(ref),
            "links": ",".join(self.links.linked_apps(ref)),
            "post-create-network": ",".join(self.networks.post_create_networks(ref)),
            "post-start-network": ",".join(self.networks.post_start_networks(ref)),
            "service-root": str(ref.folders.root),
            "status": info.status if info and info.status else "missing",
            "version": info.config.image if info else "",
        }

    # -------------------------------------------------------------------------
    # Container removal
    # -------------------------------------------------------------------------

    async def _pause_service(
        self,
        ref: ServiceRef,
        container_id: str,
        progress: OperationReporter,
    ) -> None:
        """Stop the service container and, if present, its ambassador."""
        progress.info("Stopping container")
        with _runtime_errors(f"failed to stop {ref.name} container"):
            await self._docker.stop_container(container_id)
            if await self._docker.container_exists(ref.ambassador_name):
                await self._docker.stop_container(ref.ambassador_name)

    async def _remove_service_container(self, ref: ServiceRef, progress: OperationReporter) -> None:
        container_id = await self._docker.live_container_id(ref.container_name)
        if container_id:
            await self._pause_service(ref, container_id, progress)

        await self.exposure.remove_ambassador(ref, progress)

        if not container_id:
            progress.dim("No container to remove")
            return

        progress.info("Removing container")
        with _runtime_errors(f"failed to remove {ref.name} container"):
            await self._docker.update_restart_policy(container_id, "no")
            await self._docker.remove_container(container_id, force=True)

    async def _remove_backup_schedule(self, ref: ServiceRef, progress: OperationReporter) -> None:
        schedule = cron_file(ref.prefix, ref.name)
        if not schedule.exists():
            return

        progress.dim(f"Removing backup schedule {schedule}")
        result = await run_command(["sudo", "rm", "-f", str(schedule)])
        if not result.ok:
            raise OperationError(f"failed to remove cron file: {result.stderr_contents()}")

    async def _reset_permissions(self, ref: ServiceRef, progress: OperationReporter) -> None:
        """Make files written by the container's own user removable."""
        folders = ref.folders
        progress.dim("Resetting data permissions")
        with _runtime_errors(f"failed to reset permissions for {ref.name}"):
            await self._docker.run_ephemeral(
                BUSYBOX_IMAGE, "chmod", "777", "-R", RESET_CONFIG_MOUNT, RESET_DATA_MOUNT,
                volumes=[
                    f"{folders.host_data}:{RESET_DATA_MOUNT}",
                    f"{folders.host_config}:{RESET_CONFIG_MOUNT}",
                ],
            )


@contextlib.contextmanager
def _runtime_errors(message: str) -> Iterator[None]:
    try:
        yield
    except DockerError as e:
        raise RuntimeCommandError(f"{message}: {e}", e.stderr, e.code) from e

# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Plugin trigger invocation and the service access filter.

Triggers are run through ``plugn trigger <name> <args...>``.  When the
host does not export ``PLUGIN_PATH`` there is no plugin system to call
and every trigger succeeds without running anything.
"""

from __future__ import annotations

import enum
import logging
import os

from .config import Settings
from .operations import HookError
from .process import CommandResult, run_command

logger = logging.getLogger(__name__)

SERVICE_ACTION_TRIGGER = "service-action"
USER_AUTH_SERVICE_TRIGGER = "user-auth-service"
USER_AUTH_APP_TRIGGER = "user-auth-app"

# The events plugin installs a pass-through user-auth-service trigger.
_EVENTS_PLUGIN = "20_events"


class HookPhase(str, enum.Enum):
    """Phases at which ``service-action`` fires."""

    PRE_CREATE = "pre-create"
    POST_CREATE = "post-create"
    POST_CREATE_COMPLETE = "post-create-complete"
    PRE_DELETE = "pre-delete"
    POST_DELETE = "post-delete"


class HookRunner:
    """Fires plugin triggers synchronously."""

    def __init__(self, settings: Settings, plugn_bin: str = "plugn"):
        self._settings = settings
        self._plugn = plugn_bin

    async def trigger(
        self,
        name: str,
        *args: str,
        env: dict[str, str] | None = None,
        stream: bool = True,
    ) -> CommandResult:
        """Run trigger *name*.

        Raises:
            HookError: If the trigger cannot be run or exits non-zero.
        """
        argv = [self._plugn, "trigger", name, *args]
        if not self._settings.hooks_enabled:
            logger.debug("PLUGIN_PATH unset, skipping trigger %s", name)
            return CommandResult(argv=argv, exit_code=0)

        try:
            result = await run_command(argv, env=env, stream=stream)
        except FileNotFoundError as e:
            raise HookError(f"failed to call {name} trigger: {e}") from e

        if not result.ok:
            detail = result.stderr_contents() or f"exit status {result.exit_code}"
            raise HookError(f"failed to call {name} trigger: {detail}")
        return result

    async def service_action(self, phase: HookPhase, datastore_type: str, service: str) -> None:
        """Fire ``service-action`` for *phase*."""
        try:
            await self.trigger(SERVICE_ACTION_TRIGGER, phase.value, datastore_type, service)
        except HookError as e:
            raise HookError(
                f"failed to call {SERVICE_ACTION_TRIGGER} {phase.value} trigger: {e}"
            ) from e

    def _auth_filter_installed(self) -> bool:
        plugin_path = self._settings.plugin_path
        if plugin_path is None:
            return False
        triggers = list((plugin_path / "enabled").glob(f"*/{USER_AUTH_SERVICE_TRIGGER}"))
        if not triggers:
            return False
        if len(triggers) == 1 and triggers[0].parent.name == _EVENTS_PLUGIN:
            return False
        return True

    async def filter_services(
        self,
        command_prefix: str,
        services: list[str],
        trace: bool = False,
    ) -> list[str]:
        """Reduce *services* to those the requesting user may see.

        Without an installed ``user-auth-service`` trigger the list is
        returned unchanged.
        """
        if not services or not self._auth_filter_installed():
            return services

        ssh_user = os.environ.get("SSH_USER") or os.environ.get("USER", "")
        ssh_name = os.environ.get("SSH_NAME") or "default"

        result = await self.trigger(
            USER_AUTH_APP_TRIGGER,
            ssh_user, ssh_name, command_prefix, *services,
            env={
                "SSH_NAME": ssh_name,
                "SSH_USER": ssh_user,
                "TRACE": "true" if trace else "false",
            },
            stream=False,
        )
        return [line.strip() for line in result.stderr.splitlines() if line.strip()]

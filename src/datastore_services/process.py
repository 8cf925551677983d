# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Async subprocess execution shared by the engine client and hooks."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Grace period between SIGTERM and SIGKILL for a cancelled child.
_TERMINATE_TIMEOUT = 5.0


@dataclass
class CommandResult:
    """Outcome of a finished command."""

    argv: list[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def stdout_contents(self) -> str:
        return self.stdout.strip()

    def stderr_contents(self) -> str:
        return self.stderr.strip()


async def run_command(
    argv: Sequence[str],
    *,
    env: Mapping[str, str] | None = None,
    stream: bool = False,
    interactive: bool = False,
) -> CommandResult:
    """Run *argv* and wait for it to exit.

    Args:
        argv: Program and arguments.
        env: Extra environment variables layered over ``os.environ``.
        stream: Let the child write straight to our stdout/stderr
            instead of capturing its output.
        interactive: Like *stream*, and also hand it our stdin.

    If the awaiting task is cancelled the child is terminated (then
    killed after a grace period) before ``CancelledError`` propagates.
    """
    argv = list(argv)
    child_env = None
    if env:
        child_env = {**os.environ, **env}

    capture = not (stream or interactive)
    logger.debug("exec: %s", " ".join(argv))
    proc = await asyncio.create_subprocess_exec(
        *argv,
        stdin=None if interactive else asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE if capture else None,
        stderr=asyncio.subprocess.PIPE if capture else None,
        env=child_env,
    )

    try:
        out, err = await proc.communicate()
    except asyncio.CancelledError:
        await _terminate(proc)
        raise

    return CommandResult(
        argv=argv,
        exit_code=proc.returncode if proc.returncode is not None else -1,
        stdout=out.decode("utf-8", errors="replace") if out else "",
        stderr=err.decode("utf-8", errors="replace") if err else "",
    )


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    logger.debug("terminating pid %s after cancellation", proc.pid)
    try:
        proc.terminate()
        await asyncio.wait_for(proc.wait(), timeout=_TERMINATE_TIMEOUT)
    except ProcessLookupError:
        return
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()

# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Typer app that accepts ``async def`` commands.

Each coroutine command runs as a single asyncio task.  SIGINT, SIGTERM,
SIGHUP and SIGQUIT cancel that task, which in turn terminates any child
process it is waiting on.  A command that lets the cancellation escape
exits with status 130.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import signal
from collections.abc import Callable, Coroutine
from typing import Any, TypeVar

import typer

from .output import out

_CANCEL_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP, signal.SIGQUIT)

_F = TypeVar("_F", bound=Callable[..., Any])


def run_cancellable(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run *coro* to completion, cancelling it on termination signals."""
    return asyncio.run(_supervise(coro))


async def _supervise(coro: Coroutine[Any, Any, Any]) -> Any:
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(coro)
    for sig in _CANCEL_SIGNALS:
        loop.add_signal_handler(sig, task.cancel)
    try:
        return await task
    except asyncio.CancelledError:
        out.warning("Interrupted")
        raise typer.Exit(130)
    finally:
        for sig in _CANCEL_SIGNALS:
            loop.remove_signal_handler(sig)


class AsyncTyper(typer.Typer):
    """Typer whose ``command`` decorator also takes coroutine functions."""

    @staticmethod
    def _sync(fn: Callable[..., Coroutine[Any, Any, Any]]) -> Callable[..., Any]:
        @functools.wraps(fn)
        def runner(*args: Any, **kwargs: Any) -> Any:
            return run_cancellable(fn(*args, **kwargs))
        return runner

    def command(self, *args: Any, **kwargs: Any) -> Callable[[_F], _F]:
        register = super().command(*args, **kwargs)

        def decorator(fn: _F) -> _F:
            if inspect.iscoroutinefunction(fn):
                register(self._sync(fn))
            else:
                register(fn)
            return fn

        return decorator

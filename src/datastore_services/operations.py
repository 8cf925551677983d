# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Operation errors, progress reporting and the ``@operation`` decorator.

Every public lifecycle method of the service manager is wrapped with
:func:`operation`.  The decorator injects an :class:`OperationReporter`
as the ``progress`` argument, logs the start and end of the operation,
and makes sure anything escaping the method is an :class:`OperationError`
that names the operation which failed.

Error taxonomy
--------------
``ValidationError``        bad name syntax, bad port count, missing field
``ConflictError``          already exists, still linked
``NotFoundError``          instance or container absent
``ImageUnavailableError``  image missing and pull disabled or failed
``RuntimeCommandError``    container engine exited non-zero
``HookError``              plugin trigger exited non-zero

Cancellation is not an error: ``asyncio.CancelledError`` is never caught
or wrapped here.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Concatenate, ParamSpec, Protocol, TypeVar

logger = logging.getLogger(__name__)


class OperationError(Exception):
    """Base class for every failure surfaced by a lifecycle operation."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class ValidationError(OperationError):
    """Input failed validation before anything was changed."""


class ConflictError(OperationError):
    """The requested change conflicts with existing state."""


class AlreadyExistsError(ConflictError):
    """A service with this name already exists."""


class NotFoundError(OperationError):
    """The service or its container does not exist."""


class NotRunningError(NotFoundError):
    """The service container exists but is not running."""


class ImageUnavailableError(OperationError):
    """The image is not available locally and could not be pulled."""


class RuntimeCommandError(OperationError):
    """A container engine command exited non-zero."""

    def __init__(self, message: str, stderr: str = "", exit_code: int | None = None):
        super().__init__(message)
        self.stderr = stderr
        self.exit_code = exit_code


class HookError(OperationError):
    """A plugin trigger exited non-zero."""


class ProgressSink(Protocol):
    def __call__(self, level: str, message: str) -> None: ...


class OperationReporter:
    """Reports progress of a single running operation.

    Messages always go to the module logger.  When a *sink* is attached
    (the CLI attaches one that prints through Rich) they are forwarded
    there as well.
    """

    def __init__(self, name: str, target: str | None = None, sink: ProgressSink | None = None):
        self.name = name
        self.target = target
        self._sink = sink

    def _emit(self, level: str, log_level: int, message: str) -> None:
        logger.log(log_level, "[%s %s] %s", self.name, self.target or "-", message)
        if self._sink is not None:
            self._sink(level, message)

    def info(self, message: str) -> None:
        self._emit("info", logging.INFO, message)

    def dim(self, message: str) -> None:
        self._emit("dim", logging.DEBUG, message)

    def warning(self, message: str) -> None:
        self._emit("warning", logging.WARNING, message)

    def success(self, message: str) -> None:
        self._emit("success", logging.INFO, message)

    def header(self, message: str) -> None:
        self._emit("header", logging.INFO, message)


class SupportsProgress(Protocol):
    """Objects whose operations report through a shared sink."""

    progress_sink: ProgressSink | None


_P = ParamSpec("_P")
_R = TypeVar("_R")
_S = TypeVar("_S", bound=SupportsProgress)


def operation(
    name: str,
    *,
    description: str,
    target_param: str | None = None,
) -> Callable[
    [Callable[Concatenate[_S, OperationReporter, _P], Awaitable[_R]]],
    Callable[Concatenate[_S, _P], Awaitable[_R]],
]:
    """Wrap an async method as a named lifecycle operation.

    Args:
        name: Short operation name used in logs and error messages.
        description: Format string rendered with the call's keyword
            arguments, e.g. ``"Creating service: {name}"``.
        target_param: Keyword argument naming the operation's target.

    The decorated method must accept ``progress`` as its first argument
    after ``self``; callers do not pass it.
    """

    def decorator(
        fn: Callable[Concatenate[_S, OperationReporter, _P], Awaitable[_R]],
    ) -> Callable[Concatenate[_S, _P], Awaitable[_R]]:
        signature = inspect.signature(fn)

        @functools.wraps(fn)
        async def wrapper(self: _S, *args: _P.args, **kwargs: _P.kwargs) -> _R:
            bound = signature.bind_partial(self, None, *args, **kwargs)
            call_args: dict[str, Any] = dict(bound.arguments)
            target = str(call_args.get(target_param, "")) if target_param else None

            progress = OperationReporter(name, target, self.progress_sink)
            try:
                progress.dim(description.format_map(_Defaulting(call_args)))
            except (KeyError, IndexError, ValueError):
                progress.dim(description)

            try:
                result = await fn(self, progress, *args, **kwargs)
            except OperationError as e:
                if e.operation is None:
                    e.operation = name
                logger.debug("Operation %s on %s failed: %s", name, target, e)
                raise
            except OSError as e:
                raise OperationError(f"{name} failed: {e}", operation=name) from e

            logger.debug("Operation %s on %s finished", name, target)
            return result

        return wrapper

    return decorator


class _Defaulting(dict[str, Any]):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"

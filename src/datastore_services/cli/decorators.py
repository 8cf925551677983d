# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Decorators for CLI commands."""

from functools import wraps
from typing import Callable, Coroutine, TypeVar

import typer

from ..operations import OperationError
from .context import get_docker, get_settings
from .output import out

R = TypeVar("R")


def require_docker(func: Callable[..., Coroutine[None, None, R]]) -> Callable[..., Coroutine[None, None, R]]:
    """Decorator that checks the container engine and handles OperationError."""
    @wraps(func)
    async def wrapper(*args: object, **kwargs: object) -> R:
        if not await get_docker().is_available():
            out.error("The container engine is not available.")
            out.hint(f"Check that [bold]{get_settings().docker_bin}[/bold] runs and its daemon is up")
            raise typer.Exit(1)

        try:
            return await func(*args, **kwargs)
        except OperationError as e:
            out.error(str(e))
            raise typer.Exit(1)
    return wrapper

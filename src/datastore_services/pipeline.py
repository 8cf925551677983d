# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Ordered pipelines of async step functions.

A lifecycle operation such as service creation is a fixed sequence of
phases (validate, resolve image, run hooks, provision, launch ...).
Each phase is an async function taking a shared context object; the
pipeline runs them in ascending ``order``.  Steps living in different
modules register themselves by decorating with :meth:`Pipeline.step`,
so importing a pipeline package is enough to assemble it.

There is no rollback: a step that raises stops the pipeline and the
exception propagates to the caller unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar, overload

logger = logging.getLogger(__name__)

_Ctx = TypeVar("_Ctx")

_StepFn = Callable[[_Ctx], Awaitable[None]]

_DEFAULT_ORDER = 500


class Pipeline(Generic[_Ctx]):
    """A registry of async steps executed in ``order``.

    Steps with equal order run in registration order.  Use multiples of
    100 so there is room to insert steps later.

    Example::

        launch = Pipeline[LaunchContext]("launch")

        @launch.step(order=100)
        async def create_container(ctx: LaunchContext) -> None: ...
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: list[tuple[int, int, _StepFn[_Ctx]]] = []
        self._seq = 0

    @overload
    def step(self, fn: _StepFn[_Ctx]) -> _StepFn[_Ctx]: ...
    @overload
    def step(self, *, order: int) -> Callable[[_StepFn[_Ctx]], _StepFn[_Ctx]]: ...

    def step(
        self,
        fn: _StepFn[_Ctx] | None = None,
        *,
        order: int = _DEFAULT_ORDER,
    ) -> _StepFn[_Ctx] | Callable[[_StepFn[_Ctx]], _StepFn[_Ctx]]:
        """Register *fn* as a step, bare or as ``step(order=...)``."""
        def _register(f: _StepFn[_Ctx]) -> _StepFn[_Ctx]:
            self._entries.append((order, self._seq, f))
            self._seq += 1
            return f

        if fn is not None:
            return _register(fn)
        return _register

    def steps(self) -> list[str]:
        """Names of the registered steps in execution order."""
        return [f.__name__ for _o, _s, f in sorted(self._entries, key=_sort_key)]

    async def run(self, ctx: _Ctx) -> None:
        """Execute every registered step in order."""
        for _order, _seq, fn in sorted(self._entries, key=_sort_key):
            logger.debug("%s: running step %s", self.name, fn.__name__)
            await fn(ctx)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Pipeline({self.name!r}, {self.steps()!r})"


def _sort_key(entry: tuple[int, int, object]) -> tuple[int, int]:
    return entry[0], entry[1]

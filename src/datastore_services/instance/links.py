# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Tracking of the apps linked to each service.

The ``LINKS`` file holds one app name per line.  Only membership
matters.  Concurrent updates to the same file are not serialized.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..operations import ConflictError
from ..properties import PropertyStore
from .contexts import ServiceRef


class LinkTracker:
    def __init__(self, store: PropertyStore):
        self._store = store

    def linked_apps(self, ref: ServiceRef) -> list[str]:
        seen: dict[str, None] = {}
        for app in self._store.read_lines(ref.files.links):
            seen.setdefault(app, None)
        return list(seen)

    def is_linked(self, ref: ServiceRef, app: str) -> bool:
        return app in self.linked_apps(ref)

    def link_app(self, ref: ServiceRef, app: str) -> bool:
        """Add *app*; returns ``False`` if it was already linked."""
        apps = self.linked_apps(ref)
        if app in apps:
            return False
        self._store.write_lines(ref.files.links, apps + [app])
        return True

    def unlink_app(self, ref: ServiceRef, app: str) -> bool:
        """Remove *app*; returns ``False`` if it was not linked."""
        apps = self.linked_apps(ref)
        if app not in apps:
            return False
        self._store.write_lines(ref.files.links, [a for a in apps if a != app])
        return True

    def ensure_unlinked(self, ref: ServiceRef) -> None:
        """Raise :class:`ConflictError` while any app is linked."""
        if self.linked_apps(ref):
            raise ConflictError("cannot delete linked service")

    def linked_services(self, refs: Iterable[ServiceRef], app: str) -> list[str]:
        """Names of the services in *refs* that *app* is linked to."""
        return [ref.name for ref in refs if self.is_linked(ref, app)]

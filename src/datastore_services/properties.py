# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""File-backed persistence for service fields and named properties.

Two kinds of state are kept on disk:

* **Fields**: small text files directly under a service root
  (``IMAGE``, ``PORT``, ``LINKS`` ...).  Callers address them by path.
* **Named properties**: a generic per-plugin key/value table at
  ``<lib-root>/config/<prefix>/<service>/<property>``, used for the
  network settings.

Reading anything that is unset yields ``""`` (or ``[]``), never an
error; callers apply their own defaults.  Writes are not transactional.
"""

from __future__ import annotations

import grp
import logging
import os
import pwd
import shutil
from pathlib import Path

from .config import Settings

logger = logging.getLogger(__name__)

DEFAULT_MODE = 0o644


class PropertyStore:
    """Reads and writes service fields and named properties."""

    def __init__(self, settings: Settings):
        self._settings = settings

    # -------------------------------------------------------------------------
    # Fields
    # -------------------------------------------------------------------------

    def read(self, path: Path) -> str:
        """First line of *path* with surrounding whitespace removed."""
        lines = self.read_lines(path)
        return lines[0] if lines else ""

    def read_lines(self, path: Path) -> list[str]:
        """Non-empty, stripped lines of *path*; ``[]`` if it is missing."""
        try:
            content = path.read_text(encoding="utf-8")
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            return []
        return [line.strip() for line in content.splitlines() if line.strip()]

    def write(self, path: Path, content: str, mode: int = DEFAULT_MODE) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        os.chmod(path, mode)
        self._apply_ownership(path)

    def write_lines(self, path: Path, lines: list[str], mode: int = DEFAULT_MODE) -> None:
        self.write(path, "\n".join(lines) + ("\n" if lines else ""), mode)

    def touch(self, path: Path) -> None:
        if path.exists():
            return
        self.write(path, "")

    def remove(self, path: Path) -> None:
        """Delete a field file; absent files are fine."""
        try:
            path.unlink()
        except FileNotFoundError:
            pass

    def make_dirs(self, *paths: Path) -> None:
        for path in paths:
            path.mkdir(mode=0o755, parents=True, exist_ok=True)
            self._apply_ownership(path)

    # -------------------------------------------------------------------------
    # Named properties
    # -------------------------------------------------------------------------

    def _property_dir(self, prefix: str, service: str) -> Path:
        return self._settings.property_root / prefix / service

    def property_get(self, prefix: str, service: str, key: str) -> str:
        return self.read(self._property_dir(prefix, service) / key)

    def property_write(self, prefix: str, service: str, key: str, value: str) -> None:
        self.write(self._property_dir(prefix, service) / key, value)

    def property_delete(self, prefix: str, service: str, key: str) -> None:
        self.remove(self._property_dir(prefix, service) / key)

    def has_properties(self, prefix: str, service: str) -> bool:
        directory = self._property_dir(prefix, service)
        return directory.is_dir() and any(directory.iterdir())

    def property_destroy(self, prefix: str, service: str) -> None:
        """Delete every property stored for *service*."""
        directory = self._property_dir(prefix, service)
        if directory.exists():
            shutil.rmtree(directory)

    # -------------------------------------------------------------------------

    def _apply_ownership(self, path: Path) -> None:
        """Hand *path* to the system account when running as root."""
        if os.geteuid() != 0:
            return
        try:
            uid = pwd.getpwnam(self._settings.system_user).pw_uid
            gid = grp.getgrnam(self._settings.system_group).gr_gid
        except KeyError:
            logger.warning(
                "System account %s:%s not found; leaving %s owned by root",
                self._settings.system_user, self._settings.system_group, path,
            )
            return
        os.chown(path, uid, gid)

# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Datastore registry.

A :class:`DatastoreRegistry` is built once per process and handed to
the service manager.  Lookups are keyed by :class:`DatastoreType`, so the
set of supported datastores is closed.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..operations import ValidationError
from .base import Datastore, DatastoreProperties, DatastoreType, ProvisionRequest
from .redis import RedisDatastore

__all__ = [
    "Datastore",
    "DatastoreProperties",
    "DatastoreRegistry",
    "DatastoreType",
    "ProvisionRequest",
    "RedisDatastore",
    "default_registry",
]


class DatastoreRegistry:
    """Immutable mapping of datastore type to implementation."""

    def __init__(self, datastores: Iterable[Datastore]):
        self._datastores: dict[DatastoreType, Datastore] = {}
        for datastore in datastores:
            if datastore.type in self._datastores:
                raise ValueError(f"datastore type {datastore.type.value} registered twice")
            self._datastores[datastore.type] = datastore

    def get(self, datastore_type: DatastoreType | str) -> Datastore:
        """Look up a datastore by type or type name.

        Raises:
            ValidationError: If the type is not supported.
        """
        try:
            key = DatastoreType(datastore_type)
            return self._datastores[key]
        except (ValueError, KeyError):
            name = getattr(datastore_type, "value", datastore_type)
            raise ValidationError(f"datastore type {name} is not supported") from None

    def types(self) -> list[DatastoreType]:
        return list(self._datastores)

    def __contains__(self, datastore_type: object) -> bool:
        try:
            return DatastoreType(datastore_type) in self._datastores
        except ValueError:
            return False


def default_registry() -> DatastoreRegistry:
    return DatastoreRegistry([RedisDatastore()])

# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Service instance management package: public API re-exports."""

from .contexts import ServiceRef
from .service import ServiceManager
from .state import ServiceState

__all__ = ["ServiceManager", "ServiceRef", "ServiceState"]

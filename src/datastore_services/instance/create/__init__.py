# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Service creation pipeline: validation, provisioning and first launch.

Importing this package registers all steps with the pipeline.
"""

from ...pipeline import Pipeline
from ..contexts import CreateContext

create_pipeline = Pipeline[CreateContext]("create")

# Import step modules so their decorators register with the pipeline.
# Checks that run before anything touches disk
from . import preflight as _  # noqa: F401, E402

# Service root, engine config and persisted fields
from . import provision as _  # noqa: F401, E402

# Container launch and the closing hook
from . import launch as _  # noqa: F401, E402

# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Launch pipeline: create the service container from persisted fields and bring it up.

Shared by service creation and by starting a service whose container is
gone.  Importing this package registers all steps with the pipeline.
"""

from ...pipeline import Pipeline
from ..contexts import LaunchContext

launch_pipeline = Pipeline[LaunchContext]("launch")

# Import step modules so their decorators register with the pipeline.
from . import build_spec as _  # noqa: F401, E402
from . import bring_up as _  # noqa: F401, E402

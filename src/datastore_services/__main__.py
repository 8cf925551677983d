# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Entry point for running the CLI directly.

Usage:
    python -m datastore_services redis list
"""

from .cli.main import cli

if __name__ == "__main__":
    cli()

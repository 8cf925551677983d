# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Lifecycle management for single-container datastore services."""

__version__ = "0.1.0"

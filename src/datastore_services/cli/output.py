# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Terminal output for the command line.

All user-facing text goes through the module-level :data:`out` object.
Status messages go to stderr so that ``--format json`` output on stdout
stays machine readable.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table


class Output:
    """Rich-backed printer with quiet and JSON modes."""

    def __init__(self) -> None:
        self.console = Console()
        self.err_console = Console(stderr=True)
        self.quiet = False
        self.json_mode = False

    def configure(self, *, quiet: bool = False, json_mode: bool = False) -> None:
        self.quiet = quiet
        self.json_mode = json_mode

    def _status(self, markup: str) -> None:
        if not self.quiet:
            self.err_console.print(markup, highlight=False)

    def info(self, message: str) -> None:
        self._status(escape(message))

    def success(self, message: str) -> None:
        self._status(f"[green]✓[/green] {escape(message)}")

    def warning(self, message: str) -> None:
        self._status(f"[yellow]![/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        # Errors are printed even in quiet mode
        self.err_console.print(f"[bold red]✗[/bold red] {escape(message)}", highlight=False)

    def hint(self, markup: str) -> None:
        self._status(f"  [dim]→[/dim] {markup}")

    def dim(self, message: str) -> None:
        self._status(f"[dim]{escape(message)}[/dim]")

    def header(self, message: str) -> None:
        self._status(f"[bold]=====> {escape(message)}[/bold]")

    def section(self, message: str) -> None:
        self._status(f"[bold cyan]-----> {escape(message)}[/bold cyan]")

    def progress(self, level: str, message: str) -> None:
        """Progress sink for :class:`~datastore_services.operations.OperationReporter`."""
        handlers = {
            "info": self.info,
            "dim": self.dim,
            "warning": self.warning,
            "success": self.success,
            "header": self.header,
        }
        handlers.get(level, self.info)(message)

    # -------------------------------------------------------------------------
    # Data
    # -------------------------------------------------------------------------

    def data(self, value: Any) -> None:
        """Print a JSON document on stdout."""
        self.console.print_json(json.dumps(value))

    def report(self, title: str, values: Mapping[str, str]) -> None:
        """Print a key/value report, or a JSON object in JSON mode."""
        if self.json_mode:
            self.data(dict(values))
            return
        self.section(title)
        width = max((len(key) for key in values), default=0) + 1
        for key, value in values.items():
            label = (key[:1].upper() + key[1:].replace("-", " ")).ljust(width)
            self.console.print(f"       {escape(label)} {escape(value)}", highlight=False)

    def names(self, title: str, names: list[str]) -> None:
        """Print a one-column table, or a JSON array in JSON mode."""
        if self.json_mode:
            self.data(names)
            return
        table = Table(title=title)
        table.add_column("Name", style="cyan", no_wrap=True)
        for name in names:
            table.add_row(name)
        self.console.print(table)


out = Output()

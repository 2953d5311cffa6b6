#!/usr/bin/env python3
"""
MODLINT FORMATTER - Rich Reports
--------------------------------
Tables, panels and YAML output for the command line.

Author: ModLint Team
Date: 2026-01-16
"""

import io
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from ruamel.yaml import YAML

from modlint.core.engine import ModuleErrorRecord
from modlint.core.module import Module


class ModLintFormatter:
    """
    Everything the CLI prints goes through here: object tables, dropped
    modules, the run summary and values documents.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_module(self, module: Module):
        """One table per module, rows in store order."""
        namespace = module.get_namespace() or "-"
        table = Table(
            title=f"{module.get_name()} ({namespace})",
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("Kind", style="cyan")
        table.add_column("Namespace")
        table.add_column("Name", style="bold")
        table.add_column("Template", style="dim")

        for obj in module.get_object_store():
            table.add_row(obj.get_kind(), obj.get_namespace() or "-", obj.get_name(), obj.short_path())

        if not len(module.get_object_store()):
            self.console.print(f"[dim]ℹ {module.get_name()}: no objects indexed.[/dim]")
            return
        self.console.print(table)

    def print_errors(self, records: List[ModuleErrorRecord]):
        if not records:
            return

        table = Table(title="Dropped Modules", show_lines=True, header_style="bold red")
        table.add_column("Module", style="cyan")
        table.add_column("Path", style="dim")
        table.add_column("Error")

        for record in records:
            table.add_row(record.name or "?", record.path, record.message)
        self.console.print(table)

    def print_summary(self, summary: Dict[str, Any]):
        color = "green" if not summary.get("failed") else "red"
        self.console.print(Panel(
            f"[bold white]Summary Report[/bold white]\n"
            f"════════════════════════════════════════\n"
            f"Modules:   {summary['total_modules']}\n"
            f"Built:     [green]{summary['built']}[/green]\n"
            f"Failed:    [{color}]{summary['failed']}[/{color}]\n"
            f"Objects:   {summary['objects']}",
            border_style="dim",
        ))

    def print_values(self, name: str, values: Optional[Dict[str, Any]]):
        if values is None:
            self.console.print(f"[bold yellow]⚠️  {name}: module has no values schema.[/bold yellow]")
            return

        yaml = YAML(typ="safe")
        yaml.default_flow_style = False
        stream = io.StringIO()
        yaml.dump(values, stream)
        self.console.print(Syntax(stream.getvalue(), "yaml", theme="monokai"))

#!/usr/bin/env python3
"""
MODLINT CLI
-----------
Command line front-end for the materialization engine.

    modlint render <module>...   build modules and list their objects
    modlint values <module>      print the Values a module renders with

Exit code is 1 when any module was dropped.

Author: ModLint Team
Date: 2026-01-16
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn

from modlint.cli.formatter import ModLintFormatter
from modlint.core.engine import MaterializationEngine
from modlint.core.errors import ModuleBuildError
from modlint.core.settings import LintSettings

console = Console()


class ModLintCLI:
    """Translates command line arguments into engine runs."""

    def __init__(self, console: Console = console):
        self.console = console
        self.formatter = ModLintFormatter(console)
        self.parser = argparse.ArgumentParser(
            prog="modlint",
            description="ModLint - Kubernetes module materialization and linting",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self._setup_args()

    def _setup_args(self):
        self.parser.add_argument("-v", "--version", action="version", version="modlint v0.1.0")
        self.parser.add_argument("--log-level", default="WARNING",
                                 choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                                 help="Logging verbosity (default: WARNING)")

        common = argparse.ArgumentParser(add_help=False)
        common.add_argument("--values", dest="values_file", help="YAML file merged over the composed values")
        common.add_argument("--global-root", help="Directory holding global-hooks/openapi")
        common.add_argument("--helm", dest="helm_bin", help="helm binary (default: $MODLINT_HELM_BIN or 'helm')")
        common.add_argument("--timeout", type=int, default=60, help="Seconds allowed per helm render")

        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        render_parser = subparsers.add_parser("render", parents=[common], help="🔍 Render modules and index objects")
        render_parser.add_argument("modules", nargs="+", help="Module directories")
        render_parser.add_argument("--workers", type=int, default=1, help="Modules built in parallel")
        render_parser.add_argument("--quiet", action="store_true", help="Only print errors and the summary")

        values_parser = subparsers.add_parser("values", parents=[common], help="📄 Print a module's composed values")
        values_parser.add_argument("module", help="Module directory")

    def _settings(self, args: argparse.Namespace) -> LintSettings:
        settings = LintSettings(
            global_root=args.global_root,
            values_file=args.values_file,
            helm_timeout=args.timeout,
            workers=getattr(args, "workers", 1),
        )
        if args.helm_bin:
            settings.helm_bin = args.helm_bin
        return settings

    def _run_render(self, args: argparse.Namespace) -> int:
        missing = [m for m in args.modules if not Path(m).is_dir()]
        if missing:
            for m in missing:
                self.console.print(f"[bold red]Error:[/bold red] Module directory '{m}' not found.")
            return 1

        engine = MaterializationEngine(self._settings(args))

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(bar_width=40),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        ) as progress:
            task_id = progress.add_task("Building modules...", total=len(args.modules))
            result = engine.build_all(
                args.modules,
                progress_callback=lambda done, total: progress.update(task_id, completed=done),
            )

        if not args.quiet:
            for module in result.modules:
                self.formatter.print_module(module)
        self.formatter.print_errors(result.errors)
        self.formatter.print_summary(engine.generate_summary(result))
        return 1 if result.failed else 0

    def _run_values(self, args: argparse.Namespace) -> int:
        engine = MaterializationEngine(self._settings(args))
        values = engine.compose_values(args.module)
        self.formatter.print_values(Path(args.module).name, values)
        return 0

    def run(self, argv: Optional[List[str]] = None) -> int:
        args = self.parser.parse_args(argv)
        logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

        if args.command is None:
            self.parser.print_help()
            return 0

        try:
            if args.command == "render":
                return self._run_render(args)
            return self._run_values(args)
        except ModuleBuildError as e:
            # Failures outside any single module (global schema, values file) end the run.
            self.console.print(Panel(f"[bold red]{e}[/bold red]", title="Fatal", border_style="red"))
            return 1
        except ValueError as e:
            self.console.print(f"[bold red]Error:[/bold red] {e}")
            return 1


def main():
    try:
        sys.exit(ModLintCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
practicegen - Practice Builder CLI

Usage:
    practicegen practices                  # Regenerate stale practices in place
    practicegen practices --force          # Regenerate every practice
    practicegen practices --watch          # Rebuild on every solution save
    practicegen workbook -o ../workbook    # Export the learner project
    practicegen solutions -o ../solutions  # Export the reference project
"""

import sys
import argparse
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .builder import BuildOrchestrator, BuildOutcome, BuildReport
from .config import BuilderSettings
from .project import ProjectExporter, ExportError

EXIT_OK = 0
EXIT_FAIL = 1


class PracticeBuilder:
    """Main CLI interface for practicegen"""

    def __init__(self, project_root: str = '.', console: Console = None, verbose: bool = False):
        self.project_root = Path(project_root).resolve()
        self.console = console or Console()
        self.verbose = verbose
        self.settings = BuilderSettings.load(self.project_root)

    def practices(self, forced: bool = False, pattern: str = None, watch: bool = False) -> int:
        """Regenerate practices in place"""
        orchestrator = BuildOrchestrator(
            self.project_root, self.settings, console=self.console, verbose=self.verbose
        )
        if not orchestrator.resolver.solutions_root.is_dir():
            self.console.print(
                f"[red]No solutions directory at {orchestrator.resolver.solutions_root}[/red]"
            )
            return EXIT_FAIL

        self.console.print(Panel(
            f"[bold]Building practices[/bold]\n[dim]{escape(str(self.project_root))}[/dim]",
            border_style="cyan",
        ))
        report = orchestrator.build(pattern=pattern, forced=forced)
        self._display_report(report)

        if watch:
            from .builder.watcher import PracticeWatcher
            watcher = PracticeWatcher(orchestrator, console=self.console)
            watcher.start()
            watcher.wait()

        return EXIT_OK if report.ok else EXIT_FAIL

    def workbook(self, output: str, disable_plugins: bool = False) -> int:
        """Export the learner project"""
        exporter = ProjectExporter(self.project_root, self.settings, console=self.console)
        return self._run_export(exporter.export_workbook, output, disable_plugins)

    def solutions(self, output: str, disable_plugins: bool = False) -> int:
        """Export the reference project"""
        exporter = ProjectExporter(self.project_root, self.settings, console=self.console)
        return self._run_export(exporter.export_solutions, output, disable_plugins)

    def _run_export(self, export, output: str, disable_plugins: bool) -> int:
        try:
            export(output, disable_plugins=disable_plugins)
        except ExportError as e:
            self.console.print(f"[red]Export failed: {escape(str(e))}[/red]")
            return EXIT_FAIL
        return EXIT_OK

    def _display_report(self, report: BuildReport):
        """Display a per-directory summary"""
        table = Table(title="Practice build", show_lines=False)
        table.add_column("Exercise")
        for outcome in BuildOutcome:
            table.add_column(outcome.value.capitalize(), justify="right")

        for directory in report.directories:
            counts = directory.count()
            name = directory.directory.name
            style = None if directory.ok else "red"
            table.add_row(name, *[str(counts[outcome]) for outcome in BuildOutcome], style=style)

        self.console.print(table)

        failures = report.failures
        if failures:
            self.console.print(f"\n[bold red]{len(failures)} file(s) failed:[/bold red]")
            for result in failures:
                self.console.print(f"  - {result.source}")
                self.console.print(f"    [red]{escape(result.message)}[/red]")
        else:
            self.console.print("\n[green]OK[/green]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='practicegen',
        description='practicegen - Build practice starter files from solutions',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Directives (trailing comments in solution files):
  code # replacement          Replace the line with 'replacement'
  code #                      Delete the line
  code #> replacement         Replace and indent one level (>> for two)
  code #< replacement         Replace and dedent one level

Examples:
  practicegen practices                       # Rebuild stale practices
  practicegen practices --pattern "lesson_3*" # Rebuild matching exercises only
  practicegen workbook -o build/workbook --disable-plugins
        """
    )
    parser.add_argument('--project', default='.', help='Project root (default: current directory)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Also list skipped files')

    subparsers = parser.add_subparsers(dest='command')

    practices = subparsers.add_parser('practices', help='Regenerate practices in place')
    practices.add_argument('-f', '--force', action='store_true',
                           help='Rebuild even when practices are up to date')
    practices.add_argument('--pattern', metavar='GLOB',
                           help='Only build files matching this glob')
    practices.add_argument('--watch', action='store_true',
                           help='Keep running and rebuild on every solution save')

    for name, help_text in (('workbook', 'Generate the workbook (learner) project'),
                            ('solutions', 'Generate the solutions project')):
        export = subparsers.add_parser(name, help=help_text)
        export.add_argument('-o', '--output', required=True, help='Output directory')
        export.add_argument('--disable-plugins', action='store_true',
                            help='Strip editor plugins and autoloads from the project file')

    return parser


def main(argv=None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_FAIL

    builder = PracticeBuilder(args.project, verbose=args.verbose)

    if args.command == 'practices':
        return builder.practices(forced=args.force, pattern=args.pattern, watch=args.watch)
    if args.command == 'workbook':
        return builder.workbook(args.output, disable_plugins=args.disable_plugins)
    return builder.solutions(args.output, disable_plugins=args.disable_plugins)


if __name__ == "__main__":
    sys.exit(main())

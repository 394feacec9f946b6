#!/usr/bin/env python3
"""
BuildOrchestrator - walks the solutions tree and writes the practices tree.
Handles one exercise directory at a time; the first failure in a directory
stops the remaining files of that directory.
"""

import shutil
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from .errors import BuilderError
from .paths import PathResolver
from .scanner import FileTreeScanner
from .scene_diff import SceneDiffApplier, load_diff_script
from .staleness import should_skip
from .state import (
    BuildOutcome,
    BuildReport,
    DirectoryResult,
    FileResult,
    PracticeFile,
    SolutionFile,
)
from .transformer import ContentPipeline, LineTransformer
from ..config import BuilderSettings


OUTCOME_STYLES = {
    BuildOutcome.SKIP: 'dim',
    BuildOutcome.COPY: 'cyan',
    BuildOutcome.PROCESS: 'green',
    BuildOutcome.DIFF: 'magenta',
    BuildOutcome.FAIL: 'red',
}


class BuildOrchestrator:
    """Builds practices from solutions for a project"""

    def __init__(
        self,
        project_root,
        settings: Optional[BuilderSettings] = None,
        console: Console = None,
        verbose: bool = False,
    ):
        self.settings = settings or BuilderSettings()
        self.console = console or Console()
        self.verbose = verbose

        self.resolver = PathResolver(
            project_root,
            solutions_dir=self.settings.solutions_dir,
            practices_dir=self.settings.practices_dir,
            resource_scheme=self.settings.resource_scheme,
        )
        self.scanner = FileTreeScanner(excludes=self.settings.excludes)
        self.pipeline = ContentPipeline(
            self.resolver,
            transformer=LineTransformer(indent_unit=self.settings.indent_unit),
            processable_extensions=self.settings.processable_extensions,
        )
        self.scene_applier = SceneDiffApplier(self.settings.solution_only_group)
        self.scene_extensions = {ext.lower() for ext in self.settings.scene_extensions}

    def exercise_directories(self, pattern: Optional[str] = None) -> List[Path]:
        """
        Exercise directories under the solutions root.

        Files placed directly in the root form a unit of their own.
        """
        root = self.resolver.solutions_root
        if not root.is_dir():
            return []

        directories = []
        if self.scanner.scan(root, recursive=False):
            directories.append(root)
        for path in sorted(root.iterdir()):
            if path.is_dir() and path.name not in ('__pycache__',) and not path.name.startswith('.'):
                directories.append(path)

        if pattern:
            directories = [d for d in directories if self.scanner.scan(d, pattern, recursive=d != root)]
        return directories

    def build(self, pattern: Optional[str] = None, forced: bool = False) -> BuildReport:
        """Build every exercise directory, optionally filtered by a glob"""
        report = BuildReport()
        for directory in self.exercise_directories(pattern):
            result = self.build_directory(directory, forced=forced, pattern=pattern)
            report.directories.append(result)
        return report

    def build_directory(
        self,
        directory: Path,
        forced: bool = False,
        pattern: Optional[str] = None,
    ) -> DirectoryResult:
        """Build the practices of one exercise directory"""
        directory = Path(directory)
        result = DirectoryResult(directory=directory)
        recursive = directory != self.resolver.solutions_root

        try:
            diff_script = load_diff_script(directory, self.settings.diff_script_name)
        except BuilderError as e:
            result.files.append(FileResult(
                source=directory / self.settings.diff_script_name,
                target=self.resolver.to_practice(directory),
                steps=[BuildOutcome.FAIL],
                message=str(e),
            ))
            self._report(result.files[-1])
            return result

        diff_mtime = diff_script.mtime if diff_script else 0.0

        for path in self.scanner.scan(directory, pattern, recursive=recursive):
            file_result = self.build_file(SolutionFile(path), diff_script, diff_mtime, forced)
            result.files.append(file_result)
            self._report(file_result)
            if file_result.failed:
                break

        return result

    def build_file(self, solution: SolutionFile, diff_script, diff_mtime: float = 0.0,
                   forced: bool = False) -> FileResult:
        practice = PracticeFile(self.resolver.to_practice(solution.path))
        result = FileResult(source=solution.path, target=practice.path)

        try:
            if should_skip(solution.mtime, practice.mtime, diff_mtime, practice.exists, forced):
                result.steps.append(BuildOutcome.SKIP)
                return result

            practice.path.parent.mkdir(parents=True, exist_ok=True)

            if diff_script is not None and solution.extension in self.scene_extensions:
                result.steps.append(self.scene_applier.apply(solution.path, diff_script, practice.path))
            else:
                shutil.copyfile(solution.path, practice.path)
                result.steps.append(BuildOutcome.COPY)

            if self.pipeline.is_processable(solution.extension):
                text = practice.path.read_text(encoding='utf-8')
                practice.path.write_text(self.pipeline.process(text, solution.extension), encoding='utf-8')
                result.steps.append(BuildOutcome.PROCESS)

        except (BuilderError, OSError, UnicodeDecodeError) as e:
            result.steps.append(BuildOutcome.FAIL)
            result.message = str(e)

        return result

    def _report(self, result: FileResult):
        """Print one file outcome"""
        if result.outcome == BuildOutcome.SKIP and not self.verbose:
            return

        style = OUTCOME_STYLES[result.outcome]
        label = result.outcome.value.upper()
        relative = self._relative(result.source)
        self.console.print(f"[{style}]{label:>8}[/{style}] {escape(relative)}")
        if result.message:
            self.console.print(f"         [red]{escape(result.message)}[/red]")

    def _relative(self, path: Path) -> str:
        try:
            return str(Path(path).relative_to(self.resolver.project_root))
        except ValueError:
            return str(path)

#!/usr/bin/env python3
"""
Packages course projects for release.

Two variants are produced from an authoring project:
- Workbook: practices for learners, without the solutions tree
- Solutions: the reference project, without the practices tree
"""

import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from ..builder import BuildOrchestrator, BuildReport
from ..config import BuilderSettings
from .project_file import ProjectFile, remove_main_scene, strip_plugins, tag_application_name

# Engine caches and VCS data never shipped with a project
ALWAYS_IGNORED = ['.godot', '.import', '.git', '__pycache__', '*.pyc']


class ExportError(Exception):
    """Packaging step that cannot complete"""


class ProjectExporter:
    """Builds workbook and solutions copies of a project"""

    def __init__(
        self,
        project_root,
        settings: Optional[BuilderSettings] = None,
        console: Console = None,
    ):
        self.project_root = Path(project_root).resolve()
        self.settings = settings or BuilderSettings()
        self.console = console or Console()

    def regenerate_practices(self, forced: bool = False, pattern: Optional[str] = None) -> BuildReport:
        """Rebuild the practices tree of the project in place"""
        orchestrator = BuildOrchestrator(self.project_root, self.settings, console=self.console)
        return orchestrator.build(pattern=pattern, forced=forced)

    def export_workbook(self, output_dir, disable_plugins: bool = False) -> Path:
        """
        Create the learner project.

        Practices are regenerated first; a failure there stops the export.
        """
        report = self.regenerate_practices()
        if not report.ok:
            raise ExportError(
                f"Practice build failed for {len(report.failures)} file(s), workbook not exported"
            )
        return self._export(
            output_dir,
            exclude=[self.settings.solutions_dir],
            tag='Workbook',
            disable_plugins=disable_plugins,
            keep_main_scene=True,
        )

    def export_solutions(self, output_dir, disable_plugins: bool = False) -> Path:
        """Create the reference project with solutions only"""
        return self._export(
            output_dir,
            exclude=[self.settings.practices_dir],
            tag='Solutions',
            disable_plugins=disable_plugins,
            keep_main_scene=False,
        )

    def _export(self, output_dir, exclude: List[str], tag: str,
                disable_plugins: bool, keep_main_scene: bool) -> Path:
        output = Path(output_dir).resolve()
        project_file = self.project_root / self.settings.project_file
        if not project_file.is_file():
            raise ExportError(f"No {self.settings.project_file} in {self.project_root}")
        if output == self.project_root or output in self.project_root.parents:
            raise ExportError(f"Output directory {output} overlaps the project")

        executable = self.find_executable()

        self.console.print(f"[cyan]Copying project to {output}...[/cyan]")
        self.copy_project(output, exclude)

        project = ProjectFile.load(output / self.settings.project_file)
        if disable_plugins:
            removed = strip_plugins(project)
            if removed:
                self.console.print(f"[dim]Removed sections: {', '.join(removed)}[/dim]")
        tag_application_name(project, tag)
        if not keep_main_scene:
            remove_main_scene(project)
        project.save(output / self.settings.project_file)

        self.import_project(executable, output)
        self.console.print(f"[green]{tag} project ready at {output}[/green]")
        return output

    def copy_project(self, output: Path, exclude: List[str]) -> None:
        """Copy the project tree, replacing any previous export"""
        if output.exists():
            shutil.rmtree(output)

        ignored = set(exclude)
        root = self.project_root

        def ignore(directory, names):
            skipped = set(shutil.ignore_patterns(*ALWAYS_IGNORED)(directory, names))
            if Path(directory).resolve() == root:
                skipped.update(name for name in names if name in ignored)
            # Never copy the export into itself
            skipped.update(name for name in names if (Path(directory) / name).resolve() == output)
            return skipped

        shutil.copytree(root, output, ignore=ignore)

    def find_executable(self) -> str:
        executable = self.settings.godot_executable or 'godot'
        resolved = shutil.which(executable)
        if resolved is None:
            raise ExportError(
                f"Godot executable '{executable}' not found. "
                "Set GODOT_BIN or 'godot_executable' in ~/.practicegen/config.json"
            )
        return resolved

    def import_project(self, executable: str, project_dir: Path) -> None:
        """Run the editor headless once so the copy has its import cache"""
        cmd = [executable, '--headless', '--editor', '--quit', '--path', str(project_dir)]
        self.console.print(f"[dim]$ {' '.join(cmd)}[/dim]")
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            raise ExportError(
                f"Project import failed with exit code {result.returncode}: "
                f"{result.stderr.strip()[-500:]}"
            )

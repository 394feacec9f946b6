#!/usr/bin/env python3
"""
Test suite for project packaging and the command line.
"""

import io
import os
import subprocess
import time
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from practicegen.cli import EXIT_FAIL, EXIT_OK, build_parser, main
from practicegen.config import BuilderSettings, load_project_config
from practicegen.project import (
    ExportError,
    ProjectExporter,
    ProjectFile,
    remove_main_scene,
    strip_plugins,
    tag_application_name,
)


PROJECT_GODOT = '''\
; Engine configuration file.

config_version=5

[application]

config/name="Learn GDScript"
run/main_scene="res://solutions/lesson_1/main.tscn"
config/features=PackedStringArray("4.2")

[autoload]

Events="*res://addons/course/events.gd"

[editor_plugins]

enabled=PackedStringArray("res://addons/course/plugin.cfg")

[rendering]

renderer/rendering_method="gl_compatibility"
'''


def write(path, text, mtime=None):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120)


@pytest.fixture
def project(tmp_path):
    root = tmp_path / 'course'
    past = time.time() - 1000
    write(root / 'project.godot', PROJECT_GODOT)
    write(root / 'solutions' / 'lesson_1' / 'main.gd', 'extends Node # extends Node2D\n', past)
    write(root / 'addons' / 'course' / 'plugin.cfg', '[plugin]\n')
    write(root / '.godot' / 'imported' / 'cache.bin', 'cache')
    return root


@pytest.fixture
def exporter(project, console):
    settings = BuilderSettings(godot_executable='godot')
    return ProjectExporter(project, settings, console=console)


def completed(returncode=0, stderr=''):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout='', stderr=stderr)


class TestProjectFile:
    """Tests for project.godot edits"""

    def test_round_trip(self):
        assert ProjectFile.parse(PROJECT_GODOT).to_text() == PROJECT_GODOT

    def test_get_value(self):
        project = ProjectFile.parse(PROJECT_GODOT)
        assert project.get_value('application', 'config/name') == '"Learn GDScript"'
        assert project.get_value('', 'config_version') == '5'
        assert project.get_value('missing', 'key') is None

    def test_strip_plugins(self):
        project = ProjectFile.parse(PROJECT_GODOT)
        assert strip_plugins(project) == ['editor_plugins', 'autoload']

        text = project.to_text()
        assert '[autoload]' not in text
        assert '[editor_plugins]' not in text
        assert 'Events=' not in text
        assert '[rendering]' in text

    def test_tag_application_name(self):
        project = ProjectFile.parse(PROJECT_GODOT)
        assert tag_application_name(project, 'Workbook') == 'Learn GDScript (Workbook)'
        assert 'config/name="Learn GDScript (Workbook)"' in project.to_text()

    def test_remove_main_scene(self):
        project = ProjectFile.parse(PROJECT_GODOT)
        assert remove_main_scene(project) is True
        assert 'run/main_scene' not in project.to_text()
        assert remove_main_scene(project) is False

    def test_set_new_value(self):
        project = ProjectFile.parse(PROJECT_GODOT)
        project.set_value('application', 'config/description', '"Exercises"')
        lines = project.to_text().splitlines()
        index = lines.index('config/description="Exercises"')
        assert lines[index + 1] == ''
        assert lines[index + 2] == '[autoload]'


class TestProjectExporter:
    """Tests for workbook and solutions exports"""

    def test_export_workbook(self, exporter, project, tmp_path):
        output = tmp_path / 'workbook'
        with patch('practicegen.project.exporter.shutil.which', return_value='/usr/bin/godot'), \
                patch('practicegen.project.exporter.subprocess.run', return_value=completed()) as run:
            exporter.export_workbook(output, disable_plugins=True)

        assert (output / 'practices' / 'lesson_1' / 'main.gd').read_text() == 'extends Node2D\n'
        assert not (output / 'solutions').exists()
        assert not (output / '.godot').exists()
        assert (output / 'addons' / 'course' / 'plugin.cfg').exists()

        text = (output / 'project.godot').read_text()
        assert 'config/name="Learn GDScript (Workbook)"' in text
        assert 'run/main_scene' in text
        assert '[autoload]' not in text

        cmd = run.call_args[0][0]
        assert cmd[0] == '/usr/bin/godot'
        assert '--headless' in cmd
        assert str(output.resolve()) in cmd

    def test_export_solutions(self, exporter, project, tmp_path):
        write(project / 'practices' / 'lesson_1' / 'main.gd', 'extends Node2D\n')
        output = tmp_path / 'solutions_export'
        with patch('practicegen.project.exporter.shutil.which', return_value='/usr/bin/godot'), \
                patch('practicegen.project.exporter.subprocess.run', return_value=completed()):
            exporter.export_solutions(output)

        assert (output / 'solutions' / 'lesson_1' / 'main.gd').exists()
        assert not (output / 'practices').exists()
        text = (output / 'project.godot').read_text()
        assert 'config/name="Learn GDScript (Solutions)"' in text
        assert 'run/main_scene' not in text
        assert '[autoload]' in text

    def test_missing_executable(self, exporter, tmp_path):
        output = tmp_path / 'workbook'
        with patch('practicegen.project.exporter.shutil.which', return_value=None):
            with pytest.raises(ExportError, match='not found'):
                exporter.export_workbook(output)
        assert not output.exists()

    def test_import_failure(self, exporter, tmp_path):
        with patch('practicegen.project.exporter.shutil.which', return_value='/usr/bin/godot'), \
                patch('practicegen.project.exporter.subprocess.run',
                      return_value=completed(1, 'ERROR: bad project')):
            with pytest.raises(ExportError, match='exit code 1'):
                exporter.export_solutions(tmp_path / 'out')

    def test_failed_build_stops_workbook(self, exporter, project, tmp_path):
        write(project / 'solutions' / 'lesson_1' / 'scene.tscn', '[gd_scene format=3]\n[node name="A"]\n')
        write(project / 'solutions' / 'lesson_1' / 'diff.py', 'def other(root):\n    pass\n')
        output = tmp_path / 'workbook'

        with patch('practicegen.project.exporter.shutil.which', return_value='/usr/bin/godot'), \
                patch('practicegen.project.exporter.subprocess.run') as run:
            with pytest.raises(ExportError, match='failed'):
                exporter.export_workbook(output)

        run.assert_not_called()
        assert not output.exists()

    def test_output_over_project_rejected(self, exporter, project):
        with pytest.raises(ExportError, match='overlaps'):
            exporter.export_solutions(project.parent)

    def test_missing_project_file(self, tmp_path, console):
        exporter = ProjectExporter(tmp_path, BuilderSettings(), console=console)
        with pytest.raises(ExportError, match='project.godot'):
            exporter.export_solutions(tmp_path / 'out')


class TestConfig:
    """Tests for settings resolution"""

    def test_project_config_overrides_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setenv('HOME', str(tmp_path / 'home'))
        monkeypatch.delenv('GODOT_BIN', raising=False)
        write(tmp_path / 'practicegen.json', '{"practices_dir": "exercises", "unknown": 1}')

        settings = BuilderSettings.load(tmp_path)

        assert settings.practices_dir == 'exercises'
        assert settings.solutions_dir == 'solutions'
        assert settings.godot_executable is None

    def test_env_var_executable(self, tmp_path, monkeypatch):
        monkeypatch.setenv('HOME', str(tmp_path / 'home'))
        monkeypatch.setenv('GODOT_BIN', '/opt/godot/godot4')
        assert BuilderSettings.load(tmp_path).godot_executable == '/opt/godot/godot4'

    def test_invalid_project_config(self, tmp_path):
        write(tmp_path / 'practicegen.json', '{not json')
        assert load_project_config(tmp_path) == {}


class TestCLI:
    """Tests for the command line"""

    def test_parser(self):
        parser = build_parser()
        args = parser.parse_args(['practices', '--force', '--pattern', 'lesson_*'])
        assert args.command == 'practices'
        assert args.force is True
        assert args.pattern == 'lesson_*'

        args = parser.parse_args(['workbook', '-o', 'out', '--disable-plugins'])
        assert args.output == 'out'
        assert args.disable_plugins is True

    def test_export_requires_output(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['solutions'])

    def test_practices_ok(self, project, tmp_path, monkeypatch):
        monkeypatch.setenv('HOME', str(tmp_path / 'home'))
        assert main(['--project', str(project), 'practices']) == EXIT_OK
        assert (project / 'practices' / 'lesson_1' / 'main.gd').read_text() == 'extends Node2D\n'

    def test_practices_fail(self, project, tmp_path, monkeypatch):
        monkeypatch.setenv('HOME', str(tmp_path / 'home'))
        write(project / 'solutions' / 'lesson_1' / 'scene.tscn', '[gd_scene format=3]\n[node name="A"]\n')
        write(project / 'solutions' / 'lesson_1' / 'diff.py', 'def other(root):\n    pass\n')
        assert main(['--project', str(project), 'practices']) == EXIT_FAIL

    def test_no_solutions_directory(self, tmp_path, monkeypatch):
        monkeypatch.setenv('HOME', str(tmp_path / 'home'))
        assert main(['--project', str(tmp_path), 'practices']) == EXIT_FAIL

    def test_export_missing_godot(self, project, tmp_path, monkeypatch):
        monkeypatch.setenv('HOME', str(tmp_path / 'home'))
        monkeypatch.delenv('GODOT_BIN', raising=False)
        with patch('practicegen.project.exporter.shutil.which', return_value=None):
            code = main(['--project', str(project), 'solutions', '-o', str(tmp_path / 'out')])
        assert code == EXIT_FAIL

    def test_no_command(self):
        assert main([]) == EXIT_FAIL


class TestPackaging:
    """Tests for the package metadata"""

    def test_pyproject(self):
        text = (Path(__file__).resolve().parents[1] / 'pyproject.toml').read_text(encoding='utf-8')
        assert 'practicegen = "practicegen.cli:main"' in text
        assert not any(line.startswith('readme') for line in text.splitlines())

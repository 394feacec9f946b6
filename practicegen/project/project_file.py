#!/usr/bin/env python3
"""
Editing of the engine's project file (project.godot).

The file is INI-like: global keys first, then `[section]` blocks of
`key=value` lines. Edits keep every untouched line exactly as written.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

SECTION_PATTERN = re.compile(r'^\[(?P<name>[^\]]+)\]\s*$')
KEY_PATTERN = re.compile(r'^(?P<key>[^\s=;][^=]*?)=(?P<value>.*)$')

PLUGIN_SECTIONS = ['editor_plugins', 'autoload']


@dataclass
class ProjectSection:
    name: str                                   # '' for the global keys
    lines: List[str] = field(default_factory=list)

    def key_index(self, key: str) -> Optional[int]:
        for index, line in enumerate(self.lines):
            match = KEY_PATTERN.match(line)
            if match and match.group('key') == key:
                return index
        return None


class ProjectFile:
    """A parsed project.godot file"""

    def __init__(self, sections: List[ProjectSection]):
        self.sections = sections

    @classmethod
    def parse(cls, text: str) -> 'ProjectFile':
        sections = [ProjectSection(name='')]
        for line in text.splitlines():
            match = SECTION_PATTERN.match(line)
            if match:
                sections.append(ProjectSection(name=match.group('name'), lines=[line]))
            else:
                sections[-1].lines.append(line)
        return cls(sections)

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ProjectFile':
        return cls.parse(Path(path).read_text(encoding='utf-8'))

    def section(self, name: str) -> Optional[ProjectSection]:
        return next((s for s in self.sections if s.name == name), None)

    def has_section(self, name: str) -> bool:
        return self.section(name) is not None

    def remove_section(self, name: str) -> bool:
        section = self.section(name)
        if section is None:
            return False
        self.sections.remove(section)
        return True

    def get_value(self, section_name: str, key: str) -> Optional[str]:
        """Raw value of a key, quotes included"""
        section = self.section(section_name)
        if section is None:
            return None
        index = section.key_index(key)
        if index is None:
            return None
        return KEY_PATTERN.match(section.lines[index]).group('value')

    def set_value(self, section_name: str, key: str, value: str) -> None:
        section = self.section(section_name)
        if section is None:
            section = ProjectSection(name=section_name, lines=[f'[{section_name}]'])
            self.sections.append(section)
        index = section.key_index(key)
        if index is None:
            # Insert after the last key so trailing blank lines stay in place
            position = len(section.lines)
            while position > 1 and not section.lines[position - 1].strip():
                position -= 1
            section.lines.insert(position, f'{key}={value}')
        else:
            section.lines[index] = f'{key}={value}'

    def remove_key(self, section_name: str, key: str) -> bool:
        section = self.section(section_name)
        if section is None:
            return False
        index = section.key_index(key)
        if index is None:
            return False
        del section.lines[index]
        return True

    def to_text(self) -> str:
        lines = []
        for section in self.sections:
            lines.extend(section.lines)
        return '\n'.join(lines).rstrip('\n') + '\n'

    def save(self, path: Union[str, Path]) -> None:
        Path(path).write_text(self.to_text(), encoding='utf-8')


def strip_plugins(project: ProjectFile) -> List[str]:
    """Remove enabled editor plugins and autoloaded singletons"""
    return [name for name in PLUGIN_SECTIONS if project.remove_section(name)]


def tag_application_name(project: ProjectFile, tag: str) -> Optional[str]:
    """Append a tag like '(Workbook)' to the application name"""
    value = project.get_value('application', 'config/name')
    if value is None:
        return None
    name = value.strip()
    if len(name) >= 2 and name.startswith('"') and name.endswith('"'):
        name = name[1:-1]
    new_name = f'{name} ({tag})'
    project.set_value('application', 'config/name', f'"{new_name}"')
    return new_name


def remove_main_scene(project: ProjectFile) -> bool:
    return project.remove_key('application', 'run/main_scene')

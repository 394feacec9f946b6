#!/usr/bin/env python3
"""
Data model for the practice builder.
Tracks line directives, per-file outcomes and per-directory results.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


class DirectiveKind(Enum):
    """How a single line is rewritten"""
    KEEP = 'keep'                  # Line passes through unchanged
    DELETE = 'delete'              # Line is dropped from the practice
    REPLACE = 'replace'            # Code replaced by the annotation text
    SHIFT_INDENT = 'shift_indent'  # Replaced and re-indented


class BuildOutcome(Enum):
    """What happened to one solution file"""
    SKIP = 'skip'        # Practice is already up to date
    COPY = 'copy'        # Plain byte copy
    PROCESS = 'process'  # Copied then run through the content pipeline
    DIFF = 'diff'        # Scene mutated by a diff script
    FAIL = 'fail'        # Hard error, aborts the rest of the directory


@dataclass
class TransformDirective:
    """Result of classifying one line"""
    kind: DirectiveKind
    indent: int = 0
    text: str = ''

    @classmethod
    def keep(cls) -> 'TransformDirective':
        return cls(kind=DirectiveKind.KEEP)

    @classmethod
    def delete(cls) -> 'TransformDirective':
        return cls(kind=DirectiveKind.DELETE)


@dataclass
class LineRecord:
    """A line split into indentation units, code and directive comment"""
    indent: int
    code: str
    directive: Optional[str] = None


@dataclass
class SolutionFile:
    """An instructor-authored reference file"""
    path: Path

    @property
    def extension(self) -> str:
        return self.path.suffix.lower()

    @property
    def mtime(self) -> float:
        return os.path.getmtime(self.path)

    def read(self) -> str:
        return self.path.read_text(encoding='utf-8')


@dataclass
class PracticeFile:
    """A generated learner-facing file"""
    path: Path

    @property
    def exists(self) -> bool:
        return self.path.exists()

    @property
    def mtime(self) -> float:
        return os.path.getmtime(self.path) if self.path.exists() else 0.0


@dataclass
class FileResult:
    """Outcome of building one practice file"""
    source: Path
    target: Path
    steps: List[BuildOutcome] = field(default_factory=list)
    message: str = ''

    @property
    def outcome(self) -> BuildOutcome:
        return self.steps[-1] if self.steps else BuildOutcome.SKIP

    @property
    def failed(self) -> bool:
        return BuildOutcome.FAIL in self.steps


@dataclass
class DirectoryResult:
    """Outcomes of one exercise directory"""
    directory: Path
    files: List[FileResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(result.failed for result in self.files)

    @property
    def failures(self) -> List[FileResult]:
        return [result for result in self.files if result.failed]

    def count(self) -> Dict[BuildOutcome, int]:
        """Count files by final outcome"""
        counts = {outcome: 0 for outcome in BuildOutcome}
        for result in self.files:
            counts[result.outcome] += 1
        return counts


@dataclass
class BuildReport:
    """Results of a whole build, one entry per exercise directory"""
    directories: List[DirectoryResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(directory.ok for directory in self.directories)

    @property
    def failures(self) -> List[FileResult]:
        failed = []
        for directory in self.directories:
            failed.extend(directory.failures)
        return failed

    def count(self) -> Dict[BuildOutcome, int]:
        counts = {outcome: 0 for outcome in BuildOutcome}
        for directory in self.directories:
            for outcome, value in directory.count().items():
                counts[outcome] += value
        return counts

#!/usr/bin/env python3
"""
Practice builder: derives practice starter files from solution files.

Pipeline:
- FileTreeScanner lists solution files per exercise directory
- should_skip decides whether a practice is stale
- LineTransformer / ContentPipeline rewrite code lines from `#` directives
- SceneDiffApplier edits scenes through an exercise's diff script
- BuildOrchestrator ties it together and writes the practices tree
"""

from .state import (
    DirectiveKind,
    BuildOutcome,
    TransformDirective,
    LineRecord,
    SolutionFile,
    PracticeFile,
    FileResult,
    DirectoryResult,
    BuildReport,
)
from .errors import BuilderError, SceneFormatError, SceneDiffError, DiffScriptError
from .paths import PathResolver
from .scanner import FileTreeScanner
from .staleness import should_skip
from .transformer import LineTransformer, ContentPipeline
from .scene import PackedScene, SceneNode
from .scene_diff import DiffScript, SceneDiffApplier, load_diff_script
from .orchestrator import BuildOrchestrator

__all__ = [
    'DirectiveKind',
    'BuildOutcome',
    'TransformDirective',
    'LineRecord',
    'SolutionFile',
    'PracticeFile',
    'FileResult',
    'DirectoryResult',
    'BuildReport',
    'BuilderError',
    'SceneFormatError',
    'SceneDiffError',
    'DiffScriptError',
    'PathResolver',
    'FileTreeScanner',
    'should_skip',
    'LineTransformer',
    'ContentPipeline',
    'PackedScene',
    'SceneNode',
    'DiffScript',
    'SceneDiffApplier',
    'load_diff_script',
    'BuildOrchestrator',
]

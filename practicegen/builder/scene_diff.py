#!/usr/bin/env python3
"""
Scene diff scripts.

An exercise directory may hold a `diff.py` that edits solution scenes before
they become practices. Each public function is named after the scene it
edits and receives the scene root, which it mutates in place:

    def player(root):
        root.get_node("Sprite").remove()
"""

import importlib.util
import inspect
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional

from .errors import DiffScriptError, SceneDiffError
from .scene import PackedScene, SceneNode
from .state import BuildOutcome
from ..config import DIFF_SCRIPT_NAME, SOLUTION_ONLY_GROUP

SceneTransform = Callable[[SceneNode], None]


@dataclass
class DiffScript:
    """Scene transforms keyed by scene basename"""
    path: Path
    transforms: Dict[str, SceneTransform] = field(default_factory=dict)

    @property
    def mtime(self) -> float:
        return os.path.getmtime(self.path)

    def lookup(self, basename: str) -> Optional[SceneTransform]:
        return self.transforms.get(basename)


def load_diff_script(directory: Path, filename: str = DIFF_SCRIPT_NAME) -> Optional[DiffScript]:
    """
    Load the diff script of an exercise directory.

    Returns:
        The DiffScript, or None when the directory has none
    """
    path = Path(directory) / filename
    if not path.is_file():
        return None

    module_name = f"_practicegen_diff_{abs(hash(str(path.resolve())))}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise DiffScriptError(f"Cannot load diff script {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    # No __pycache__ next to the solutions; every load compiles the current source
    dont_write_bytecode = sys.dont_write_bytecode
    sys.dont_write_bytecode = True
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise DiffScriptError(f"Error in diff script {path}: {e}") from e
    finally:
        sys.dont_write_bytecode = dont_write_bytecode
        sys.modules.pop(module_name, None)

    transforms = {
        name: value
        for name, value in vars(module).items()
        if inspect.isfunction(value)
        and value.__module__ == module_name
        and not name.startswith('_')
    }
    return DiffScript(path=path, transforms=transforms)


def strip_group(root: SceneNode, group: str) -> None:
    """Remove an authoring-only group from every node of the tree"""
    for node in root.walk():
        node.remove_from_group(group)


class SceneDiffApplier:
    """Builds practice scenes from solution scenes and a diff script"""

    def __init__(self, solution_only_group: str = SOLUTION_ONLY_GROUP):
        self.solution_only_group = solution_only_group

    def apply(self, source: Path, diff_script: DiffScript, target: Path) -> BuildOutcome:
        """
        Write the practice version of a scene.

        Raises:
            SceneDiffError: the diff script has no function for this scene
            SceneFormatError: the scene cannot be parsed or written
        """
        source = Path(source)
        function_name = source.stem
        transform = diff_script.lookup(function_name)
        if transform is None:
            raise SceneDiffError(source, function_name, diff_script.path)

        scene = PackedScene.load(source)
        root = scene.instantiate()
        strip_group(root, self.solution_only_group)

        try:
            transform(root)
        except Exception as e:
            raise DiffScriptError(
                f"{source}: diff function '{function_name}' in {diff_script.path} failed: {e}"
            ) from e
        scene.prune_connections()

        scene.save(target)
        return BuildOutcome.DIFF

#!/usr/bin/env python3
"""
Exceptions raised while building practices.
"""


class BuilderError(Exception):
    """Base class for errors that fail a single practice file"""


class SceneFormatError(BuilderError):
    """A scene file could not be parsed or serialized"""


class DiffScriptError(BuilderError):
    """A diff script could not be loaded"""


class SceneDiffError(BuilderError):
    """A diff script exists but does not define the expected function"""

    def __init__(self, scene_path, function_name: str, diff_path):
        self.scene_path = scene_path
        self.function_name = function_name
        self.diff_path = diff_path
        super().__init__(
            f"{scene_path}: diff script {diff_path} has no function "
            f"'{function_name}'"
        )

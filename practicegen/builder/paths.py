#!/usr/bin/env python3
"""
Maps paths between the solutions tree and the practices tree.
"""

from pathlib import Path
from typing import Union


class PathResolver:
    """Swaps the solutions root for the practices root and back"""

    def __init__(
        self,
        project_root: Union[str, Path],
        solutions_dir: str = 'solutions',
        practices_dir: str = 'practices',
        resource_scheme: str = 'res://',
    ):
        self.project_root = Path(project_root)
        self.solutions_root = self.project_root / solutions_dir
        self.practices_root = self.project_root / practices_dir
        self.solutions_ref = f"{resource_scheme}{solutions_dir}/"
        self.practices_ref = f"{resource_scheme}{practices_dir}/"

    def to_practice(self, solution_path: Union[str, Path]) -> Path:
        """Get the practice path for a file under the solutions root"""
        relative = Path(solution_path).relative_to(self.solutions_root)
        return self.practices_root / relative

    def to_solution(self, practice_path: Union[str, Path]) -> Path:
        """Get the solution path for a file under the practices root"""
        relative = Path(practice_path).relative_to(self.practices_root)
        return self.solutions_root / relative

    def substitute_refs(self, text: str) -> str:
        """Point resource references at the practices tree"""
        return text.replace(self.solutions_ref, self.practices_ref)

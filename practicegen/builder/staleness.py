#!/usr/bin/env python3
"""
Decides whether a practice file needs to be regenerated.
"""


def should_skip(
    solution_mtime: float,
    practice_mtime: float,
    diff_mtime: float = 0.0,
    practice_exists: bool = True,
    forced: bool = False,
) -> bool:
    """
    A practice is current when it exists and is newer than both its solution
    and the directory's diff script (0 when there is none).
    """
    if forced or not practice_exists:
        return False
    return practice_mtime > solution_mtime and practice_mtime > diff_mtime

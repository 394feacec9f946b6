"""
practicegen - Practice Builder for exercise curricula

A CLI authoring tool that derives learner-facing practice starter files from
instructor-authored solution files, and packages course projects for release.
"""

__version__ = "0.1.0"

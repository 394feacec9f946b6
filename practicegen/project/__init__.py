"""Course project packaging (workbook and solutions exports)."""

from .exporter import ProjectExporter, ExportError
from .project_file import ProjectFile, strip_plugins, tag_application_name, remove_main_scene

__all__ = [
    "ProjectExporter",
    "ExportError",
    "ProjectFile",
    "strip_plugins",
    "tag_application_name",
    "remove_main_scene",
]

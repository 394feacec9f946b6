#!/usr/bin/env python3
"""
Line rewriting for practice code files.

A trailing `#` comment on a solution line is a directive for the practice:

    var speed := 400.0 # var speed := 0.0       -> replaced by the comment
    velocity = direction * speed #              -> deleted from the practice
    x = 1 #>> y = 2                             -> replaced, indented twice more
    foo() # <bar()                              -> replaced, dedented once

Lines without a directive, including pure comment lines, pass through as-is.
"""

import re
from typing import Iterable, List, Optional

from .paths import PathResolver
from ..config import DEFAULT_PROCESSABLE_EXTENSIONS
from .state import DirectiveKind, LineRecord, TransformDirective


class LineTransformer:
    """Classifies a single line and computes its practice version"""

    def __init__(
        self,
        marker: str = '#',
        indent_symbol: str = '>',
        dedent_symbol: str = '<',
        indent_unit: str = '\t',
    ):
        self.marker = marker
        self.indent_symbol = indent_symbol
        self.dedent_symbol = dedent_symbol
        self.indent_unit = indent_unit

        m = re.escape(marker)
        self.line_pattern = re.compile(
            rf'^(?P<indent>[\t ]*)(?P<code>[^\s{m}].*?)\s*{m}(?P<annotation>.*)$'
        )
        self.shift_pattern = re.compile(
            rf'^(?P<shift>[{re.escape(indent_symbol)}{re.escape(dedent_symbol)}]+)(?P<rest>.*)$'
        )
        self.indent_pattern = re.compile(rf'^(?:{re.escape(indent_unit)})*')

    def count_indent(self, line: str) -> int:
        """Number of leading indentation units"""
        return len(self.indent_pattern.match(line).group(0)) // len(self.indent_unit)

    def parse(self, line: str) -> LineRecord:
        """Split a line into indentation, code and directive comment"""
        indent = self.count_indent(line)
        match = self.line_pattern.match(line)
        if not match:
            return LineRecord(indent=indent, code=line.strip())
        return LineRecord(
            indent=indent,
            code=match.group('code'),
            directive=match.group('annotation'),
        )

    def transform(self, line: str, indent: Optional[int] = None) -> TransformDirective:
        """
        Compute the directive for one raw line.

        Args:
            line: The raw solution line, without its newline
            indent: Indentation units of the line; derived from the line if None

        Returns:
            KEEP, DELETE, REPLACE or SHIFT_INDENT with the final indent and text
        """
        if indent is None:
            indent = self.count_indent(line)

        match = self.line_pattern.match(line)
        if not match or match.group('annotation') is None:
            return TransformDirective.keep()

        annotation = match.group('annotation')
        if annotation.startswith(' '):
            annotation = annotation[1:]

        # Blankness is judged on the original line, never on the rewritten text
        if annotation.strip() == '' and line.strip() != '':
            return TransformDirective.delete()

        shift = self.shift_pattern.match(annotation)
        if not shift:
            return TransformDirective(DirectiveKind.REPLACE, indent, annotation)

        for symbol in shift.group('shift'):
            indent += 1 if symbol == self.indent_symbol else -1
        indent = max(indent, 0)
        return TransformDirective(DirectiveKind.SHIFT_INDENT, indent, shift.group('rest').lstrip())

    def render(self, line: str, directive: TransformDirective) -> Optional[str]:
        """Practice text for a line, or None when it is deleted"""
        if directive.kind == DirectiveKind.DELETE:
            return None
        if directive.kind == DirectiveKind.KEEP:
            return line
        return self.indent_unit * directive.indent + directive.text


class ContentPipeline:
    """Applies the line transformer to whole files"""

    def __init__(
        self,
        resolver: PathResolver,
        transformer: Optional[LineTransformer] = None,
        processable_extensions: Optional[Iterable[str]] = None,
    ):
        self.resolver = resolver
        self.transformer = transformer or LineTransformer()
        if processable_extensions is None:
            processable_extensions = DEFAULT_PROCESSABLE_EXTENSIONS
        self.processable_extensions = {ext.lower() for ext in processable_extensions}

    def is_processable(self, extension: str) -> bool:
        return extension.lower() in self.processable_extensions

    def transform_lines(self, lines: Iterable[str]) -> List[str]:
        output = []
        for line in lines:
            directive = self.transformer.transform(line)
            rendered = self.transformer.render(line, directive)
            if rendered is not None:
                output.append(rendered)
        return output

    def process(self, text: str, extension: str) -> Optional[str]:
        """
        Build the practice version of a file's text.

        Returns None when the extension is not processable; those files are
        copied byte for byte instead.
        """
        if not self.is_processable(extension):
            return None

        lines = self.transform_lines(text.splitlines())
        result = '\n'.join(lines).strip() + '\n'
        return self.resolver.substitute_refs(result)

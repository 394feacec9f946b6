#!/usr/bin/env python3
"""
Test suite for line directives, the content pipeline and staleness checks.
"""

import pytest

from practicegen.builder import (
    ContentPipeline,
    DirectiveKind,
    LineTransformer,
    PathResolver,
    should_skip,
)


@pytest.fixture
def transformer():
    return LineTransformer()


@pytest.fixture
def pipeline(tmp_path):
    return ContentPipeline(PathResolver(tmp_path))


class TestLineTransformer:
    """Tests for single-line directives"""

    @pytest.mark.parametrize('line', [
        'var speed := 400.0',
        '\tposition += velocity * delta',
        '',
        '\t\t',
        'func _ready() -> void:',
    ])
    def test_lines_without_marker_are_kept(self, transformer, line):
        """Lines without a directive pass through unchanged"""
        directive = transformer.transform(line)
        assert directive.kind == DirectiveKind.KEEP
        assert transformer.render(line, directive) == line

    @pytest.mark.parametrize('line', [
        '# A comment on its own line',
        '\t# Indented comment',
        '\t\t#',
    ])
    def test_pure_comment_lines_are_kept(self, transformer, line):
        """Comment-only lines are not directives"""
        assert transformer.transform(line).kind == DirectiveKind.KEEP

    @pytest.mark.parametrize('line', [
        'velocity = direction * speed #',
        '\tvelocity = direction * speed # ',
        '\t\tmove_and_slide()   #   ',
    ])
    def test_empty_directive_deletes(self, transformer, line):
        """An empty directive removes the line"""
        assert transformer.transform(line).kind == DirectiveKind.DELETE

    def test_replace(self, transformer):
        """The directive text replaces the code, keeping the indentation"""
        line = '\tvar speed := 400.0 # var speed := 0.0'
        directive = transformer.transform(line, 1)
        assert directive.kind == DirectiveKind.REPLACE
        assert directive.indent == 1
        assert directive.text == 'var speed := 0.0'
        assert transformer.render(line, directive) == '\tvar speed := 0.0'

    def test_replace_keeps_extra_leading_spaces(self, transformer):
        """Only one space after the marker is stripped"""
        directive = transformer.transform('x = 1 #  pass')
        assert directive.text == ' pass'

    def test_indent_shift(self, transformer):
        """Each '>' adds one indentation level"""
        directive = transformer.transform('\tx = 1 #>> y = 2', 1)
        assert directive.kind == DirectiveKind.SHIFT_INDENT
        assert directive.indent == 3
        assert directive.text == 'y = 2'

    def test_dedent_shift(self, transformer):
        """Each '<' removes one indentation level"""
        directive = transformer.transform('\t\tfoo() # <bar()', 2)
        assert directive.kind == DirectiveKind.SHIFT_INDENT
        assert directive.indent == 1
        assert directive.text == 'bar()'

    def test_mixed_shift_is_cumulative(self, transformer):
        """Shift symbols apply left to right"""
        directive = transformer.transform('\tfoo() #><> pass', 1)
        assert directive.indent == 2
        assert directive.text == 'pass'

    def test_dedent_does_not_go_negative(self, transformer):
        directive = transformer.transform('foo() #<<< pass', 0)
        assert directive.indent == 0

    def test_shift_to_empty_text_keeps_line(self, transformer):
        """A shift that leaves no text still keeps an (empty) line"""
        line = '\tfoo() #>'
        directive = transformer.transform(line)
        assert directive.kind == DirectiveKind.SHIFT_INDENT
        assert directive.text == ''
        assert transformer.render(line, directive) == '\t\t'

    def test_indent_derived_from_line(self, transformer):
        """Indentation defaults to the line's own leading tabs"""
        assert transformer.count_indent('\t\t\tpass') == 3
        directive = transformer.transform('\t\tfoo() # <bar()')
        assert directive.indent == 1

    def test_space_indent_unit(self):
        """Indentation can be counted in spaces"""
        transformer = LineTransformer(indent_unit='    ')
        line = '        foo() # <bar()'
        directive = transformer.transform(line)
        assert directive.indent == 1
        assert transformer.render(line, directive) == '    bar()'

    def test_parse_line_record(self, transformer):
        record = transformer.parse('\tx = 1 # y = 2')
        assert record.indent == 1
        assert record.code == 'x = 1'
        assert record.directive == ' y = 2'

        record = transformer.parse('\t# comment')
        assert record.directive is None


class TestContentPipeline:
    """Tests for whole-file processing"""

    def test_not_processable_extension(self, pipeline):
        """Unknown extensions signal a plain copy"""
        assert pipeline.process('x = 1 # y\n', '.png') is None
        assert pipeline.process('x = 1 # y\n', '.md') is None

    def test_extension_is_case_insensitive(self, pipeline):
        assert pipeline.is_processable('.GD')

    def test_process_file(self, pipeline):
        """Directives are applied line by line"""
        text = (
            'extends Node2D\n'
            '\n'
            'var speed := 400.0 # var speed := 0.0\n'
            '\n'
            'func _process(delta: float) -> void:\n'
            '\tvar direction := Vector2.RIGHT #\n'
            '\tposition += direction * speed * delta # pass\n'
        )
        expected = (
            'extends Node2D\n'
            '\n'
            'var speed := 0.0\n'
            '\n'
            'func _process(delta: float) -> void:\n'
            '\tpass\n'
        )
        assert pipeline.process(text, '.gd') == expected

    def test_result_is_trimmed_with_one_trailing_newline(self, pipeline):
        text = '\n\n\nextends Node\n\n\n\n'
        assert pipeline.process(text, '.gd') == 'extends Node\n'

    def test_deleted_lines_leave_no_gap(self, pipeline):
        text = 'a = 1\nb = 2 #\nc = 3\n'
        assert pipeline.process(text, '.gd') == 'a = 1\nc = 3\n'

    def test_resource_paths_substituted(self, pipeline):
        """Every solutions reference points at the practices tree"""
        text = (
            'const Enemy = preload("res://solutions/lesson_1/enemy.gd")\n'
            'const Scene = preload("res://solutions/lesson_1/enemy.tscn")\n'
        )
        result = pipeline.process(text, '.gd')
        assert 'res://solutions/' not in result
        assert result.count('res://practices/') == 2

    def test_custom_namespace(self, tmp_path):
        resolver = PathResolver(tmp_path, solutions_dir='course_solutions', practices_dir='course_practices')
        pipeline = ContentPipeline(resolver)
        result = pipeline.process('[ext_resource path="res://course_solutions/a.gd"]\n', '.tscn')
        assert result == '[ext_resource path="res://course_practices/a.gd"]\n'


class TestPathResolver:
    """Tests for solutions <-> practices mapping"""

    def test_round_trip(self, tmp_path):
        resolver = PathResolver(tmp_path)
        solution = tmp_path / 'solutions' / 'lesson_1' / 'player.gd'
        practice = resolver.to_practice(solution)

        assert practice == tmp_path / 'practices' / 'lesson_1' / 'player.gd'
        assert resolver.to_solution(practice) == solution

    def test_outside_root_raises(self, tmp_path):
        resolver = PathResolver(tmp_path)
        with pytest.raises(ValueError):
            resolver.to_practice(tmp_path / 'other' / 'file.gd')

    def test_refs(self, tmp_path):
        resolver = PathResolver(tmp_path)
        assert resolver.solutions_ref == 'res://solutions/'
        assert resolver.practices_ref == 'res://practices/'


class TestStaleness:
    """Tests for should_skip"""

    def test_missing_practice_is_built(self):
        assert should_skip(10.0, 0.0, 0.0, practice_exists=False) is False

    def test_newer_practice_is_skipped(self):
        assert should_skip(10.0, 20.0, 0.0, practice_exists=True) is True

    def test_older_practice_is_built(self):
        assert should_skip(20.0, 10.0, 0.0, practice_exists=True) is False

    def test_equal_mtime_is_built(self):
        assert should_skip(10.0, 10.0, 0.0, practice_exists=True) is False

    def test_newer_diff_script_rebuilds(self):
        """Editing the diff script makes practices stale"""
        assert should_skip(10.0, 20.0, 30.0, practice_exists=True) is False

    def test_forced(self):
        assert should_skip(10.0, 20.0, 0.0, practice_exists=True, forced=True) is False

"""Resource name pattern compiler.

This module turns pattern strings such as `projects/{project}/logs/{log}`
into immutable `CompiledPattern` objects.

Grammar handled by the compiler:
- a pattern is a `/`-separated list of non-empty components, or the
  single wildcard `*`;
- a component is either literal text, a single `{variable}`, or several
  variables joined by one-character separators (`_`, `-`, `.`, `~`);
- delimiters are kept verbatim as literal segments.
"""

from functools import lru_cache
from typing import Literal

from resource_patterns.errors import MalformedPatternError
from resource_patterns.names import DELIMITER, SEPARATORS, VARIABLE_PATTERN, WILDCARD

from .segments import ComplexSegment, CompiledPattern, LiteralSegment, Segment, VariableSegment

#: Lexical token of a path component: kind, text and absolute offset.
type Token = tuple[Literal['literal', 'variable'], str, int]

VARIABLE_START = '{'
VARIABLE_END = '}'

#: Number of compiled patterns kept in memory.
COMPILE_CACHE_SIZE = 4096


class PatternCompiler:
    """Compiler of resource name patterns.

    The compiler is stateless. Recently compiled patterns are kept in a
    bounded cache keyed by pattern string, so repeated compilation of the
    same pattern returns the same immutable object.
    """

    @classmethod
    @lru_cache(maxsize=COMPILE_CACHE_SIZE)
    def compile(cls, pattern: str) -> CompiledPattern:
        """Compile a pattern string.

        Args:
            pattern: Pattern string.

        Returns:
            The compiled pattern.

        Raises:
            MalformedPatternError: If the pattern violates the grammar.
        """
        if not pattern:
            raise MalformedPatternError('Pattern is empty', pattern, 0)

        if pattern == WILDCARD:
            return CompiledPattern(pattern=pattern, wildcard=True)

        segments: list[Segment] = []
        collection_ids: list[str] = []
        declared: set[str] = set()

        offset = 0
        for index, component in enumerate(pattern.split(DELIMITER)):
            if index > 0:
                segments.append(LiteralSegment(text=DELIMITER))

            segment = cls._compile_component(pattern, component, offset, declared)
            if isinstance(segment, LiteralSegment):
                collection_ids.append(segment.text)

            segments.append(segment)
            offset += len(component) + len(DELIMITER)

        return CompiledPattern(
            pattern=pattern,
            segments=tuple(segments),
            collection_ids=tuple(collection_ids),
        )

    @classmethod
    def _compile_component(cls, pattern: str, component: str, offset: int,
                           declared: set[str]) -> Segment:
        """Compile a single path component.

        Args:
            pattern: Whole pattern string, for error reporting.
            component: Component text.
            offset: Offset of the component inside the pattern.
            declared: Variable names declared by previous components.
                Updated in-place.

        Returns:
            A literal, variable or complex segment.

        Raises:
            MalformedPatternError: If the component violates the grammar.
        """
        if not component:
            raise MalformedPatternError('Empty path component', pattern, offset)

        tokens = cls._tokenize(pattern, component, offset)

        for kind, text, position in tokens:
            if kind == 'literal':
                if WILDCARD in text:
                    raise MalformedPatternError(
                        'Wildcard must be the whole pattern',
                        pattern, position + text.index(WILDCARD),
                    )
                continue

            if not text:
                raise MalformedPatternError('Empty variable name', pattern, position)
            if not VARIABLE_PATTERN.match(text):
                raise MalformedPatternError(f'Invalid variable name {text!r}', pattern, position)
            if text in declared:
                raise MalformedPatternError(f'Duplicate variable {text!r}', pattern, position)
            declared.add(text)

        if all(kind == 'literal' for kind, _, _ in tokens):
            return LiteralSegment(text=component)

        first_kind, first_text, first_position = tokens[0]
        if first_kind == 'literal':
            raise MalformedPatternError(
                f'Unexpected {first_text!r} before the first variable of a component',
                pattern, first_position,
            )

        last_kind, last_text, last_position = tokens[-1]
        if last_kind == 'literal':
            raise MalformedPatternError(
                f'Unexpected {last_text!r} after the last variable of a component',
                pattern, last_position,
            )

        if len(tokens) == 1:
            return VariableSegment(name=first_text)

        parts: list[VariableSegment | LiteralSegment] = []
        previous = None
        for kind, text, position in tokens:
            if kind == previous == 'variable':
                raise MalformedPatternError(
                    'Variables must be joined by a separator',
                    pattern, position,
                )

            if kind == 'variable':
                parts.append(VariableSegment(name=text))
            elif len(text) != 1 or text not in SEPARATORS:
                raise MalformedPatternError(
                    f'Unsupported separator {text!r}',
                    pattern, position,
                )
            else:
                parts.append(LiteralSegment(text=text))

            previous = kind

        return ComplexSegment(parts=tuple(parts))

    @staticmethod
    def _tokenize(pattern: str, component: str, offset: int) -> list[Token]:
        """Split a component into literal and variable tokens.

        Args:
            pattern: Whole pattern string, for error reporting.
            component: Component text.
            offset: Offset of the component inside the pattern.

        Returns:
            Tokens in order of appearance. Variable tokens carry the bare
            name and the offset of their opening brace.

        Raises:
            MalformedPatternError: If braces are unbalanced or nested.
        """
        tokens: list[Token] = []

        position = 0
        while position < len(component):
            start = component.find(VARIABLE_START, position)
            close = component.find(VARIABLE_END, position)

            if close != -1 and (start == -1 or close < start):
                raise MalformedPatternError('Unbalanced closing brace', pattern, offset + close)

            if start == -1:
                tokens.append(('literal', component[position:], offset + position))
                break

            if start > position:
                tokens.append(('literal', component[position:start], offset + position))

            end = component.find(VARIABLE_END, start)
            if end == -1:
                raise MalformedPatternError('Unclosed variable', pattern, offset + start)

            name = component[start + 1:end]
            if VARIABLE_START in name:
                nested = start + 1 + name.index(VARIABLE_START)
                raise MalformedPatternError('Nested variable', pattern, offset + nested)

            tokens.append(('variable', name, offset + start))
            position = end + 1

        return tokens


def compile_pattern(pattern: str) -> CompiledPattern:
    """Compile a pattern string.

    Shortcut for `PatternCompiler.compile`.
    """
    return PatternCompiler.compile(pattern)

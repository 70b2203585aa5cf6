"""Resource name matching and rendering.

This module defines the two directions of the mapping between a compiled
pattern and concrete resource names:

- matching a name against a pattern extracts a binding of variables;
- rendering a pattern with a binding produces a name.

Values bound to variables never contain the `/` delimiter. Values bound
inside a complex segment additionally never contain any separator of
that segment, which keeps the decomposition of a name unique.
"""

from typing import TYPE_CHECKING

from resource_patterns.errors import InvalidValueError, MissingVariableError, NoMatchError
from resource_patterns.names import DELIMITER

from .segments import Binding, ComplexSegment, LiteralSegment, VariableSegment

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

if TYPE_CHECKING:
    from .segments import CompiledPattern


class NameMatcher:
    """Matcher and renderer of resource names over compiled patterns."""

    @classmethod
    def match(cls, pattern: 'CompiledPattern', name: str, *,
              wildcard_variable: str | None = None) -> Binding:
        """Match a resource name against a compiled pattern.

        Args:
            pattern: Compiled pattern.
            name: Candidate resource name.
            wildcard_variable: Optional key binding the whole name when
                the pattern is the wildcard.

        Returns:
            Variable binding extracted from the name.

        Raises:
            NoMatchError: If the name does not match the pattern.
        """
        if not name:
            raise NoMatchError('Resource name is empty', name, (pattern.pattern,))

        if pattern.wildcard:
            if wildcard_variable:
                return {wildcard_variable: name}
            return {}

        binding: Binding = {}

        position = 0
        for segment in pattern.segments:
            if isinstance(segment, LiteralSegment):
                if not name.startswith(segment.text, position):
                    raise cls._no_match(pattern, name, f'expected {segment.text!r} at {position}')
                position += len(segment.text)
                continue

            end = name.find(DELIMITER, position)
            if end == -1:
                end = len(name)

            value = name[position:end]
            if not value:
                raise cls._no_match(pattern, name, f'empty value at {position}')

            if isinstance(segment, VariableSegment):
                binding[segment.name] = value
            else:
                binding.update(cls._split_complex(pattern, segment, name, value))

            position = end

        if position != len(name):
            raise cls._no_match(pattern, name, f'unexpected trailing {name[position:]!r}')

        return binding

    @classmethod
    def match_first(cls, patterns: 'Iterable[CompiledPattern]', name: str, *,
                    wildcard_variable: str | None = None) -> tuple['CompiledPattern', Binding]:
        """Match a resource name against candidate patterns in order.

        The first matching pattern wins.

        Args:
            patterns: Candidate patterns in priority order.
            name: Candidate resource name.
            wildcard_variable: Optional key binding the whole name when
                a wildcard pattern matches.

        Returns:
            The matching pattern and the extracted binding.

        Raises:
            NoMatchError: If no candidate matches the name.
        """
        tried: list[str] = []
        for pattern in patterns:
            try:
                return pattern, cls.match(pattern, name, wildcard_variable=wildcard_variable)
            except NoMatchError:
                tried.append(pattern.pattern)

        if not tried:
            raise NoMatchError(f'No patterns to match {name!r} against', name)

        raise NoMatchError(
            f'Name {name!r} does not match any of {len(tried)} patterns',
            name, tried,
        )

    @classmethod
    def render(cls, pattern: 'CompiledPattern', binding: 'Mapping[str, str]', *,
               wildcard_variable: str | None = None) -> str:
        """Render a resource name from a binding.

        Variables are substituted in declaration order; the first unbound
        variable aborts rendering.

        Args:
            pattern: Compiled pattern.
            binding: Values of the pattern variables. Extra keys are ignored.
            wildcard_variable: Key of the whole name when the pattern is
                the wildcard.

        Returns:
            The rendered resource name.

        Raises:
            MissingVariableError: If a variable has no value.
            InvalidValueError: If a value could not be matched back.
        """
        if pattern.wildcard:
            if not wildcard_variable or wildcard_variable not in binding:
                raise MissingVariableError(wildcard_variable or '*', pattern.pattern)
            return cls._check_value(pattern, wildcard_variable, binding[wildcard_variable])

        parts: list[str] = []
        for segment in pattern.segments:
            if isinstance(segment, LiteralSegment):
                parts.append(segment.text)
            elif isinstance(segment, VariableSegment):
                parts.append(cls._lookup(pattern, binding, segment.name))
            else:
                parts.append(cls._render_complex(pattern, segment, binding))

        return ''.join(parts)

    @classmethod
    def _split_complex(cls, pattern: 'CompiledPattern', segment: ComplexSegment,
                       name: str, value: str) -> Binding:
        """Decompose a component value using complex segment separators."""
        forbidden = set(segment.separators)
        binding: Binding = {}

        position = 0
        parts = segment.parts
        for index in range(0, len(parts), 2):
            variable = parts[index]
            if index + 1 < len(parts):
                separator = parts[index + 1].text  # type: ignore[union-attr]
                end = value.find(separator, position)
                if end == -1:
                    raise cls._no_match(pattern, name, f'separator {separator!r} not found')
            else:
                end = len(value)

            item = value[position:end]
            if not item or forbidden.intersection(item):
                raise cls._no_match(pattern, name, f'ambiguous value {value!r}')

            binding[variable.name] = item  # type: ignore[union-attr]
            position = end + 1

        return binding

    @classmethod
    def _render_complex(cls, pattern: 'CompiledPattern', segment: ComplexSegment,
                        binding: 'Mapping[str, str]') -> str:
        """Join complex segment values with their separators."""
        forbidden = set(segment.separators)

        parts: list[str] = []
        for part in segment.parts:
            if isinstance(part, LiteralSegment):
                parts.append(part.text)
                continue

            value = cls._lookup(pattern, binding, part.name)
            if forbidden.intersection(value):
                raise InvalidValueError(
                    f'Value of {part.name!r} contains a separator of its segment',
                    part.name, value, pattern.pattern,
                )
            parts.append(value)

        return ''.join(parts)

    @classmethod
    def _lookup(cls, pattern: 'CompiledPattern', binding: 'Mapping[str, str]',
                variable: str) -> str:
        if variable not in binding:
            raise MissingVariableError(variable, pattern.pattern)

        return cls._check_value(pattern, variable, binding[variable])

    @staticmethod
    def _check_value(pattern: 'CompiledPattern', variable: str, value: str) -> str:
        if not isinstance(value, str) or not value:
            raise InvalidValueError(
                f'Value of {variable!r} must be a non-empty string',
                variable, str(value), pattern.pattern,
            )

        if DELIMITER in value and not pattern.wildcard:
            raise InvalidValueError(
                f'Value of {variable!r} contains {DELIMITER!r}',
                variable, value, pattern.pattern,
            )

        return value

    @staticmethod
    def _no_match(pattern: 'CompiledPattern', name: str, reason: str) -> NoMatchError:
        return NoMatchError(
            f'Name {name!r} does not match pattern: {reason}',
            name, (pattern.pattern,),
        )


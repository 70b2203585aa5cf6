"""Core exception hierarchy.

This module defines base error and warning types used across the library
to report malformed patterns, failed matches and renders, registration
conflicts, and schema document failures in a structured way.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import dump
from yaml.error import MarkedYAMLError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Self

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails, ValidationError

#: Indentation of nested YAML blocks in snippets.
SNIPPET_INDENT = 2

#: Placeholder for values that cannot be shown in a snippet.
RUNTIME_OBJECT = '<runtime object>'

#: Source name used when a location has no file.
UNKNOWN_SOURCE = '<string>'

#: Indentation of detail lines under the error message.
DETAILS_INDENT = 4


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Name of the schema file where the error occurred.
    filename: str | None

    #: Line number in the source file.
    line_num: int | None
    #: Column number in the source file.
    column_num: int | None

    #: Number of the schema entry where the error occurred.
    entry_num: int | None

    #: Unified resource type being processed.
    resource_type: str | None
    #: Pattern string being compiled or matched.
    pattern: str | None
    #: Zero-based offset of the problem inside the pattern.
    position: int | None

    #: Underlying exception that triggered formatting.
    error: Exception | None
    #: Input element associated with the error.
    element: Any


class ErrorFormatter:
    """Utility class for formatting resource pattern errors.

    This formatter produces human-readable error messages with optional
    source location, a caret marker under the offending pattern column,
    and a YAML snippet of the offending schema entry.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        details = cls.get_location_string(context, indent=DETAILS_INDENT)
        details += cls.get_pattern_string(context, indent=DETAILS_INDENT)
        details += cls.get_snippet_string(context, indent=DETAILS_INDENT * 2)
        if not details:
            return message

        return f'{message}{linesep}{details}'

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format source and registry location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string including filename, line,
            column, entry number and resource type when available.
        """
        indent = cls._indent_prefix(indent)
        message = ''

        filename = context.get('filename')
        line_num = context.get('line_num')
        if filename or line_num is not None:
            message += f'{indent}in "{filename or UNKNOWN_SOURCE}"'
            if line_num is not None:
                message += f', line {line_num + 1}'
                if (column_num := context.get('column_num')) is not None:
                    message += f', column {column_num + 1}'
            message += linesep

        if (entry_num := context.get('entry_num')) is not None:
            message += f'{indent}on entry {entry_num + 1}{linesep}'

        if resource_type := context.get('resource_type'):
            message += f'{indent}for resource {resource_type!r}{linesep}'

        return message

    @classmethod
    def get_pattern_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Format the offending pattern with a caret under the problem.

        Args:
            context: Error context containing the pattern and position.
            indent: Optional indentation (string or number of spaces).

        Returns:
            The pattern line, followed by a marker line when the
            position is known, or an empty string without a pattern.
        """
        indent = cls._indent_prefix(indent)

        pattern = context.get('pattern')
        if pattern is None:
            return ''

        message = f'{indent}{pattern}{linesep}'
        if (position := context.get('position')) is not None:
            message += f'{indent}{" " * position}^{linesep}'

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Render the offending input as an indented snippet.

        YAML parser errors show the source lines around the problem
        mark; other errors show the offending element dumped as YAML.

        Args:
            context: Error context containing element or exception data.
            indent: Optional indentation (string or number of spaces).

        Returns:
            The snippet, or an empty string without snippet data.
        """
        prefix = cls._indent_prefix(indent)

        error = context.get('error')
        if isinstance(error, MarkedYAMLError):
            if error.problem_mark is None:
                return ''
            return cls._indent(error.problem_mark.get_snippet(indent=0) or '', prefix)

        if not (element := context.get('element')):
            return ''

        text = dump(cls._to_plain(element), indent=SNIPPET_INDENT, sort_keys=False)

        return f'{prefix}...{linesep}{cls._indent(text, prefix)}{linesep}'

    @classmethod
    def _to_plain(cls, value: Any) -> Any:  # noqa: ANN401
        """Reduce a value to plain scalars, lists and mappings."""
        if isinstance(value, str):
            return str(value)

        if value is None or isinstance(value, (bytes, int, float)):
            return value

        if isinstance(value, dict):
            return {str(key): cls._to_plain(item) for key, item in value.items()}

        if isinstance(value, (list, tuple, set, frozenset)):
            return [cls._to_plain(item) for item in value]

        return RUNTIME_OBJECT

    @staticmethod
    def _indent(text: str, prefix: str) -> str:
        """Prefix every non-blank line of a text."""
        lines = (line for line in text.splitlines() if line.strip())

        return linesep.join(f'{prefix}{line}' for line in lines)

    @staticmethod
    def _indent_prefix(indent: str | int | None = None) -> str:
        """Normalize an indentation given as text or a number of spaces."""
        if isinstance(indent, str):
            return indent

        return ' ' * indent if indent else ''


class PatternWarning(UserWarning):
    """Warning emitted for non-fatal resource pattern issues.

    This warning is used when a schema entry cannot be registered but
    the error does not prevent further processing (relaxed mode), and
    for compatibility violations reported in warn-only mode.
    """


class ResourcePatternError(Exception, ErrorFormatter):
    """Base exception for all resource-patterns errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers. None of them is
    retryable: each one describes permanently invalid input.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional location values.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String representation."""
        return self.format(self.message, self.context)

    def with_context(self, **context: Any) -> 'Self':  # noqa: ANN401
        """Attach additional context to the error.

        Existing context values take precedence, so the most specific
        location recorded where the error was raised is preserved.

        Args:
            **context: Error context values.

        Returns:
            The same error instance.
        """
        self.context = ErrorContext({**context, **(self.context or {})})  # type: ignore[typeddict-item]

        return self


class MalformedPatternError(ResourcePatternError):
    """Error raised when a pattern string violates the pattern grammar.

    Raised at compile time. Generation must abort for the resource type
    owning the pattern.
    """

    def __init__(self, message: str, pattern: str,
                 position: int | None = None) -> None:
        """Initialize a malformed pattern error.

        Args:
            message: Human-readable error description.
            pattern: The offending pattern string.
            position: Zero-based offset of the problem inside the pattern.
        """
        self.pattern = pattern
        self.position = position

        super().__init__(message, context=ErrorContext(
            pattern=pattern,
            position=position,
        ))


class NoMatchError(ResourcePatternError):
    """Error raised when a name does not structurally match a pattern.

    This is expected control flow when several candidate patterns are
    tried in sequence.
    """

    def __init__(self, message: str, name: str,
                 patterns: 'Sequence[str]' = ()) -> None:
        """Initialize a no-match error.

        Args:
            message: Human-readable error description.
            name: The candidate resource name.
            patterns: Pattern strings tried against the name.
        """
        self.name = name
        self.patterns = tuple(patterns)

        context = ErrorContext()
        if len(self.patterns) == 1:
            context['pattern'] = self.patterns[0]

        super().__init__(message, context=context)


class MissingVariableError(ResourcePatternError):
    """Error raised when a render binding omits a pattern variable."""

    def __init__(self, variable: str, pattern: str) -> None:
        """Initialize a missing variable error.

        Args:
            variable: Name of the first unbound variable.
            pattern: Pattern being rendered.
        """
        self.variable = variable
        self.pattern = pattern

        super().__init__(
            f'Missing value for variable {variable!r}',
            context=ErrorContext(pattern=pattern),
        )


class InvalidValueError(ResourcePatternError):
    """Error raised when a bound value cannot be rendered unambiguously."""

    def __init__(self, message: str, variable: str, value: str,
                 pattern: str) -> None:
        """Initialize an invalid value error.

        Args:
            message: Human-readable error description.
            variable: Name of the variable.
            value: The rejected value.
            pattern: Pattern being rendered.
        """
        self.variable = variable
        self.value = value
        self.pattern = pattern

        super().__init__(message, context=ErrorContext(pattern=pattern))


class RegistrationError(ResourcePatternError):
    """Error raised when a registry entry cannot be registered.

    Registration errors abort the offending entry only; the registry is
    left exactly as it was before the call.
    """


class DuplicateCollectionSequenceError(RegistrationError):
    """Error raised when two patterns of a resource share collection identifiers."""

    def __init__(self, resource_type: str, pattern: str, existing: str) -> None:
        """Initialize a duplicate collection sequence error.

        Args:
            resource_type: Unified resource type.
            pattern: The pattern being registered.
            existing: The already registered pattern with the same sequence.
        """
        self.resource_type = resource_type
        self.pattern = pattern
        self.existing = existing

        super().__init__(
            f'Pattern has the same collection identifiers as {existing!r}',
            context=ErrorContext(resource_type=resource_type, pattern=pattern),
        )


class ConflictingReferenceError(RegistrationError):
    """Error raised when a reference declares both or neither target kinds."""


class UnknownResourceTypeError(RegistrationError):
    """Error raised when a resource type is not registered."""

    def __init__(self, resource_type: str) -> None:
        """Initialize an unknown resource type error.

        Args:
            resource_type: The requested unified resource type.
        """
        self.resource_type = resource_type

        super().__init__(f'Unknown resource type {resource_type!r}')


class FinalizedRegistryError(RegistrationError):
    """Error raised when registering into an already finalized registry."""


class SchemaError(ResourcePatternError):
    """Error raised when a schema document is invalid.

    This exception is used when an input document cannot be parsed as
    YAML or violates the structure of the schema document model.
    """

    @classmethod
    def from_yaml_error(cls, error: MarkedYAMLError, *,
                        filename: str | None = None) -> 'Self':
        """Create a schema error from a YAML parsing failure.

        Args:
            error: Exception raised by the YAML parser.
            filename: Optional name of the source file.

        Returns:
            SchemaError representing the YAML parsing failure.
        """
        error_context = ErrorContext(error=error, filename=filename)
        if mark := error.problem_mark:
            error_context.update(
                filename=filename or mark.name,
                line_num=mark.line,
                column_num=mark.column,
            )

        message = 'Invalid YAML'
        if error.problem:
            message += f'{linesep}{" " * DETAILS_INDENT}{error.problem}'

        return cls(message, context=error_context)

    @classmethod
    def from_pydantic_error(cls, error: 'ValidationError', *,
                            data: Any = None,  # noqa: ANN401
                            filename: str | None = None,
                            entry_num: int | None = None) -> 'Self':
        """Create a schema error from a Pydantic validation failure.

        The message of the first issue that can be traced into the
        document is used, and the snippet is narrowed down to the value
        that issue points at.

        Args:
            error: ValidationError raised by Pydantic.
            data: Document data.
            filename: Name of the source file.
            entry_num: Position of the document in its stream.

        Returns:
            SchemaError representing the validation failure.
        """
        base = ErrorContext(
            filename=filename,
            entry_num=entry_num,
            error=error,
            element=data,
        )

        if not isinstance(data, dict) or not data:
            return cls('Type validation error', context=base)

        for details in error.errors(include_url=False, include_input=False):
            if (located := cls._narrow_to_issue(data, details)) is not None:
                message, fragment = located
                return cls(message, context=ErrorContext(base, element=fragment))

        return cls('Validation error', context=base)

    @staticmethod
    def _narrow_to_issue(data: Any,  # noqa: ANN401
                         details: 'ErrorDetails') -> tuple[str, Any] | None:
        """Follow the location of a validation issue into the data.

        Location steps missing from the data are skipped.

        Args:
            data: Validated document data.
            details: Pydantic error details.

        Returns:
            The first line of the issue message and the deepest reached
            value wrapped the way its parent holds it, or `None` when the
            location cannot be followed.
        """
        parent: Any = None
        key: int | str | None = None
        current = data

        for step in details['loc']:
            if isinstance(current, (list, tuple)):
                if not isinstance(step, int) or not 0 <= step < len(current):
                    continue
            elif isinstance(current, dict):
                if step not in current:
                    continue
            else:
                return None

            parent, key, current = current, step, current[step]

        if key is None:
            return None

        lines = (line.strip() for line in details['msg'].splitlines())
        if not (message := next((line for line in lines if line), None)):
            return None

        if isinstance(parent, dict):
            return message, {key: current}

        return message, [current]


class RegistryBuildError(ResourcePatternError):
    """Error raised when a schema document left unregistered entries.

    Raised in strict mode once every entry of the document has been
    processed, so that all issues are reported together.
    """

    def __init__(self, issues: 'Sequence[ResourcePatternError]', *,
                 filename: str | None = None) -> None:
        """Initialize a registry build error.

        Args:
            issues: Every error collected while loading the document.
            filename: Optional name of the source file.
        """
        self.issues = tuple(issues)

        message = f'Failed to register {len(self.issues)} schema entries'
        for issue in self.issues:
            message += f'{linesep}{" " * DETAILS_INDENT}- {issue.message}'

        super().__init__(message, context=ErrorContext(filename=filename))

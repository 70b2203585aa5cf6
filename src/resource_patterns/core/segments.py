"""Compiled pattern structures.

A compiled pattern is an ordered sequence of segments. Segments form a
closed tagged union discriminated by the `kind` field:

- `LiteralSegment` - text copied verbatim (collection identifiers and
  the `/` delimiters between path components);
- `VariableSegment` - a named placeholder spanning a whole component;
- `ComplexSegment` - a component holding several variables joined by
  single-character separators.
"""

from typing import Annotated, Literal

from pydantic import Field

from resource_patterns.models import SchemaModel
from resource_patterns.names import DELIMITER

#: Mapping from variable name to its value in a concrete resource name.
type Binding = dict[str, str]

#: Structural fingerprint of a pattern with variable names erased.
type Shape = tuple[tuple[str, ...], ...]


class LiteralSegment(SchemaModel):
    """Literal text of a pattern."""

    kind: Literal['literal'] = 'literal'

    text: str = Field(
        min_length=1,
        title='Literal text',
        description='Text that must appear verbatim in a resource name.',
    )

    @property
    def is_delimiter(self) -> bool:
        """Whether the literal is the structural component delimiter."""
        return self.text == DELIMITER


class VariableSegment(SchemaModel):
    """Named placeholder of a pattern."""

    kind: Literal['variable'] = 'variable'

    name: str = Field(
        min_length=1,
        title='Variable name',
        description='Variable name exactly as declared in the pattern.',
    )


ComplexPart = Annotated[
    VariableSegment | LiteralSegment,
    Field(discriminator='kind'),
]


class ComplexSegment(SchemaModel):
    """Path component with multiple variables.

    Parts alternate between variables and separator literals, starting
    and ending with a variable:

        {user}~{device}  ->  Variable(user), Literal(~), Variable(device)
    """

    kind: Literal['complex'] = 'complex'

    parts: tuple[ComplexPart, ...] = Field(
        min_length=3,
        title='Segment parts',
        description='Alternating variables and separators.',
    )

    @property
    def variables(self) -> tuple[str, ...]:
        """Variable names in declaration order."""
        return tuple(
            part.name
            for part in self.parts
            if isinstance(part, VariableSegment)
        )

    @property
    def separators(self) -> tuple[str, ...]:
        """Separators in declaration order."""
        return tuple(
            part.text
            for part in self.parts
            if isinstance(part, LiteralSegment)
        )


Segment = Annotated[
    LiteralSegment | VariableSegment | ComplexSegment,
    Field(discriminator='kind'),
]


class CompiledPattern(SchemaModel):
    """Immutable compiled form of a resource name pattern.

    Instances are produced by the pattern compiler and are never built
    by hand in regular code.
    """

    pattern: str = Field(
        title='Pattern',
        description='Original pattern string.',
    )

    segments: tuple[Segment, ...] = Field(
        default=(),
        title='Segments',
        description='Ordered segments of the pattern.',
    )

    collection_ids: tuple[str, ...] = Field(
        default=(),
        title='Collection identifiers',
        description=(
            'Ordered literal components of the pattern. Two patterns of '
            'the same resource type must not share this sequence.'
        ),
    )

    wildcard: bool = Field(
        default=False,
        title='Wildcard',
        description='Whether the pattern matches any resource name.',
    )

    def __str__(self) -> str:
        return self.pattern

    @property
    def variables(self) -> tuple[str, ...]:
        """Variable names of the pattern in declaration order."""
        names: list[str] = []
        for segment in self.segments:
            if isinstance(segment, VariableSegment):
                names.append(segment.name)
            elif isinstance(segment, ComplexSegment):
                names.extend(segment.variables)

        return tuple(names)

    @property
    def shape(self) -> Shape:
        """Structure of the pattern with variable names erased.

        Two patterns with equal shapes differ only in how their
        variables are named.
        """
        shape: list[tuple[str, ...]] = []
        for segment in self.segments:
            if isinstance(segment, LiteralSegment):
                shape.append((segment.kind, segment.text))
            elif isinstance(segment, VariableSegment):
                shape.append((segment.kind,))
            else:
                shape.append((segment.kind, *segment.separators))

        return tuple(shape)


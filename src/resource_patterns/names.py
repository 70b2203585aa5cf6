"""Resource name primitive types and validation rules.

This module defines the lexical rules shared by the pattern compiler,
the registry and the schema loader: what a variable name looks like,
which characters may separate variables inside a complex segment, and
what a unified resource type string is.

The rules defined here are part of the public contract and are relied upon
by generators emitting helper constructors and parsers.
"""

from re import ASCII
from re import compile as regexp
from typing import Annotated

from pydantic import Field

#: Structural delimiter between path components.
DELIMITER = '/'

#: Pattern string matching any resource name.
WILDCARD = '*'

#: Single-character separators allowed between variables of a complex segment.
SEPARATORS = frozenset('_-.~')

#: Base pattern for variable identifiers.
#: Any casing convention is accepted (`project`, `userId`, `billing_account`).
_VARIABLE_PATTERN = r'[a-zA-Z_][a-zA-Z0-9_]*'

#: Unified resource type: `{service}/{Kind}`.
_RESOURCE_TYPE_PATTERN = r'[a-zA-Z0-9][a-zA-Z0-9.-]*/[A-Z][a-zA-Z0-9]*'

#: Compiled pattern for variable identifiers.
VARIABLE_PATTERN = regexp(
    rf'^{_VARIABLE_PATTERN}$',
    flags=ASCII,
)

#: Compiled pattern for unified resource types.
RESOURCE_TYPE_PATTERN = regexp(
    rf'^(?P<service>[a-zA-Z0-9][a-zA-Z0-9.-]*)/(?P<kind>[A-Z][a-zA-Z0-9]*)$',
    flags=ASCII,
)


ResourceTypeName = Annotated[
    str, Field(
        pattern=rf'^{_RESOURCE_TYPE_PATTERN}$',
        title='Unified resource type',
        description=(
            'Namespaced resource type in the form `{service}/{Kind}`, '
            'for example `pubsub.googleapis.com/Topic`. The kind must '
            'start with an uppercase letter.'
        ),
        examples=[
            'pubsub.googleapis.com/Topic',
            'logging.googleapis.com/Log',
        ],
        json_schema_extra={
            'x-ref': 'ResourceTypeName',
        },
    ),
]

ReferenceTypeName = Annotated[
    str, Field(
        pattern=rf'^({_RESOURCE_TYPE_PATTERN}|\*)$',
        title='Referenced resource type',
        description=(
            'Unified resource type of the referenced resource, or `*` '
            'when the field may hold the name of any resource.'
        ),
        examples=[
            'pubsub.googleapis.com/Topic',
            '*',
        ],
        json_schema_extra={
            'x-ref': 'ReferenceTypeName',
        },
    ),
]

FieldName = Annotated[
    str, Field(
        pattern=rf'^{_VARIABLE_PATTERN}(\.{_VARIABLE_PATTERN})*$',
        title='Field name',
        description=(
            'Name of a message field, optionally qualified with the '
            'message name using dot notation (for example, '
            '`ListTopicsRequest.parent`).'
        ),
        examples=[
            'name',
            'ListTopicsRequest.parent',
        ],
        json_schema_extra={
            'x-ref': 'FieldName',
        },
    ),
]

PatternString = Annotated[
    str, Field(
        min_length=1,
        title='Resource name pattern',
        description=(
            'Template of resource names with literal components and '
            '`{variable}` placeholders, or `*` for any name.'
        ),
        examples=[
            'projects/{project}/topics/{topic}',
            'users/{user}/devices/{device}~{slot}',
        ],
        json_schema_extra={
            'x-ref': 'PatternString',
        },
    ),
]


def split_resource_type(value: str) -> tuple[str, str]:
    """Split a unified resource type into service and kind.

    Args:
        value: Unified resource type.

    Returns:
        A `(service, kind)` tuple.

    Raises:
        ValueError: If the value is not a unified resource type.
    """
    if not (match := RESOURCE_TYPE_PATTERN.match(value)):
        raise ValueError(f'Invalid resource type {value!r}')

    return match.group('service'), match.group('kind')

"""Declarative input records describing resources and references.

These models mirror the resource annotations extracted from
interface-definition files by an external parser:

- `ResourceDescriptor` - a file-level resource definition;
- `MessageResource` - a resource definition attached to a message;
- `ResourceReference` - a field referring to a resource or its parent;
- `SchemaDocument` - one YAML document aggregating all of the above.

The models validate shape only. Semantic rules (pattern grammar,
distinct collection identifiers, reference mutual exclusion) are
enforced by the registry so that a single invalid entry does not reject
the whole document.
"""

from enum import StrEnum

from pydantic import Field

from resource_patterns.models import SchemaModel
from resource_patterns.names import (  # noqa: TC001
    FieldName,
    PatternString,
    ReferenceTypeName,
    ResourceTypeName,
)


class History(StrEnum):
    """Pattern history of a resource type."""

    #: Nothing is known about the history of the pattern list.
    HISTORY_UNSPECIFIED = 'HISTORY_UNSPECIFIED'
    #: The resource had a single pattern and got more later on.
    ORIGINALLY_SINGLE_PATTERN = 'ORIGINALLY_SINGLE_PATTERN'
    #: The resource has a single pattern but is expected to get more.
    FUTURE_MULTI_PATTERN = 'FUTURE_MULTI_PATTERN'


class Style(StrEnum):
    """Resource design styles the resource conforms to."""

    STYLE_UNSPECIFIED = 'STYLE_UNSPECIFIED'
    DECLARATIVE_FRIENDLY = 'DECLARATIVE_FRIENDLY'


class ResourceDescriptor(SchemaModel):
    """File-level resource definition."""

    type: ResourceTypeName = Field(
        title='Resource type',
        description='Unified resource type, for example `pubsub.googleapis.com/Topic`.',
    )

    pattern: list[PatternString] = Field(
        min_length=1,
        title='Name patterns',
        description=(
            'Ordered resource name patterns. The first pattern that matches '
            'a name wins, so new patterns may only be appended.'
        ),
    )

    name_field: str | None = Field(
        default=None,
        title='Name field',
        description='Field holding the resource name. Defaults to `name`.',
    )

    history: History = Field(
        default=History.HISTORY_UNSPECIFIED,
        title='History',
        description='Historical evolution of the pattern list.',
    )

    plural: str | None = Field(
        default=None,
        title='Plural name',
        description='lowerCamelCase plural name of the resource.',
    )

    singular: str | None = Field(
        default=None,
        title='Singular name',
        description='lowerCamelCase singular name of the resource.',
    )

    style: list[Style] = Field(
        default_factory=list,
        title='Styles',
        description='Design styles the resource conforms to.',
    )


class MessageResource(SchemaModel):
    """Resource definition attached to a message."""

    message: str = Field(
        min_length=1,
        title='Message',
        description='Fully qualified name of the resource-bearing message.',
    )

    resource: ResourceDescriptor = Field(
        title='Resource',
        description='Resource annotation of the message.',
    )


class ResourceReference(SchemaModel):
    """Reference from a field to a resource type.

    Exactly one of `type` and `child_type` must be set. The rule is
    enforced at registration time.
    """

    field: FieldName = Field(
        title='Field',
        description='Qualified name of the referencing field.',
    )

    type: ReferenceTypeName | None = Field(
        default=None,
        title='Referenced type',
        description='Type of the referenced resource, or `*` for any resource.',
    )

    child_type: ResourceTypeName | None = Field(
        default=None,
        title='Child type',
        description=(
            'Type of a child resource. The field holds the name of any '
            'parent of that child.'
        ),
    )


class SchemaDocument(SchemaModel):
    """Single schema document."""

    resources: list[ResourceDescriptor] = Field(
        default_factory=list,
        title='Resource definitions',
        description='File-level resource definitions.',
    )

    messages: list[MessageResource] = Field(
        default_factory=list,
        title='Resource messages',
        description='Messages annotated as resources.',
    )

    references: list[ResourceReference] = Field(
        default_factory=list,
        title='Resource references',
        description='Fields annotated as resource references.',
    )

"""Resource registry.

This module defines the per-run registry of resource types and resource
references, and the immutable snapshot a registry is finalized into.

The registry keeps, per resource type, the ordered list of compiled
patterns. Order is significant: the first matching pattern wins, so
patterns are only ever appended. No two patterns of a type may share a
collection identifier sequence.
"""

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import Field

from resource_patterns.errors import (
    ConflictingReferenceError,
    DuplicateCollectionSequenceError,
    ErrorContext,
    FinalizedRegistryError,
    MalformedPatternError,
    NoMatchError,
    RegistrationError,
    UnknownResourceTypeError,
)
from resource_patterns.models import SchemaModel
from resource_patterns.names import DELIMITER, WILDCARD, split_resource_type
from resource_patterns.schema import History, ResourceReference, Style
from resource_patterns.settings import RegistrySettings

from .compiler import PatternCompiler
from .matcher import NameMatcher
from .segments import Binding, CompiledPattern, LiteralSegment

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

if TYPE_CHECKING:
    from resource_patterns.schema import ResourceDescriptor

logger = getLogger(__name__)


class ResourceType(SchemaModel):
    """Registered resource type with its ordered patterns."""

    type: str = Field(
        title='Resource type',
        description='Unified resource type.',
    )

    patterns: tuple[CompiledPattern, ...] = Field(
        default=(),
        title='Patterns',
        description='Compiled patterns in registration order.',
    )

    name_field: str = Field(
        default='name',
        title='Name field',
        description='Field holding the resource name.',
    )

    plural: str | None = None
    singular: str | None = None

    history: History = History.HISTORY_UNSPECIFIED
    style: tuple[Style, ...] = ()

    @property
    def wildcard(self) -> bool:
        """Whether the resource accepts any name without structure."""
        return len(self.patterns) == 1 and self.patterns[0].wildcard

    @property
    def variables(self) -> tuple[tuple[str, ...], ...]:
        """Variable names of every pattern, in pattern order."""
        return tuple(pattern.variables for pattern in self.patterns)

    def find(self, pattern: CompiledPattern) -> CompiledPattern | None:
        """Find a registered pattern structurally equal to another one.

        Variable names are not compared.

        Args:
            pattern: Pattern to look for.

        Returns:
            The registered pattern, or `None`.
        """
        for candidate in self.patterns:
            if candidate.wildcard == pattern.wildcard and candidate.shape == pattern.shape:
                return candidate

        return None


class ResolvedReference(SchemaModel):
    """Targets of a resource reference field."""

    field: str

    #: Referenced type for `type` references.
    target: ResourceType | None = None

    #: Candidate parents for `child_type` references.
    parents: tuple[ResourceType, ...] = ()

    #: Whether the field may hold any resource name.
    wildcard: bool = False


def parent_pattern(pattern: CompiledPattern) -> CompiledPattern | None:
    """Derive the pattern of the parent resource.

    A trailing `{collection}/{variable}` component pair is dropped. A
    singleton pattern, ending with a literal component such as
    `projects/{project}/settings`, drops only that component.

    Args:
        pattern: Pattern of a child resource.

    Returns:
        Compiled parent pattern, or `None` for top-level resources.
    """
    if pattern.wildcard:
        return None

    components = pattern.pattern.split(DELIMITER)
    literals = [
        isinstance(segment, LiteralSegment)
        for segment in pattern.segments
        if not (isinstance(segment, LiteralSegment) and segment.is_delimiter)
    ]

    if literals[-1]:
        drop = 1
    elif len(literals) > 1 and literals[-2]:
        drop = 2
    else:
        return None

    if len(components) <= drop or all(literals[:-drop]):
        return None

    return PatternCompiler.compile(DELIMITER.join(components[:-drop]))


class ResourceResolverMixin:
    """Mixin providing read-only resolution over registered resources.

    Implementers provide the resource and reference mappings. All
    resources are iterated in registration order.
    """

    wildcard_variable: str | None = None

    def resource_map(self) -> 'Mapping[str, ResourceType]':
        """Registered resource types keyed by type."""
        raise NotImplementedError

    def reference_map(self) -> 'Mapping[str, ResourceReference]':
        """Registered references keyed by field."""
        raise NotImplementedError

    def get_resource(self, resource_type: str) -> ResourceType:
        """Get a registered resource type.

        Raises:
            UnknownResourceTypeError: If the type is not registered.
        """
        if (resource := self.resource_map().get(resource_type)) is None:
            raise UnknownResourceTypeError(resource_type)

        return resource

    def lookup(self, resource_type: str) -> tuple[CompiledPattern, ...]:
        """Get the patterns of a resource type in registration order.

        Args:
            resource_type: Unified resource type.

        Returns:
            Compiled patterns; the first one has the highest priority.

        Raises:
            UnknownResourceTypeError: If the type is not registered.
        """
        return self.get_resource(resource_type).patterns

    def resolve_parents(self, child_type: str) -> tuple[ResourceType, ...]:
        """Find every resource type that is a parent of a child type.

        For each pattern of the child, in order, the parent pattern is
        derived by dropping the trailing collection and variable. Each
        registered type owning such a pattern is a parent.

        Args:
            child_type: Unified resource type of the child.

        Returns:
            Parent resource types without duplicates, ordered by the
            child pattern they were found for, then by registration.

        Raises:
            UnknownResourceTypeError: If the child type is not registered.
        """
        child = self.get_resource(child_type)

        parents: dict[str, ResourceType] = {}
        for pattern in child.patterns:
            if (parent := parent_pattern(pattern)) is None:
                continue
            for resource in self.resource_map().values():
                if resource.type not in parents and resource.find(parent):
                    parents[resource.type] = resource

        return tuple(parents.values())

    def resolve_reference(self, field: str) -> ResolvedReference:
        """Resolve the targets of a reference field.

        Args:
            field: Qualified name of the referencing field.

        Returns:
            The referenced type, the candidate parents, or the wildcard marker.

        Raises:
            RegistrationError: If the field has no registered reference.
            UnknownResourceTypeError: If the referenced type is not registered.
        """
        if (reference := self.reference_map().get(field)) is None:
            raise RegistrationError(f'No reference registered for field {field!r}')

        if reference.type == WILDCARD:
            return ResolvedReference(field=field, wildcard=True)

        if reference.type is not None:
            return ResolvedReference(field=field, target=self.get_resource(reference.type))

        return ResolvedReference(
            field=field,
            parents=self.resolve_parents(reference.child_type),  # type: ignore[arg-type]
        )

    def parse_name(self, resource_type: str, name: str) -> tuple[CompiledPattern, Binding]:
        """Parse a resource name using the patterns of a type.

        Args:
            resource_type: Unified resource type.
            name: Resource name.

        Returns:
            The first matching pattern and its binding.

        Raises:
            UnknownResourceTypeError: If the type is not registered.
            NoMatchError: If no pattern of the type matches.
        """
        try:
            return NameMatcher.match_first(
                self.lookup(resource_type),
                name,
                wildcard_variable=self.wildcard_variable,
            )
        except NoMatchError as error:
            raise error.with_context(resource_type=resource_type)

    def build_name(self, resource_type: str, binding: 'Mapping[str, str]') -> str:
        """Render a resource name using the patterns of a type.

        The first pattern whose variables are exactly the binding keys is
        used; without one, the first pattern is rendered.

        Args:
            resource_type: Unified resource type.
            binding: Variable values.

        Returns:
            The rendered resource name.

        Raises:
            UnknownResourceTypeError: If the type is not registered.
            MissingVariableError: If a variable of the chosen pattern is unbound.
            InvalidValueError: If a value could not be matched back.
        """
        patterns = self.lookup(resource_type)

        keys = set(binding)
        chosen = next(
            (pattern for pattern in patterns if set(pattern.variables) == keys),
            patterns[0],
        )

        return NameMatcher.render(chosen, binding, wildcard_variable=self.wildcard_variable)


class RegistrySnapshot(ResourceResolverMixin, SchemaModel):
    """Immutable state of a finalized registry.

    Snapshots are the output handed to code generation and the input of
    the compatibility validator.
    """

    resources: tuple[ResourceType, ...] = ()
    references: tuple[ResourceReference, ...] = ()

    wildcard_variable: str | None = None

    def resource_map(self) -> 'Mapping[str, ResourceType]':
        """Registered resource types keyed by type."""
        return {resource.type: resource for resource in self.resources}

    def reference_map(self) -> 'Mapping[str, ResourceReference]':
        """Registered references keyed by field."""
        return {reference.field: reference for reference in self.references}


class ResourceRegistry(ResourceResolverMixin):
    """Mutable registry of resource types for a single generator run.

    The registry follows a build/finalize lifecycle: entries are
    registered one by one, then `finalize` freezes the registry into a
    `RegistrySnapshot`. Registration after finalization fails.

    Registration is not thread-safe; independent registries may be
    built in parallel.
    """

    def __init__(self, settings: RegistrySettings | None = None) -> None:
        """Initialize an empty registry.

        Args:
            settings: Optional settings. Resolved from the environment
                when not provided.
        """
        self.settings = settings or RegistrySettings()
        self.wildcard_variable = self.settings.wildcard_variable

        self._resources: dict[str, ResourceType] = {}
        self._references: dict[str, ResourceReference] = {}
        self._snapshot: RegistrySnapshot | None = None

    def __contains__(self, resource_type: object) -> bool:
        return resource_type in self._resources

    def __len__(self) -> int:
        return len(self._resources)

    @property
    def finalized(self) -> bool:
        """Whether the registry has been finalized."""
        return self._snapshot is not None

    def resource_map(self) -> 'Mapping[str, ResourceType]':
        """Registered resource types keyed by type."""
        return self._resources

    def reference_map(self) -> 'Mapping[str, ResourceReference]':
        """Registered references keyed by field."""
        return self._references

    def register(self, resource_type: str, pattern: str, *,  # noqa: PLR0913
                 name_field: str | None = None,
                 plural: str | None = None,
                 singular: str | None = None,
                 history: History = History.HISTORY_UNSPECIFIED,
                 style: 'Iterable[Style]' = ()) -> CompiledPattern:
        """Compile a pattern and append it to a resource type.

        Options are applied when the type is registered for the first
        time. The registry is left unchanged when registration fails.

        Args:
            resource_type: Unified resource type.
            pattern: Pattern string.
            name_field: Field holding the resource name.
            plural: Plural name of the resource.
            singular: Singular name of the resource.
            history: History of the pattern list.
            style: Design styles of the resource.

        Returns:
            The compiled pattern.

        Raises:
            FinalizedRegistryError: If the registry is finalized.
            MalformedPatternError: If the pattern is malformed.
            DuplicateCollectionSequenceError: If another pattern of the
                type has the same collection identifiers.
            RegistrationError: If the name field conflicts with the
                already registered one.
        """
        resource = self._extend(
            resource_type, [pattern],
            name_field=name_field,
            plural=plural,
            singular=singular,
            history=history,
            style=tuple(style),
        )
        self._resources[resource_type] = resource

        return resource.patterns[-1]

    def register_descriptor(self, descriptor: 'ResourceDescriptor') -> ResourceType:
        """Register every pattern of a resource descriptor.

        Either all patterns are registered or none is.

        Args:
            descriptor: Resource descriptor.

        Returns:
            The registered resource type.

        Raises:
            FinalizedRegistryError: If the registry is finalized.
            MalformedPatternError: If a pattern is malformed.
            DuplicateCollectionSequenceError: If two patterns of the type
                have the same collection identifiers.
            RegistrationError: If the name field conflicts with the
                already registered one.
        """
        resource = self._extend(
            descriptor.type, descriptor.pattern,
            name_field=descriptor.name_field,
            plural=descriptor.plural,
            singular=descriptor.singular,
            history=descriptor.history,
            style=tuple(descriptor.style),
        )
        self._resources[descriptor.type] = resource

        return resource

    def register_reference(self, reference: ResourceReference) -> None:
        """Register a resource reference field.

        Args:
            reference: Reference declaration.

        Raises:
            FinalizedRegistryError: If the registry is finalized.
            ConflictingReferenceError: If the reference declares both or
                neither of `type` and `child_type`.
            RegistrationError: If the field already has a reference.
        """
        self._ensure_open()

        context = ErrorContext(element=reference.model_dump(exclude_none=True))

        if reference.type is not None and reference.child_type is not None:
            raise ConflictingReferenceError(
                f'Reference {reference.field!r} declares both type and child_type',
                context=context,
            )

        if reference.type is None and reference.child_type is None:
            raise ConflictingReferenceError(
                f'Reference {reference.field!r} declares neither type nor child_type',
                context=context,
            )

        if reference.field in self._references:
            raise RegistrationError(
                f'Reference {reference.field!r} is already registered',
                context=context,
            )

        self._references[reference.field] = reference
        logger.debug('Registered reference %s', reference.field)

    def finalize(self) -> RegistrySnapshot:
        """Freeze the registry.

        Returns:
            Immutable snapshot of the registry. Repeated calls return the
            same snapshot.
        """
        if self._snapshot is None:
            self._snapshot = RegistrySnapshot(
                resources=tuple(self._resources.values()),
                references=tuple(self._references.values()),
                wildcard_variable=self.wildcard_variable,
            )
            logger.debug(
                'Finalized registry with %d resource types and %d references',
                len(self._resources), len(self._references),
            )

        return self._snapshot

    def _ensure_open(self) -> None:
        if self._snapshot is not None:
            raise FinalizedRegistryError('Registry is finalized')

    def _extend(self, resource_type: str, patterns: 'Iterable[str]', *,  # noqa: PLR0913
                name_field: str | None,
                plural: str | None,
                singular: str | None,
                history: History,
                style: tuple[Style, ...]) -> ResourceType:
        """Build the next state of a resource type without storing it."""
        self._ensure_open()

        try:
            split_resource_type(resource_type)
        except ValueError as base:
            raise RegistrationError(str(base)) from base

        resource = self._resources.get(resource_type)
        if resource is None:
            resource = ResourceType(
                type=resource_type,
                name_field=name_field or self.settings.default_name_field,
                plural=plural,
                singular=singular,
                history=history,
                style=style,
            )
        elif name_field is not None and name_field != resource.name_field:
            raise RegistrationError(
                f'Name field {name_field!r} conflicts with {resource.name_field!r}',
                context=ErrorContext(resource_type=resource_type),
            )

        for pattern in patterns:
            try:
                compiled = PatternCompiler.compile(pattern)
            except MalformedPatternError as error:
                raise error.with_context(resource_type=resource_type)

            for existing in resource.patterns:
                if existing.collection_ids == compiled.collection_ids:
                    raise DuplicateCollectionSequenceError(
                        resource_type, compiled.pattern, existing.pattern,
                    )

            resource = resource.model_copy(update={
                'patterns': (*resource.patterns, compiled),
            })
            logger.debug('Registered pattern %r for %s', pattern, resource_type)

        return resource

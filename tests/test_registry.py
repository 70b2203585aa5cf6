"""Tests for the resource registry and its snapshots."""

import pytest

from resource_patterns.core import PatternCompiler, ResourceRegistry, parent_pattern
from resource_patterns.errors import (
    ConflictingReferenceError,
    DuplicateCollectionSequenceError,
    FinalizedRegistryError,
    MalformedPatternError,
    MissingVariableError,
    NoMatchError,
    RegistrationError,
    UnknownResourceTypeError,
)
from resource_patterns.schema import History, ResourceDescriptor, ResourceReference
from resource_patterns.settings import RegistrySettings

LOG = 'logging.googleapis.com/Log'
PROJECT = 'cloudresourcemanager.googleapis.com/Project'
ORGANIZATION = 'cloudresourcemanager.googleapis.com/Organization'
TOPIC = 'pubsub.googleapis.com/Topic'


def test_register_keeps_order(registry: ResourceRegistry) -> None:
    """Keep patterns of a type in registration order."""
    registry.register(LOG, 'projects/{project}/logs/{log}')
    registry.register(LOG, 'organizations/{organization}/logs/{log}')
    registry.register(LOG, 'folders/{folder}/logs/{log}')

    assert [pattern.pattern for pattern in registry.lookup(LOG)] == [
        'projects/{project}/logs/{log}',
        'organizations/{organization}/logs/{log}',
        'folders/{folder}/logs/{log}',
    ]
    assert LOG in registry
    assert len(registry) == 1


def test_register_returns_compiled_pattern(registry: ResourceRegistry) -> None:
    """Return the compiled pattern shared with the compiler cache."""
    compiled = registry.register(TOPIC, 'projects/{project}/topics/{topic}')

    assert compiled is PatternCompiler.compile('projects/{project}/topics/{topic}')


def test_register_applies_options_once(registry: ResourceRegistry) -> None:
    """Apply resource options when the type is first registered."""
    registry.register(TOPIC, 'projects/{project}/topics/{topic}',
                      plural='topics', singular='topic',
                      history=History.ORIGINALLY_SINGLE_PATTERN)
    registry.register(TOPIC, '_deleted-topic_')

    resource = registry.get_resource(TOPIC)

    assert resource.plural == 'topics'
    assert resource.singular == 'topic'
    assert resource.history == History.ORIGINALLY_SINGLE_PATTERN
    assert resource.name_field == 'name'
    assert len(resource.patterns) == 2


def test_register_duplicate_collection_sequence(registry: ResourceRegistry) -> None:
    """Reject a pattern with the collection identifiers of another one."""
    registry.register(LOG, 'projects/{project}/logs/{log}')

    with pytest.raises(DuplicateCollectionSequenceError) as error:
        registry.register(LOG, 'projects/{p}/logs/{a}~{b}')

    assert error.value.existing == 'projects/{project}/logs/{log}'
    assert error.value.resource_type == LOG
    assert [pattern.pattern for pattern in registry.lookup(LOG)] == [
        'projects/{project}/logs/{log}',
    ]


def test_register_malformed_pattern(registry: ResourceRegistry) -> None:
    """Attach the resource type to compile errors."""
    with pytest.raises(MalformedPatternError) as error:
        registry.register(LOG, 'projects/{project}/logs/{log')

    assert error.value.context is not None
    assert error.value.context.get('resource_type') == LOG
    assert LOG not in registry


@pytest.mark.parametrize('resource_type', (
    pytest.param('Log', id='no service'),
    pytest.param('logging.googleapis.com/log', id='lowercase kind'),
    pytest.param('logging.googleapis.com/', id='empty kind'),
))
def test_register_invalid_resource_type(registry: ResourceRegistry, resource_type: str) -> None:
    """Reject strings that are not unified resource types."""
    with pytest.raises(RegistrationError, match=r'^Invalid resource type'):
        registry.register(resource_type, 'projects/{project}')


def test_register_conflicting_name_field(registry: ResourceRegistry) -> None:
    """Reject a second registration with another name field."""
    registry.register(TOPIC, 'projects/{project}/topics/{topic}', name_field='topic')

    with pytest.raises(RegistrationError, match=r"^Name field 'name' conflicts with 'topic'"):
        registry.register(TOPIC, 'folders/{folder}/topics/{topic}', name_field='name')

    registry.register(TOPIC, 'folders/{folder}/topics/{topic}')

    assert len(registry.lookup(TOPIC)) == 2


def test_register_descriptor_is_atomic(registry: ResourceRegistry) -> None:
    """Leave the registry unchanged when any pattern of a descriptor fails."""
    registry.register(LOG, 'projects/{project}/logs/{log}')

    descriptor = ResourceDescriptor(
        type=LOG,
        pattern=[
            'organizations/{organization}/logs/{log}',
            'organizations/{org}/logs/{log}',
        ],
    )

    with pytest.raises(DuplicateCollectionSequenceError):
        registry.register_descriptor(descriptor)

    assert len(registry.lookup(LOG)) == 1


def test_register_descriptor(registry: ResourceRegistry) -> None:
    """Register every pattern and option of a descriptor."""
    resource = registry.register_descriptor(ResourceDescriptor(
        type=TOPIC,
        pattern=['projects/{project}/topics/{topic}', '_deleted-topic_'],
        name_field='topic',
        plural='topics',
    ))

    assert resource is registry.get_resource(TOPIC)
    assert resource.variables == (('project', 'topic'), ())
    assert resource.name_field == 'topic'
    assert resource.plural == 'topics'


def test_register_default_name_field() -> None:
    """Use the configured default name field."""
    registry = ResourceRegistry(RegistrySettings(default_name_field='resource_name'))
    registry.register(TOPIC, 'projects/{project}/topics/{topic}')

    assert registry.get_resource(TOPIC).name_field == 'resource_name'


@pytest.mark.parametrize('reference, message', (
    pytest.param(
        ResourceReference(field='Request.parent', type=PROJECT, child_type=LOG),
        r'declares both type and child_type',
        id='both',
    ),
    pytest.param(
        ResourceReference(field='Request.parent'),
        r'declares neither type nor child_type',
        id='neither',
    ),
))
def test_register_conflicting_reference(registry: ResourceRegistry,
                                        reference: ResourceReference, message: str) -> None:
    """Reject references without exactly one target kind."""
    with pytest.raises(ConflictingReferenceError, match=message):
        registry.register_reference(reference)

    assert 'Request.parent' not in registry.reference_map()


def test_register_reference_twice(registry: ResourceRegistry) -> None:
    """Reject a second reference for the same field."""
    registry.register_reference(ResourceReference(field='Request.topic', type=TOPIC))

    with pytest.raises(RegistrationError, match=r'is already registered'):
        registry.register_reference(ResourceReference(field='Request.topic', type='*'))


def test_unknown_resource_type(registry: ResourceRegistry) -> None:
    """Fail lookups of unregistered types."""
    with pytest.raises(UnknownResourceTypeError, match=r"^Unknown resource type 'x.y/Z'"):
        registry.lookup('x.y/Z')


@pytest.mark.parametrize('pattern, expected', (
    pytest.param('projects/{project}/logs/{log}', 'projects/{project}', id='child'),
    pytest.param('a/{a}/b/{b}/c/{c}', 'a/{a}/b/{b}', id='grandchild'),
    pytest.param('projects/{project}/logs/{a}~{b}', 'projects/{project}', id='complex'),
    pytest.param('projects/{project}', None, id='top level'),
    pytest.param('projects/{project}/settings', 'projects/{project}', id='singleton'),
    pytest.param('projects/settings', None, id='literal singleton'),
    pytest.param('_deleted-topic_', None, id='single literal'),
    pytest.param('*', None, id='wildcard'),
))
def test_parent_pattern(pattern: str, expected: str | None) -> None:
    """Derive parents of collection members and singletons."""
    parent = parent_pattern(PatternCompiler.compile(pattern))

    assert (parent.pattern if parent else None) == expected


def test_resolve_parents(registry: ResourceRegistry) -> None:
    """Order parents by child pattern, not by registration."""
    registry.register(ORGANIZATION, 'organizations/{org}')
    registry.register(PROJECT, 'projects/{project}')
    registry.register(LOG, 'projects/{project}/logs/{log}')
    registry.register(LOG, 'organizations/{organization}/logs/{log}')
    registry.register(LOG, 'billingAccounts/{account}/logs/{log}')

    parents = registry.resolve_parents(LOG)

    assert [parent.type for parent in parents] == [PROJECT, ORGANIZATION]


def test_resolve_parents_top_level(registry: ResourceRegistry) -> None:
    """Resolve no parents for top-level resources."""
    registry.register(PROJECT, 'projects/{project}')

    assert registry.resolve_parents(PROJECT) == ()


def test_resolve_parents_singleton(registry: ResourceRegistry) -> None:
    """Resolve the owning resource of a singleton."""
    registry.register(PROJECT, 'projects/{project}')
    registry.register('example.com/Settings', 'projects/{project}/settings')

    parents = registry.resolve_parents('example.com/Settings')

    assert [parent.type for parent in parents] == [PROJECT]


def test_resolve_reference(registry: ResourceRegistry) -> None:
    """Resolve type, child type and wildcard references."""
    registry.register(PROJECT, 'projects/{project}')
    registry.register(TOPIC, 'projects/{project}/topics/{topic}')
    registry.register_reference(ResourceReference(field='Subscription.topic', type=TOPIC))
    registry.register_reference(ResourceReference(field='ListTopicsRequest.parent', child_type=TOPIC))
    registry.register_reference(ResourceReference(field='Audit.resource', type='*'))

    snapshot = registry.finalize()

    resolved = snapshot.resolve_reference('Subscription.topic')
    assert resolved.target is not None
    assert resolved.target.type == TOPIC

    resolved = snapshot.resolve_reference('ListTopicsRequest.parent')
    assert resolved.target is None
    assert [parent.type for parent in resolved.parents] == [PROJECT]

    resolved = snapshot.resolve_reference('Audit.resource')
    assert resolved.wildcard
    assert resolved.target is None

    with pytest.raises(RegistrationError, match=r"^No reference registered for field 'Other.name'"):
        snapshot.resolve_reference('Other.name')


def test_parse_name(registry: ResourceRegistry) -> None:
    """Parse names with the first matching pattern of a type."""
    registry.register(LOG, 'projects/{project}/logs/{log}')
    registry.register(LOG, 'organizations/{organization}/logs/{log}')

    pattern, binding = registry.parse_name(LOG, 'organizations/o1/logs/l1')

    assert pattern.pattern == 'organizations/{organization}/logs/{log}'
    assert binding == {'organization': 'o1', 'log': 'l1'}

    with pytest.raises(NoMatchError) as error:
        registry.parse_name(LOG, 'folders/f1/logs/l1')

    assert error.value.context is not None
    assert error.value.context.get('resource_type') == LOG


def test_build_name(registry: ResourceRegistry) -> None:
    """Render names with the pattern matching the binding keys."""
    registry.register(LOG, 'projects/{project}/logs/{log}')
    registry.register(LOG, 'organizations/{organization}/logs/{log}')

    assert registry.build_name(LOG, {'organization': 'o1', 'log': 'l1'}) == 'organizations/o1/logs/l1'
    assert registry.build_name(LOG, {'project': 'p1', 'log': 'l1'}) == 'projects/p1/logs/l1'

    with pytest.raises(MissingVariableError, match=r"'project'"):
        registry.build_name(LOG, {'log': 'l1'})


def test_wildcard_resource() -> None:
    """Bind wildcard names with the configured catch-all variable."""
    registry = ResourceRegistry(RegistrySettings(wildcard_variable='name'))
    registry.register('example.com/Any', '*')

    snapshot = registry.finalize()

    assert snapshot.get_resource('example.com/Any').wildcard
    assert snapshot.parse_name('example.com/Any', 'a/b/c')[1] == {'name': 'a/b/c'}
    assert snapshot.build_name('example.com/Any', {'name': 'a/b/c'}) == 'a/b/c'


def test_finalize(registry: ResourceRegistry) -> None:
    """Freeze the registry into a reusable snapshot."""
    registry.register(TOPIC, 'projects/{project}/topics/{topic}')
    registry.register_reference(ResourceReference(field='Subscription.topic', type=TOPIC))

    snapshot = registry.finalize()

    assert registry.finalized
    assert registry.finalize() is snapshot
    assert [resource.type for resource in snapshot.resources] == [TOPIC]
    assert snapshot.lookup(TOPIC) == registry.lookup(TOPIC)

    with pytest.raises(FinalizedRegistryError):
        registry.register(TOPIC, 'folders/{folder}/topics/{topic}')

    with pytest.raises(FinalizedRegistryError):
        registry.register_reference(ResourceReference(field='Other.topic', type=TOPIC))

    assert len(snapshot.lookup(TOPIC)) == 1

"""Backward-compatibility checks between two registry snapshots.

Resource names handed out by a service must stay parseable by every
later client library. This module compares the snapshot built from an
old schema with the snapshot built from a new one and reports each
change that breaks existing names.

Violations are data: the validator never raises, leaving the choice
between failing a build and warning to the caller.
"""

from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING
from warnings import warn

from pydantic import Field

from resource_patterns.errors import PatternWarning
from resource_patterns.models import SchemaModel
from resource_patterns.schema import History

if TYPE_CHECKING:
    from collections.abc import Iterable

if TYPE_CHECKING:
    from .registry import RegistrySnapshot, ResourceType

logger = getLogger(__name__)


class ViolationRule(StrEnum):
    """Compatibility rules checked by the validator."""

    #: A pattern of the old snapshot is gone.
    PATTERN_REMOVED = 'pattern-removed'
    #: A pattern of the old snapshot moved to another position.
    PATTERN_REORDERED = 'pattern-reordered'
    #: A new pattern was placed before or between old patterns.
    PATTERN_INSERTED = 'pattern-inserted'
    #: A retained pattern has a renamed variable.
    VARIABLE_RENAMED = 'variable-renamed'
    #: A new pattern shares collection identifiers with another pattern.
    DUPLICATE_COLLECTION_SEQUENCE = 'duplicate-collection-sequence'
    #: The field holding the resource name changed.
    NAME_FIELD_CHANGED = 'name-field-changed'
    #: A single-pattern resource became multi-pattern without history.
    HISTORY_MISSING = 'history-missing'
    #: A resource type of the old snapshot is gone.
    RESOURCE_REMOVED = 'resource-removed'


class Violation(SchemaModel):
    """Single broken compatibility rule."""

    resource_type: str = Field(
        title='Resource type',
        description='Unified resource type the violation belongs to.',
    )

    rule: ViolationRule = Field(
        title='Rule',
        description='Violated compatibility rule.',
    )

    patterns: tuple[str, ...] = Field(
        default=(),
        title='Patterns',
        description='Offending pattern strings.',
    )

    message: str = Field(
        title='Message',
        description='Human-readable description of the violation.',
    )

    def __str__(self) -> str:
        return f'{self.resource_type}: {self.message} [{self.rule}]'


class CompatibilityValidator:
    """Validator of pattern list evolution.

    For every resource type present in both snapshots the new pattern
    list must start with the old list unchanged, and each appended
    pattern must be structurally distinguishable from all other
    patterns of the type.
    """

    @classmethod
    def check_evolution(cls, old: 'RegistrySnapshot', new: 'RegistrySnapshot', *,
                        require_history: bool = False) -> list[Violation]:
        """Compare two registry snapshots.

        Args:
            old: Snapshot built from the previous schema version.
            new: Snapshot built from the next schema version.
            require_history: Whether a single-pattern resource turning
                multi-pattern must declare `ORIGINALLY_SINGLE_PATTERN`.

        Returns:
            Violations in resource order; an empty list means the new
            snapshot is compatible with the old one.
        """
        violations: list[Violation] = []

        resources = new.resource_map()
        for old_resource in old.resources:
            new_resource = resources.get(old_resource.type)
            if new_resource is None:
                violations.append(Violation(
                    resource_type=old_resource.type,
                    rule=ViolationRule.RESOURCE_REMOVED,
                    patterns=tuple(pattern.pattern for pattern in old_resource.patterns),
                    message='Resource type was removed',
                ))
                continue

            violations.extend(cls._check_patterns(old_resource, new_resource))

            if old_resource.name_field != new_resource.name_field:
                violations.append(Violation(
                    resource_type=old_resource.type,
                    rule=ViolationRule.NAME_FIELD_CHANGED,
                    message=(
                        f'Name field changed from {old_resource.name_field!r} '
                        f'to {new_resource.name_field!r}'
                    ),
                ))

            if require_history and cls._history_missing(old_resource, new_resource):
                violations.append(Violation(
                    resource_type=old_resource.type,
                    rule=ViolationRule.HISTORY_MISSING,
                    patterns=tuple(pattern.pattern for pattern in new_resource.patterns[1:]),
                    message=(
                        'Single-pattern resource gained patterns without '
                        f'{History.ORIGINALLY_SINGLE_PATTERN} history'
                    ),
                ))

        logger.debug('Compatibility check found %d violations', len(violations))

        return violations

    @staticmethod
    def warn(violations: 'Iterable[Violation]') -> None:
        """Emit every violation as a `PatternWarning`.

        Args:
            violations: Violations to report.
        """
        for violation in violations:
            warn(str(violation), category=PatternWarning, stacklevel=2)

    @classmethod
    def _check_patterns(cls, old: 'ResourceType', new: 'ResourceType') -> list[Violation]:
        """Check the retained prefix and appended patterns of a type."""
        violations: list[Violation] = []

        old_strings = [pattern.pattern for pattern in old.patterns]
        new_strings = [pattern.pattern for pattern in new.patterns]

        renamed: set[int] = set()
        for index, pattern in enumerate(old.patterns):
            current = new.patterns[index] if index < len(new.patterns) else None
            if current is not None and current.pattern == pattern.pattern:
                continue

            if pattern.pattern in new_strings:
                violations.append(Violation(
                    resource_type=old.type,
                    rule=ViolationRule.PATTERN_REORDERED,
                    patterns=(pattern.pattern,),
                    message=(
                        f'Pattern {pattern.pattern!r} moved from position {index} '
                        f'to {new_strings.index(pattern.pattern)}'
                    ),
                ))

            elif (current is not None and current.pattern not in old_strings
                  and current.wildcard == pattern.wildcard
                  and current.shape == pattern.shape):
                renamed.add(index)
                changes = ', '.join(
                    f'{before!r} to {after!r}'
                    for before, after in zip(pattern.variables, current.variables, strict=True)
                    if before != after
                )
                violations.append(Violation(
                    resource_type=old.type,
                    rule=ViolationRule.VARIABLE_RENAMED,
                    patterns=(pattern.pattern, current.pattern),
                    message=f'Pattern {pattern.pattern!r} renamed {changes}',
                ))

            else:
                violations.append(Violation(
                    resource_type=old.type,
                    rule=ViolationRule.PATTERN_REMOVED,
                    patterns=(pattern.pattern,),
                    message=f'Pattern {pattern.pattern!r} was removed',
                ))

        for index, pattern in enumerate(new.patterns):
            if pattern.pattern in old_strings or index in renamed:
                continue

            if index < len(old.patterns):
                violations.append(Violation(
                    resource_type=old.type,
                    rule=ViolationRule.PATTERN_INSERTED,
                    patterns=(pattern.pattern,),
                    message=(
                        f'Pattern {pattern.pattern!r} was inserted at position {index} '
                        'instead of being appended'
                    ),
                ))

            for other in (*old.patterns, *new.patterns):
                if other.pattern != pattern.pattern and other.collection_ids == pattern.collection_ids:
                    violations.append(Violation(
                        resource_type=old.type,
                        rule=ViolationRule.DUPLICATE_COLLECTION_SEQUENCE,
                        patterns=(pattern.pattern, other.pattern),
                        message=(
                            f'Pattern {pattern.pattern!r} has the same collection '
                            f'identifiers as {other.pattern!r}'
                        ),
                    ))
                    break

        return violations

    @staticmethod
    def _history_missing(old: 'ResourceType', new: 'ResourceType') -> bool:
        if len(old.patterns) != 1 or len(new.patterns) < 2:  # noqa: PLR2004
            return False

        if old.history == History.FUTURE_MULTI_PATTERN:
            return False

        return new.history != History.ORIGINALLY_SINGLE_PATTERN

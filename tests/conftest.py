"""Tests configurations and fixtures."""

from typing import TYPE_CHECKING

import pytest

from resource_patterns.core import ResourceRegistry, SchemaLoader
from resource_patterns.settings import RegistrySettings

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from pathlib import Path

if TYPE_CHECKING:
    from resource_patterns.core import RegistrySnapshot


@pytest.fixture
def settings() -> RegistrySettings:
    """Provide strict settings independent of the environment."""
    return RegistrySettings(strict=True, wildcard_variable=None, default_name_field='name')


@pytest.fixture
def relaxed_settings() -> RegistrySettings:
    """Provide relaxed settings independent of the environment."""
    return RegistrySettings(strict=False, wildcard_variable=None, default_name_field='name')


@pytest.fixture
def registry(settings: RegistrySettings) -> ResourceRegistry:
    """Provide an empty registry."""
    return ResourceRegistry(settings)


@pytest.fixture
def schema_loader(settings: RegistrySettings) -> SchemaLoader:
    """Provide a strict schema loader."""
    return SchemaLoader(settings)


@pytest.fixture
def make_snapshot(settings: RegistrySettings) -> 'Callable[[Mapping[str, Sequence[str]]], RegistrySnapshot]':
    """Provide a factory building finalized snapshots.

    The factory accepts a mapping from resource type to its ordered
    pattern strings and returns the snapshot of a registry holding
    exactly those resources.
    """
    def make(resources: 'Mapping[str, Sequence[str]]', **options: str) -> 'RegistrySnapshot':
        registry = ResourceRegistry(settings)
        for resource_type, patterns in resources.items():
            for pattern in patterns:
                registry.register(resource_type, pattern, **options)  # type: ignore[arg-type]

        return registry.finalize()

    return make


@pytest.fixture
def schema_file(tmp_path: 'Path') -> 'Callable[[str, str], Path]':
    """Provide a factory writing schema documents to temporary files."""
    def write(name: str, content: str) -> 'Path':
        path = tmp_path / name
        path.write_text(content)

        return path

    return write

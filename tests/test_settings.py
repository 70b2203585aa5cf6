"""Tests for environment-driven settings."""

import os
from typing import TYPE_CHECKING

from resource_patterns.core import ResourceRegistry
from resource_patterns.settings import RegistrySettings

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


def test_defaults(mocker: 'MockerFixture') -> None:
    """Use strict mode without a wildcard binding by default."""
    mocker.patch.dict(os.environ, {}, clear=True)

    settings = RegistrySettings()

    assert settings.strict
    assert settings.wildcard_variable is None
    assert settings.default_name_field == 'name'


def test_environment(mocker: 'MockerFixture') -> None:
    """Read prefixed environment variables."""
    mocker.patch.dict(os.environ, {
        'RESOURCE_PATTERNS_STRICT': 'false',
        'RESOURCE_PATTERNS_WILDCARD_VARIABLE': 'name',
        'RESOURCE_PATTERNS_DEFAULT_NAME_FIELD': 'resource_name',
    })

    settings = RegistrySettings()

    assert not settings.strict
    assert settings.wildcard_variable == 'name'
    assert settings.default_name_field == 'resource_name'


def test_registry_reads_environment(mocker: 'MockerFixture') -> None:
    """Resolve registry settings from the environment when omitted."""
    mocker.patch.dict(os.environ, {'RESOURCE_PATTERNS_WILDCARD_VARIABLE': 'path'})

    registry = ResourceRegistry()
    registry.register('example.com/Any', '*')

    assert registry.parse_name('example.com/Any', 'a/b')[1] == {'path': 'a/b'}

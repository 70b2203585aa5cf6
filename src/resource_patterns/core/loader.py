"""YAML schema loading into a resource registry.

This module reads schema documents produced by the annotation parser,
validates them against `SchemaDocument` and registers every entry.

Entries are registered independently: an invalid entry is skipped while
the remaining entries continue to load. In strict mode the collected
issues are raised together once the whole stream has been processed;
otherwise each one is emitted as a `PatternWarning`.
"""

from logging import getLogger
from typing import TYPE_CHECKING
from warnings import warn

from pydantic import ValidationError
from yaml import SafeLoader, load_all
from yaml.error import MarkedYAMLError

from resource_patterns.errors import (
    PatternWarning,
    RegistryBuildError,
    ResourcePatternError,
    SchemaError,
)
from resource_patterns.schema import SchemaDocument
from resource_patterns.settings import RegistrySettings

from .registry import RegistrySnapshot, ResourceRegistry

if TYPE_CHECKING:
    from collections.abc import Callable
    from io import TextIOBase
    from pathlib import Path

if TYPE_CHECKING:
    from yaml import BaseLoader

    from resource_patterns.models import SchemaModel

logger = getLogger(__name__)


class SchemaLoader:
    """Loader of YAML schema documents.

    A stream may contain several YAML documents; each one is validated
    as a `SchemaDocument`. Empty documents are ignored.
    """

    def __init__(self, settings: RegistrySettings | None = None,
                 loader: type['BaseLoader'] = SafeLoader) -> None:
        """Initialize the schema loader.

        Args:
            settings: Optional settings. Resolved from the environment
                when not provided.
            loader: YAML loader class used to read documents.
        """
        self.settings = settings or RegistrySettings()
        self.loader = loader
        self.strict_mode = self.settings.strict

    def parse(self, content: 'TextIOBase | str', *,
              filename: str | None = None) -> list[SchemaDocument]:
        """Parse a YAML stream into validated schema documents.

        Args:
            content: YAML content as a string or file-like object.
            filename: Optional name of the source, used in error messages.

        Returns:
            Validated schema documents in stream order.

        Raises:
            SchemaError: If YAML parsing or document validation fails.
        """
        try:
            documents = list(load_all(content, Loader=self.loader))

        except MarkedYAMLError as base:
            raise SchemaError.from_yaml_error(base, filename=filename) from base

        except Exception as base:
            raise SchemaError('Unexpected error') from base

        result = []
        for position, document in enumerate(documents):
            if document is None:
                continue

            try:
                result.append(SchemaDocument.model_validate(document))

            except ValidationError as base:
                raise SchemaError.from_pydantic_error(
                    base,
                    data=document,
                    filename=filename,
                    entry_num=position,
                ) from base

        return result

    def load(self, content: 'TextIOBase | str', *,
             filename: str | None = None,
             registry: ResourceRegistry | None = None) -> RegistrySnapshot:
        """Load a YAML stream and finalize the resulting registry.

        Args:
            content: YAML content as a string or file-like object.
            filename: Optional name of the source, used in error messages.
            registry: Registry to load into. A new one is created when
                not provided.

        Returns:
            Snapshot of the finalized registry.

        Raises:
            SchemaError: If YAML parsing or document validation fails.
            RegistryBuildError: If any entry failed to register in strict mode.
        """
        if registry is None:
            registry = ResourceRegistry(self.settings)

        issues: list[ResourcePatternError] = []
        entry_num = 0

        for document in self.parse(content, filename=filename):
            for descriptor in document.resources:
                self._register(registry.register_descriptor, descriptor,
                               issues, filename=filename, entry_num=entry_num)
                entry_num += 1

            for message in document.messages:
                self._register(registry.register_descriptor, message.resource,
                               issues, filename=filename, entry_num=entry_num)
                entry_num += 1

            for reference in document.references:
                self._register(registry.register_reference, reference,
                               issues, filename=filename, entry_num=entry_num)
                entry_num += 1

        if issues and self.strict_mode:
            raise RegistryBuildError(issues, filename=filename)

        return registry.finalize()

    def load_file(self, path: 'Path', *,
                  registry: ResourceRegistry | None = None) -> RegistrySnapshot:
        """Load a YAML schema file.

        Args:
            path: Path to the schema file.
            registry: Registry to load into.

        Returns:
            Snapshot of the finalized registry.
        """
        with path.open('rt') as content:
            return self.load(content, filename=path.as_posix(), registry=registry)

    def _register[T: 'SchemaModel'](self, register: 'Callable[[T], object]', entry: T,
                                    issues: list[ResourcePatternError], *,
                                    filename: str | None = None,
                                    entry_num: int | None = None) -> None:
        """Register a single entry, collecting the failure if any."""
        try:
            register(entry)

        except ResourcePatternError as error:
            error.with_context(
                filename=filename,
                entry_num=entry_num,
                element=entry.model_dump(mode='json', exclude_none=True),
            )
            issues.append(error)
            logger.debug('Skipped schema entry %s: %s', entry_num, error.message)

            if not self.strict_mode:
                warn(str(error), category=PatternWarning, stacklevel=3)

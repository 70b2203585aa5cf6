"""Runtime configuration resolved from the environment."""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from resource_patterns.models import SettingsModel


class RegistrySettings(SettingsModel):
    """Settings controlling registry construction and name matching.

    Values are read from environment variables prefixed with
    `RESOURCE_PATTERNS_` (for example `RESOURCE_PATTERNS_STRICT=0`).
    """

    model_config = SettingsConfigDict(
        env_prefix='RESOURCE_PATTERNS_',
    )

    strict: bool = Field(
        default=True,
        title='Strict mode',
        description=(
            'Raise after loading a schema document if any entry failed to '
            'register. When disabled, failing entries are skipped with a '
            'warning.'
        ),
    )

    wildcard_variable: str | None = Field(
        default=None,
        title='Wildcard binding key',
        description=(
            'Variable name used to bind the whole resource name when it is '
            'matched against the `*` pattern. No binding is produced when unset.'
        ),
    )

    default_name_field: str = Field(
        default='name',
        title='Default name field',
        description='Field holding the resource name when a descriptor omits it.',
    )

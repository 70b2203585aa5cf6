"""Base Pydantic models for compiled and declared resource data.

This module defines the base classes shared by compiled patterns,
registry entries, schema input records and runtime settings.
"""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for resource structures.

    Instances are frozen, so compiled patterns and registry snapshots can
    be shared between generator passes and threads. Unknown fields are
    rejected, which turns typos in schema documents into validation
    errors.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Unrelated environment variables are ignored.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )

"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, settingconv.toml only contains
overrides.  An empty file (or no file) is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class RegistryConfig(BaseModel):
    """[registry] section."""

    model_config = {"frozen": True}

    memoize: bool = True


class ClassesConfig(BaseModel):
    """[classes] section.

    ``allowed_prefixes`` limits which class names ``type`` settings may
    resolve; empty means unrestricted.
    """

    model_config = {"frozen": True}

    allowed_prefixes: list[str] = Field(default_factory=list)


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True

"""
Serializer configuration.

A SerializerConfig is an immutable value. The process keeps one default
instance which entry points use when no explicit config is passed:

    >>> from pyjsv import configure, to_jsv
    >>> configure(include_null_values=True)
    >>> to_jsv({"a": 1, "b": None})
    '{a:1,b:null}'

Per-call overrides never touch the default:

    >>> from pyjsv import SerializerConfig
    >>> to_jsv(obj, config=SerializerConfig(emit_camel_case_names=True))

The default is expected to be set during process start, before concurrent
serialization begins.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class SerializerConfig(BaseModel):
    """
    Cross-cutting serialization options.

    Attributes:
        include_null_values: Emit record fields and mapping entries whose
            value is None. Omitted by default.
        exclude_default_values: Omit record fields equal to their declared
            default value.
        emit_camel_case_names: Write record field names in camelCase.
            Reading always accepts either spelling.
        max_depth: Maximum nesting depth while writing. Deeper graphs
            (usually circular references) raise UnsupportedShapeError.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    include_null_values: bool = False
    exclude_default_values: bool = False
    emit_camel_case_names: bool = False
    max_depth: int = Field(default=64, ge=1)


_default_config = SerializerConfig()


def get_config() -> SerializerConfig:
    """Return the process-wide default configuration."""
    return _default_config


def configure(**options) -> SerializerConfig:
    """
    Replace the process-wide default with a copy updated by `options`.

    Unknown option names raise pydantic's ValidationError.
    """
    global _default_config
    _default_config = SerializerConfig.model_validate(
        {**_default_config.model_dump(), **options}
    )
    logger.info("pyjsv configuration updated: %s", options)
    return _default_config


def reset_config() -> SerializerConfig:
    """Restore the default configuration."""
    global _default_config
    _default_config = SerializerConfig()
    return _default_config

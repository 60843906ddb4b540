"""settingconv — typed conversion of raw configuration strings.

Resolves a converter for a requested Python type and applies it to a
raw string value, including structural shapes (sequences, sets, maps,
map entries, optionals and fixed-length arrays).
"""

from __future__ import annotations

__version__ = "0.3.0"

from settingconv.converters.base import Converter
from settingconv.converters.structural import EntryMap, MapEntry
from settingconv.domain.errors import (
    ConversionError,
    MalformedValue,
    MisconfiguredConverter,
    NoConverterAvailable,
)
from settingconv.domain.types import TOP_TYPE, synthesize
from settingconv.domain.value import Value
from settingconv.registry import ConverterRegistry, default_registry

__all__ = [
    "TOP_TYPE",
    "ConversionError",
    "Converter",
    "ConverterRegistry",
    "EntryMap",
    "MalformedValue",
    "MapEntry",
    "MisconfiguredConverter",
    "NoConverterAvailable",
    "Value",
    "__version__",
    "default_registry",
    "synthesize",
]

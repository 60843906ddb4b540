"""Conversion error kinds.

Three failure modes, each attributable to a specific descriptor and raw
input:

- ``NoConverterAvailable`` — the registry could not find or build a
  converter for a type.  Surfaced to the caller, never retried.
- ``MalformedValue`` — a present raw string failed to parse.  Carries the
  raw string and the underlying diagnostic.
- ``MisconfiguredConverter`` — a converter was assembled inconsistently.
  This is a programming defect, not a data error; callers should let it
  propagate.

Absent values never travel through this hierarchy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from settingconv.domain.value import Value


class ConversionError(Exception):
    """Base class for every conversion failure."""

    code: ClassVar[str] = "CONVERSION_ERROR"

    @property
    def detail(self) -> dict[str, Any]:
        """Structured context for machine-readable error output."""
        return {}


class NoConverterAvailable(ConversionError):
    """No scalar, editor or fallback converter exists for a descriptor."""

    code: ClassVar[str] = "NO_CONVERTER"

    def __init__(self, descriptor: Any) -> None:
        self.descriptor = descriptor
        super().__init__(f"No converter available for {descriptor}")

    @property
    def detail(self) -> dict[str, Any]:
        return {"type": str(self.descriptor)}


class MalformedValue(ConversionError):
    """A present raw string could not be parsed into the target type."""

    code: ClassVar[str] = "MALFORMED_VALUE"

    def __init__(
        self,
        raw: str | None,
        reason: str,
        *,
        value: Value | None = None,
        target: Any = None,
    ) -> None:
        self.raw = raw
        self.reason = reason
        self.value = value
        self.target = target
        message = f"Cannot convert {raw!r}"
        if target is not None:
            message += f" to {getattr(target, '__name__', target)}"
        super().__init__(f"{message}: {reason}")

    @property
    def detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {"raw": self.raw, "reason": self.reason}
        if self.target is not None:
            detail["type"] = getattr(self.target, "__name__", str(self.target))
        if self.value is not None:
            detail["setting"] = self.value.describe()
        return detail


class MisconfiguredConverter(ConversionError):
    """A converter was built with an inconsistent configuration."""

    code: ClassVar[str] = "MISCONFIGURED_CONVERTER"

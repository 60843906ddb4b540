"""ConversionResult and ConversionFailure — the non-raising conversion contract.

``try_convert`` is the ``convert(Value) -> T | ConversionError`` call
shape: data errors (``NoConverterAvailable``, ``MalformedValue``) come
back as ``ok=False`` results.  ``MisconfiguredConverter`` is a
programming defect and always propagates.
"""

from __future__ import annotations

from collections.abc import Mapping, Set
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field
from pydantic_core import to_jsonable_python

from settingconv.converters.structural import MapEntry
from settingconv.domain.errors import ConversionError, MalformedValue, NoConverterAvailable
from settingconv.domain.types import synthesize

if TYPE_CHECKING:
    from settingconv.domain.value import Value
    from settingconv.registry import ConverterRegistry


class ConversionFailure(BaseModel):
    """Structured error payload within a ConversionResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_error(cls, error: ConversionError) -> ConversionFailure:
        return cls(code=error.code, message=str(error), detail=error.detail)


class ConversionResult(BaseModel):
    """Outcome of one conversion.

    Attributes:
        ok: Whether the conversion succeeded.
        op: Name of the operation (e.g. ``"convert"``).
        data: ``type`` (the synthesized descriptor) and, on success,
            ``value`` (the converted value in JSON-compatible form).
        error: Structured error if ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    error: ConversionFailure | None = None


def to_plain(obj: Any) -> Any:
    """Reduce a converted value to JSON-compatible builtins."""
    if isinstance(obj, MapEntry):
        return {"key": to_plain(obj.key), "value": to_plain(obj.value)}
    if isinstance(obj, Mapping):
        return {str(to_plain(k)): to_plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, Set)):
        return [to_plain(item) for item in obj]
    if isinstance(obj, type):
        return f"{obj.__module__}.{obj.__qualname__}"
    return to_jsonable_python(obj, fallback=str)


def try_convert(
    registry: ConverterRegistry,
    value: Value | None,
    requested: Any,
    *,
    op: str = "convert",
) -> ConversionResult:
    """Convert *value* to *requested*, reporting data errors as a result."""
    descriptor = synthesize(requested)
    try:
        converted = registry.convert(value, descriptor)
    except (NoConverterAvailable, MalformedValue) as exc:
        return ConversionResult(
            ok=False,
            op=op,
            data={"type": str(descriptor)},
            error=ConversionFailure.from_error(exc),
        )
    return ConversionResult(
        ok=True,
        op=op,
        data={"type": str(descriptor), "value": to_plain(converted)},
    )

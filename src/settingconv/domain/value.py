"""Value — an immutable raw string plus the provenance it came from.

A Value is created by whatever resolved the raw setting, and again by
structural converters for every fragment they split out of a larger
string.  Fragments point back at the Value they were cut from via
``parent`` so errors can name the originating setting.

INVARIANT: ``raw is None`` means "absent".  Absence is a valid outcome,
never an error.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Value:
    """Raw setting string with its name, qualifiers and parent fragment.

    Equality considers only ``raw``: two Values carrying the same string
    convert identically regardless of where they came from.

    Attributes:
        raw: The raw string, or None when the setting is absent.
        name: Name of the originating setting.
        qualifiers: Qualifiers the setting was resolved under.
        parent: The Value this one was split out of, if any.
    """

    raw: str | None
    name: str = field(default="", compare=False)
    qualifiers: frozenset[str] = field(default_factory=frozenset, compare=False)
    parent: Value | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.qualifiers, frozenset):
            qualifiers: Iterable[str] = self.qualifiers or ()
            object.__setattr__(self, "qualifiers", frozenset(qualifiers))

    @property
    def absent(self) -> bool:
        """Whether this Value carries no raw string."""
        return self.raw is None

    def child(self, raw: str | None) -> Value:
        """Return a fragment Value sharing this Value's provenance."""
        return Value(raw, name=self.name, qualifiers=self.qualifiers, parent=self)

    def lineage(self) -> Iterator[Value]:
        """Yield this Value and then each parent up to the root."""
        current: Value | None = self
        while current is not None:
            yield current
            current = current.parent

    def root(self) -> Value:
        """The outermost Value this fragment was derived from."""
        *_, last = self.lineage()
        return last

    def describe(self) -> str:
        """Human-readable provenance, e.g. ``hosts[a,b] <- 'a'``."""
        root = self.root()
        where = root.name or "<unnamed>"
        if self.qualifiers:
            where = f"{where}{sorted(self.qualifiers)}"
        if root is self:
            return f"{where}={self.raw!r}"
        return f"{where}={root.raw!r} <- {self.raw!r}"

    def __str__(self) -> str:
        return "" if self.raw is None else self.raw

"""Registry mapping field path tokens to reference extractors."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from ..api.kinds import ResourceKind
from ..exceptions import UnsupportedFieldPathError

Extractor = Callable[[dict[str, Any]], list[str]]


@dataclass(frozen=True)
class IndexedReference:
    """A reference from an owner's spec to another resource, derived on demand."""

    owner_kind: str
    field_path: str
    referenced_kind: str
    referenced_name: str


@dataclass(frozen=True)
class _Entry:
    referenced_kind: ResourceKind
    extractor: Extractor


class ExtractorRegistry:
    """Token-to-extractor map for a single owner kind.

    Entries are registered once when the module defining them is imported;
    lookups afterwards are read-only.
    """

    def __init__(self, owner_kind: ResourceKind):
        self.owner_kind = owner_kind
        self._entries: dict[str, _Entry] = {}

    def register(self, field_path: str, referenced_kind: ResourceKind, extractor: Extractor) -> None:
        """Register an extractor for a field path.

        Raises:
            ValueError: If the field path is already registered for this owner kind
        """
        if field_path in self._entries:
            raise ValueError(f"field path {field_path} already registered for {self.owner_kind.kind}")
        self._entries[field_path] = _Entry(referenced_kind, extractor)

    def extractor(self, field_path: str, referenced_kind: ResourceKind) -> Callable[[Extractor], Extractor]:
        """Decorator form of :meth:`register`."""

        def decorator(fn: Extractor) -> Extractor:
            self.register(field_path, referenced_kind, fn)
            return fn

        return decorator

    def extractor_for(self, field_path: str) -> Extractor:
        """Return the extractor for a field path.

        Raises:
            UnsupportedFieldPathError: If nothing is registered under ``field_path``
        """
        entry = self._entries.get(field_path)
        if entry is None:
            raise UnsupportedFieldPathError(field_path, self.owner_kind.kind)
        return entry.extractor

    def referenced_kind(self, field_path: str) -> ResourceKind:
        entry = self._entries.get(field_path)
        if entry is None:
            raise UnsupportedFieldPathError(field_path, self.owner_kind.kind)
        return entry.referenced_kind

    def references(self, field_path: str, obj: dict[str, Any]) -> list[IndexedReference]:
        """Extract the references held at ``field_path`` in ``obj``."""
        entry = self._entries.get(field_path)
        if entry is None:
            raise UnsupportedFieldPathError(field_path, self.owner_kind.kind)
        return [
            IndexedReference(
                owner_kind=self.owner_kind.kind,
                field_path=field_path,
                referenced_kind=entry.referenced_kind.kind,
                referenced_name=name,
            )
            for name in entry.extractor(obj)
            if name
        ]

    def all_references(self, obj: dict[str, Any]) -> list[IndexedReference]:
        refs: list[IndexedReference] = []
        for field_path in self._entries:
            refs.extend(self.references(field_path, obj))
        return refs

    @property
    def field_paths(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def __contains__(self, field_path: object) -> bool:
        return field_path in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def ref_name(ref: Any) -> list[str]:
    """Return ``[ref["name"]]`` when the reference carries a non-empty name."""
    if not isinstance(ref, Mapping):
        return []
    name = ref.get("name")
    if not name:
        return []
    return [name]

"""Binds watched resource kinds to the owners that reference them.

A :class:`WatchBinder` resolves a field path token against the owner kind's
:class:`~mariadb_operator.indexes.registry.ExtractorRegistry` and hands the
resulting extractor to the platform's watch surface. Bindings are made once,
at startup; after :func:`setup_watches` seals the binder the set is fixed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence

from .. import metrics
from ..api.kinds import ResourceKind
from ..exceptions import UnsupportedFieldPathError, WatchRegistrationError
from ..indexes.registry import Extractor, ExtractorRegistry
from .predicate import LabelPredicate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WatchBinding:
    """A watched kind wired to an owner kind through one indexed field path."""

    watched_kind: ResourceKind
    owner_kind: ResourceKind
    owner_list_kind: str
    field_path: str
    predicate: LabelPredicate


class WatchAPI(Protocol):
    """Watch registration surface of the orchestration platform."""

    def watch(
        self,
        watched_kind: ResourceKind,
        owner_kind: ResourceKind,
        owner_list_kind: str,
        field_path: str,
        predicate: LabelPredicate,
        extractor: Extractor,
    ) -> None:
        """Register the index and the event handler for one binding."""
        ...


class WatchBinder:
    """Registers watch bindings against a :class:`WatchAPI`."""

    def __init__(self, api: WatchAPI, registries: Iterable[ExtractorRegistry]):
        self._api = api
        self._registries = {registry.owner_kind.kind: registry for registry in registries}
        self._bindings: list[WatchBinding] = []
        self._sealed = False

    @property
    def bindings(self) -> tuple[WatchBinding, ...]:
        return tuple(self._bindings)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        """Freeze the binding set. Later calls to :meth:`bind` fail."""
        self._sealed = True

    def resolve(
        self,
        watched_kind: ResourceKind,
        owner_kind: ResourceKind,
        owner_list_kind: str,
        field_path: str,
    ) -> Extractor:
        """Validate a binding and return its extractor without registering anything.

        Raises:
            UnsupportedFieldPathError: If the owner kind has no extractor for ``field_path``
            WatchRegistrationError: If the kinds do not line up with the registry
        """
        registry = self._registries.get(owner_kind.kind)
        if registry is None or registry.owner_kind != owner_kind:
            raise WatchRegistrationError(field_path, f"no index registry for {owner_kind.kind}")
        if owner_list_kind != owner_kind.list_kind:
            raise WatchRegistrationError(
                field_path, f"{owner_list_kind} is not the list kind of {owner_kind.kind}"
            )
        extractor = registry.extractor_for(field_path)
        referenced_kind = registry.referenced_kind(field_path)
        if referenced_kind != watched_kind:
            raise WatchRegistrationError(
                field_path, f"field path references {referenced_kind.kind}, not {watched_kind.kind}"
            )
        return extractor

    def bind(
        self,
        watched_kind: ResourceKind,
        owner_kind: ResourceKind,
        owner_list_kind: str,
        field_path: str,
        predicate: LabelPredicate,
    ) -> WatchBinding:
        """Register one binding.

        Raises:
            UnsupportedFieldPathError: If the field path is not indexed for the owner kind
            WatchRegistrationError: If the binder is sealed or the platform rejects the watch
        """
        if self._sealed:
            raise WatchRegistrationError(field_path, "watch bindings are fixed after startup")
        extractor = self.resolve(watched_kind, owner_kind, owner_list_kind, field_path)
        try:
            self._api.watch(watched_kind, owner_kind, owner_list_kind, field_path, predicate, extractor)
        except Exception as e:
            raise WatchRegistrationError(field_path, str(e)) from e

        binding = WatchBinding(watched_kind, owner_kind, owner_list_kind, field_path, predicate)
        self._bindings.append(binding)
        metrics.watch_bindings.labels(owner_kind=owner_kind.kind, watched_kind=watched_kind.kind).inc()
        logger.info(f"Watching {watched_kind.kind} for {owner_kind.kind} via {field_path}")
        return binding


def setup_watches(binder: WatchBinder, plan: Sequence[WatchBinding]) -> tuple[WatchBinding, ...]:
    """Register every binding in ``plan`` and seal the binder.

    All field paths are resolved before anything is registered, so an
    unsupported token leaves no bindings behind. A platform failure part way
    through leaves the bindings registered so far in ``binder.bindings`` and
    raises; the caller is expected to abort.

    Raises:
        UnsupportedFieldPathError: For the first field path with no extractor
        WatchRegistrationError: For the first binding the platform rejects
    """
    for entry in plan:
        binder.resolve(entry.watched_kind, entry.owner_kind, entry.owner_list_kind, entry.field_path)

    for entry in plan:
        try:
            binder.bind(
                entry.watched_kind,
                entry.owner_kind,
                entry.owner_list_kind,
                entry.field_path,
                entry.predicate,
            )
        except (UnsupportedFieldPathError, WatchRegistrationError):
            logger.error(
                f"Watch setup aborted at {entry.field_path} after {len(binder.bindings)} binding(s)"
            )
            raise

    binder.seal()
    return binder.bindings

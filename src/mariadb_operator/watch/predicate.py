"""Event predicates for watched resources."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import kopf

from ..constants import LABEL_WATCH


@dataclass(frozen=True)
class LabelPredicate:
    """Admits only objects carrying ``label``, whatever its value."""

    label: str

    def matches(self, meta: Mapping[str, Any] | None) -> bool:
        labels = (meta or {}).get("labels") or {}
        return self.label in labels

    def kopf_labels(self) -> dict[str, Any]:
        """Label filter in the form accepted by kopf decorators."""
        return {self.label: kopf.PRESENT}


def predicate_with_label(label: str) -> LabelPredicate:
    return LabelPredicate(label)


WATCH_LABEL_PREDICATE = predicate_with_label(LABEL_WATCH)

"""Watch triggering for resources referenced from owner specs."""

from .binder import WatchAPI, WatchBinder, WatchBinding, setup_watches
from .kopf_api import AnnotationEnqueuer, KopfWatchAPI
from .plan import WATCH_PLAN
from .predicate import WATCH_LABEL_PREDICATE, LabelPredicate

__all__ = [
    "WatchAPI",
    "WatchBinder",
    "WatchBinding",
    "setup_watches",
    "AnnotationEnqueuer",
    "KopfWatchAPI",
    "WATCH_PLAN",
    "WATCH_LABEL_PREDICATE",
    "LabelPredicate",
]

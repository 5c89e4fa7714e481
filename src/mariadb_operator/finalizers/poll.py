"""Bounded polling for the absence of a prerequisite resource."""

from __future__ import annotations

import enum
import threading
import time
from dataclasses import dataclass
from typing import Callable

from ..exceptions import FinalizationCancelledError, PrerequisiteCheckError


class PollOutcome(enum.Enum):
    ABSENT = "absent"
    STILL_PRESENT = "still_present"
    ERROR = "error"


@dataclass(frozen=True)
class PollResult:
    outcome: PollOutcome
    attempts: int
    error: PrerequisiteCheckError | None = None


def poll_until_absent(
    exists: Callable[[], bool],
    interval: float,
    timeout: float,
    cancelled: threading.Event | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> PollResult:
    """Check ``exists`` immediately and then every ``interval`` seconds until it
    returns False or ``timeout`` seconds have elapsed.

    ``exists`` signals a failed check by raising :class:`PrerequisiteCheckError`,
    which ends the poll with an ``ERROR`` result. Other exceptions propagate.

    Args:
        exists: Returns whether the prerequisite is still present
        interval: Seconds between checks
        timeout: Total length of the polling window in seconds
        cancelled: Event that interrupts the wait when set
        clock: Monotonic time source

    Returns:
        ``ABSENT`` once a check observes absence, ``STILL_PRESENT`` when the
        window closes without observing it, ``ERROR`` when a check fails

    Raises:
        FinalizationCancelledError: If ``cancelled`` is set before the poll ends
    """
    cancelled = cancelled or threading.Event()
    deadline = clock() + timeout
    attempts = 0

    while True:
        if cancelled.is_set():
            raise FinalizationCancelledError("prerequisite poll cancelled")

        attempts += 1
        try:
            present = exists()
        except PrerequisiteCheckError as e:
            return PollResult(PollOutcome.ERROR, attempts, e)
        if not present:
            return PollResult(PollOutcome.ABSENT, attempts)

        remaining = deadline - clock()
        if remaining <= 0:
            return PollResult(PollOutcome.STILL_PRESENT, attempts)
        if cancelled.wait(min(interval, remaining)):
            raise FinalizationCancelledError("prerequisite poll cancelled")

"""Bounded polling for state that appears after a short delay."""

from __future__ import annotations

import time
from typing import Callable, Optional, TypeVar


T = TypeVar("T")


def poll(
    probe: Callable[[], Optional[T]],
    timeout: int,
    interval: float = 1,
    sleep: Callable[[float], None] = time.sleep,
    check_first: bool = False,
    on_wait: Optional[Callable[[int], None]] = None,
) -> Optional[T]:
    """Call probe until it returns a truthy value or the attempts run out.

    With check_first=False every attempt sleeps before probing, so at most
    ``timeout`` probes are made. With check_first=True the probe runs once
    before any sleep and then after each of the ``timeout`` sleeps.

    Args:
        probe: Callable returning the awaited value, or a falsy value
        timeout: Number of sleeps allowed
        interval: Seconds per sleep
        sleep: Sleep function, injectable for tests
        check_first: Probe before the first sleep
        on_wait: Called with the elapsed attempt count before each sleep

    Returns:
        The first truthy probe result, or None on timeout
    """
    if check_first:
        value = probe()
        if value:
            return value
    elapsed = 0
    while elapsed < timeout:
        if on_wait is not None:
            on_wait(elapsed)
        sleep(interval)
        elapsed += 1
        value = probe()
        if value:
            return value
    return None

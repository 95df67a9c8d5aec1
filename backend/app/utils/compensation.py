"""Optimistic mutations paired with an explicit inverse.

A :class:`CompensatingAction` applies its forward effect immediately (e.g.
dropping a request from a cached queue so the next list call no longer shows
it), then runs the authoritative write. If that write raises, the inverse
effect restores the previous state before the error propagates to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CompensatingAction:
    label: str
    forward: Callable[[], None]
    inverse: Callable[[], None]

    def run(self, remote: Callable[[], T]) -> T:
        self.forward()
        try:
            return remote()
        except Exception as exc:
            logger.warning("%s failed (%s); reverting optimistic update", self.label, exc)
            self.inverse()
            raise

"""Shared collector lifecycle.

A collector is mounted once per page instance: `mount()` subscribes to the
platform feed, `unmount()` disconnects synchronously. Feed callbacks are wrapped
in a mounted guard so a notification delivered after teardown started is
ignored. Every state change is pushed to subscribers (`subscribe(listener)`),
which is how the aggregator learns about new data.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ..errors import UnsupportedEntryTypeError
from ..platform.feed import Observation, PlatformFeed

_LOGGER = logging.getLogger("vitalscope.collectors")

ChangeListener = Callable[[Any], None]


class Collector:
    name = "collector"

    def __init__(self, feed: PlatformFeed) -> None:
        self.feed = feed
        self._mounted = False
        self._observations: list[Observation] = []
        self._listeners: list[ChangeListener] = []

    @property
    def mounted(self) -> bool:
        return self._mounted

    def mount(self) -> None:
        if self._mounted:
            return
        self._mounted = True
        self._on_mount()

    def unmount(self) -> None:
        if not self._mounted:
            return
        self._mounted = False
        for observation in self._observations:
            observation.disconnect()
        self._observations.clear()
        self._on_unmount()

    def _on_mount(self) -> None:
        raise NotImplementedError

    def _on_unmount(self) -> None:
        return None

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _observe(self, entry_type: str, callback: Callable[[list[Any]], None]) -> bool:
        """Subscribe to one entry type (buffered); False when the platform lacks it."""

        def guarded(batch: list[Any]) -> None:
            if not self._mounted:
                return
            callback(batch)

        try:
            observation = self.feed.observe(entry_type, guarded, buffered=True)
        except UnsupportedEntryTypeError:
            _LOGGER.debug("%s: entry type %s unsupported; collector stays empty", self.name, entry_type)
            return False
        self._observations.append(observation)
        return True

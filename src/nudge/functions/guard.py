"""At most one in-flight call per resource key."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from nudge.errors import AlreadyExistsError


class InFlightGuard:
    """Rejects a second concurrent call for the same key.

    Single event loop only; the check-and-add has no await in between.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._keys: set[str] = set()

    def is_running(self, key: str) -> bool:
        return key in self._keys

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        if key in self._keys:
            raise AlreadyExistsError(f"{self.name} already running for {key}")
        self._keys.add(key)
        try:
            yield
        finally:
            self._keys.discard(key)


parse_syllabus_guard = InFlightGuard("parse-syllabus")
demo_posts_guard = InFlightGuard("create-demo-posts")

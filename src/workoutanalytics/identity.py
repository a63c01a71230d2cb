"""
Single-flight identity resolution for the authenticated account.

One IdentityResolver is created per session and handed to everything that
needs the account id. The first ``get_identity()`` call starts the profile
fetch; callers arriving while it runs wait on that same fetch instead of
starting another one.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

from workoutanalytics.models import UserIdentity

__all__ = ["IdentityResolver", "ProfileFetcher"]

logger = logging.getLogger(__name__)

ProfileFetcher = Callable[[], Awaitable[Mapping[str, Any]]]

EMPTY = "empty"
RESOLVING = "resolving"
RESOLVED = "resolved"


class IdentityResolver:
    """Resolve and cache the account identity, coalescing concurrent lookups.

    States:
        empty -> resolving on the first ``get_identity()``;
        resolving -> resolved when the fetch succeeds;
        resolving -> empty when the fetch fails (every waiter gets the error,
        the next call fetches again);
        resolved -> empty on ``invalidate()``.

    At most one fetch is in flight at any time. An attempt started before
    ``invalidate()`` is allowed to finish before the next one begins.

    Args:
        fetch: Zero-argument coroutine function returning the raw account
               profile. It is awaited at most once per resolution attempt and
               its errors are passed through unchanged.
    """

    def __init__(self, fetch: ProfileFetcher):
        self._fetch = fetch
        self._identity: Optional[UserIdentity] = None
        self._pending: Optional[asyncio.Task] = None
        self._pending_generation = 0
        self._generation = 0

    @property
    def state(self) -> str:
        if self._identity is not None:
            return RESOLVED
        if self._pending is not None:
            return RESOLVING
        return EMPTY

    async def get_identity(self) -> UserIdentity:
        """Return the cached identity, fetching it if needed."""
        while True:
            if self._identity is not None:
                return self._identity

            if self._pending is None:
                self._pending = asyncio.ensure_future(self._resolve(self._generation))
                self._pending_generation = self._generation

            pending = self._pending
            if self._pending_generation == self._generation:
                # Shielded so a cancelled waiter does not cancel the shared fetch
                return await asyncio.shield(pending)

            # Invalidated attempt still running; its outcome is ignored
            await asyncio.wait({pending})

    async def get_athlete_id(self) -> int:
        identity = await self.get_identity()
        return identity.athlete_id

    def invalidate(self) -> None:
        """Drop the cached identity. A fetch still in flight will not be cached."""
        self._generation += 1
        self._identity = None

    async def _resolve(self, generation: int) -> UserIdentity:
        task = asyncio.current_task()
        logger.debug("Fetching account profile (generation %d)", generation)
        try:
            identity = UserIdentity.from_profile(await self._fetch())
        except Exception:
            logger.debug("Account profile fetch failed", exc_info=True)
            raise
        finally:
            if self._pending is task:
                self._pending = None

        if generation == self._generation:
            self._identity = identity
        return identity

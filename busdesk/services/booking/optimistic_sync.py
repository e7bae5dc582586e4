# busdesk/services/booking/optimistic_sync.py
"""
Optimistic synchronization strategy.

Remote writes are awaited in order; the local mutation runs only after the
last one was delivered. The store cannot acknowledge writes, so delivery is
all that is checked and the next refresh reconciles any divergence.
"""

from typing import Awaitable, Callable, Sequence, TypeVar

T = TypeVar("T")


class OptimisticSync:
    """Apply local after remote write, reconcile on next refresh."""

    async def run(
        self,
        writes: Sequence[Callable[[], Awaitable[None]]],
        apply_local: Callable[[], T],
    ) -> T:
        """
        Args:
            writes: Remote write steps, each issued after the previous one
                resolved
            apply_local: Local store mutation

        Returns:
            Whatever apply_local returns

        Raises:
            RemoteStoreError: a write could not be delivered; apply_local is
                not called
        """
        for write in writes:
            await write()
        return apply_local()

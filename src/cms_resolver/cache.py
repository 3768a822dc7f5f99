# -*- coding: utf-8 -*-
"""
Per-item resolution cache.

One cache is shared by every field of a content item. Each ``(kind, id)`` key
is written once with the task that resolves it; concurrent fields asking for
the same key await the same task, so the CMS sees one request per id.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Hashable

logger = logging.getLogger(__name__)


class ResolutionCache:
    """Write-once map from reference keys to resolution tasks."""

    def __init__(self):
        self._tasks: dict[Hashable, asyncio.Task] = {}

    def __contains__(self, key: Hashable) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    async def get_or_resolve(
            self,
            key: Hashable,
            resolver: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Return the result for ``key``, starting ``resolver`` only on first use.

        The resolver is expected to handle its own lookup failures and return
        a fallback value instead of raising.
        """
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(resolver())
            self._tasks[key] = task
        else:
            logger.debug("Resolution cache hit", extra={"key": str(key)})
        return await task

    async def resolve_many(
            self,
            kind: str,
            ids: list[str],
            resolver: Callable[[str], Awaitable[Any]],
    ) -> dict[str, Any]:
        """
        Resolve every id of one kind concurrently.

        The mapping is fully built before it is returned, so callers can
        substitute in a stable order regardless of completion order.
        """
        results = await asyncio.gather(
            *(self.get_or_resolve((kind, ref_id), lambda ref_id=ref_id: resolver(ref_id)) for ref_id in ids)
        )
        return dict(zip(ids, results))

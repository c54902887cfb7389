"""Lazily filled, explicitly invalidated cache of a remote tool catalog."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional

from .schema import ToolSpec

LOGGER = logging.getLogger(__name__)

CatalogLoader = Callable[[], Awaitable[List[ToolSpec]]]


class ToolCatalogCache:
    """Fetch-once catalog. Reads after the first fill do not take the lock."""

    def __init__(self, loader: CatalogLoader):
        self._loader = loader
        self._lock = asyncio.Lock()
        self._specs: Optional[Dict[str, ToolSpec]] = None

    @property
    def loaded(self) -> bool:
        return self._specs is not None

    async def _ensure(self) -> Dict[str, ToolSpec]:
        specs = self._specs
        if specs is not None:
            return specs
        async with self._lock:
            if self._specs is None:
                fetched = await self._loader()
                self._specs = {spec.name: spec for spec in fetched}
                LOGGER.info(f"Tool catalog loaded: {len(self._specs)} tools")
            return self._specs

    async def list(self) -> List[ToolSpec]:
        return list((await self._ensure()).values())

    async def get(self, name: str) -> Optional[ToolSpec]:
        return (await self._ensure()).get(name)

    def invalidate(self) -> None:
        """Drop the cached catalog; the next read fetches again."""
        self._specs = None

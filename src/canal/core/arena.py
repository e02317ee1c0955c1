"""
Raster Arena - Ownership tracking for committed rasters.

Every raster committed to a node is registered here under that node.
Passthrough nodes commit the very raster their parent produced, so a
raster may have several owners; it is released once the last owner
replaces its output or is deleted.
"""

from __future__ import annotations

import logging
from typing import Callable

from canal.core.raster import Raster

logger = logging.getLogger(__name__)


class RasterArena:
    """Reference-counted, node-keyed registry of live rasters."""

    def __init__(self, on_release: Callable[[Raster], None] | None = None):
        self._owned: dict[object, Raster] = {}  # node id -> raster
        self._refcounts: dict[int, int] = {}    # id(raster) -> owners
        self._rasters: dict[int, Raster] = {}
        self._on_release = on_release

    def assign(self, owner: object, raster: Raster | None) -> None:
        """Make `raster` the output owned by `owner`, releasing the previous one."""
        previous = self._owned.get(owner)
        if previous is raster:
            return

        if raster is not None:
            key = id(raster)
            self._refcounts[key] = self._refcounts.get(key, 0) + 1
            self._rasters[key] = raster
            self._owned[owner] = raster
        else:
            self._owned.pop(owner, None)

        if previous is not None:
            self._decref(previous)

    def release_owner(self, owner: object) -> None:
        """Drop whatever `owner` holds (node deleted)."""
        previous = self._owned.pop(owner, None)
        if previous is not None:
            self._decref(previous)

    def _decref(self, raster: Raster) -> None:
        key = id(raster)
        count = self._refcounts.get(key, 0) - 1
        if count > 0:
            self._refcounts[key] = count
            return

        self._refcounts.pop(key, None)
        self._rasters.pop(key, None)
        logger.debug("Released raster %dx%d", raster.width, raster.height)
        if self._on_release:
            self._on_release(raster)

    def owned_by(self, owner: object) -> Raster | None:
        return self._owned.get(owner)

    def refcount(self, raster: Raster) -> int:
        return self._refcounts.get(id(raster), 0)

    @property
    def live_count(self) -> int:
        """Number of distinct rasters currently owned by some node."""
        return len(self._rasters)

    def clear(self) -> None:
        for owner in list(self._owned):
            self.release_owner(owner)

"""
Effect Evaluator - Computes a node's output from its effect and inputs.

evaluate() dispatches on the effect kind to the executor registered in
the catalog. It never raises: any failure inside an executor is logged
and turns into "no output", which downstream nodes cannot tell apart
from "not computed yet".
"""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from canal.core.effects import EffectCatalog, EffectSpec, default_catalog
from canal.core.errors import EvaluationError, MissingUpstreamError
from canal.core.raster import Dims, Raster
from canal.core.resolver import Upstream, UpstreamRef
from canal.core.settings import EngineSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class EvaluationResult:
    """A freshly computed node output."""
    raster: Raster
    dims: Dims


class EvaluationContext:
    """
    Context passed to effect executors.

    Provides access to:
    - Engine settings
    - Running blocking pixel work off the event loop
    """

    def __init__(self, settings: EngineSettings | None = None):
        self.settings = settings or EngineSettings()

    async def run_blocking(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run CPU-bound work in the loop's default executor."""
        call = functools.partial(func, *args, **kwargs)
        if not self.settings.run_in_executor:
            return call()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, call)


def require_upstream(upstream: Upstream) -> UpstreamRef:
    """
    The single connected upstream with a committed output.

    Raises:
        MissingUpstreamError: If nothing usable is connected
    """
    if not isinstance(upstream, UpstreamRef):
        raise MissingUpstreamError("No input connected")
    if not upstream.ready:
        raise MissingUpstreamError(f"Input {upstream.source_node_id} has no output yet")
    return upstream


class Evaluator:
    """Evaluates effects using the executors of a catalog."""

    def __init__(
        self,
        catalog: EffectCatalog | None = None,
        settings: EngineSettings | None = None,
    ):
        self.catalog = catalog if catalog is not None else default_catalog()
        self.context = EvaluationContext(settings)

    async def evaluate(self, effect: EffectSpec, upstream: Upstream) -> EvaluationResult | None:
        """
        Compute the output of `effect` given its resolved upstream.

        Returns:
            The new raster and dims, or None when there is nothing to show.
        """
        executor = self.catalog.executor_for(effect.kind)
        if executor is None:
            logger.error("No executor registered for %s", effect.kind.value)
            return None

        try:
            return await executor(effect, upstream, self.context)
        except asyncio.CancelledError:
            raise
        except MissingUpstreamError as e:
            logger.debug("%s: %s", effect.kind.value, e)
        except EvaluationError as e:
            logger.info("%s produced no output: %s", effect.kind.value, e)
        except Exception as e:
            logger.warning("%s failed: %s", effect.kind.value, e, exc_info=True)
        return None

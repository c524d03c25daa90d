"""Detector registry: each relationship detector is one function registered via decorator.

Usage:
    @transform(id="T1.03", layer=Layer.SPATIAL, description="Alignment grids")
    def alignment_grids(ctx: AnalysisContext) -> None:
        ctx.spatial.extend(detect_alignment(ctx.elements, ctx.config))

The digit after ``T`` is the layer number, so ``T2.xx`` detectors always
report into the visual family. Adding a detector means adding one file.
"""

from __future__ import annotations

import enum
import heapq
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable

if TYPE_CHECKING:
    from relationlens.engine.context import AnalysisContext

logger = logging.getLogger(__name__)


class Layer(enum.IntEnum):
    """Relationship family a detector reports into."""

    SPATIAL = 1
    VISUAL = 2
    COMPOSITIONAL = 3

    @property
    def family(self) -> str:
        """Name of the AnalysisContext list (and config toggle) for this layer."""
        return self.name.lower()


@dataclass
class TransformSpec:
    id: str
    layer: Layer
    fn: Callable[["AnalysisContext"], None]
    dependencies: list[str] = field(default_factory=list)
    description: str = ""

    def __post_init__(self) -> None:
        prefix = f"T{int(self.layer)}."
        if not self.id.startswith(prefix):
            raise ValueError(f"Detector {self.id} registered on {self.layer.name} must use the {prefix} prefix")


class TransformRegistry:
    """Detectors bucketed by layer."""

    def __init__(self) -> None:
        self._by_layer: dict[Layer, dict[str, TransformSpec]] = defaultdict(dict)

    def _find(self, transform_id: str) -> TransformSpec | None:
        for bucket in self._by_layer.values():
            if transform_id in bucket:
                return bucket[transform_id]
        return None

    def register(self, spec: TransformSpec) -> None:
        if self._find(spec.id) is not None:
            raise ValueError(f"Duplicate transform ID: {spec.id}")
        self._by_layer[spec.layer][spec.id] = spec
        logger.debug("Registered detector %s into %s", spec.id, spec.layer.family)

    def get(self, transform_id: str) -> TransformSpec:
        spec = self._find(transform_id)
        if spec is None:
            raise KeyError(transform_id)
        return spec

    def get_layer(self, layer: Layer) -> list[TransformSpec]:
        return [self._by_layer[layer][tid] for tid in sorted(self._by_layer.get(layer, {}))]

    def all(self) -> list[TransformSpec]:
        return [spec for layer in sorted(self._by_layer) for spec in self.get_layer(layer)]

    def for_layers(self, layers: Iterable[Layer] | None) -> set[str]:
        """Ids of every detector in ``layers`` (all layers when None)."""
        wanted = set(Layer) if layers is None else set(layers)
        return {spec.id for spec in self.all() if spec.layer in wanted}

    def resolve_order(self, requested_ids: set[str] | None = None) -> list[TransformSpec]:
        """Dependency order over the requested detectors and whatever they depend on.

        Independent detectors run in id order, so lower layers come first.
        """
        pool = {spec.id: spec for spec in self.all()}
        if requested_ids is not None:
            keep: set[str] = set()
            frontier = [tid for tid in requested_ids if tid in pool]
            while frontier:
                tid = frontier.pop()
                if tid not in keep:
                    keep.add(tid)
                    frontier.extend(dep for dep in pool[tid].dependencies if dep in pool)
            pool = {tid: spec for tid, spec in pool.items() if tid in keep}

        dependents: dict[str, list[str]] = defaultdict(list)
        waiting: dict[str, int] = {}
        for tid, spec in pool.items():
            deps = [dep for dep in spec.dependencies if dep in pool]
            waiting[tid] = len(deps)
            for dep in deps:
                dependents[dep].append(tid)

        ready = [tid for tid, n in waiting.items() if n == 0]
        heapq.heapify(ready)
        ordered: list[TransformSpec] = []
        while ready:
            tid = heapq.heappop(ready)
            ordered.append(pool[tid])
            for child in dependents[tid]:
                waiting[child] -= 1
                if waiting[child] == 0:
                    heapq.heappush(ready, child)

        if len(ordered) != len(pool):
            stuck = sorted(set(pool) - {spec.id for spec in ordered})
            raise ValueError(f"Circular dependency detected among: {stuck}")
        return ordered

    @property
    def count(self) -> int:
        return sum(len(bucket) for bucket in self._by_layer.values())


_registry = TransformRegistry()


def get_registry() -> TransformRegistry:
    return _registry


def transform(
    *,
    id: str,
    layer: Layer,
    dependencies: list[str] | None = None,
    description: str = "",
):
    """Register a relationship detector on the global registry."""

    def decorator(fn: Callable[["AnalysisContext"], None]):
        _registry.register(
            TransformSpec(id=id, layer=layer, fn=fn, dependencies=list(dependencies or ()), description=description)
        )
        return fn

    return decorator

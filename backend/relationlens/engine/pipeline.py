"""Pipeline orchestrator: runs detector transforms in dependency order."""

from __future__ import annotations

import importlib
import logging
import pkgutil
import time

from relationlens.engine.context import AnalysisContext
from relationlens.engine.registry import Layer, TransformRegistry, get_registry

logger = logging.getLogger(__name__)

_LAYER_PACKAGES = ("layer1", "layer2", "layer3")


class Pipeline:
    """Runs registered transforms against one AnalysisContext."""

    def __init__(self, registry: TransformRegistry | None = None) -> None:
        self.registry = registry or get_registry()

    def run(self, ctx: AnalysisContext, layers: set[Layer] | None = None) -> AnalysisContext:
        """Run every transform (or only those in ``layers``) on the context.

        A failing transform is recorded in ``ctx.errors`` and the rest keep going.
        """
        start = time.perf_counter()

        ordered = self.registry.resolve_order(self.registry.for_layers(layers))
        logger.info(
            "Pipeline: %d detectors queued (%d skipped)",
            len(ordered),
            self.registry.count - len(ordered),
        )

        for spec in ordered:
            self._run_one(ctx, spec.id, spec.fn)

        total = (time.perf_counter() - start) * 1000
        logger.info(
            "Pipeline complete: %d/%d detectors in %.0fms, found %s",
            len(ctx.completed_transforms),
            len(ordered),
            total,
            ", ".join(f"{len(getattr(ctx, layer.family))} {layer.family}" for layer in Layer),
        )
        return ctx

    def _run_one(self, ctx: AnalysisContext, transform_id: str, fn) -> None:
        t0 = time.perf_counter()
        try:
            fn(ctx)
            ctx.completed_transforms.add(transform_id)
            elapsed = (time.perf_counter() - t0) * 1000
            logger.debug("  %s completed in %.1fms", transform_id, elapsed)
        except Exception as e:
            ctx.errors[transform_id] = str(e)
            logger.warning("  %s FAILED: %s", transform_id, e)


def load_transforms() -> int:
    """Import every layer module so the @transform decorators fire.

    Safe to call repeatedly; returns the number of registered transforms.
    """
    for layer_name in _LAYER_PACKAGES:
        package_name = f"relationlens.engine.{layer_name}"
        package = importlib.import_module(package_name)
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            importlib.import_module(f"{package_name}.{module_name}")
    return get_registry().count


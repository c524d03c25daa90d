"""T3.03: Breathing Room.

Negative-space structure on a coarse occupancy grid:
1. Rasterize element boxes onto GRID_RESOLUTION x GRID_RESOLUTION cells.
2. Flood-fill empty cells into 4-connected regions.
3. Keep regions covering at least ``breathing_room_min_size`` of the grid and
   classify each by where it sits and what it separates.
"""

from __future__ import annotations

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.context import AnalysisContext
from relationlens.engine.registry import Layer, transform
from relationlens.engine.relationships import BreathingRegion, BreathingRoomPattern
from relationlens.tree.elements import NormalizedBounds, NormalizedElement
from relationlens.utils.geometry import box_gap, distance
from relationlens.utils.grid import GRID_RESOLUTION, GridRegion, empty_regions, occupancy_grid

_SEPARATOR_RADIUS = 0.3
_ADJACENCY_MARGIN = 0.05


def classify_space(region: GridRegion, elements: list[NormalizedElement], resolution: int) -> str:
    if region.touches_border(resolution):
        return "buffer"

    left, top, right, bottom = region.normalized_bounds(resolution)
    center = ((left + right) / 2, (top + bottom) / 2)
    nearby = sum(1 for e in elements if distance(e.center, center) <= _SEPARATOR_RADIUS)
    if nearby >= 2:
        return "separator"

    cx, cy = region.center
    lo, hi = resolution * 0.3, resolution * 0.7
    if lo < cx < hi and lo < cy < hi:
        return "focus"
    return "flow"


def space_importance(region: GridRegion, resolution: int) -> float:
    mid = resolution / 2
    # Farthest a cell center can be from the grid center, roughly
    reach = resolution * 0.7
    size_score = min(1.0, region.size / (resolution * resolution * 0.2))
    centrality = 1.0 - distance(region.center, (mid, mid)) / reach
    return min(1.0, size_score + 0.3 * centrality)


def detect_breathing_room(
    elements: list[NormalizedElement], config: AnalysisConfig
) -> BreathingRoomPattern | None:
    if not elements:
        return None

    resolution = GRID_RESOLUTION
    grid = occupancy_grid([e.box for e in elements], resolution)
    min_cells = config.breathing_room_min_size * resolution * resolution

    regions: list[BreathingRegion] = []
    for region in empty_regions(grid):
        if region.size < min_cells:
            continue
        bounds = region.normalized_bounds(resolution)
        adjacent = tuple(e.id for e in elements if box_gap(e.box, bounds) <= _ADJACENCY_MARGIN)
        regions.append(
            BreathingRegion(
                region=NormalizedBounds(*bounds),
                space_type=classify_space(region, elements, resolution),
                importance=space_importance(region, resolution),
                adjacent_elements=adjacent,
            )
        )

    if len(regions) < 2:
        return None

    avg_importance = sum(r.importance for r in regions) / len(regions)
    confidence = 0.7 * avg_importance + 0.3 * min(1.0, len(regions) / 4)
    if confidence < config.confidence_threshold:
        return None
    return BreathingRoomPattern(regions=tuple(regions), confidence=confidence)


@transform(
    id="T3.03",
    layer=Layer.COMPOSITIONAL,
    description="Connected empty regions on the occupancy grid",
)
def breathing_room(ctx: AnalysisContext) -> None:
    result = detect_breathing_room(ctx.elements, ctx.config)
    if result is not None:
        ctx.compositional.append(result)

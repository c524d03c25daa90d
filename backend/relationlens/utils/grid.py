"""Occupancy grid + connected empty regions for negative-space analysis."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from relationlens.utils.geometry import Box

# Cells per side of the negative-space sampling grid.
GRID_RESOLUTION = 10


@dataclass
class GridRegion:
    """A 4-connected run of empty cells."""

    cells: list[tuple[int, int]] = field(default_factory=list)  # (x, y)
    min_x: int = 0
    max_x: int = 0
    min_y: int = 0
    max_y: int = 0

    @property
    def size(self) -> int:
        return len(self.cells)

    @property
    def center(self) -> tuple[float, float]:
        """Center of the region's cell bbox, in cell units."""
        return ((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)

    def touches_border(self, resolution: int) -> bool:
        last = resolution - 1
        return self.min_x == 0 or self.min_y == 0 or self.max_x == last or self.max_y == last

    def normalized_bounds(self, resolution: int) -> Box:
        """Bounding box of the region's cells in normalized canvas units."""
        return (
            self.min_x / resolution,
            self.min_y / resolution,
            (self.max_x + 1) / resolution,
            (self.max_y + 1) / resolution,
        )


def occupancy_grid(boxes: list[Box], resolution: int = GRID_RESOLUTION) -> NDArray[np.bool_]:
    """Mark every cell any box overlaps. grid[y, x] is True when occupied."""
    grid = np.zeros((resolution, resolution), dtype=np.bool_)
    for left, top, right, bottom in boxes:
        x0 = max(0, math.floor(left * resolution))
        x1 = min(resolution, math.ceil(right * resolution))
        y0 = max(0, math.floor(top * resolution))
        y1 = min(resolution, math.ceil(bottom * resolution))
        if x1 > x0 and y1 > y0:
            grid[y0:y1, x0:x1] = True
    return grid


def empty_regions(grid: NDArray[np.bool_]) -> list[GridRegion]:
    """Flood-fill unoccupied cells into 4-connected regions (row-major scan)."""
    height, width = grid.shape
    visited = [False] * (width * height)
    regions: list[GridRegion] = []

    for y in range(height):
        for x in range(width):
            if grid[y, x] or visited[y * width + x]:
                continue
            regions.append(_flood_fill(grid, visited, x, y))

    return regions


def _flood_fill(
    grid: NDArray[np.bool_],
    visited: list[bool],
    start_x: int,
    start_y: int,
) -> GridRegion:
    """Stack-based fill from one empty seed cell."""
    height, width = grid.shape
    region = GridRegion(min_x=start_x, max_x=start_x, min_y=start_y, max_y=start_y)
    stack = [(start_x, start_y)]

    while stack:
        x, y = stack.pop()
        if x < 0 or x >= width or y < 0 or y >= height:
            continue
        idx = y * width + x
        if grid[y, x] or visited[idx]:
            continue

        visited[idx] = True
        region.cells.append((x, y))
        region.min_x = min(region.min_x, x)
        region.max_x = max(region.max_x, x)
        region.min_y = min(region.min_y, y)
        region.max_y = max(region.max_y, y)

        stack.extend(((x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)))

    return region

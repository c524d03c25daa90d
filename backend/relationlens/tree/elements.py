"""Element tree (host input) and normalized element records (engine input)."""

from __future__ import annotations

from dataclasses import dataclass

from relationlens.utils.geometry import Box, Point, box_center


@dataclass(frozen=True)
class Rect:
    """Axis-aligned box in absolute canvas units."""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class ElementNode:
    """One node of the host's element tree.

    Containers carry children; the root's own ``bounds`` define the canvas.
    ``fill`` is an optional ``#rgb`` / ``#rrggbb`` color, ``font_size`` and
    ``font_weight`` are only set for text.
    """

    id: str
    bounds: Rect | None = None
    visible: bool = True
    children: tuple[ElementNode, ...] = ()
    fill: str | None = None
    font_size: float | None = None
    font_weight: str | None = None


@dataclass(frozen=True)
class NormalizedBounds:
    left: float
    top: float
    right: float
    bottom: float

    def as_tuple(self) -> Box:
        return (self.left, self.top, self.right, self.bottom)


@dataclass(frozen=True)
class NormalizedElement:
    """Element expressed as fractions of the canvas width/height."""

    id: str
    bounds: NormalizedBounds
    area: float
    # Depth-first draw order (later = drawn on top)
    z_index: int = 0
    depth: int = 1
    hue: float | None = None
    saturation: float | None = None
    lightness: float | None = None
    font_size: float | None = None
    font_weight: str | None = None

    @property
    def box(self) -> Box:
        return self.bounds.as_tuple()

    @property
    def center(self) -> Point:
        return box_center(self.box)

    @property
    def width(self) -> float:
        return self.bounds.right - self.bounds.left

    @property
    def height(self) -> float:
        return self.bounds.bottom - self.bounds.top

    @property
    def is_text(self) -> bool:
        return self.font_size is not None


def make_element(
    element_id: str,
    left: float,
    top: float,
    right: float,
    bottom: float,
    z_index: int = 0,
    **extra,
) -> NormalizedElement:
    """Build a NormalizedElement straight from normalized coordinates."""
    bounds = NormalizedBounds(left=left, top=top, right=right, bottom=bottom)
    area = max(0.0, right - left) * max(0.0, bottom - top)
    return NormalizedElement(id=element_id, bounds=bounds, area=area, z_index=z_index, **extra)


@dataclass
class CandidateNode:
    """One element of a proposed re-layout, in the candidate's own units."""

    node_id: str
    position: Point | None = None
    size: tuple[float, float] | None = None  # (width, height)

    @property
    def center(self) -> Point | None:
        if self.position is None or self.size is None:
            return None
        return (self.position[0] + self.size[0] / 2, self.position[1] + self.size[1] / 2)

    def edge(self, axis: str, reference: str) -> float | None:
        """Coordinate of this node's start/center/end along an axis ("x" or "y")."""
        if self.position is None or self.size is None:
            return None
        i = 0 if axis == "x" else 1
        start = self.position[i]
        if reference == "start":
            return start
        if reference == "end":
            return start + self.size[i]
        return start + self.size[i] / 2

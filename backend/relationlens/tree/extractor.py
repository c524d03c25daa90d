"""Element tree -> normalized element list.

Walks the host's element tree depth-first and expresses every visible
element's box as fractions of the root container. The root itself is the
canvas and is never emitted.
"""

from __future__ import annotations

import colorsys
import logging
import re

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.context import AnalysisContext
from relationlens.errors import ExtractionError
from relationlens.tree.elements import ElementNode, NormalizedBounds, NormalizedElement, Rect
from relationlens.utils.math_helpers import clamp

logger = logging.getLogger(__name__)

MAX_DEPTH = 4
MIN_ELEMENT_SIZE = 2.0

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def parse_hsl(color: str | None) -> tuple[float, float, float] | None:
    """``#rgb`` / ``#rrggbb`` -> (hue degrees, saturation, lightness)."""
    if not color:
        return None
    match = _HEX_RE.match(color.strip())
    if not match:
        logger.debug("Ignoring unparseable fill %r", color)
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    r, g, b = (int(digits[i : i + 2], 16) / 255.0 for i in (0, 2, 4))
    h, l, s = colorsys.rgb_to_hls(r, g, b)
    return (h * 360.0, s, l)


def extract_elements(root: ElementNode) -> list[NormalizedElement]:
    """Flatten the tree under ``root`` into normalized elements.

    Returns an empty list when the root has no usable box.
    """
    canvas = root.bounds
    if canvas is None or canvas.width <= 0 or canvas.height <= 0:
        return []

    elements: list[NormalizedElement] = []
    # (node, depth) pairs; reversed push keeps document order on pop
    stack: list[tuple[ElementNode, int]] = [(child, 1) for child in reversed(root.children)]

    while stack:
        node, depth = stack.pop()
        if not node.visible:
            continue

        if node.bounds is not None and _large_enough(node.bounds):
            elements.append(_normalize(node, canvas, depth, len(elements)))

        if depth < MAX_DEPTH:
            stack.extend((child, depth + 1) for child in reversed(node.children))

    return elements


def extract_elements_strict(root: ElementNode) -> list[NormalizedElement]:
    """Like extract_elements, but a missing or degenerate canvas is an error."""
    canvas = root.bounds
    if canvas is None:
        raise ExtractionError(f"Root element {root.id!r} has no bounds")
    if canvas.width <= 0 or canvas.height <= 0:
        raise ExtractionError(
            f"Root element {root.id!r} has a degenerate size {canvas.width}x{canvas.height}"
        )
    return extract_elements(root)


def build_context(root: ElementNode, config: AnalysisConfig | None = None) -> AnalysisContext:
    """Extract elements and wrap them in a fresh per-analysis context."""
    elements = extract_elements(root)
    logger.debug("Extracted %d elements from %s", len(elements), root.id)
    return AnalysisContext(
        frame_id=root.id,
        elements=elements,
        config=config or AnalysisConfig(),
    )


def _large_enough(bounds: Rect) -> bool:
    return bounds.width >= MIN_ELEMENT_SIZE and bounds.height >= MIN_ELEMENT_SIZE


def _normalize(node: ElementNode, canvas: Rect, depth: int, z_index: int) -> NormalizedElement:
    b = node.bounds
    left = clamp((b.x - canvas.x) / canvas.width)
    top = clamp((b.y - canvas.y) / canvas.height)
    right = clamp((b.x + b.width - canvas.x) / canvas.width)
    bottom = clamp((b.y + b.height - canvas.y) / canvas.height)

    hsl = parse_hsl(node.fill)
    return NormalizedElement(
        id=node.id,
        bounds=NormalizedBounds(left=left, top=top, right=right, bottom=bottom),
        area=(right - left) * (bottom - top),
        z_index=z_index,
        depth=depth,
        hue=hsl[0] if hsl else None,
        saturation=hsl[1] if hsl else None,
        lightness=hsl[2] if hsl else None,
        font_size=node.font_size,
        font_weight=node.font_weight,
    )

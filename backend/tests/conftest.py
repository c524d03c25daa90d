"""Shared test fixtures."""

from __future__ import annotations

import math

import pytest

from relationlens.engine.config import AnalysisConfig
from relationlens.tree.elements import CandidateNode, ElementNode, Rect
from relationlens.tree.extractor import extract_elements


def node(element_id: str, x: float, y: float, width: float, height: float, **extra) -> ElementNode:
    return ElementNode(id=element_id, bounds=Rect(x, y, width, height), **extra)


def frame(frame_id: str, width: float, height: float, *children: ElementNode) -> ElementNode:
    return ElementNode(id=frame_id, bounds=Rect(0, 0, width, height), children=tuple(children))


# Four elements stepping down-right across an 800x600 frame
DIAGONAL_TREE = frame(
    "diagonal-frame",
    800,
    600,
    node("anchor", 100, 150, 80, 80, fill="#1a1a2e"),
    node("flow1", 250, 200, 100, 40, fill="#e94560"),
    node("flow2", 400, 280, 120, 50, fill="#0f3460"),
    node("flow3", 580, 350, 90, 45, fill="#f5f5f5"),
)

# Three equal boxes sharing top, middle and bottom lines
ROW_TREE = frame(
    "row-frame",
    1000,
    1000,
    node("left", 100, 100, 100, 100),
    node("middle", 400, 100, 100, 100),
    node("right", 700, 100, 100, 100),
)


def ring_tree(count: int = 6, radius: float = 300.0, size: float = 40.0) -> ElementNode:
    """``count`` small boxes evenly spaced on a circle around the frame center."""
    children = []
    for k in range(count):
        angle = math.radians(k * 360 / count)
        cx = 500 + radius * math.cos(angle)
        cy = 500 + radius * math.sin(angle)
        children.append(node(f"dot{k}", cx - size / 2, cy - size / 2, size, size))
    return frame("ring-frame", 1000, 1000, *children)


def layout_from_tree(
    root: ElementNode, width: float = 1080.0, height: float = 1920.0
) -> list[CandidateNode]:
    """A re-layout that keeps every element at the same relative spot."""
    return [
        CandidateNode(
            node_id=e.id,
            position=(e.bounds.left * width, e.bounds.top * height),
            size=(e.width * width, e.height * height),
        )
        for e in extract_elements(root)
    ]


@pytest.fixture
def diagonal_tree() -> ElementNode:
    return DIAGONAL_TREE


@pytest.fixture
def permissive_config() -> AnalysisConfig:
    return AnalysisConfig(confidence_threshold=0.0)

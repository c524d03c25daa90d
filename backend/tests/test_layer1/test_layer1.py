"""Tests for Layer 1 spatial detectors."""

import pytest

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.layer1.t1_01_anchor_patterns import detect_anchor_patterns
from relationlens.engine.layer1.t1_02_flow_patterns import detect_curved_flow, detect_flow_patterns
from relationlens.engine.layer1.t1_03_alignment_grids import detect_alignment_grids, find_lines
from relationlens.engine.layer1.t1_04_proximity_clusters import detect_proximity_clusters
from relationlens.tree.elements import make_element
from relationlens.tree.extractor import extract_elements
from tests.conftest import DIAGONAL_TREE, ROW_TREE, ring_tree

CONFIG = AnalysisConfig()


def test_anchor_patterns_diagonal():
    patterns = detect_anchor_patterns(extract_elements(DIAGONAL_TREE), CONFIG)
    assert patterns
    assert len(patterns) <= CONFIG.max_anchor_patterns
    assert "anchor" in {p.anchor_element_id for p in patterns}

    confidences = [p.confidence for p in patterns]
    assert confidences == sorted(confidences, reverse=True)

    anchor = next(p for p in patterns if p.anchor_element_id == "anchor")
    rel = {a.element_id: a.relative_position for a in anchor.anchored_elements}
    # flow3 sits below-right of the anchor
    assert rel["flow3"][0] > 0 and rel["flow3"][1] > 0


def test_anchor_needs_three_elements():
    elements = [make_element("a", 0.1, 0.1, 0.3, 0.3), make_element("b", 0.6, 0.6, 0.8, 0.8)]
    assert detect_anchor_patterns(elements, CONFIG) == []


def test_diagonal_flow():
    flows = detect_flow_patterns(extract_elements(DIAGONAL_TREE), CONFIG)
    assert len(flows) == 1
    flow = flows[0]
    assert flow.flow_type == "diagonal"
    assert flow.involved_elements == ("anchor", "flow1", "flow2", "flow3")
    assert len(flow.vectors) == 3
    assert all(0 < v.direction < 90 for v in flow.vectors)


def test_linear_flow_along_row():
    flows = detect_flow_patterns(extract_elements(ROW_TREE), CONFIG)
    linear = [f for f in flows if f.flow_type == "linear"]
    assert len(linear) == 1
    assert linear[0].involved_elements == ("left", "middle", "right")


def test_circular_flow():
    elements = extract_elements(ring_tree())
    curved = detect_curved_flow(elements, CONFIG)
    assert curved is not None
    assert curved.flow_type == "circular"
    assert curved.confidence == pytest.approx(1.0)
    assert len(curved.involved_elements) == 6

    flows = detect_flow_patterns(elements, CONFIG)
    assert any(f.flow_type == "circular" for f in flows)


def test_curved_flow_needs_min_elements():
    elements = extract_elements(ring_tree(count=3))
    assert detect_curved_flow(elements, CONFIG) is None


def test_flow_needs_three_elements():
    elements = [make_element("a", 0.1, 0.1, 0.2, 0.2), make_element("b", 0.6, 0.6, 0.7, 0.7)]
    assert detect_flow_patterns(elements, CONFIG) == []


def test_row_alignment_lines():
    elements = extract_elements(ROW_TREE)
    lines = find_lines(elements, "horizontal", CONFIG.alignment_tolerance)
    assert [line.reference for line in lines] == ["start", "center", "end"]
    assert all(line.element_ids == ("left", "middle", "right") for line in lines)
    assert lines[0].position == pytest.approx(0.1)


def test_row_alignment_grid():
    grids = detect_alignment_grids(extract_elements(ROW_TREE), CONFIG)
    horizontal = [g for g in grids if g.axis == "horizontal"]
    assert len(horizontal) == 1
    assert horizontal[0].confidence == pytest.approx(1.0)
    assert not any(g.axis == "vertical" for g in grids)
    # Collinear centers on an axis are not a diagonal alignment
    assert not any(g.axis == "diagonal" for g in grids)


def test_diagonal_alignment():
    elements = [
        make_element("a", 0.05, 0.05, 0.15, 0.15),
        make_element("b", 0.35, 0.25, 0.45, 0.35),
        make_element("c", 0.65, 0.45, 0.75, 0.55),
    ]
    grids = detect_alignment_grids(elements, CONFIG)
    diagonal = [g for g in grids if g.axis == "diagonal"]
    assert len(diagonal) == 1
    assert diagonal[0].alignment_lines[0].element_ids == ("a", "b", "c")
    assert diagonal[0].alignment_lines[0].reference == "line"


def test_no_alignment_in_diagonal_fixture():
    assert detect_alignment_grids(extract_elements(DIAGONAL_TREE), CONFIG) == []


def test_proximity_cluster():
    elements = [
        make_element("a", 0.10, 0.10, 0.15, 0.15),
        make_element("b", 0.17, 0.10, 0.22, 0.15),
        make_element("c", 0.10, 0.17, 0.15, 0.22),
        make_element("far", 0.80, 0.80, 0.90, 0.90),
    ]
    clusters = detect_proximity_clusters(elements, CONFIG)
    assert len(clusters) == 1
    cluster = clusters[0]
    assert set(cluster.element_ids) == {"a", "b", "c"}
    assert cluster.cluster_bounds.left == pytest.approx(0.10)
    assert cluster.cluster_bounds.right == pytest.approx(0.22)
    assert 0.0 < cluster.cohesion <= 1.0


def test_cluster_of_everything_dropped():
    elements = [
        make_element("a", 0.10, 0.10, 0.15, 0.15),
        make_element("b", 0.17, 0.10, 0.22, 0.15),
    ]
    assert detect_proximity_clusters(elements, CONFIG) == []


def test_no_proximity_in_diagonal_fixture():
    assert detect_proximity_clusters(extract_elements(DIAGONAL_TREE), CONFIG) == []

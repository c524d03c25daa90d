"""Tests for element tree extraction and normalization."""

import pytest

from relationlens.errors import ExtractionError
from relationlens.tree.elements import ElementNode, Rect
from relationlens.tree.extractor import (
    MAX_DEPTH,
    build_context,
    extract_elements,
    extract_elements_strict,
    parse_hsl,
)
from tests.conftest import DIAGONAL_TREE, frame, node


def test_diagonal_elements_normalized():
    elements = extract_elements(DIAGONAL_TREE)
    assert [e.id for e in elements] == ["anchor", "flow1", "flow2", "flow3"]

    anchor = elements[0]
    assert anchor.bounds.left == pytest.approx(0.125)
    assert anchor.bounds.top == pytest.approx(0.25)
    assert anchor.bounds.right == pytest.approx(0.225)
    assert anchor.bounds.bottom == pytest.approx(150 / 600 + 80 / 600)
    assert anchor.area == pytest.approx(0.1 * 80 / 600)
    assert anchor.center == pytest.approx((0.175, 190 / 600))


def test_root_is_not_an_element():
    ids = [e.id for e in extract_elements(DIAGONAL_TREE)]
    assert "diagonal-frame" not in ids


def test_z_index_follows_document_order():
    elements = extract_elements(DIAGONAL_TREE)
    assert [e.z_index for e in elements] == [0, 1, 2, 3]


def test_extraction_is_idempotent():
    first = extract_elements(DIAGONAL_TREE)
    second = extract_elements(DIAGONAL_TREE)
    assert first == second


def test_bounds_clamped_to_canvas():
    root = frame("f", 100, 100, node("bleed", -20, 50, 60, 80))
    (e,) = extract_elements(root)
    assert e.bounds.left == 0.0
    assert e.bounds.bottom == 1.0
    assert e.area == pytest.approx(0.4 * 0.5)


def test_invisible_subtree_skipped():
    hidden = node("hidden", 10, 10, 50, 50, visible=False, children=(node("inner", 20, 20, 10, 10),))
    root = frame("f", 100, 100, hidden, node("shown", 60, 60, 20, 20))
    assert [e.id for e in extract_elements(root)] == ["shown"]


def test_tiny_element_skipped_but_children_visited():
    wrapper = node("hairline", 0, 0, 100, 1, children=(node("child", 10, 10, 20, 20),))
    root = frame("f", 100, 100, wrapper)
    assert [e.id for e in extract_elements(root)] == ["child"]


def test_nested_depth_recorded_and_capped():
    leaf = node(f"n{MAX_DEPTH + 1}", 10, 10, 10, 10)
    for level in range(MAX_DEPTH, 0, -1):
        leaf = node(f"n{level}", 10, 10, 10, 10, children=(leaf,))
    root = frame("f", 100, 100, leaf)

    elements = extract_elements(root)
    assert [e.depth for e in elements] == list(range(1, MAX_DEPTH + 1))
    assert f"n{MAX_DEPTH + 1}" not in [e.id for e in elements]


def test_missing_root_bounds_yields_nothing():
    root = ElementNode(id="f", children=(node("a", 0, 0, 10, 10),))
    assert extract_elements(root) == []


def test_strict_extraction_raises():
    with pytest.raises(ExtractionError):
        extract_elements_strict(ElementNode(id="f"))
    with pytest.raises(ExtractionError):
        extract_elements_strict(ElementNode(id="f", bounds=Rect(0, 0, 0, 100)))


def test_parse_hsl():
    h, s, l = parse_hsl("#ff0000")
    assert h == pytest.approx(0.0)
    assert s == pytest.approx(1.0)
    assert l == pytest.approx(0.5)

    h, s, l = parse_hsl("#fff")
    assert l == pytest.approx(1.0)
    assert s == pytest.approx(0.0)

    assert parse_hsl("not-a-color") is None
    assert parse_hsl(None) is None


def test_fill_sets_color_properties():
    root = frame("f", 100, 100, node("a", 0, 0, 50, 50, fill="#0000ff"), node("b", 50, 50, 50, 50))
    a, b = extract_elements(root)
    assert a.hue == pytest.approx(240.0)
    assert b.hue is None and b.lightness is None


def test_build_context_carries_frame_id():
    ctx = build_context(DIAGONAL_TREE)
    assert ctx.frame_id == "diagonal-frame"
    assert ctx.num_elements == 4

"""Tests for the transform registry."""

import pytest

from relationlens.engine.context import AnalysisContext
from relationlens.engine.pipeline import load_transforms
from relationlens.engine.registry import Layer, TransformRegistry, TransformSpec, get_registry


def _noop(ctx: AnalysisContext) -> None:
    pass


def test_register_and_get():
    reg = TransformRegistry()
    spec = TransformSpec(id="T1.01", layer=Layer.SPATIAL, fn=_noop)
    reg.register(spec)
    assert reg.get("T1.01") is spec
    assert reg.count == 1


def test_duplicate_id_rejected():
    reg = TransformRegistry()
    reg.register(TransformSpec(id="T1.01", layer=Layer.SPATIAL, fn=_noop))
    with pytest.raises(ValueError):
        reg.register(TransformSpec(id="T1.01", layer=Layer.SPATIAL, fn=_noop))


def test_get_layer():
    reg = TransformRegistry()
    s1 = TransformSpec(id="T1.01", layer=Layer.SPATIAL, fn=_noop)
    s2 = TransformSpec(id="T2.01", layer=Layer.VISUAL, fn=_noop)
    reg.register(s1)
    reg.register(s2)
    visual = reg.get_layer(Layer.VISUAL)
    assert len(visual) == 1
    assert visual[0].id == "T2.01"


def test_resolve_order_with_deps():
    reg = TransformRegistry()
    s1 = TransformSpec(id="T2.02", layer=Layer.VISUAL, fn=_noop)
    s2 = TransformSpec(id="T3.01", layer=Layer.COMPOSITIONAL, fn=_noop, dependencies=["T2.02"])
    reg.register(s1)
    reg.register(s2)
    order = reg.resolve_order({"T3.01"})
    ids = [s.id for s in order]
    assert ids.index("T2.02") < ids.index("T3.01")


def test_resolve_order_all():
    reg = TransformRegistry()
    for i in range(4):
        reg.register(TransformSpec(id=f"T1.0{i+1}", layer=Layer.SPATIAL, fn=_noop))
    order = reg.resolve_order(None)
    assert [s.id for s in order] == ["T1.01", "T1.02", "T1.03", "T1.04"]


def test_all_detectors_registered():
    assert load_transforms() == 12
    reg = get_registry()
    for layer in Layer:
        assert len(reg.get_layer(layer)) == 4


def test_id_prefix_must_match_layer():
    with pytest.raises(ValueError):
        TransformSpec(id="T2.01", layer=Layer.SPATIAL, fn=_noop)


def test_layer_family_names():
    assert [layer.family for layer in Layer] == ["spatial", "visual", "compositional"]


def test_for_layers_selects_buckets():
    reg = TransformRegistry()
    reg.register(TransformSpec(id="T1.01", layer=Layer.SPATIAL, fn=_noop))
    reg.register(TransformSpec(id="T3.01", layer=Layer.COMPOSITIONAL, fn=_noop))
    assert reg.for_layers({Layer.COMPOSITIONAL}) == {"T3.01"}
    assert reg.for_layers(None) == {"T1.01", "T3.01"}


def test_circular_dependency_rejected():
    reg = TransformRegistry()
    reg.register(TransformSpec(id="T1.01", layer=Layer.SPATIAL, fn=_noop, dependencies=["T1.02"]))
    reg.register(TransformSpec(id="T1.02", layer=Layer.SPATIAL, fn=_noop, dependencies=["T1.01"]))
    with pytest.raises(ValueError):
        reg.resolve_order()

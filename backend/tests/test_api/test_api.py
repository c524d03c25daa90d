"""Tests for API endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from relationlens.config import Settings
from relationlens.main import app, create_app

client = TestClient(app)


DIAGONAL_PAYLOAD = {
    "id": "diagonal-frame",
    "bounds": {"x": 0, "y": 0, "width": 800, "height": 600},
    "children": [
        {"id": "anchor", "bounds": {"x": 100, "y": 150, "width": 80, "height": 80}, "fill": "#1a1a2e"},
        {"id": "flow1", "bounds": {"x": 250, "y": 200, "width": 100, "height": 40}, "fill": "#e94560"},
        {"id": "flow2", "bounds": {"x": 400, "y": 280, "width": 120, "height": 50}, "fill": "#0f3460"},
        {"id": "flow3", "bounds": {"x": 580, "y": 350, "width": 90, "height": 45}, "fill": "#f5f5f5"},
    ],
}


def _scaled_layout(payload: dict, width: float = 1080, height: float = 1920) -> list[dict]:
    frame = payload["bounds"]
    sx, sy = width / frame["width"], height / frame["height"]
    return [
        {
            "node_id": child["id"],
            "position": {"x": child["bounds"]["x"] * sx, "y": child["bounds"]["y"] * sy},
            "size": {"width": child["bounds"]["width"] * sx, "height": child["bounds"]["height"] * sy},
        }
        for child in payload["children"]
    ]


def test_health():
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["transforms_registered"] == 12


def test_analyze_diagonal():
    response = client.post("/api/analyze", json={"tree": DIAGONAL_PAYLOAD})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["fallback_mode"] == "none"
    assert data["errors"] == {}
    assert data["analysis"]["frame_id"] == "diagonal-frame"
    assert data["analysis"]["metrics"]["element_count"] == 4

    flows = [r for r in data["analysis"]["spatial"] if r["type"] == "flow"]
    assert flows[0]["flow_type"] == "diagonal"

    ids = [c["id"] for c in data["constraints"]["constraints"]]
    assert "flow-diagonal" in ids


def test_analyze_with_options():
    response = client.post(
        "/api/analyze",
        json={"tree": DIAGONAL_PAYLOAD, "config": {"enable_visual": False, "preserve_mode": "creative"}},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["analysis"]["visual"] == []
    rules = [c["preservation_rule"] for c in data["constraints"]["constraints"]]
    assert rules and all(rule.startswith("SIMPLIFY:") for rule in rules)


def test_analyze_single_element():
    payload = {"id": "f", "bounds": {"x": 0, "y": 0, "width": 100, "height": 100}, "children": [
        {"id": "only", "bounds": {"x": 10, "y": 10, "width": 20, "height": 20}},
    ]}
    response = client.post("/api/analyze", json={"tree": payload})
    assert response.status_code == 200
    data = response.json()
    assert data["fallback_mode"] == "disabled"
    assert data["analysis"] is None
    assert data["error"] == "Insufficient elements for relationship analysis"


def test_analyze_rejects_malformed_tree():
    response = client.post("/api/analyze", json={"tree": {"bounds": {"x": 0}}})
    assert response.status_code == 422


def test_validate_round_trip():
    constraints = client.post("/api/analyze", json={"tree": DIAGONAL_PAYLOAD}).json()["constraints"]
    response = client.post(
        "/api/validate",
        json={"constraints": constraints, "layout": _scaled_layout(DIAGONAL_PAYLOAD)},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["passed"] is True
    assert data["violations"] == []


def test_validate_missing_element():
    constraints = client.post("/api/analyze", json={"tree": DIAGONAL_PAYLOAD}).json()["constraints"]
    layout = [n for n in _scaled_layout(DIAGONAL_PAYLOAD) if n["node_id"] != "flow3"]
    response = client.post("/api/validate", json={"constraints": constraints, "layout": layout})
    assert response.status_code == 200
    data = response.json()
    assert data["passed"] is False
    assert any(v["violation_type"] == "missing_elements" for v in data["violations"])


def test_validate_custom_reference_frame():
    constraints = client.post("/api/analyze", json={"tree": DIAGONAL_PAYLOAD}).json()["constraints"]
    response = client.post(
        "/api/validate",
        json={
            "constraints": constraints,
            "layout": _scaled_layout(DIAGONAL_PAYLOAD, 400, 400),
            "reference_frame": {"width": 400, "height": 400},
        },
    )
    assert response.status_code == 200
    assert response.json()["passed"] is True


def test_validate_empty_constraints():
    response = client.post(
        "/api/validate",
        json={"constraints": {"source_frame_id": "f"}, "layout": []},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["passed"] is True
    assert data["score"] == 1.0


def test_validate_uses_app_reference_frame():
    custom = TestClient(create_app(Settings(reference_width=400, reference_height=400)))
    constraints = custom.post("/api/analyze", json={"tree": DIAGONAL_PAYLOAD}).json()["constraints"]
    response = custom.post(
        "/api/validate",
        json={"constraints": constraints, "layout": _scaled_layout(DIAGONAL_PAYLOAD, 400, 400)},
    )
    assert response.status_code == 200
    assert response.json()["passed"] is True

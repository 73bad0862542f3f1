"""Tests for the tessellation API."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from py_tessellate.api.main import app

SQUARE = [{"x": 0, "y": 0}, {"x": 100, "y": 0}, {"x": 100, "y": 100}, {"x": 0, "y": 100}]


@pytest.fixture
def client():
    return TestClient(app)


class TestServiceEndpoints:
    """Test the informational endpoints."""

    def test_root(self, client):
        """Test the API description."""
        response = client.get("/")
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Tessellation API"
        assert "/tessellate" in body["endpoints"]

    def test_health(self, client):
        """Test the health check."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestTessellateEndpoint:
    """Test POST /tessellate."""

    def test_empty_square(self, client):
        """Test the five cells of a square without interior points."""
        response = client.post("/tessellate", json={"border": SQUARE, "point_count": 0})
        assert response.status_code == 200
        body = response.json()
        assert body["polygon_count"] == 5
        assert len(body["polygons"]) == 5
        assert body["total_area"] == pytest.approx(10000)
        assert body["border_area"] == pytest.approx(10000)
        assert body["river"] is None

    def test_seeded_request_reproducible(self, client):
        """Test that identical requests return identical cells."""
        payload = {"border": SQUARE, "point_count": 12, "seed": "api"}
        first = client.post("/tessellate", json=payload).json()
        second = client.post("/tessellate", json=payload).json()
        assert first["polygons"] == second["polygons"]
        assert first["polygon_count"] == 17

    def test_relaxed_with_river(self, client):
        """Test the optional relaxation and river."""
        payload = {"border": SQUARE, "point_count": 20, "seed": 5,
                   "relax_iterations": 2, "include_river": True, "ray_strategy": "ray"}
        response = client.post("/tessellate", json=payload)
        assert response.status_code == 200
        body = response.json()
        assert body["total_area"] == pytest.approx(10000)
        assert isinstance(body["river"], list)

    def test_too_few_vertices(self, client):
        """Test request validation of the border length."""
        response = client.post("/tessellate", json={"border": SQUARE[:2]})
        assert response.status_code == 422

    def test_unknown_ray_strategy(self, client):
        """Test request validation of the strategy name."""
        response = client.post("/tessellate", json={"border": SQUARE, "ray_strategy": "spiral"})
        assert response.status_code == 422

    def test_collinear_border(self, client):
        """Test that geometry errors map to 422."""
        border = [{"x": 0, "y": 0}, {"x": 5, "y": 5}, {"x": 10, "y": 10}]
        response = client.post("/tessellate", json={"border": border, "point_count": 3})
        assert response.status_code == 422
        assert "zero area" in response.json()["detail"]

    def test_deadline(self, client):
        """Test that an exhausted deadline maps to 504."""
        with patch("py_tessellate.api.main._deadline", return_value=0.0):
            response = client.post("/tessellate", json={"border": SQUARE, "point_count": 3})
        assert response.status_code == 504


class TestNestedEndpoint:
    """Test POST /tessellate/nested."""

    def test_two_levels(self, client):
        """Test that nested cells still cover the border."""
        payload = {"border": SQUARE, "point_counts": [2, 1], "seed": "nest"}
        response = client.post("/tessellate/nested", json=payload)
        assert response.status_code == 200
        body = response.json()
        assert body["polygon_count"] > 7
        assert body["total_area"] == pytest.approx(10000, rel=1e-6)
        assert body["border_area"] == pytest.approx(10000)

    def test_too_many_levels(self, client):
        """Test the level count limit."""
        payload = {"border": SQUARE, "point_counts": [1, 1, 1, 1, 1]}
        response = client.post("/tessellate/nested", json=payload)
        assert response.status_code == 422

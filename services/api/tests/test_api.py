"""
End-to-end tests for the placement endpoints.

Run with: pytest tests/test_api.py -v
"""
import pytest
from fastapi.testclient import TestClient

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from main import app

A4 = {"width": 595, "height": 842, "pageNumber": 1}


def _position(**overrides):
    data = {"x": 10, "y": 10, "width": 20, "height": 8, "pageNumber": 1, "recipientId": "r1"}
    data.update(overrides)
    return data


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "maxPositions": 500, "overlapThreshold": 0.2}


class TestValidateEndpoints:
    """Validation answers 200 with a structured result."""

    def test_valid(self, client):
        response = client.post("/positions/validate", json=_position())
        assert response.status_code == 200
        assert response.json()["isValid"] is True

    def test_out_of_bounds(self, client):
        response = client.post("/positions/validate", json=_position(x=95, y=95, width=10, height=10))
        body = response.json()
        assert response.status_code == 200
        assert body["isValid"] is False
        assert [e["kind"] for e in body["errors"]] == ["OUT_OF_BOUNDS", "OUT_OF_BOUNDS"]

    def test_missing_field(self, client):
        payload = _position()
        del payload["x"]
        body = client.post("/positions/validate", json=payload).json()
        assert body["isValid"] is False
        assert body["errors"][0]["kind"] == "MISSING_FIELD"
        assert body["errors"][0]["field"] == "x"

    def test_fractional_page_number(self, client):
        """A fractional page is classified by the validator, not rejected with 422."""
        response = client.post("/positions/validate", json=_position(pageNumber=1.5))
        assert response.status_code == 200
        body = response.json()
        assert body["isValid"] is False
        assert [e["kind"] for e in body["errors"]] == ["INVALID_PAGE_NUMBER"]

    def test_non_string_recipient(self, client):
        response = client.post("/positions/validate", json=_position(recipientId=5))
        assert response.status_code == 200
        body = response.json()
        assert body["isValid"] is False
        assert body["errors"][0]["kind"] == "MISSING_FIELD"
        assert body["errors"][0]["field"] == "recipient_id"

    def test_string_coordinate(self, client):
        body = client.post("/positions/validate", json=_position(x="10")).json()
        assert body["isValid"] is False
        assert body["errors"][0]["kind"] == "MISSING_FIELD"

    def test_batch_with_malformed_page(self, client):
        """A list page number is reported, not used as a grouping key."""
        response = client.post(
            "/positions/validate-batch",
            json={"positions": [_position(pageNumber=[1]), _position()]},
        )
        assert response.status_code == 200
        body = response.json()
        assert [e["kind"] for e in body["errors"]] == ["MISSING_FIELD"]
        assert body["errors"][0]["index"] == 1

    def test_batch_overlap(self, client):
        response = client.post(
            "/positions/validate-batch",
            json={"positions": [_position(), _position(recipientId="r2")]},
        )
        body = response.json()
        assert body["isValid"] is False
        assert [e["kind"] for e in body["errors"]] == ["OVERLAP"]

    def test_batch_cap(self, client):
        positions = [_position() for _ in range(501)]
        response = client.post("/positions/validate-batch", json={"positions": positions})
        assert response.status_code == 400
        assert response.json()["error"] == "PositionLimitError"


class TestConversionEndpoints:

    def test_to_pixel(self, client):
        response = client.post(
            "/positions/to-pixel",
            json={"positions": [_position(x=50, y=50)], "pages": [A4]},
        )
        assert response.status_code == 200
        assert response.json()["positions"] == [
            {"x": 297.5, "y": 421.0, "width": 119.0, "height": 67.36, "pageNumber": 1}
        ]

    def test_to_pixel_missing_page(self, client):
        response = client.post(
            "/positions/to-pixel",
            json={"positions": [_position(pageNumber=2)], "pages": [A4]},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "MissingPageDimensionsError"

    def test_to_percentage(self, client):
        response = client.post(
            "/positions/to-percentage",
            json={
                "positions": [{"x": 297.5, "y": 421, "width": 119, "height": 67.36, "pageNumber": 1}],
                "recipientIds": ["r1"],
                "pages": [A4],
            },
        )
        assert response.status_code == 200
        assert response.json()["positions"] == [
            {"x": 50.0, "y": 50.0, "width": 20.0, "height": 8.0, "pageNumber": 1, "recipientId": "r1"}
        ]

    def test_to_percentage_length_mismatch(self, client):
        response = client.post(
            "/positions/to-percentage",
            json={
                "positions": [{"x": 1, "y": 1, "width": 10, "height": 10, "pageNumber": 1}],
                "recipientIds": ["r1", "r2"],
                "pages": [A4],
            },
        )
        assert response.status_code == 400
        assert response.json()["error"] == "LengthMismatchError"


class TestConflictEndpoints:

    def test_full_overlap(self, client):
        square = _position(x=10, y=10, width=30, height=30)
        response = client.post(
            "/positions/conflicts",
            json={"candidate": square, "existing": [dict(square, id="a")]},
        )
        body = response.json()
        assert body["hasConflict"] is True
        assert body["conflicts"][0]["severity"] == "high"
        assert body["conflicts"][0]["conflictingPositionId"] == "a"

    def test_other_page_ignored(self, client):
        square = _position(x=10, y=10, width=30, height=30)
        response = client.post(
            "/positions/conflicts",
            json={"candidate": square, "existing": [dict(square, pageNumber=2)]},
        )
        assert response.json()["hasConflict"] is False

    def test_suggestions(self, client):
        response = client.post("/positions/suggestions", json={"pageNumber": 1})
        suggestions = response.json()["suggestions"]
        assert len(suggestions) == 10
        assert (suggestions[0]["x"], suggestions[0]["y"]) == (0, 0)
        assert suggestions[0]["pageNumber"] == 1

    def test_optimize(self, client):
        field = _position(x=80, y=0, width=20, height=10)
        response = client.post(
            "/positions/optimize",
            json={"positions": [field, field], "pageNumber": 1},
        )
        body = response.json()
        assert response.status_code == 200
        assert body["conflictFree"] is True
        assert body["remainingConflicts"] == 0
        assert body["iterations"] == 1
        assert (body["positions"][0]["x"], body["positions"][0]["y"]) == (0, 10)

from __future__ import annotations

from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

from app import main as main_module
from bgmi_core.inference import InferenceError, InferenceErrorKind
from bgmi_core.settings import Settings

SLOT_TEXT = 'Here: [{"slot_no": 4, "team_members": ["Alpha", "Bravo"]}, {"slot_no": 4, "team_members": ["Dup"]}]'
RESULT_ONE = '[{"rank": 1, "team_members": ["Alpha", "Bravo"], "finishes": [3, 4], "total_finishes": 7}]'
RESULT_TWO = '[{"rank": 1, "team_members": ["Other"], "finishes": [1]}, {"rank": 2, "team_members": ["Zed"], "finishes": [9]}]'


class _FakeClient:
    def __init__(self, responses: Dict[bytes, object]) -> None:
        self.responses = responses

    def invoke(self, image: bytes, instruction: str, mime_type: str = "image/jpeg") -> str:
        outcome = self.responses[image]
        if isinstance(outcome, Exception):
            raise outcome
        return str(outcome)


@pytest.fixture
def responses() -> Dict[bytes, object]:
    return {
        b"slot": SLOT_TEXT,
        b"result-1": RESULT_ONE,
        b"result-2": RESULT_TWO,
        b"prose": "Sorry, the image is blurry.",
        b"busy": InferenceError(InferenceErrorKind.UNAVAILABLE),
    }


@pytest.fixture
def client(responses):
    fake = _FakeClient(responses)
    main_module.app.dependency_overrides[main_module.settings] = lambda: Settings(
        api_key="test", image_delay_seconds=0.0, max_upload_bytes=64
    )
    main_module.app.dependency_overrides[main_module.inference_client] = lambda: fake
    yield TestClient(main_module.app)
    main_module.app.dependency_overrides.clear()


def _files(field: str, *contents: bytes) -> List[tuple]:
    return [(field, (f"image{index}.jpg", content, "image/jpeg")) for index, content in enumerate(contents)]


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_analyze_slots_dedupes(client: TestClient) -> None:
    response = client.post("/api/analyze-slots", files=_files("images", b"slot"))

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "data": [{"slot_no": 4, "team_members": ["Alpha", "Bravo"]}],
    }


def test_analyze_results_keys_colliding_ranks(client: TestClient) -> None:
    response = client.post("/api/analyze-results", files=_files("images", b"result-1", b"busy", b"result-2"))

    assert response.status_code == 200
    data = response.json()["data"]
    assert list(data) == ["1", "1_1", "2"]
    assert data["1"]["total_finishes"] == 7
    assert data["1_1"]["team_members"] == ["Other"]


def test_no_images_is_bad_request(client: TestClient) -> None:
    response = client.post("/api/analyze-results")

    assert response.status_code == 400
    assert response.json() == {"error": "No images uploaded"}


def test_too_large_image_is_rejected(client: TestClient) -> None:
    response = client.post("/api/analyze-slots", files=_files("images", b"x" * 65))

    assert response.status_code == 400
    assert "too large" in response.json()["error"]


def test_zero_yield_returns_error_with_details(client: TestClient) -> None:
    response = client.post("/api/analyze-results", files=_files("images", b"prose"))

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "No valid data extracted from images"
    assert "result information" in body["details"]


def test_overloaded_batch_returns_retry_hint(client: TestClient) -> None:
    response = client.post("/api/analyze-slots", files=_files("images", b"busy"))

    assert response.status_code == 503
    assert "overloaded" in response.json()["error"]


def test_points_table_requires_both_sets(client: TestClient) -> None:
    response = client.post("/api/points-table", files=_files("result_images", b"result-1"))

    assert response.status_code == 400
    assert response.json()["error"] == "Please upload both slot images and result images"


def test_points_table_orders_by_total_points(client: TestClient) -> None:
    files = _files("slot_images", b"slot") + _files("result_images", b"result-1", b"result-2")

    response = client.post("/api/points-table", files=files)

    assert response.status_code == 200
    rows = response.json()["data"]
    assert [(row["rank"], row["total_points"]) for row in rows] == [(1, 17), (2, 15), (1, 11)]
    assert all(row["slot_no"] is None for row in rows)


def test_points_table_joined_to_slots(client: TestClient) -> None:
    files = _files("slot_images", b"slot") + _files("result_images", b"result-1")

    response = client.post("/api/points-table?joinSlots=true", files=files)

    rows = response.json()["data"]
    assert rows == [
        {
            "slot_no": 4,
            "team_members": ["Alpha", "Bravo"],
            "total_finishes": 7,
            "position_points": 10,
            "total_points": 17,
            "rank": 1,
        }
    ]


def test_points_table_csv_download(client: TestClient) -> None:
    files = _files("slot_images", b"slot") + _files("result_images", b"result-1")

    response = client.post("/api/points-table.csv", files=files)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="bgmi_points_table.csv"' in response.headers["content-disposition"]
    assert response.text.split("\n") == [
        "Slot No,Team Members,Finishes,Position Points,Total Points",
        ',"Alpha, Bravo",7,10,17',
    ]


def test_too_many_images_is_rejected(client: TestClient) -> None:
    response = client.post("/api/analyze-slots", files=_files("images", *([b"slot"] * 11)))

    assert response.status_code == 400
    assert response.json() == {"error": "Too many images uploaded (maximum 10)"}


def test_unexpected_error_returns_error_object(responses) -> None:
    responses[b"crash"] = RuntimeError("extraction backend exploded")
    main_module.app.dependency_overrides[main_module.settings] = lambda: Settings(
        api_key="test", image_delay_seconds=0.0
    )
    main_module.app.dependency_overrides[main_module.inference_client] = lambda: _FakeClient(responses)
    try:
        client = TestClient(main_module.app, raise_server_exceptions=False)
        response = client.post("/api/analyze-results", files=_files("images", b"crash"))
    finally:
        main_module.app.dependency_overrides.clear()

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "extraction backend exploded"
    assert "Failed to analyze images" in body["details"]

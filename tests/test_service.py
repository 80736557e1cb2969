"""Tests for the HTTP service wrapping the analyzer."""

import base64

import numpy as np
import pytest
from fastapi.testclient import TestClient

from crack_analysis import __version__
from crack_analysis.config import AnalysisConfig
from crack_analysis.service import API_PREFIX, create_app


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app(AnalysisConfig(processing_threads=2)), raise_server_exceptions=False)


def test_health_reports_up(client: TestClient) -> None:
    response = client.get(f"{API_PREFIX}/health")

    assert response.status_code == 200
    assert response.json() == {"status": "UP", "service": "Crack Detection Service", "version": __version__}


def test_analyze_returns_result(client: TestClient, blotch_image: np.ndarray, png_bytes) -> None:
    files = {"image": ("blotch.png", png_bytes(blotch_image), "image/png")}

    response = client.post(f"{API_PREFIX}/analyze", files=files)

    assert response.status_code == 200
    body = response.json()
    assert body["cracksDetected"] is True
    assert body["crackCount"] == len(body["crackRegions"]) == 1
    assert body["severity"] == "High"
    assert base64.b64decode(body["processedImageBase64"]).startswith(b"\x89PNG")


def test_unsupported_format_is_a_bad_request(client: TestClient) -> None:
    files = {"image": ("crack.gif", b"GIF89a\x01\x00\x01\x00", "image/gif")}

    response = client.post(f"{API_PREFIX}/analyze", files=files)

    assert response.status_code == 400
    body = response.json()
    assert "gif" in body["error"]
    assert body["supportedFormats"] == ["jpg", "jpeg", "png", "bmp"]


def test_empty_upload_is_a_bad_request(client: TestClient) -> None:
    files = {"image": ("empty.png", b"", "image/png")}

    response = client.post(f"{API_PREFIX}/analyze", files=files)

    assert response.status_code == 400
    assert response.json() == {"error": "Please upload an image file"}


def test_missing_upload_is_a_bad_request(client: TestClient) -> None:
    response = client.post(f"{API_PREFIX}/analyze")

    assert response.status_code == 400


def test_internal_failure_is_reported_generically(uniform_image: np.ndarray, png_bytes) -> None:
    client = TestClient(create_app(AnalysisConfig(output_format="xyz")), raise_server_exceptions=False)
    files = {"image": ("plain.png", png_bytes(uniform_image), "image/png")}

    response = client.post(f"{API_PREFIX}/analyze", files=files)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to encode the processed image"}


def test_analyze_route_declares_response_model(client: TestClient) -> None:
    schema = client.get("/openapi.json").json()

    route = schema["paths"][f"{API_PREFIX}/analyze"]["post"]
    ok = route["responses"]["200"]["content"]["application/json"]["schema"]
    assert ok["$ref"].endswith("/AnalysisResponse")
    assert "crackRegions" in schema["components"]["schemas"]["AnalysisResponse"]["properties"]
    assert route["responses"]["400"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")

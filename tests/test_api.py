"""Tests for the PixelScope HTTP API."""

from __future__ import annotations

import io
import os
from typing import TYPE_CHECKING
from unittest.mock import patch

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import httpx
import pytest
from fastapi import FastAPI, status
from PIL import Image

from pixelscope.analysis.pool import AnalysisPool
from pixelscope.config import get_settings
from pixelscope.main import create_app


def _init_app_state(app: FastAPI, **env_overrides: str) -> None:
    """Manually initialize app state (ASGITransport does not trigger lifespan)."""
    with patch.dict(os.environ, env_overrides):
        settings = get_settings()
    app.state.settings = settings
    app.state.analysis_pool = AnalysisPool(settings)


async def _make_client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac
    pool: AnalysisPool = app.state.analysis_pool
    pool.shutdown()


def _png(color: tuple[int, int, int, int] = (255, 255, 255, 255), size: int = 16) -> bytes:
    out = io.BytesIO()
    Image.new("RGBA", (size, size), color).save(out, format="PNG")
    return out.getvalue()


@pytest.fixture()
def app() -> FastAPI:
    """Create a fresh app instance with default settings."""
    application = create_app()
    _init_app_state(application)
    return application


@pytest.fixture()
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    """Async HTTP client for testing the app."""
    async for ac in _make_client(app):
        yield ac


class TestHealthEndpoint:
    async def test_health_returns_ok(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/health")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "ok"
        assert data["concurrent_requests"] == 0
        assert data["queue_depth"] == 0


class TestCors:
    async def test_preflight_allows_any_origin_without_credentials(self, client: httpx.AsyncClient) -> None:
        response = await client.options(
            "/api/v1/health",
            headers={"Origin": "https://example.com", "Access-Control-Request-Method": "GET"},
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.headers["access-control-allow-origin"] == "*"
        assert "access-control-allow-credentials" not in response.headers


class TestFormatsEndpoint:
    async def test_default_formats(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/formats")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["formats"] == ["image/jpeg", "image/png", "image/webp", "image/gif"]
        assert data["max_file_size"] == 10 * 1024 * 1024

    async def test_formats_follow_settings(self) -> None:
        app = create_app()
        _init_app_state(app, PIXELSCOPE_SUPPORTED_FORMATS='["image/png"]')
        async for ac in _make_client(app):
            response = await ac.get("/api/v1/formats")
            assert response.json()["formats"] == ["image/png"]


class TestAnalyzeImageEndpoint:
    async def test_png_is_analyzed(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/v1/analyze-image",
            files={"file": ("white.png", io.BytesIO(_png()), "image/png")},
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["error_type"] is None
        assert data["content_type"] == "Simple Graphic or Icon"
        assert data["report"].startswith("Image Content Analysis:")
        assert "```mermaid" in data["report"]

    async def test_unsupported_format_falls_back_to_text(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/v1/analyze-image",
            files={"file": ("image.bmp", io.BytesIO(b"BM fake"), "image/bmp")},
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is False
        assert data["error_type"] == "UnsupportedFormat"
        assert data["content_type"] is None
        assert "- Note: Continuing with text-only analysis" in data["report"]

    async def test_corrupt_image_falls_back_to_text(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/v1/analyze-image",
            files={"file": ("broken.png", io.BytesIO(b"fake image data"), "image/png")},
        )
        data = response.json()
        assert data["success"] is False
        assert data["error_type"] == "DecodeFailure"
        assert "- Status: Unable to process image" in data["report"]

    async def test_oversized_upload_rejected(self) -> None:
        app = create_app()
        _init_app_state(app, PIXELSCOPE_MAX_FILE_SIZE="10")
        async for ac in _make_client(app):
            response = await ac.post(
                "/api/v1/analyze-image",
                files={"file": ("white.png", io.BytesIO(_png()), "image/png")},
            )
            data = response.json()
            assert data["success"] is False
            assert data["error_type"] == "SizeExceeded"

    async def test_timeout_falls_back_to_text(self, client: httpx.AsyncClient) -> None:
        with patch.object(AnalysisPool, "run", side_effect=TimeoutError):
            response = await client.post(
                "/api/v1/analyze-image",
                files={"file": ("white.png", io.BytesIO(_png()), "image/png")},
            )
        data = response.json()
        assert response.status_code == status.HTTP_200_OK
        assert data["success"] is False
        assert data["error_type"] == "AnalysisFailure"
        assert "- Reason: Image analysis timed out" in data["report"]

    async def test_missing_file_is_rejected(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/api/v1/analyze-image")
        assert response.status_code == 422


class TestAuthentication:
    async def test_no_auth_required_by_default(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/health")
        assert response.status_code == status.HTTP_200_OK

    async def test_auth_required_when_api_key_set(self) -> None:
        app = create_app()
        _init_app_state(app, PIXELSCOPE_API_KEY="test-secret-key")
        async for ac in _make_client(app):
            response = await ac.get("/api/v1/health")
            assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_auth_passes_with_bearer_token(self) -> None:
        app = create_app()
        _init_app_state(app, PIXELSCOPE_API_KEY="test-secret-key")
        async for ac in _make_client(app):
            response = await ac.get(
                "/api/v1/health",
                headers={"Authorization": "Bearer test-secret-key"},
            )
            assert response.status_code == status.HTTP_200_OK

    async def test_auth_passes_with_api_key_header(self) -> None:
        app = create_app()
        _init_app_state(app, PIXELSCOPE_API_KEY="test-secret-key")
        async for ac in _make_client(app):
            response = await ac.get("/api/v1/formats", headers={"X-API-Key": "test-secret-key"})
            assert response.status_code == status.HTTP_200_OK

    async def test_auth_fails_with_wrong_key(self) -> None:
        app = create_app()
        _init_app_state(app, PIXELSCOPE_API_KEY="test-secret-key")
        async for ac in _make_client(app):
            response = await ac.post(
                "/api/v1/analyze-image",
                files={"file": ("white.png", io.BytesIO(_png()), "image/png")},
                headers={"Authorization": "Bearer wrong-key"},
            )
            assert response.status_code == status.HTTP_401_UNAUTHORIZED

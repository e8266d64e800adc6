"""Shared pytest fixtures for Logoforge tests."""

import json
import random
import re
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from logoforge.api.main import create_app
from logoforge.core.config import LogoforgeConfig

# Tiny PNG-ish payload; the gateway never decodes the bytes.
FAKE_IMAGE_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR4nGNgYGD4DwABBAEAwS2OUAAAAABJRU5ErkJggg=="

_PROJECT_NAME = re.compile(r'Project Name: "(.*)"')


class FakeGemini:
    """Scriptable stand-in for the Gemini REST API.

    Used as an ``httpx.MockTransport`` handler.  By default it answers the
    analysis call with two variants that embed the project name found in the
    prompt, and the image call with a ``predictions`` payload.

    Attributes:
        calls: ``(path, json_body, query_params)`` for every request seen.
        text_status / image_status: HTTP status to answer with.
        text_fenced: Wrap the analysis JSON in a markdown code fence.
        text_raw: Replace the analysis text entirely.
        image_body: JSON body for successful image calls.
        fail_network: Raise ``httpx.ConnectError`` instead of answering.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any], dict[str, str]]] = []
        self.text_status = 200
        self.text_fenced = False
        self.text_raw: str | None = None
        self.image_status = 200
        self.image_body: dict[str, Any] = {
            "predictions": [{"bytesBase64Encoded": FAKE_IMAGE_B64, "mimeType": "image/png"}]
        }
        self.fail_network = False

    # --- Inspection ----------------------------------------------------------

    @property
    def text_calls(self) -> list[tuple[str, dict[str, Any], dict[str, str]]]:
        return [c for c in self.calls if c[0].endswith(":generateContent")]

    @property
    def image_calls(self) -> list[tuple[str, dict[str, Any], dict[str, str]]]:
        return [c for c in self.calls if c[0].endswith(":predict")]

    # --- Responses -----------------------------------------------------------

    def design_for(self, project_name: str) -> dict[str, Any]:
        return {
            "concept_summary": "هوية بصرية عصرية وبسيطة",
            "variants": [
                {
                    "id": 1,
                    "title": "تصميم عصري بسيط",
                    "prompt": f"Professional minimalist logo for '{project_name}', clean lines, white background",
                },
                {
                    "id": 2,
                    "title": "تصميم إبداعي فاخر",
                    "prompt": f"Luxurious creative logo for '{project_name}', elegant details, white background",
                },
            ],
            "colors": [{"name": "اللون الأساسي", "hex": "#4f46e5"}],
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        self.calls.append((request.url.path, body, dict(request.url.params)))

        if self.fail_network:
            raise httpx.ConnectError("connection refused", request=request)

        if request.url.path.endswith(":generateContent"):
            if self.text_status != 200:
                return httpx.Response(self.text_status, json={"error": {"message": "upstream"}})
            prompt = body["contents"][0]["parts"][0]["text"]
            match = _PROJECT_NAME.search(prompt)
            project_name = match.group(1) if match else "UNKNOWN"
            text = self.text_raw
            if text is None:
                text = json.dumps(self.design_for(project_name), ensure_ascii=False)
                if self.text_fenced:
                    text = f"```json\n{text}\n```"
            return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})

        if request.url.path.endswith(":predict"):
            if self.image_status != 200:
                return httpx.Response(self.image_status, json={"error": {"message": "upstream"}})
            return httpx.Response(200, json=self.image_body)

        return httpx.Response(404, json={"error": {"message": "not found"}})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep real credentials and overrides out of the tests."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("LOGOFORGE_GEMINI_API_KEY", raising=False)


@pytest.fixture
def test_config() -> LogoforgeConfig:
    """Configuration with a fake credential and default limits.

    Returns:
        LogoforgeConfig instance for testing
    """
    return LogoforgeConfig(
        _env_file=None,
        gemini_api_key="test-key",
        client_initial_backoff_ms=0,
    )


@pytest.fixture
def unconfigured_config() -> LogoforgeConfig:
    """Configuration without a provider credential."""
    return LogoforgeConfig(_env_file=None, gemini_api_key=None)


@pytest.fixture
def fake_gemini() -> FakeGemini:
    """Scriptable fake of the Gemini API."""
    return FakeGemini()


@pytest.fixture
def seeded_rng() -> random.Random:
    """Deterministic random source for fallback seeds."""
    return random.Random(1234)


@pytest.fixture
def gateway_app(test_config, fake_gemini, seeded_rng):
    """Gateway app whose outbound calls go to ``fake_gemini``."""
    return create_app(test_config, http_client=fake_gemini.client(), rng=seeded_rng)


@pytest.fixture
def test_client(gateway_app) -> TestClient:
    """FastAPI TestClient for the gateway."""
    return TestClient(gateway_app)


@pytest.fixture
def sample_design() -> dict[str, Any]:
    """A valid design result payload."""
    return FakeGemini().design_for("SKYLINE")

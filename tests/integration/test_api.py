"""Integration tests for logoforge.api.main - the gateway endpoints.

All tests use the FastAPI TestClient with outbound Gemini traffic routed to
the ``fake_gemini`` mock transport.  Tests cover:

- ``POST /generate-analysis`` - validation, rate limiting, provider errors.
- ``POST /generate-image`` - primary image, fallback, rate limiting.
- ``OPTIONS`` and disallowed methods on both paths.
- ``GET /health`` - liveness.
- CORS headers on every response.
"""

from __future__ import annotations

from urllib.parse import urlparse

import pytest
from fastapi.testclient import TestClient

from logoforge.api.main import create_app
from logoforge.providers import GeminiImageProvider, PollinationsImageProvider

ANALYSIS = "/generate-analysis"
IMAGE = "/generate-image"
BRIEF = {"projectName": "SKYLINE", "inputText": "modern minimal"}


# ---------------------------------------------------------------------------
# Method handling and CORS.
# ---------------------------------------------------------------------------


class TestMethods:
    """Only POST and OPTIONS are accepted on the generation paths."""

    @pytest.mark.parametrize("path", [ANALYSIS, IMAGE])
    def test_options_empty_200(self, test_client, path):
        """A bare OPTIONS request should return an empty 200."""
        resp = test_client.options(path)
        assert resp.status_code == 200
        assert resp.content == b""
        assert resp.headers["access-control-allow-origin"] == "*"

    @pytest.mark.parametrize("path", [ANALYSIS, IMAGE])
    @pytest.mark.parametrize("method", ["get", "put", "delete"])
    def test_other_methods_405(self, test_client, fake_gemini, path, method):
        """Methods other than POST and OPTIONS should return 405."""
        resp = getattr(test_client, method)(path)
        assert resp.status_code == 405
        assert resp.json()["error"] == "Method not allowed"
        assert resp.headers["access-control-allow-origin"] == "*"
        assert fake_gemini.calls == []

    @pytest.mark.parametrize("path", [ANALYSIS, IMAGE])
    @pytest.mark.parametrize("requested", ["POST", "PUT", "GET"])
    def test_browser_preflight(self, test_client, fake_gemini, path, requested):
        """A browser preflight should get an empty 200 with allow headers."""
        resp = test_client.options(
            path,
            headers={
                "Origin": "https://example.com",
                "Access-Control-Request-Method": requested,
                "Access-Control-Request-Headers": "content-type",
            },
        )
        assert resp.status_code == 200
        assert resp.content == b""
        assert resp.headers["access-control-allow-origin"] == "*"
        assert "POST" in resp.headers["access-control-allow-methods"]
        assert "Content-Type" in resp.headers["access-control-allow-headers"]
        assert fake_gemini.calls == []

    def test_options_on_health_not_allowed(self, test_client):
        """OPTIONS is only answered on the generation paths."""
        assert test_client.options("/health").status_code == 405

    def test_cors_header_on_errors(self, test_client):
        """Error responses should carry the wildcard origin too."""
        resp = test_client.post(ANALYSIS, json={})
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_cors_header_with_origin(self, test_client):
        """Cross-origin POSTs should carry the wildcard origin."""
        resp = test_client.post(ANALYSIS, json=BRIEF, headers={"Origin": "https://example.com"})
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"


# ---------------------------------------------------------------------------
# Application wiring.
# ---------------------------------------------------------------------------


class TestAppState:
    """The factory builds image providers through the provider registry."""

    def test_image_chain_providers(self, gateway_app):
        """Primary should be Gemini and fallback Pollinations."""
        chain = gateway_app.state.image_chain
        assert isinstance(chain.primary, GeminiImageProvider)
        assert isinstance(chain.fallback, PollinationsImageProvider)
        assert chain.fallback.size == 1024


# ---------------------------------------------------------------------------
# Design analysis.
# ---------------------------------------------------------------------------


class TestGenerateAnalysis:
    """Test POST /generate-analysis."""

    def test_success(self, test_client, fake_gemini):
        """A complete brief should return two variants naming the project."""
        resp = test_client.post(ANALYSIS, json=BRIEF)
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["variants"]) == 2
        assert all("SKYLINE" in v["prompt"] for v in data["variants"])
        assert data["colors"][0]["hex"] == "#4f46e5"
        assert len(fake_gemini.text_calls) == 1

    def test_fenced_json_is_parsed(self, test_client, fake_gemini):
        """JSON wrapped in a markdown fence should still parse."""
        fake_gemini.text_fenced = True
        resp = test_client.post(ANALYSIS, json=BRIEF)
        assert resp.status_code == 200
        assert resp.json()["variants"][1]["id"] == 2

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"projectName": "SKYLINE"},
            {"inputText": "modern minimal"},
            {"projectName": "", "inputText": "modern minimal"},
            {"projectName": "SKYLINE", "inputText": "   "},
        ],
    )
    def test_missing_fields_400(self, test_client, fake_gemini, body):
        """Missing fields are rejected without calling the provider."""
        resp = test_client.post(ANALYSIS, json=body)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing required fields"
        assert fake_gemini.calls == []

    def test_malformed_json_400(self, test_client, fake_gemini):
        """An unparseable body should return 400, not 422."""
        resp = test_client.post(
            ANALYSIS, content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert resp.status_code == 400
        assert fake_gemini.calls == []

    def test_missing_credential_500(self, unconfigured_config, fake_gemini):
        """Without a credential the gateway should report a config error."""
        app = create_app(unconfigured_config, http_client=fake_gemini.client())
        resp = TestClient(app).post(ANALYSIS, json=BRIEF)
        assert resp.status_code == 500
        assert resp.json()["error"] == "Server configuration error"
        assert fake_gemini.calls == []

    @pytest.mark.parametrize("status", [403, 429, 500])
    def test_upstream_error_500_with_details(self, test_client, fake_gemini, status):
        """Provider errors should surface as 500 with the upstream status in details."""
        fake_gemini.text_status = status
        resp = test_client.post(ANALYSIS, json=BRIEF)
        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "Generation failed"
        assert body["details"] == f"Gemini API error: {status}"
        assert body["message"]

    def test_unparseable_answer_500(self, test_client, fake_gemini):
        """Non-JSON provider text should return 500."""
        fake_gemini.text_raw = "not json at all"
        resp = test_client.post(ANALYSIS, json=BRIEF)
        assert resp.status_code == 500
        assert "Invalid JSON" in resp.json()["details"]


class TestAnalysisRateLimit:
    """Ten analysis requests per client per window."""

    def test_eleventh_request_429(self, test_client, fake_gemini):
        """The eleventh request in a window should be rejected."""
        for _ in range(10):
            assert test_client.post(ANALYSIS, json=BRIEF).status_code == 200
        resp = test_client.post(ANALYSIS, json=BRIEF)
        assert resp.status_code == 429
        assert resp.json()["retryAfter"] == 60
        assert len(fake_gemini.text_calls) == 10

    def test_limit_applies_before_validation(self, test_client, fake_gemini):
        """Invalid requests consume budget too."""
        for _ in range(10):
            test_client.post(ANALYSIS, json={})
        assert test_client.post(ANALYSIS, json=BRIEF).status_code == 429
        assert fake_gemini.calls == []

    def test_clients_identified_by_forwarded_for(self, test_client):
        """Each first X-Forwarded-For address should get its own budget."""
        first = {"X-Forwarded-For": "203.0.113.5, 10.0.0.1"}
        for _ in range(10):
            test_client.post(ANALYSIS, json=BRIEF, headers=first)
        assert test_client.post(ANALYSIS, json=BRIEF, headers=first).status_code == 429
        other = {"X-Forwarded-For": "198.51.100.7"}
        assert test_client.post(ANALYSIS, json=BRIEF, headers=other).status_code == 200

    def test_real_ip_header(self, test_client):
        """X-Real-IP should identify clients when X-Forwarded-For is absent."""
        for _ in range(10):
            test_client.post(ANALYSIS, json=BRIEF, headers={"X-Real-IP": "192.0.2.1"})
        assert test_client.post(ANALYSIS, json=BRIEF, headers={"X-Real-IP": "192.0.2.1"}).status_code == 429
        assert test_client.post(ANALYSIS, json=BRIEF).status_code == 200

    def test_limiters_are_separate(self, test_client):
        """Exhausting the analysis budget should not affect images."""
        for _ in range(10):
            test_client.post(ANALYSIS, json=BRIEF)
        resp = test_client.post(IMAGE, json={"prompt": "logo"})
        assert resp.status_code == 200


# ---------------------------------------------------------------------------
# Image generation.
# ---------------------------------------------------------------------------


class TestGenerateImage:
    """Test POST /generate-image."""

    def test_primary_image(self, test_client, fake_gemini):
        """A configured primary should return a data URI."""
        resp = test_client.post(IMAGE, json={"prompt": "logo for SKYLINE"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["source"] == "gemini"
        assert data["image"].startswith("data:image/png;base64,")
        assert len(fake_gemini.image_calls) == 1

    def test_upstream_failure_falls_back(self, test_client, fake_gemini):
        """A primary 500 should fall back to a Pollinations URL."""
        fake_gemini.image_status = 500
        resp = test_client.post(IMAGE, json={"prompt": "logo for SKYLINE"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["source"] == "pollinations"
        parsed = urlparse(data["image"])
        assert parsed.netloc == "image.pollinations.ai"
        assert "width=1024" in parsed.query

    def test_no_image_data_falls_back(self, test_client, fake_gemini):
        """A primary response without image bytes should fall back."""
        fake_gemini.image_body = {"predictions": []}
        resp = test_client.post(IMAGE, json={"prompt": "logo"})
        assert resp.json()["source"] == "pollinations"

    def test_use_gemini_false_skips_primary(self, test_client, fake_gemini):
        """useGemini false should never call the primary."""
        resp = test_client.post(IMAGE, json={"prompt": "logo", "useGemini": False})
        assert resp.json()["source"] == "pollinations"
        assert fake_gemini.image_calls == []

    def test_no_credential_falls_back(self, unconfigured_config, fake_gemini):
        """Without a credential images should still be served."""
        app = create_app(unconfigured_config, http_client=fake_gemini.client())
        resp = TestClient(app).post(IMAGE, json={"prompt": "logo"})
        assert resp.status_code == 200
        assert resp.json()["source"] == "pollinations"
        assert fake_gemini.calls == []

    def test_repeated_fallback_urls_differ(self, test_client):
        """The same prompt twice should give two different URLs."""
        body = {"prompt": "logo", "useGemini": False}
        first = test_client.post(IMAGE, json=body).json()["image"]
        second = test_client.post(IMAGE, json=body).json()["image"]
        assert first != second

    @pytest.mark.parametrize("body", [{}, {"prompt": ""}, {"prompt": "  "}, {"useGemini": True}])
    def test_missing_prompt_400(self, test_client, fake_gemini, body):
        """A missing or blank prompt should return 400."""
        resp = test_client.post(IMAGE, json=body)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing prompt"
        assert fake_gemini.calls == []

    def test_rate_limit(self, test_client):
        """The twenty-first image request in a window should be rejected."""
        body = {"prompt": "logo", "useGemini": False}
        for _ in range(20):
            assert test_client.post(IMAGE, json=body).status_code == 200
        resp = test_client.post(IMAGE, json=body)
        assert resp.status_code == 429
        assert resp.json()["retryAfter"] == 60


class TestHealth:
    """Test GET /health."""

    def test_health(self, test_client):
        """Health should report ok and the credential status."""
        resp = test_client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["gemini_configured"] is True

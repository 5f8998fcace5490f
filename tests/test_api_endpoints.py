"""
Integration tests for the HTTP API.

The app is built with the real scan pipeline wired to in-process browser
and text generation fakes.
"""

from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from playwright.async_api import Error as PlaywrightError

from a11y_scanner.api.main import create_app
from a11y_scanner.api.routers.scans import get_client_identity
from a11y_scanner.core.config import Config, EnrichmentConfig, RateLimitConfig, ScanConfig
from a11y_scanner.services.rate_limiter import RateLimiter
from conftest import FakePage, FakePlaywrightFactory, build_scan_service, make_violation


@pytest.fixture
def config() -> Config:
    return Config(
        environment='test',
        scan=ScanConfig(stealth=False),
        enrichment=EnrichmentConfig(api_key=None),
        rate_limit=RateLimitConfig(requests_per_minute=2),
    )


@pytest.fixture
def factory() -> FakePlaywrightFactory:
    return FakePlaywrightFactory(page=FakePage(axe_payload={
        "violations": [
            make_violation("image-alt", "critical"),
            make_violation("color-contrast", "serious"),
        ],
        "passes": [make_violation("html-has-lang", None)],
        "incomplete": [],
    }))


@pytest.fixture
def app(config, factory):
    application = create_app(config)
    limiter = RateLimiter(max_requests=config.rate_limit.requests_per_minute, window_seconds=60)
    application.state.rate_limiter = limiter
    application.state.scan_service = build_scan_service(config.scan, factory, rate_limiter=limiter)
    return application


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_scan_success(client: AsyncClient):
    response = await client.post("/scan", json={"url": "example.com"})

    assert response.status_code == 200
    data = response.json()
    assert data["url"] == "https://example.com"
    assert data["stats"] == {"total": 2, "critical": 1, "serious": 1, "moderate": 0, "minor": 0}
    assert len(data["violations"]) == 2
    assert all(v["aiExplanation"] for v in data["violations"])
    assert data["summary"].startswith("Found 2 accessibility issues")
    assert data["improvementPlan"]
    assert data["performance"]["unit"] == "ms"
    assert data["requestId"] == response.headers["X-Request-ID"]
    assert response.headers["X-RateLimit-Limit"] == "2"
    assert response.headers["X-RateLimit-Remaining"] == "1"


@pytest.mark.asyncio
async def test_request_id_header_is_used(client: AsyncClient):
    response = await client.post(
        "/scan",
        json={"url": "https://example.com"},
        headers={"X-Request-ID": "req-123"}
    )

    assert response.headers["X-Request-ID"] == "req-123"
    assert response.json()["requestId"] == "req-123"


@pytest.mark.asyncio
async def test_missing_url(client: AsyncClient, factory):
    response = await client.post("/scan", json={})

    assert response.status_code == 400
    assert response.json()["error"] == "URL is required"
    assert factory.start_calls == 0


@pytest.mark.asyncio
async def test_empty_body(client: AsyncClient):
    response = await client.post("/scan")

    assert response.status_code == 400
    assert response.json()["error"] == "URL is required"


@pytest.mark.asyncio
async def test_invalid_url(client: AsyncClient, factory):
    response = await client.post("/scan", json={"url": "not a url"})

    assert response.status_code == 400
    assert "valid URL" in response.json()["error"]
    assert factory.start_calls == 0


@pytest.mark.asyncio
async def test_malformed_body(client: AsyncClient):
    response = await client.post(
        "/scan",
        content=b"{not json",
        headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_wrong_url_type(client: AsyncClient):
    response = await client.post("/scan", json={"url": 42})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_rate_limited(client: AsyncClient, factory):
    for _ in range(2):
        assert (await client.post("/scan", json={"url": "example.com"})).status_code == 200

    response = await client.post("/scan", json={"url": "example.com"})

    assert response.status_code == 429
    data = response.json()
    assert 1 <= data["retryAfter"] <= 60
    assert response.headers["Retry-After"] == str(data["retryAfter"])
    assert "Too many scan requests" in data["error"]
    assert factory.start_calls == 2


@pytest.mark.asyncio
async def test_forwarded_clients_limited_separately(client: AsyncClient):
    for ip in ("198.51.100.1", "198.51.100.2"):
        for _ in range(2):
            response = await client.post(
                "/scan", json={"url": "example.com"}, headers={"X-Forwarded-For": ip}
            )
            assert response.status_code == 200


@pytest.mark.asyncio
async def test_scan_failure(app, config):
    factory = FakePlaywrightFactory(page=FakePage(goto_outcomes=[
        PlaywrightError("net::ERR_NAME_NOT_RESOLVED at https://nonexistent.invalid/")
    ]))
    app.state.scan_service = build_scan_service(config.scan, factory)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.post("/scan", json={"url": "nonexistent.invalid"})

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "Could not find that website. Please check the URL and try again."
    assert data["requestId"]
    assert data["timestamp"]
    assert factory.browser.close_calls == 1


@pytest.mark.asyncio
async def test_get_scan_not_allowed(client: AsyncClient):
    response = await client.get("/scan")

    assert response.status_code == 405
    assert response.json()["error"] == "Use POST method with { url: '...' }"


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["components"]["enrichment"]["status"] == "degraded"
    assert data["components"]["rate_limiter"]["status"] == "healthy"


@pytest.mark.asyncio
async def test_metrics(client: AsyncClient):
    await client.post("/scan", json={"url": "example.com"})

    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "a11y_scans_total" in response.text
    assert "a11y_api_requests_total" in response.text


def test_client_identity_precedence():
    def request(headers, host="10.0.0.1"):
        return SimpleNamespace(headers=headers, client=SimpleNamespace(host=host))

    assert get_client_identity(request({"x-forwarded-for": "1.1.1.1, 10.0.0.2"})) == "ip:1.1.1.1"
    assert get_client_identity(request({"x-real-ip": "2.2.2.2"})) == "ip:2.2.2.2"
    assert get_client_identity(request({})) == "ip:10.0.0.1"
    assert get_client_identity(SimpleNamespace(headers={}, client=None)) == "ip:unknown"

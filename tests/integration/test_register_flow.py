"""
Integration tests for the waitlist registration flow.

Runs the real application (lifespan included) with the in-memory
registry and console notification transport.
"""

import logging
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from src.api.main import app
from src.config.settings import get_settings


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    """Start the app with memory storage and console notifications."""
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("EMAIL_TRANSPORT", "console")
    monkeypatch.setenv("ADMIN_EMAIL", "ops@example.com")
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "3")
    get_settings.cache_clear()

    with TestClient(app) as test_client:
        yield test_client

    get_settings.cache_clear()


class TestRegisterFlow:
    """End-to-end tests for POST /v1/waitlist and the query endpoints."""

    def test_full_registration_flow(
        self, client: TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Join, then both notifications appear in the console transport logs."""
        with caplog.at_level(logging.INFO):
            response = client.post(
                "/v1/waitlist",
                json={"email": "integration@example.com", "telegram": "tg_user"},
            )
            client.app.state.dispatcher.shutdown(wait=True)

        assert response.status_code == 201
        assert response.json()["data"]["telegram"] == "@tg_user"
        assert "Template: admin_alert" in caplog.text
        assert "To: ops@example.com" in caplog.text
        assert "Template: welcome" in caplog.text
        assert "To: integration@example.com" in caplog.text

    def test_email_normalization_through_stack(self, client: TestClient) -> None:
        first = client.post("/v1/waitlist", json={"email": "  USER@Example.COM  "})
        second = client.post("/v1/waitlist", json={"email": "user@example.com"})

        assert first.status_code == 201
        assert first.json()["data"]["email"] == "user@example.com"
        assert second.status_code == 200
        assert second.json()["existingPosition"] == 1

    def test_position_and_stats_after_joins(self, client: TestClient) -> None:
        client.post("/v1/waitlist", json={"email": "a@example.com"})
        client.post("/v1/waitlist", json={"email": "b@example.com"})

        position = client.get("/v1/waitlist/position/b@example.com")
        stats = client.get("/v1/waitlist/stats")

        assert position.json()["position"] == 2
        assert stats.json()["total"] == 2
        assert [s["email"] for s in stats.json()["recentSubmissions"]] == [
            "b@example.com",
            "a@example.com",
        ]

    def test_rate_limit_from_settings(self, client: TestClient) -> None:
        for i in range(3):
            client.post("/v1/waitlist", json={"email": f"r{i}@example.com"})

        response = client.post("/v1/waitlist", json={"email": "r3@example.com"})

        assert response.status_code == 429
        assert "Retry-After" in response.headers

    def test_missing_email_structured_rejection(self, client: TestClient) -> None:
        response = client.post("/v1/waitlist", json={"twitter": "bob"})

        assert response.status_code == 422
        assert response.json() == {"kind": "missing_email", "message": "Email is required"}

    def test_oversized_field_structured_rejection(self, client: TestClient) -> None:
        response = client.post(
            "/v1/waitlist", json={"email": "big@example.com", "discord": "x" * 101}
        )

        assert response.status_code == 422
        assert response.json() == {"kind": "invalid_input", "message": "Invalid request data"}

    def test_notification_status_reports_console(self, client: TestClient) -> None:
        response = client.get("/v1/waitlist/notifications/status")

        assert response.json()["configured"] is True
        assert response.json()["transport"] == "ConsoleNotificationSender"
        assert response.json()["adminEmail"] == "ops@example.com"

    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json() == {"status": "healthy"}


class TestUnconfiguredTransport:
    """EmailJS selected without credentials: registration still succeeds."""

    def test_join_without_email_configuration(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        monkeypatch.setenv("EMAIL_TRANSPORT", "emailjs")
        for name in (
            "EMAILJS_PUBLIC_KEY",
            "EMAILJS_SERVICE_ID",
            "EMAILJS_ADMIN_TEMPLATE_ID",
            "EMAILJS_WELCOME_TEMPLATE_ID",
        ):
            monkeypatch.setenv(name, "")
        get_settings.cache_clear()

        try:
            with caplog.at_level(logging.WARNING), TestClient(app) as client:
                response = client.post("/v1/waitlist", json={"email": "quiet@example.com"})
                status = client.get("/v1/waitlist/notifications/status").json()
        finally:
            get_settings.cache_clear()

        assert response.status_code == 201
        assert status["configured"] is False
        assert "EMAILJS_PUBLIC_KEY" in caplog.text

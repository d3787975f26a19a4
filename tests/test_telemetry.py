from fastapi import FastAPI

from app.core.telemetry import setup_telemetry, untraced_urls


def test_untraced_urls_cover_health_and_uploads():
    assert untraced_urls().split(",") == ["v1/health", "uploads/.*"]


def test_setup_telemetry_is_noop_when_disabled():
    app = FastAPI()

    assert setup_telemetry(app) is False
    assert not getattr(app, "_is_instrumented_by_opentelemetry", False)

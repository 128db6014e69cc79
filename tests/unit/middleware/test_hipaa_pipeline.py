"""Test the HIPAA request pipeline end to end."""

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient
from structlog.testing import capture_logs

from phiguard.audit.models import Actor
from phiguard.config.base import ComplianceConfig, DataHandlingConfig
from phiguard.middleware.hipaa_pipeline import (
    ContextInterceptor,
    HIPAAComplianceMiddleware,
    HIPAAPipeline,
    RequestInterceptor,
)
from phiguard.middleware.security_headers import HIPAA_SECURITY_HEADERS


async def show_context(request: Request, context) -> JSONResponse:
    return JSONResponse({"actor_id": context.actor_id, "ip": context.ip_address})


async def explode(request: Request, context) -> JSONResponse:
    raise RuntimeError("lookup failed for 123-45-6789")


def build_app(config: ComplianceConfig) -> FastAPI:
    pipeline = HIPAAPipeline(config)
    app = FastAPI()
    app.add_route("/records", pipeline.endpoint(show_context), methods=["GET"])
    app.add_route("/boom", pipeline.endpoint(explode), methods=["GET"])
    return app


@pytest.fixture
def client(compliance_config):
    return TestClient(build_app(compliance_config))


def assert_hardened(response):
    for name, value in HIPAA_SECURITY_HEADERS.items():
        assert response.headers[name] == value


@pytest.mark.hipaa_required
class TestHIPAAPipeline:
    """Test URL validation, context, containment and hardening."""

    def test_success_is_hardened(self, client):
        response = client.get("/records", headers={"X-Forwarded-For": "203.0.113.7"})

        assert response.status_code == 200
        assert response.json() == {"actor_id": "anonymous", "ip": "203.0.113.7"}
        assert_hardened(response)
        assert response.headers["Cache-Control"] == "no-store, no-cache, must-revalidate, private"

    def test_phi_in_url_rejected(self, client):
        with capture_logs() as logs:
            response = client.get("/records?ssn=123-45-6789")

        assert response.status_code == 400
        assert response.json() == {
            "error": "Request rejected: PHI should not be included in URL parameters"
        }
        assert_hardened(response)
        assert logs[0]["event"] == "phi_in_url_rejected"
        assert "123-45-6789" not in str(logs)

    def test_phi_in_url_warns_when_prevention_disabled(self):
        config = ComplianceConfig(data_handling=DataHandlingConfig(prevent_phi_in_urls=False))
        client = TestClient(build_app(config))

        with capture_logs() as logs:
            response = client.get("/records?ssn=123-45-6789")

        assert response.status_code == 200
        assert logs[0]["event"] == "phi_in_url_detected"
        assert logs[0]["log_level"] == "warning"

    def test_handler_failure_contained(self, client):
        with capture_logs() as logs:
            response = client.get("/boom")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert "123-45-6789" not in response.text
        assert "RuntimeError" not in response.text
        assert_hardened(response)
        assert logs[0]["event"] == "hipaa_request_failed"
        assert logs[0]["error_type"] == "RuntimeError"

    def test_authenticated_actor_in_context(self, compliance_config):
        def header_authenticator(request):
            user_id = request.headers.get("x-user")
            return Actor(id=user_id) if user_id else None

        pipeline = HIPAAPipeline(compliance_config, authenticator=header_authenticator)
        app = FastAPI()
        app.add_route("/records", pipeline.endpoint(show_context), methods=["GET"])

        response = TestClient(app).get("/records", headers={"x-user": "doc-1"})

        assert response.json()["actor_id"] == "doc-1"

    def test_interceptor_order(self, compliance_config):
        """Interceptors run outermost first."""
        calls = []

        class Tracing(RequestInterceptor):
            def __init__(self, name):
                self.name = name

            async def intercept(self, request, call_next):
                calls.append(self.name)
                return await call_next(request)

        pipeline = HIPAAPipeline(
            compliance_config,
            interceptors=[Tracing("outer"), ContextInterceptor(), Tracing("inner")],
        )
        app = FastAPI()
        app.add_route("/records", pipeline.endpoint(show_context), methods=["GET"])

        TestClient(app).get("/records")

        assert calls == ["outer", "inner"]


@pytest.mark.hipaa_required
class TestHIPAAComplianceMiddleware:
    """Test the application-wide middleware form."""

    @pytest.fixture
    def app(self, compliance_config):
        app = FastAPI()
        app.add_middleware(HIPAAComplianceMiddleware, config=compliance_config)

        @app.get("/patients/{patient_id}")
        async def get_patient(patient_id: str, request: Request):
            return {"id": patient_id, "actor": request.state.hipaa_context.actor_id}

        @app.get("/fail")
        async def fail():
            raise RuntimeError("boom")

        return app

    def test_every_response_hardened(self, app):
        response = TestClient(app).get("/patients/p1")

        assert response.status_code == 200
        assert response.json() == {"id": "p1", "actor": "anonymous"}
        assert_hardened(response)

    def test_rejects_phi_query(self, app):
        response = TestClient(app).get("/patients/p1?dob=05/15/1990")

        assert response.status_code == 400
        assert_hardened(response)

    def test_handler_failure_is_generic(self, app):
        response = TestClient(app, raise_server_exceptions=False).get("/fail")

        assert response.status_code == 500
        assert "boom" not in response.text

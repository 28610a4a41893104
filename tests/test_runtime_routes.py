from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, UploadFile
from fastapi.testclient import TestClient

from citation_autofill.api.errors import ApiError
from citation_autofill.api.http_setup import register_exception_handlers, register_http_middleware
from citation_autofill.api.runtime_routes import RuntimeRouteDeps, register_runtime_routes
from citation_autofill.core.config import (
    AppConfig,
    AutofillConfig,
    DocumentAIConfig,
    LoggingConfig,
    SecurityConfig,
)
from citation_autofill.documents.upload_service import UploadService
from citation_autofill.extraction.field_extractor import ExtractedField

LOGGER = logging.getLogger(__name__)


class _DummyUploadService:
    def __init__(self) -> None:
        self.received: tuple[str, bytes, str | None] | None = None

    async def process_upload(self, *, file: UploadFile | None) -> dict[str, Any]:
        if file is None:
            raise ApiError(status_code=400, error="No file provided")
        content = await file.read()
        self.received = (file.filename or "", content, file.content_type)
        return {
            "success": True,
            "text": "Citation Number: ABC123456",
            "extractedFields": [
                {"label": "Citation Number", "value": "ABC123456", "confidence": 0.8}
            ],
            "processingTime": 12,
        }


class _DummyFormFillService:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    async def fill_form(
        self,
        *,
        extracted_fields: list[ExtractedField],
        preview_mode: bool = True,
        form_url: str | None = None,
    ) -> dict[str, Any]:
        self.calls.append(
            {"fields": extracted_fields, "preview_mode": preview_mode, "form_url": form_url}
        )
        if not extracted_fields:
            raise ApiError(status_code=400, error="No extracted fields provided")
        return {"success": True, "message": "Form filling completed"}


def _config() -> AppConfig:
    return AppConfig(
        document_ai=DocumentAIConfig(project_id="p", processor_id="q", location="us"),
        autofill=AutofillConfig(),
        logging=LoggingConfig(level="INFO"),
        security=SecurityConfig(
            cors_allowed_origins=["http://localhost:3000"],
            request_max_bytes=1024,
            upload_max_bytes=512,
        ),
    )


def _build_app() -> tuple[FastAPI, _DummyUploadService, _DummyFormFillService]:
    app = FastAPI()
    upload_service = _DummyUploadService()
    form_fill_service = _DummyFormFillService()
    register_http_middleware(app, config=_config(), logger=LOGGER)
    register_exception_handlers(app, logger=LOGGER)
    register_runtime_routes(
        app,
        deps=RuntimeRouteDeps(
            upload_service=upload_service,
            form_fill_service=form_fill_service,
        ),
    )
    return app, upload_service, form_fill_service


def test_health_endpoint() -> None:
    app, _, _ = _build_app()

    response = TestClient(app).get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_process_document_passes_upload_to_service() -> None:
    app, upload_service, _ = _build_app()

    response = TestClient(app).post(
        "/api/process-document",
        files={"file": ("ticket.png", b"\x89PNG-bytes", "image/png")},
    )

    assert response.status_code == 200
    assert response.json()["extractedFields"][0]["value"] == "ABC123456"
    assert upload_service.received == ("ticket.png", b"\x89PNG-bytes", "image/png")


def test_process_document_without_file_returns_400() -> None:
    app, _, _ = _build_app()

    response = TestClient(app).post("/api/process-document")

    assert response.status_code == 400
    assert response.json() == {"error": "No file provided"}


def test_fill_form_converts_request_and_defaults_to_preview() -> None:
    app, _, form_fill_service = _build_app()

    response = TestClient(app).post(
        "/api/fill-form",
        json={
            "extractedFields": [
                {"label": "Citation Number", "value": "ABC123456", "confidence": 0.8}
            ],
            "formUrl": "https://forms.example.test/appeal",
        },
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Form filling completed"
    call = form_fill_service.calls[0]
    assert call["fields"] == [ExtractedField("Citation Number", "ABC123456", 0.8)]
    assert call["preview_mode"] is True
    assert call["form_url"] == "https://forms.example.test/appeal"


def test_fill_form_silent_mode_flag() -> None:
    app, _, form_fill_service = _build_app()

    TestClient(app).post(
        "/api/fill-form",
        json={
            "extractedFields": [{"label": "Plate", "value": "7ABC123", "confidence": 0.8}],
            "previewMode": False,
        },
    )

    assert form_fill_service.calls[0]["preview_mode"] is False
    assert form_fill_service.calls[0]["form_url"] is None


def test_fill_form_service_errors_use_error_envelope() -> None:
    app, _, _ = _build_app()

    response = TestClient(app).post("/api/fill-form", json={"extractedFields": []})

    assert response.status_code == 400
    assert response.json() == {"error": "No extracted fields provided"}


def test_fill_form_malformed_payload_returns_400() -> None:
    app, _, form_fill_service = _build_app()

    response = TestClient(app).post(
        "/api/fill-form",
        json={"extractedFields": [{"label": "Plate", "confidence": 2.0}]},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request payload"
    assert form_fill_service.calls == []


def test_responses_carry_request_id() -> None:
    app, _, _ = _build_app()

    response = TestClient(app).get("/api/health", headers={"X-Request-ID": "abc"})

    assert response.headers["X-Request-ID"] == "abc"


def test_process_document_rejects_oversized_upload_with_400_before_ocr() -> None:
    created: list[bool] = []

    def create_ocr_client() -> Any:
        created.append(True)
        raise AssertionError("OCR client must not be created")

    config = AppConfig(
        document_ai=DocumentAIConfig(project_id="p", processor_id="q", location="us"),
        autofill=AutofillConfig(),
        logging=LoggingConfig(level="INFO"),
        security=SecurityConfig(
            cors_allowed_origins=["http://localhost:3000"],
            request_max_bytes=12 * 1024 * 1024,
            upload_max_bytes=10 * 1024 * 1024,
        ),
    )
    app = FastAPI()
    register_http_middleware(app, config=config, logger=LOGGER)
    register_exception_handlers(app, logger=LOGGER)
    register_runtime_routes(
        app,
        deps=RuntimeRouteDeps(
            upload_service=UploadService(
                upload_max_bytes=config.security.upload_max_bytes,
                create_ocr_client=create_ocr_client,
            ),
            form_fill_service=_DummyFormFillService(),
        ),
    )
    client = TestClient(app)

    for size_mib in (11, 13):
        response = client.post(
            "/api/process-document",
            files={"file": ("ticket.png", b"\0" * (size_mib * 1024 * 1024), "image/png")},
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("File too large")
    assert created == []

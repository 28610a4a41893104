"""Route registration for health, upload and form-fill endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, File, UploadFile
from fastapi.responses import JSONResponse

from citation_autofill.api.contracts import (
    ApiErrorResponse,
    FillFormRequest,
    FillFormResponse,
    HealthResponse,
    ProcessDocumentResponse,
)
from citation_autofill.extraction.field_extractor import ExtractedField

UPLOAD_FILE_PARAM = File(default=None)

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ApiErrorResponse},
    401: {"model": ApiErrorResponse},
    403: {"model": ApiErrorResponse},
    404: {"model": ApiErrorResponse},
    500: {"model": ApiErrorResponse},
}


@dataclass(frozen=True)
class RuntimeRouteDeps:
    """Dependencies required to mount runtime routes."""

    upload_service: Any
    form_fill_service: Any


def register_runtime_routes(app: FastAPI, *, deps: RuntimeRouteDeps) -> None:
    """Register health, document-processing and form-fill endpoints."""

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post(
        "/api/process-document",
        response_model=ProcessDocumentResponse,
        responses=_ERROR_RESPONSES,
    )
    async def process_document(
        file: UploadFile | None = UPLOAD_FILE_PARAM,
    ) -> JSONResponse:
        payload = await deps.upload_service.process_upload(file=file)
        return JSONResponse(payload)

    @app.post(
        "/api/fill-form",
        response_model=FillFormResponse,
        responses=_ERROR_RESPONSES,
    )
    async def fill_form(req: FillFormRequest) -> JSONResponse:
        fields = [
            ExtractedField(label=item.label, value=item.value, confidence=item.confidence)
            for item in req.extracted_fields
        ]
        payload = await deps.form_fill_service.fill_form(
            extracted_fields=fields,
            preview_mode=req.preview_mode,
            form_url=req.form_url,
        )
        return JSONResponse(payload)

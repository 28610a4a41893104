"""Public API request/response contracts."""

from citation_autofill.api.contracts.models import (
    ApiErrorResponse,
    ExtractedFieldModel,
    FilledFieldModel,
    FillFormRequest,
    FillFormResponse,
    FormInputModel,
    HealthResponse,
    ProcessDocumentResponse,
    ScreenshotsModel,
)

__all__ = [
    "ApiErrorResponse",
    "ExtractedFieldModel",
    "FilledFieldModel",
    "FillFormRequest",
    "FillFormResponse",
    "FormInputModel",
    "HealthResponse",
    "ProcessDocumentResponse",
    "ScreenshotsModel",
]

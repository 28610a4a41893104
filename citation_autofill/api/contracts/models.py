"""Pydantic request and response models used in OpenAPI contracts."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ApiErrorResponse(BaseModel):
    """Error envelope; only ``error`` is always present."""

    model_config = ConfigDict(populate_by_name=True)

    error: str = Field(description="Human-readable error message")
    details: str | None = None
    is_config_error: bool | None = Field(default=None, alias="isConfigError")
    is_setup_error: bool | None = Field(default=None, alias="isSetupError")
    solution: dict[str, Any] | None = None
    solutions: list[dict[str, Any]] | None = None
    alternative_solution: str | None = Field(default=None, alias="alternativeSolution")

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class HealthResponse(BaseModel):
    """Health check response payload."""

    status: Literal["ok"]


class ExtractedFieldModel(BaseModel):
    label: str
    value: str
    confidence: float = Field(ge=0.0, le=1.0)


class ProcessDocumentResponse(BaseModel):
    """Upload endpoint success payload."""

    model_config = ConfigDict(populate_by_name=True)

    success: Literal[True] = True
    text: str
    extracted_fields: list[ExtractedFieldModel] = Field(alias="extractedFields")
    processing_time: int = Field(alias="processingTime", description="Milliseconds")


class FillFormRequest(BaseModel):
    """Form-fill endpoint request payload."""

    model_config = ConfigDict(populate_by_name=True)

    extracted_fields: list[ExtractedFieldModel] = Field(
        default_factory=list, alias="extractedFields"
    )
    preview_mode: bool = Field(default=True, alias="previewMode")
    form_url: str | None = Field(default=None, alias="formUrl")


class FilledFieldModel(BaseModel):
    field: str
    value: str
    success: bool
    selector: str | None = None


class FormInputModel(BaseModel):
    selector: str
    type: str
    name: str
    id: str
    placeholder: str
    label: str


class ScreenshotsModel(BaseModel):
    before: str
    after: str


class FillFormResponse(BaseModel):
    """Form-fill endpoint success payload."""

    model_config = ConfigDict(populate_by_name=True)

    success: Literal[True] = True
    message: str
    form_url: str = Field(alias="formUrl")
    filled_fields: list[FilledFieldModel] = Field(alias="filledFields")
    form_fields: list[FormInputModel] = Field(alias="formFields")
    field_mapping: dict[str, str] = Field(alias="fieldMapping")
    screenshots: ScreenshotsModel

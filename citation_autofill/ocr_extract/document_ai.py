from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

import google.auth
import requests
from google.auth.credentials import Credentials
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from citation_autofill.core.config import DocumentAIConfig

LOGGER = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]
FORM_PARSER_PROCESSOR = "FORM_PARSER_PROCESSOR"
OCR_PROCESSOR = "OCR_PROCESSOR"
CUSTOM_EXTRACTION_PROCESSOR = "CUSTOM_EXTRACTION_PROCESSOR"
SCHEMA_ERROR_MARKER = "entity_types"

_OCR_CONFIG = {
    "enableNativePdfParsing": True,
    "enableImageQualityScores": True,
    "enableSymbol": True,
}


class DocumentAIError(RuntimeError):
    """Base error for Document AI calls."""


class DocumentAIConfigError(DocumentAIError):
    """Project or processor identifiers are missing."""


class DocumentAIAuthError(DocumentAIError):
    """No access token could be obtained."""


class DocumentAIRequestError(DocumentAIError):
    """The processor answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str, *, processor_type: str = "") -> None:
        super().__init__(f"Document AI returned HTTP {status_code}")
        self.status_code = status_code
        self.body = body
        self.processor_type = processor_type

    @property
    def is_schema_error(self) -> bool:
        return self.status_code == 400 and SCHEMA_ERROR_MARKER in self.body

    @property
    def message(self) -> str:
        """Backend ``error.message`` when the body is JSON, else the raw body."""
        try:
            parsed = json.loads(self.body)
        except ValueError:
            return self.body
        if isinstance(parsed, dict) and isinstance(parsed.get("error"), dict):
            return str(parsed["error"].get("message") or self.body)
        return self.body


@dataclass
class ProcessedDocument:
    text: str
    entities: list[dict[str, Any]] = field(default_factory=list)
    form_fields: list[dict[str, Any]] = field(default_factory=list)
    processor_type: str = FORM_PARSER_PROCESSOR

    def as_document(self) -> dict[str, Any]:
        """Shape accepted by :func:`extract_from_document`."""
        return {
            "text": self.text,
            "entities": self.entities,
            "pages": [{"formFields": self.form_fields}],
        }


def load_credentials(config: DocumentAIConfig) -> Credentials:
    """Resolve credentials: key file, then inline key pair, then ADC."""
    if config.credentials_file:
        return service_account.Credentials.from_service_account_file(
            config.credentials_file, scopes=SCOPES
        )
    if config.client_email and config.private_key:
        return service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "project_id": config.project_id,
                "client_email": config.client_email,
                "private_key": config.private_key,
                "token_uri": "https://oauth2.googleapis.com/token",
            },
            scopes=SCOPES,
        )
    credentials, _ = google.auth.default(scopes=SCOPES)
    return credentials


def build_request_body(content: bytes, mime_type: str, processor_type: str) -> dict[str, Any]:
    """Build the ``:process`` body, adding OCR hints the processor supports."""
    body: dict[str, Any] = {
        "rawDocument": {
            "mimeType": mime_type,
            "content": base64.b64encode(content).decode("ascii"),
        }
    }
    if processor_type == FORM_PARSER_PROCESSOR:
        body["fieldMask"] = "text,entities,pages.formFields"
        body["processOptions"] = {"ocrConfig": dict(_OCR_CONFIG)}
    elif processor_type == OCR_PROCESSOR:
        body["processOptions"] = {"ocrConfig": dict(_OCR_CONFIG)}
    return body


def _redacted(body: dict[str, Any]) -> str:
    def _strip(value: Any) -> Any:
        if isinstance(value, dict):
            return {
                k: ("[BASE64_CONTENT]" if k == "content" else _strip(v))
                for k, v in value.items()
            }
        return value

    return json.dumps(_strip(body))


class DocumentAIClient:
    """Minimal REST client for a Document AI processor."""

    def __init__(
        self,
        config: DocumentAIConfig,
        *,
        credentials_loader: Callable[[DocumentAIConfig], Credentials] = load_credentials,
    ) -> None:
        self._config = config
        self._credentials_loader = credentials_loader

    @property
    def processor_url(self) -> str:
        cfg = self._config
        return (
            f"https://{cfg.location}-documentai.googleapis.com/v1/projects/"
            f"{cfg.project_id}/locations/{cfg.location}/processors/{cfg.processor_id}"
        )

    def access_token(self) -> str:
        try:
            credentials = self._credentials_loader(self._config)
            credentials.refresh(GoogleAuthRequest())
        except Exception as exc:
            raise DocumentAIAuthError(str(exc)) from exc
        token = getattr(credentials, "token", None)
        if not token:
            raise DocumentAIAuthError("Failed to get access token")
        return str(token)

    def detect_processor_type(self, token: str) -> str:
        """Ask the processor for its type; fall back to the form parser."""
        try:
            response = requests.get(
                self.processor_url,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self._config.timeout_seconds,
            )
        except requests.RequestException as exc:
            LOGGER.info("Could not fetch processor info: %s", exc)
            return FORM_PARSER_PROCESSOR
        if not response.ok:
            LOGGER.info(
                "Could not fetch processor info (HTTP %s), assuming %s",
                response.status_code,
                FORM_PARSER_PROCESSOR,
            )
            return FORM_PARSER_PROCESSOR
        try:
            return str(response.json().get("type") or FORM_PARSER_PROCESSOR)
        except ValueError:
            return FORM_PARSER_PROCESSOR

    def _post(self, token: str, body: dict[str, Any]) -> requests.Response:
        return requests.post(
            f"{self.processor_url}:process",
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json; charset=utf-8",
            },
            data=json.dumps(body),
            timeout=self._config.timeout_seconds,
        )

    def process(self, content: bytes, mime_type: str) -> ProcessedDocument:
        """Send one document to the processor and return its text, entities and form fields."""
        if not self._config.is_configured:
            raise DocumentAIConfigError(
                "Google Cloud configuration missing. Please set GOOGLE_CLOUD_PROJECT_ID "
                "and GOOGLE_CLOUD_PROCESSOR_ID environment variables."
            )
        token = self.access_token()
        processor_type = self.detect_processor_type(token)
        body = build_request_body(content, mime_type, processor_type)
        LOGGER.info(
            "Processing document with Document AI: %s",
            _redacted(body),
            extra={"processor_type": processor_type, "location": self._config.location},
        )

        response = self._post(token, body)
        if not response.ok and response.status_code == 400 and SCHEMA_ERROR_MARKER in response.text:
            LOGGER.info("Retrying with simplified request body")
            response = self._post(token, build_request_body(content, mime_type, ""))

        if not response.ok:
            LOGGER.error(
                "Document AI API error: HTTP %s",
                response.status_code,
                extra={
                    "status_code": response.status_code,
                    "processor_type": processor_type,
                    "location": self._config.location,
                },
            )
            raise DocumentAIRequestError(
                response.status_code, response.text, processor_type=processor_type
            )

        document = response.json().get("document") or {}
        pages = document.get("pages") or []
        first_page = pages[0] if pages else {}
        return ProcessedDocument(
            text=document.get("text") or "",
            entities=list(document.get("entities") or []),
            form_fields=list(first_page.get("formFields") or []),
            processor_type=processor_type,
        )

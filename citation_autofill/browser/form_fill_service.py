"""Service behind the form-fill endpoint."""

from __future__ import annotations

import base64
import logging
from typing import Any, Callable, Protocol, Sequence
from urllib.parse import urlparse

from citation_autofill.api.errors import ApiError
from citation_autofill.browser.session_manager import (
    AutomationSession,
    BrowserLaunchError,
    FormFillResult,
    SessionWorker,
)
from citation_autofill.core.config import AutofillConfig
from citation_autofill.extraction.field_extractor import ExtractedField

LOGGER = logging.getLogger(__name__)


class WorkerProtocol(Protocol):
    async def call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run ``fn`` on the session thread."""

    def call_later(self, delay_seconds: float, fn: Callable[[], None]) -> None:
        """Schedule ``fn`` on the session thread."""

    def shutdown(self) -> None:
        """Release the session thread."""


def is_valid_form_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def serialize_fill_result(result: FormFillResult) -> dict[str, Any]:
    return {
        "success": True,
        "message": "Form filling completed",
        "formUrl": result.form_url,
        "filledFields": [item.to_dict() for item in result.filled_fields],
        "formFields": [item.to_dict() for item in result.form_fields],
        "fieldMapping": dict(result.field_mapping),
        "screenshots": {
            "before": base64.b64encode(result.screenshot_before).decode("ascii"),
            "after": base64.b64encode(result.screenshot_after).decode("ascii"),
        },
    }


class FormFillService:
    """Validate a fill request and run one browser session for it."""

    def __init__(
        self,
        *,
        config: AutofillConfig,
        create_worker: Callable[[], WorkerProtocol] = SessionWorker,
        create_session: Callable[..., AutomationSession] = AutomationSession,
    ) -> None:
        self._config = config
        self._create_worker = create_worker
        self._create_session = create_session

    def resolve_form_url(self, form_url: str | None) -> str:
        target = (form_url or "").strip() or self._config.default_form_url
        if not is_valid_form_url(target):
            raise ApiError(status_code=400, error="Invalid form URL provided")
        return target

    async def fill_form(
        self,
        *,
        extracted_fields: Sequence[ExtractedField],
        preview_mode: bool = True,
        form_url: str | None = None,
    ) -> dict[str, Any]:
        if not extracted_fields:
            raise ApiError(status_code=400, error="No extracted fields provided")
        target_url = self.resolve_form_url(form_url)

        worker = self._create_worker()
        session = self._create_session(
            self._config,
            preview_mode=preview_mode,
            defer_close=worker.call_later,
        )
        try:
            result = await worker.call(session.run, target_url, list(extracted_fields))
        except BrowserLaunchError as exc:
            LOGGER.error("Failed to launch browser: %s", exc, extra={"form_url": target_url})
            if exc.missing_browser:
                raise ApiError(
                    status_code=500,
                    error="Browser setup required",
                    details=(
                        "Playwright browsers need to be installed. "
                        "Please run: playwright install chromium"
                    ),
                    is_setup_error=True,
                ) from exc
            raise ApiError(
                status_code=500,
                error="Failed to launch browser",
                details=str(exc),
            ) from exc
        except Exception as exc:
            LOGGER.exception("Form filling error", extra={"form_url": target_url})
            raise ApiError(
                status_code=500,
                error="Failed to fill form",
                details=str(exc) or type(exc).__name__,
            ) from exc
        finally:
            if not preview_mode:
                worker.shutdown()

        return serialize_fill_result(result)

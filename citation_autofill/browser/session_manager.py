from __future__ import annotations

import asyncio
import logging
import os
import shutil
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import StrEnum
from functools import partial
from typing import Any, Callable, Sequence

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright

from citation_autofill.autofill.field_mapping import (
    FormInputDescriptor,
    assign_form_inputs,
    build_field_mapping,
    resolve_fill_selector,
)
from citation_autofill.core.config import AutofillConfig
from citation_autofill.extraction.field_extractor import ExtractedField

LOGGER = logging.getLogger(__name__)

MISSING_BROWSER_MARKER = "Executable doesn't exist"
LABEL_TEXT_LIMIT = 100

_DISCOVER_INPUTS_JS = """
(limit) => {
  const rows = [];
  const elements = Array.from(document.querySelectorAll("input, select, textarea"));
  elements.forEach((el, index) => {
    let label = "";
    if (el.id) {
      const byFor = document.querySelector(`label[for="${CSS.escape(el.id)}"]`);
      if (byFor) label = (byFor.textContent || "").trim();
    }
    if (!label && el.parentElement) {
      label = (el.parentElement.textContent || "").trim().substring(0, limit);
    }
    rows.push({
      selector: `input, select, textarea >> nth=${index}`,
      type: el.type || "text",
      name: el.getAttribute("name") || "",
      id: el.id || "",
      placeholder: el.getAttribute("placeholder") || "",
      label,
    });
  });
  return rows;
}
"""


class SessionState(StrEnum):
    INIT = "init"
    NAVIGATED = "navigated"
    SNAPSHOT_BEFORE = "snapshot_before"
    FIELDS_DISCOVERED = "fields_discovered"
    FILLING = "filling"
    SNAPSHOT_AFTER = "snapshot_after"
    PREVIEW_HOLD = "preview_hold"
    CLOSED = "closed"


class BrowserLaunchError(RuntimeError):
    """Chromium could not be started for the session."""

    def __init__(self, message: str, *, missing_browser: bool = False) -> None:
        super().__init__(message)
        self.missing_browser = missing_browser


class NavigationError(RuntimeError):
    """The target form could not be loaded."""


@dataclass(frozen=True)
class FilledFieldResult:
    field: str
    value: str
    success: bool
    selector: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "field": self.field,
            "value": self.value,
            "success": self.success,
        }
        if self.selector:
            payload["selector"] = self.selector
        return payload


@dataclass
class FormFillResult:
    form_url: str
    filled_fields: list[FilledFieldResult] = field(default_factory=list)
    form_fields: list[FormInputDescriptor] = field(default_factory=list)
    field_mapping: dict[str, str] = field(default_factory=dict)
    screenshot_before: bytes = b""
    screenshot_after: bytes = b""


def _chromium_executable_path() -> str | None:
    explicit = os.getenv("PLAYWRIGHT_CHROMIUM_EXECUTABLE_PATH", "").strip()
    if explicit:
        return explicit
    for candidate in ["chromium", "chromium-browser", "google-chrome", "google-chrome-stable"]:
        found = shutil.which(candidate)
        if found:
            return found
    return None


def _launch_chromium(p: Playwright, *, headless: bool, slow_mo: int) -> Browser:
    launch_kwargs: dict[str, Any] = {"headless": headless, "slow_mo": slow_mo}
    executable_path = _chromium_executable_path()
    if executable_path:
        launch_kwargs["executable_path"] = executable_path
    return p.chromium.launch(**launch_kwargs)


def discover_form_inputs(page: Page) -> list[FormInputDescriptor]:
    """Snapshot every input/select/textarea on the page in document order."""
    rows = page.evaluate(_DISCOVER_INPUTS_JS, LABEL_TEXT_LIMIT)
    if not isinstance(rows, list):
        return []
    return [FormInputDescriptor.from_row(row) for row in rows if isinstance(row, dict)]


class AutomationSession:
    """One browser, one page: load a form, fill it from extracted fields, screenshot.

    ``run`` walks INIT -> NAVIGATED -> SNAPSHOT_BEFORE -> FIELDS_DISCOVERED ->
    FILLING -> SNAPSHOT_AFTER -> (PREVIEW_HOLD) -> CLOSED. In silent mode the
    browser is closed before ``run`` returns. In preview mode the page stays
    visible for ``preview_hold_ms`` and closing is handed to ``defer_close``,
    so the caller gets its result before the browser goes away. If the process
    exits before the deferred close fires, the browser is leaked.
    """

    def __init__(
        self,
        config: AutofillConfig,
        *,
        preview_mode: bool = True,
        defer_close: Callable[[float, Callable[[], None]], None] | None = None,
        playwright_factory: Callable[[], Any] = sync_playwright,
    ) -> None:
        self._config = config
        self.preview_mode = preview_mode
        self._defer_close = defer_close
        self._playwright_factory = playwright_factory
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self.state = SessionState.INIT

    def _transition(self, state: SessionState) -> None:
        LOGGER.debug("Automation session %s -> %s", self.state, state)
        self.state = state

    def _launch(self) -> Page:
        try:
            self._playwright = self._playwright_factory().start()
            self._browser = _launch_chromium(
                self._playwright,
                headless=not self.preview_mode,
                slow_mo=self._config.preview_slowmo_ms if self.preview_mode else 0,
            )
        except Exception as exc:
            message = str(exc)
            self.close()
            raise BrowserLaunchError(
                message, missing_browser=MISSING_BROWSER_MARKER in message
            ) from exc
        self._context = self._browser.new_context(
            viewport={
                "width": self._config.viewport_width,
                "height": self._config.viewport_height,
            }
        )
        return self._context.new_page()

    def _navigate(self, page: Page, form_url: str) -> None:
        try:
            page.goto(
                form_url,
                wait_until="domcontentloaded",
                timeout=self._config.navigation_timeout_ms,
            )
        except Exception as exc:
            raise NavigationError(f"Load failed for URL: {form_url}. {exc}") from exc
        self._transition(SessionState.NAVIGATED)
        page.wait_for_load_state("domcontentloaded")
        page.wait_for_timeout(self._config.settle_delay_ms)

    def _fill_one(self, page: Page, descriptor: FormInputDescriptor, selector: str, value: str) -> None:
        if descriptor.type.lower().startswith("select"):
            page.select_option(selector, value, timeout=self._config.fill_timeout_ms)
        else:
            page.fill(selector, value, timeout=self._config.fill_timeout_ms)

    def fill_inputs(
        self,
        page: Page,
        inputs: Sequence[FormInputDescriptor],
        mapping: dict[str, str],
    ) -> list[FilledFieldResult]:
        """Fill matched inputs one at a time; a failed fill does not stop the rest."""
        results: list[FilledFieldResult] = []
        for assignment in assign_form_inputs(inputs, mapping):
            if assignment is None:
                continue
            descriptor = assignment.input
            selector = resolve_fill_selector(descriptor)
            try:
                self._fill_one(page, descriptor, selector, assignment.value)
                success = True
            except Exception as exc:
                LOGGER.warning("Fill failed for %s (%s): %s", selector, assignment.key, exc)
                success = False
            results.append(
                FilledFieldResult(
                    field=descriptor.display_name,
                    value=assignment.value,
                    success=success,
                    selector=selector,
                )
            )
            page.wait_for_timeout(self._config.fill_delay_ms)
        return results

    def run(self, form_url: str, extracted: Sequence[ExtractedField]) -> FormFillResult:
        """Execute the whole session against ``form_url``."""
        try:
            page = self._launch()
            self._navigate(page, form_url)

            before = page.screenshot(full_page=True)
            self._transition(SessionState.SNAPSHOT_BEFORE)

            inputs = discover_form_inputs(page)
            self._transition(SessionState.FIELDS_DISCOVERED)
            LOGGER.info(
                "Discovered %d form inputs on %s",
                len(inputs),
                form_url,
                extra={"form_url": form_url},
            )

            mapping = build_field_mapping(extracted)
            self._transition(SessionState.FILLING)
            filled = self.fill_inputs(page, inputs, mapping)

            after = page.screenshot(full_page=True)
            self._transition(SessionState.SNAPSHOT_AFTER)
            LOGGER.info(
                "Filled %d/%d matched inputs on %s",
                sum(1 for item in filled if item.success),
                len(filled),
                form_url,
                extra={"form_url": form_url},
            )

            if self.preview_mode:
                self._transition(SessionState.PREVIEW_HOLD)
                page.wait_for_timeout(self._config.preview_hold_ms)

            return FormFillResult(
                form_url=form_url,
                filled_fields=filled,
                form_fields=inputs,
                field_mapping=mapping,
                screenshot_before=before,
                screenshot_after=after,
            )
        finally:
            if self.preview_mode and self._defer_close is not None:
                self._defer_close(self._config.preview_close_delay_ms / 1000, self.close)
            else:
                self.close()

    def close(self) -> None:
        """Release browser resources. Safe to call more than once."""
        try:
            if self._context is not None:
                self._context.close()
            if self._browser is not None:
                self._browser.close()
        except Exception:
            LOGGER.exception("Failed closing automation browser")
        finally:
            self._context = None
            self._browser = None
            if self._playwright is not None:
                playwright = self._playwright
                self._playwright = None
                playwright.stop()
            self.state = SessionState.CLOSED


class SessionWorker:
    """Dedicated thread for one sync Playwright session.

    Sync Playwright objects must be used from the thread that created them,
    so every call for a session, including its deferred close, goes through
    the same single-thread executor.
    """

    def __init__(self) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="playwright-session"
        )

    async def call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(fn, *args, **kwargs))

    def call_later(self, delay_seconds: float, fn: Callable[[], None]) -> None:
        """Run ``fn`` on the worker thread after a delay, then retire the worker."""

        def _run_and_shutdown() -> None:
            try:
                fn()
            finally:
                self._executor.shutdown(wait=False)

        timer = threading.Timer(delay_seconds, self._executor.submit, args=(_run_and_shutdown,))
        timer.daemon = True
        timer.start()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)

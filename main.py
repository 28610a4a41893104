from __future__ import annotations

import argparse
import json
import logging
import mimetypes
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from citation_autofill.api.errors import ApiError
from citation_autofill.browser.form_fill_service import is_valid_form_url
from citation_autofill.browser.session_manager import AutomationSession, BrowserLaunchError
from citation_autofill.core.config import AppConfig
from citation_autofill.documents.upload_service import UploadService
from citation_autofill.extraction.field_extractor import ExtractedField
from citation_autofill.ocr_extract.document_ai import DocumentAIClient


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract parking citation fields and auto-fill an appeal form."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    extract = sub.add_parser("extract", help="OCR a citation image/PDF and print its fields.")
    extract.add_argument("file", help="Path to a PDF, JPG or PNG citation.")

    fill = sub.add_parser("fill", help="Fill a web form from extracted fields.")
    fill.add_argument(
        "--fields",
        required=True,
        help="JSON with extracted fields: a file path or a raw JSON string.",
    )
    fill.add_argument("--form-url", default="", help="Target form URL.")
    fill.add_argument(
        "--silent",
        action="store_true",
        help="Run headless and close immediately instead of holding a visible preview.",
    )
    fill.add_argument(
        "--screenshots-dir",
        default="",
        help="Write before.png/after.png into this directory.",
    )
    return parser


def load_fields(raw: str) -> list[ExtractedField]:
    """Read fields from a path or inline JSON; accepts a list or ``{extractedFields: [...]}``."""
    text = raw if raw.lstrip().startswith(("[", "{")) else Path(raw).read_text(encoding="utf-8")
    data: Any = json.loads(text)
    if isinstance(data, dict):
        data = data.get("extractedFields") or []
    return [
        ExtractedField(
            label=str(item.get("label") or ""),
            value=str(item.get("value") or ""),
            confidence=float(item.get("confidence") or 0.0),
        )
        for item in data
        if isinstance(item, dict)
    ]


def run_extract(config: AppConfig, path: Path) -> dict[str, Any]:
    service = UploadService(
        upload_max_bytes=config.security.upload_max_bytes,
        create_ocr_client=lambda: DocumentAIClient(config.document_ai),
    )
    content = path.read_bytes()
    mime_type = service.validate(
        content=content,
        content_type=mimetypes.guess_type(path.name)[0],
        filename=path.name,
    )
    return service.extract(content, mime_type)


def run_fill(config: AppConfig, args: argparse.Namespace) -> dict[str, Any]:
    fields = load_fields(args.fields)
    if not fields:
        raise SystemExit("No extracted fields provided")
    form_url = args.form_url.strip() or config.autofill.default_form_url
    if not is_valid_form_url(form_url):
        raise SystemExit(f"Invalid form URL provided: {form_url}")

    session = AutomationSession(config.autofill, preview_mode=not args.silent)
    result = session.run(form_url, fields)

    if args.screenshots_dir:
        out_dir = Path(args.screenshots_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        (out_dir / "before.png").write_bytes(result.screenshot_before)
        (out_dir / "after.png").write_bytes(result.screenshot_after)

    return {
        "formUrl": result.form_url,
        "filledFields": [item.to_dict() for item in result.filled_fields],
        "fieldMapping": result.field_mapping,
        "formFieldCount": len(result.form_fields),
    }


def main() -> None:
    load_dotenv()
    setup_logging()
    logger = logging.getLogger("main")
    args = build_parser().parse_args()
    config = AppConfig.from_env()

    try:
        if args.command == "extract":
            summary = run_extract(config, Path(args.file))
        else:
            summary = run_fill(config, args)
    except ApiError as exc:
        raise SystemExit(json.dumps(exc.detail, ensure_ascii=False, indent=2)) from exc
    except BrowserLaunchError as exc:
        if exc.missing_browser:
            raise SystemExit("Browser setup required: run `playwright install chromium`.") from exc
        raise SystemExit(f"Failed to launch browser: {exc}") from exc

    logger.info("%s completed.", args.command)
    print(json.dumps(summary, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()

from __future__ import annotations

import json
from pathlib import Path

from main import build_parser, load_fields

from citation_autofill.extraction.field_extractor import ExtractedField


def test_load_fields_accepts_inline_list() -> None:
    fields = load_fields('[{"label": "Plate", "value": "7ABC123", "confidence": 0.8}]')

    assert fields == [ExtractedField("Plate", "7ABC123", 0.8)]


def test_load_fields_reads_upload_response_file(tmp_path: Path) -> None:
    path = tmp_path / "fields.json"
    path.write_text(
        json.dumps(
            {
                "success": True,
                "extractedFields": [
                    {"label": "Fine Amount", "value": "75.00", "confidence": 0.8},
                    "garbage",
                ],
            }
        ),
        encoding="utf-8",
    )

    assert load_fields(str(path)) == [ExtractedField("Fine Amount", "75.00", 0.8)]


def test_parser_fill_defaults_to_preview() -> None:
    args = build_parser().parse_args(["fill", "--fields", "[]"])

    assert args.command == "fill"
    assert args.silent is False
    assert args.form_url == ""

"""Regex table for pulling citation fields out of raw OCR text.

Patterns are loose and may overlap. Each category lists its expressions in
priority order and every expression captures the value in group 1.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping

_I = re.IGNORECASE

CITATION_PATTERNS: Mapping[str, tuple[re.Pattern[str], ...]] = MappingProxyType(
    {
        "License Plate": (
            re.compile(
                r"(?:license\s*(?:plate)?|plate)\s*(?:number|no\.?|#)?\s*:?\s*([A-Z0-9]{2,8})\b",
                _I,
            ),
            re.compile(r"(?:lic|plate)\s*#\s*:?\s*([A-Z0-9]{2,8})\b", _I),
            re.compile(r"\b([A-Z]{1,3}\s?\d{1,4}[A-Z]?|\d{1,3}\s?[A-Z]{1,3})\b"),
        ),
        "Violation Type": (
            re.compile(r"(?:violation|offense|charge)\s*:?\s*([^\n]{10,60})", _I),
            re.compile(r"(?:code|section)\s*:?\s*([^\n]{5,50})", _I),
        ),
        "Fine Amount": (
            re.compile(
                r"(?:fine|amount|total|penalty)\s*(?:due)?\s*:?\s*\$?\s*(\d+(?:\.\d{2})?)",
                _I,
            ),
            re.compile(r"\$\s*(\d+(?:\.\d{2})?)"),
        ),
        "Date": (
            re.compile(
                r"(?:date|issued|violation\s*date)\s*:?\s*(\d{1,2}[/-]\d{1,2}[/-]\d{2,4})",
                _I,
            ),
            re.compile(r"\b(\d{1,2}[/-]\d{1,2}[/-]\d{2,4})\b"),
        ),
        "Time": (
            re.compile(r"time\s*:?\s*(\d{1,2}:\d{2}(?:\s*[ap]\.?m\.?)?)", _I),
            re.compile(r"\b(\d{1,2}:\d{2}(?:\s*[ap]m)?)\b", _I),
        ),
        "Location": (
            re.compile(r"(?:location|address|street)\s*:?\s*([^\n]{10,80})", _I),
        ),
        "Officer Badge": (
            re.compile(r"(?:officer|badge)\s*(?:number|no\.?|#)?\s*:?\s*(\d+)", _I),
        ),
        "Citation Number": (
            re.compile(
                r"(?:citation|ticket|notice)\s*(?:number|no\.?|#)?\s*:?\s*([A-Z0-9-]*\d[A-Z0-9-]*)",
                _I,
            ),
            re.compile(r"(?:number|#)\s*:?\s*([A-Z0-9]*\d[A-Z0-9]*)", _I),
        ),
    }
)

PATTERN_CONFIDENCE = 0.8

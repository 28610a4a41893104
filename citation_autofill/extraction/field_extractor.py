"""Turn Document AI output into labelled citation fields.

Three sources are merged in increasing order of trust:

1. regex patterns over the raw text (confidence 0.8),
2. entities recognised by the processor (their own confidence, 0.5 when absent),
3. key/value form fields found on the first page (confidence 0.9).

Fields are matched across sources with :func:`labels_match`, so "Date" and
"Violation Date" are treated as the same field while "Violation Date" and
"Issued Date" are not.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from citation_autofill.extraction.label_matcher import labels_match
from citation_autofill.extraction.patterns import CITATION_PATTERNS, PATTERN_CONFIDENCE

LOGGER = logging.getLogger(__name__)

DEFAULT_ENTITY_CONFIDENCE = 0.5
MIN_ENTITY_CONFIDENCE = 0.3
FORM_FIELD_CONFIDENCE = 0.9


@dataclass(frozen=True)
class ExtractedField:
    """One labelled value pulled from a document."""

    label: str
    value: str
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "value": self.value, "confidence": self.confidence}


@dataclass(frozen=True)
class DocumentEntity:
    type: str
    text: str
    confidence: float = DEFAULT_ENTITY_CONFIDENCE


@dataclass(frozen=True)
class FormFieldPair:
    name: str
    value: str


def _safe(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _anchor_content(node: Any) -> str:
    if not isinstance(node, Mapping):
        return ""
    anchor = node.get("textAnchor")
    if not isinstance(anchor, Mapping):
        return ""
    return _safe(anchor.get("content"))


def parse_entities(raw_entities: Iterable[Any] | None) -> list[DocumentEntity]:
    """Build entities from the ``document.entities`` array of a process response."""
    entities: list[DocumentEntity] = []
    for raw in raw_entities or []:
        if not isinstance(raw, Mapping):
            continue
        text = _anchor_content(raw) or _safe(raw.get("mentionText"))
        confidence = raw.get("confidence")
        entities.append(
            DocumentEntity(
                type=_safe(raw.get("type")) or "Unknown",
                text=text,
                confidence=(
                    float(confidence) if confidence else DEFAULT_ENTITY_CONFIDENCE
                ),
            )
        )
    return entities


def parse_form_fields(raw_form_fields: Iterable[Any] | None) -> list[FormFieldPair]:
    """Build key/value pairs from a page's ``formFields`` array."""
    pairs: list[FormFieldPair] = []
    for raw in raw_form_fields or []:
        if not isinstance(raw, Mapping):
            continue
        pairs.append(
            FormFieldPair(
                name=_anchor_content(raw.get("fieldName")) or "Unknown Field",
                value=_anchor_content(raw.get("fieldValue")),
            )
        )
    return pairs


def _best_pattern_value(text: str, patterns: Sequence[Any]) -> str:
    best = ""
    for pattern in patterns:
        match = pattern.search(text)
        if not match or match.group(1) is None:
            continue
        candidate = match.group(1).strip()
        # Ties keep the earlier pattern.
        if len(candidate) > len(best):
            best = candidate
    return best


def _find_index(fields: list[ExtractedField], label: str) -> int | None:
    for index, field in enumerate(fields):
        if labels_match(field.label, label):
            return index
    return None


def extract_citation_fields(
    raw_text: str,
    entities: Sequence[DocumentEntity] | None = None,
    form_fields: Sequence[FormFieldPair] | None = None,
) -> list[ExtractedField]:
    """Extract deduplicated ``(label, value, confidence)`` fields.

    Output keeps pattern categories in declaration order; entities and form
    fields are either merged into an existing position or appended.
    The function is pure: identical inputs always give the same list.
    """
    text = raw_text or ""
    fields: list[ExtractedField] = []

    for label, patterns in CITATION_PATTERNS.items():
        value = _best_pattern_value(text, patterns)
        if value:
            fields.append(ExtractedField(label, value, PATTERN_CONFIDENCE))

    for entity in entities or []:
        entity_text = _safe(entity.text)
        if not entity_text or entity.confidence <= MIN_ENTITY_CONFIDENCE:
            continue
        index = _find_index(fields, entity.type)
        if index is None:
            fields.append(ExtractedField(entity.type, entity_text, entity.confidence))
        elif entity.confidence > fields[index].confidence:
            fields[index] = ExtractedField(
                fields[index].label, entity_text, entity.confidence
            )

    for pair in form_fields or []:
        value = _safe(pair.value)
        if not value:
            continue
        name = _safe(pair.name) or "Unknown Field"
        index = _find_index(fields, name)
        if index is None:
            fields.append(ExtractedField(name, value, FORM_FIELD_CONFIDENCE))
        elif len(value) > len(fields[index].value):
            # Longer OCR output is assumed to be the more complete reading.
            fields[index] = ExtractedField(
                fields[index].label, value, FORM_FIELD_CONFIDENCE
            )

    LOGGER.debug("Extracted %d citation fields", len(fields))
    return fields


def extract_from_document(document: Mapping[str, Any] | None) -> tuple[str, list[ExtractedField]]:
    """Run extraction over a Document AI ``document`` object.

    Returns the raw text together with the extracted fields. Only the first
    page's form fields are considered.
    """
    document = document or {}
    text = document.get("text") or ""
    pages = document.get("pages") or []
    first_page = pages[0] if pages and isinstance(pages[0], Mapping) else {}
    fields = extract_citation_fields(
        text,
        parse_entities(document.get("entities")),
        parse_form_fields(first_page.get("formFields")),
    )
    return text, fields

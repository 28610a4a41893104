"""Map extracted citation fields onto inputs discovered on a target form."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from citation_autofill.extraction.field_extractor import ExtractedField
from citation_autofill.extraction.label_matcher import labels_match, matches_any

FIELD_ALIASES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "citation_number": (
            "Citation Number",
            "Ticket Number",
            "Citation ID",
            "citation_number",
            "ticket_number",
        ),
        "license_plate": (
            "License Plate",
            "Plate Number",
            "Vehicle License",
            "license_plate",
            "plate",
        ),
        "violation_date": (
            "Violation Date",
            "Date of Violation",
            "Issued Date",
            "violation_date",
            "date",
        ),
        "violation_time": (
            "Violation Time",
            "Time of Violation",
            "Issued Time",
            "violation_time",
            "time",
        ),
        "violation_location": (
            "Violation Location",
            "Location",
            "Address",
            "violation_location",
            "location",
        ),
        "vehicle_make": ("Vehicle Make", "Make", "vehicle_make"),
        "vehicle_model": ("Vehicle Model", "Model", "vehicle_model"),
        "vehicle_color": ("Vehicle Color", "Color", "vehicle_color"),
        "fine_amount": ("Fine Amount", "Amount", "Total", "fine_amount", "amount"),
        "officer_badge": ("Officer Badge", "Badge Number", "officer_badge", "badge"),
        "violation_code": ("Violation Code", "Code", "violation_code"),
    }
)

CANONICAL_FIELD_KEYS: tuple[str, ...] = tuple(FIELD_ALIASES)
NON_FILLABLE_TYPES = frozenset({"submit", "button"})
_PLAIN_ID_RE = re.compile(r"^[A-Za-z_][\w-]*$")


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


@dataclass(frozen=True)
class FormInputDescriptor:
    """Shape of one ``input``/``select``/``textarea`` found on the page."""

    selector: str
    type: str = "text"
    name: str = ""
    id: str = ""
    placeholder: str = ""
    label: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "FormInputDescriptor":
        return cls(
            selector=str(row.get("selector") or ""),
            type=str(row.get("type") or "text"),
            name=str(row.get("name") or ""),
            id=str(row.get("id") or ""),
            placeholder=str(row.get("placeholder") or ""),
            label=str(row.get("label") or ""),
        )

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @property
    def display_name(self) -> str:
        return self.label or self.name or self.id


@dataclass(frozen=True)
class FieldAssignment:
    input: FormInputDescriptor
    value: str
    key: str


def find_field_value(
    extracted: Sequence[ExtractedField], aliases: Sequence[str]
) -> str:
    """Return the value of the first field matching any alias, alias by alias."""
    for alias in aliases:
        for field in extracted:
            if labels_match(field.label, alias):
                return field.value
    return ""


def build_field_mapping(
    extracted: Sequence[ExtractedField],
    aliases: Mapping[str, Sequence[str]] = FIELD_ALIASES,
) -> dict[str, str]:
    """Resolve each canonical key to an extracted value.

    Keys without a non-empty match are left out.
    """
    mapping: dict[str, str] = {}
    for key, key_aliases in aliases.items():
        value = find_field_value(extracted, key_aliases)
        if value:
            mapping[key] = value
    return mapping


def _match_key(form_input: FormInputDescriptor, mapping: Mapping[str, str]) -> str:
    attributes = (form_input.label, form_input.name, form_input.placeholder)
    for key in mapping:
        if matches_any(key, attributes):
            return key
    return ""


def assign_form_inputs(
    inputs: Sequence[FormInputDescriptor],
    mapping: Mapping[str, str],
    key_order: Sequence[str] = CANONICAL_FIELD_KEYS,
) -> list[FieldAssignment | None]:
    """Pair every form input with at most one mapped value.

    The result is parallel to ``inputs``; ``None`` marks an input that is not
    filled. Keys are tried in alias table order and a key may fill several
    inputs. Submit and button inputs are never assigned.
    """
    ordered = {key: mapping[key] for key in key_order if mapping.get(key)}
    for key, value in mapping.items():
        if key not in ordered and value:
            ordered[key] = value

    assignments: list[FieldAssignment | None] = []
    for form_input in inputs:
        if form_input.type.lower() in NON_FILLABLE_TYPES:
            assignments.append(None)
            continue
        key = _match_key(form_input, ordered)
        if not key:
            assignments.append(None)
            continue
        assignments.append(FieldAssignment(input=form_input, value=ordered[key], key=key))
    return assignments


def resolve_fill_selector(form_input: FormInputDescriptor) -> str:
    """Pick the selector used to fill an input: id, then name, then position."""
    if form_input.id:
        if _PLAIN_ID_RE.match(form_input.id):
            return f"#{form_input.id}"
        return f'[id="{_quote(form_input.id)}"]'
    if form_input.name:
        return f'[name="{_quote(form_input.name)}"]'
    return form_input.selector

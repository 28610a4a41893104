from __future__ import annotations

from citation_autofill.autofill.field_mapping import (
    CANONICAL_FIELD_KEYS,
    FIELD_ALIASES,
    FieldAssignment,
    FormInputDescriptor,
    assign_form_inputs,
    build_field_mapping,
    resolve_fill_selector,
)
from citation_autofill.extraction.field_extractor import ExtractedField, extract_citation_fields


def _input(**kwargs: str) -> FormInputDescriptor:
    kwargs.setdefault("selector", "input, select, textarea >> nth=0")
    return FormInputDescriptor(**kwargs)


def test_alias_table_has_eleven_keys_in_fixed_order() -> None:
    assert CANONICAL_FIELD_KEYS == (
        "citation_number",
        "license_plate",
        "violation_date",
        "violation_time",
        "violation_location",
        "vehicle_make",
        "vehicle_model",
        "vehicle_color",
        "fine_amount",
        "officer_badge",
        "violation_code",
    )
    assert FIELD_ALIASES["license_plate"] == (
        "License Plate",
        "Plate Number",
        "Vehicle License",
        "license_plate",
        "plate",
    )


def test_extracted_citation_maps_to_canonical_keys() -> None:
    fields = extract_citation_fields("Citation Number: ABC123456\nFine Amount: $75.00")

    assert build_field_mapping(fields) == {
        "fine_amount": "75.00",
        "citation_number": "ABC123456",
    }


def test_mapping_walks_aliases_before_fields() -> None:
    fields = [
        ExtractedField("Issued Date", "01/02/2025", 0.9),
        ExtractedField("Violation Date", "01/15/2025", 0.8),
    ]

    mapping = build_field_mapping(fields)

    assert mapping["violation_date"] == "01/15/2025"


def test_mapping_matches_when_label_contains_alias() -> None:
    fields = [ExtractedField("Vehicle Color (primary)", "Blue", 0.9)]

    assert build_field_mapping(fields) == {"vehicle_color": "Blue"}


def test_mapping_omits_keys_without_match() -> None:
    fields = [ExtractedField("Officer Badge", "4521", 0.8)]

    mapping = build_field_mapping(fields)

    assert mapping == {"officer_badge": "4521"}
    assert "citation_number" not in mapping


def test_assign_never_selects_submit_or_button_inputs() -> None:
    inputs = [
        _input(type="submit", name="citation_number", label="citation_number"),
        _input(type="button", id="fine_amount", placeholder="fine_amount"),
        _input(type="SUBMIT", name="license_plate"),
    ]
    mapping = {key: "value" for key in CANONICAL_FIELD_KEYS}

    assert assign_form_inputs(inputs, mapping) == [None, None, None]


def test_assign_matches_partial_name_across_underscore() -> None:
    form_input = _input(type="text", name="citation_num")

    result = assign_form_inputs([form_input], {"citation_number": "ABC123456"})

    assert result == [
        FieldAssignment(input=form_input, value="ABC123456", key="citation_number")
    ]


def test_assign_uses_alias_table_order_for_ties() -> None:
    form_input = _input(type="text", name="violation")
    mapping = {"violation_code": "22500", "violation_date": "01/15/2025"}

    result = assign_form_inputs([form_input], mapping)

    assert result[0] is not None
    assert result[0].key == "violation_date"


def test_assign_checks_label_name_and_placeholder() -> None:
    inputs = [
        _input(label="Enter fine_amount here"),
        _input(name="vehicle_make"),
        _input(placeholder="location"),
        _input(label="Comments", name="notes", placeholder="Anything else?"),
    ]
    mapping = {
        "fine_amount": "75.00",
        "vehicle_make": "Toyota",
        "violation_location": "123 Main St",
    }

    result = assign_form_inputs(inputs, mapping)

    assert [item.key if item else None for item in result] == [
        "fine_amount",
        "vehicle_make",
        "violation_location",
        None,
    ]


def test_assign_allows_one_key_on_several_inputs() -> None:
    inputs = [_input(name="plate"), _input(name="plate_confirm")]

    result = assign_form_inputs(inputs, {"license_plate": "7ABC123"})

    assert [item.value if item else None for item in result] == ["7ABC123", None]


def test_assign_ignores_inputs_with_blank_attributes() -> None:
    result = assign_form_inputs([_input(type="text")], {"citation_number": "ABC"})

    assert result == [None]


def test_resolve_fill_selector_prefers_id_then_name_then_position() -> None:
    assert resolve_fill_selector(_input(id="plate", name="p")) == "#plate"
    assert resolve_fill_selector(_input(id="Field.12", name="p")) == '[id="Field.12"]'
    assert resolve_fill_selector(_input(name='q"1')) == '[name="q\\"1"]'
    assert (
        resolve_fill_selector(_input(selector="input, select, textarea >> nth=4"))
        == "input, select, textarea >> nth=4"
    )


def test_descriptor_from_row_defaults_missing_values() -> None:
    descriptor = FormInputDescriptor.from_row({"selector": "x", "name": "plate"})

    assert descriptor.type == "text"
    assert descriptor.display_name == "plate"
    assert descriptor.to_dict() == {
        "selector": "x",
        "type": "text",
        "name": "plate",
        "id": "",
        "placeholder": "",
        "label": "",
    }

"""
Unit tests for decoder.py

Covers the quotation mark repair and the field-name driven decoding of
templates, stock locations, part parameters, part attributes and version info.
"""

import pytest

from inventree_part_driver.decoder import (
    decode_found_parts,
    decode_parameter_templates,
    decode_part_attributes,
    decode_part_parameters,
    decode_stock_locations,
    decode_version_info,
    read_int,
    remove_quotation_marks,
)
from inventree_part_driver.models import ParameterTemplate, RawPartAttribute, RawPartParameter


class TestRemoveQuotationMarks:

    def test_strips_surrounding_quotes(self):
        assert remove_quotation_marks('"abc"') == "abc"

    def test_leaves_unquoted_text_unchanged(self):
        assert remove_quotation_marks("abc") == "abc"

    def test_only_one_pair_is_removed(self):
        assert remove_quotation_marks('""abc""') == '"abc"'

    def test_quote_in_the_middle_is_ignored(self):
        assert remove_quotation_marks('a"b"') == 'a"b"'

    def test_last_character_dropped_even_without_closing_quote(self):
        # Known fragility of the heuristic, reproduced on purpose
        assert remove_quotation_marks('"a') == ""

    def test_empty_string(self):
        assert remove_quotation_marks("") == ""


@pytest.mark.parametrize("text, expected", [
    ("12", 12),
    ("-4", -4),
    ("3.7", 3),
    ("  8", 8),
    ("null", None),
    ('"12"', None),
    ("true", None),
])
def test_read_int_reads_leading_integer(text, expected):
    assert read_int(text, None) == expected


def test_decode_parameter_templates():
    doc = [
        {"pk": 1, "name": "Resistance", "units": "Ohm", "description": "ignored"},
        {"pk": 2, "name": "Tolerance", "units": "%"},
    ]
    assert decode_parameter_templates(doc) == [
        ParameterTemplate(pk=1, name="Resistance", units="Ohm"),
        ParameterTemplate(pk=2, name="Tolerance", units="%"),
    ]


def test_decode_parameter_templates_defaults_do_not_leak_between_records():
    doc = [
        {"pk": 5, "name": "Voltage", "units": "V"},
        {"name": "Package"},
    ]
    templates = decode_parameter_templates(doc)
    assert templates[1] == ParameterTemplate(pk=-1, name="Package", units="")


def test_decode_parameter_templates_null_units_become_empty():
    templates = decode_parameter_templates([{"pk": 3, "name": "Package", "units": None}])
    assert templates[0].units == ""


def test_decode_stock_locations_all_fields():
    doc = [{
        "pk": 3,
        "parent": 1,
        "items": 12,
        "url": "/stock/location/3/",
        "name": "Bin A",
        "description": "Shelf 2",
        "pathstring": "Store/Bin A",
        "owner": None,
    }]
    location = decode_stock_locations(doc)[0]
    assert location.pk == 3
    assert location.parent == 1
    assert location.items == 12
    assert location.url == "/stock/location/3/"
    assert location.name == "Bin A"
    assert location.description == "Shelf 2"
    assert location.pathstring == "Store/Bin A"


def test_decode_stock_locations_tolerates_null_parent():
    location = decode_stock_locations([{"pk": 1, "parent": None, "name": "Store"}])[0]
    assert location.parent is None
    assert location.pk == 1
    assert location.name == "Store"


def test_decode_stock_locations_missing_pk_defaults_to_minus_one():
    location = decode_stock_locations([{"name": "Loose"}])[0]
    assert location.pk == -1


def test_decode_stock_locations_non_numeric_pk_keeps_default():
    location = decode_stock_locations([{"pk": "abc", "name": "Odd"}])[0]
    assert location.pk == -1
    assert location.name == "Odd"


def test_decode_part_parameters():
    doc = [{"pk": 10, "part": 7, "template": 2, "data": "10k"}]
    assert decode_part_parameters(doc) == [RawPartParameter(pk=10, part=7, template=2, data="10k")]


def test_decode_part_parameters_numeric_defaults_are_one():
    assert decode_part_parameters([{"data": "x"}]) == [RawPartParameter(pk=1, part=1, template=1, data="x")]


def test_decode_part_parameters_numeric_data_is_kept():
    assert decode_part_parameters([{"data": 5}])[0].data == "5"


def test_decode_part_attributes_keeps_server_order_and_repairs_quotes():
    doc = {"pk": 7, "name": "R-10k", "default_location": 3, "active": True, "notes": None}
    assert decode_part_attributes(doc) == [
        RawPartAttribute(name="pk", raw_value="7"),
        RawPartAttribute(name="name", raw_value="R-10k"),
        RawPartAttribute(name="default_location", raw_value="3"),
        RawPartAttribute(name="active", raw_value="true"),
        RawPartAttribute(name="notes", raw_value=""),
    ]


def test_decode_version_info():
    doc = {"server": "InvenTree", "version": "0.2.1", "apiVersion": 3}
    assert decode_version_info(doc) == {"server": "InvenTree", "version": "0.2.1", "apiVersion": "3"}


def test_decode_found_parts_skips_non_objects():
    parts = decode_found_parts([{"pk": 1, "description": "10k Resistor"}, "junk", 4])
    assert len(parts) == 1
    assert parts[0].pk == 1
    assert parts[0].description == "10k Resistor"


@pytest.mark.parametrize("doc", [None, {"results": []}, "text", 42])
def test_array_decoders_return_empty_for_wrong_shape(doc):
    assert decode_parameter_templates(doc) == []
    assert decode_stock_locations(doc) == []
    assert decode_part_parameters(doc) == []
    assert decode_found_parts(doc) == []


@pytest.mark.parametrize("doc", [None, [], "text"])
def test_object_decoders_return_empty_for_wrong_shape(doc):
    assert decode_part_attributes(doc) == []
    assert decode_version_info(doc) == {}

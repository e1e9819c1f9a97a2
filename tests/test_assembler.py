"""
Unit tests for assembler.py

Covers name formatting, the visible attribute allow-list, the merge of
parameters and attributes and the selection of a found part.
"""

import pytest
from unittest.mock import Mock

from inventree_part_driver.assembler import (
    PartDetailAssembler,
    PartSelectionError,
    build_detail_fields,
    format_name_string,
    image_url,
    is_visible_attribute,
)
from inventree_part_driver.models import (
    Display,
    FoundPart,
    ParameterTemplate,
    PartAttribute,
    PartParameter,
    RawPartAttribute,
    RawPartParameter,
    SessionState,
    StatusMessage,
    StockLocation,
)

SERVER_URL = "http://mock-inventree.local"


# --- format_name_string ---

@pytest.mark.parametrize("text, expected", [
    ("default_location", "Default Location"),
    ("in_stock", "In Stock"),
    ("pk", "Pk"),
    ("full name", "Full Name"),
    ("resistance", "Resistance"),
    ("", ""),
    ("_leading", " Leading"),
    ("IPC_name", "IPC Name"),
    ("mixedCase_word", "MixedCase Word"),
])
def test_format_name_string(text, expected):
    assert format_name_string(text) == expected


@pytest.mark.parametrize("text", ["Default Location", "In Stock", "Resistance", "A B C"])
def test_format_name_string_is_idempotent(text):
    assert format_name_string(format_name_string(text)) == format_name_string(text)


def test_visible_attributes():
    for name in ("description", "default_location", "full_name", "in_stock", "link", "notes", "pk"):
        assert is_visible_attribute(name)
    assert not is_visible_attribute("category")
    assert not is_visible_attribute("Description")


def test_build_detail_fields():
    parameters = [PartParameter(pk=1, part_pk=7, template_name="Resistance", data="10k", units="Ohm")]
    attributes = [
        PartAttribute(name="default_location", raw_value="3", resolved_value="Bin A ->> Shelf 2"),
        PartAttribute(name="category", raw_value="4", resolved_value="4"),
    ]
    assert build_detail_fields(parameters, attributes) == {
        "Resistance": "10k Ohm",
        "Default Location": "Bin A ->> Shelf 2",
    }


def test_build_detail_fields_attribute_wins_on_collision():
    parameters = [PartParameter(pk=1, part_pk=7, template_name="notes", data="from parameter", units="")]
    attributes = [PartAttribute(name="notes", raw_value="from attribute", resolved_value="from attribute")]
    assert build_detail_fields(parameters, attributes) == {"Notes": "from attribute"}


@pytest.mark.parametrize("image, expected", [
    ("/media/part_images/a.png", "http://mock-inventree.local/media/part_images/a.png"),
    ("media/a.png", "http://mock-inventree.local/media/a.png"),
    ("https://cdn.example.com/a.png", "https://cdn.example.com/a.png"),
])
def test_image_url(image, expected):
    assert image_url(SERVER_URL + "/", image) == expected


# --- PartDetailAssembler ---

@pytest.fixture
def state():
    state = SessionState(server_url=SERVER_URL, token="token")
    state.templates = [ParameterTemplate(pk=1, name="Resistance", units="Ohm")]
    state.locations = [StockLocation(pk=3, name="Bin A", description="Shelf 2")]
    state.found_parts = [
        FoundPart({"pk": 7, "description": "10k Resistor", "image": "/media/part_images/r10k.png"}),
        FoundPart({"pk": 8, "description": "1k Resistor", "image": None}),
    ]
    return state


@pytest.fixture
def mock_client():
    client = Mock()
    client.fetch_part_attributes.return_value = (
        [RawPartAttribute("default_location", "3"), RawPartAttribute("pk", "7"), RawPartAttribute("IPN", "R-1")],
        [],
    )
    client.fetch_part_parameters.return_value = (
        [RawPartParameter(pk=20, part=7, template=1, data="10k")],
        [],
    )
    return client


@pytest.fixture
def mock_fetcher(tmp_path):
    fetcher = Mock()
    fetcher.destination_for.side_effect = lambda pk: tmp_path / f"part_{pk}_image.tmpfile"
    fetcher.fetch_asset.return_value = True
    return fetcher


@pytest.fixture
def assembler(state, mock_client, mock_fetcher):
    return PartDetailAssembler(state, mock_client, mock_fetcher)


def test_select_part_builds_details(assembler, state, mock_client, mock_fetcher, tmp_path):
    details, messages = assembler.select_part(0)

    assert not messages
    assert details.part_pk == 7
    assert details.fields == {
        "Resistance": "10k Ohm",
        "Default Location": "Bin A ->> Shelf 2",
        "Pk": "7",
    }
    assert details.image_path == tmp_path / "part_7_image.tmpfile"
    mock_client.fetch_part_attributes.assert_called_once_with(7)
    mock_client.fetch_part_parameters.assert_called_once_with(7)
    mock_fetcher.fetch_asset.assert_called_once_with(
        "http://mock-inventree.local/media/part_images/r10k.png", tmp_path / "part_7_image.tmpfile")
    assert [p.template_name for p in state.part_parameters] == ["Resistance"]
    assert len(state.part_attributes) == 3


def test_select_part_without_image_skips_download(assembler, mock_fetcher):
    details, messages = assembler.select_part(1)

    assert details.image_path is None
    mock_fetcher.fetch_asset.assert_not_called()


def test_select_part_image_failure_still_returns_details(assembler, mock_fetcher):
    mock_fetcher.fetch_asset.return_value = False

    details, messages = assembler.select_part(0)

    assert details.image_path is None
    assert details.fields["Default Location"] == "Bin A ->> Shelf 2"
    assert len(messages) == 1
    assert messages[0].display == Display.CONSOLE


def test_select_part_stage_failures_are_reported(assembler, mock_client):
    error = StatusMessage("Error Code: 500\nInternal Server Error", "fetch_part_parameters()")
    mock_client.fetch_part_parameters.return_value = (None, [error])

    details, messages = assembler.select_part(0)

    assert messages == [error]
    assert "Resistance" not in details.fields
    assert details.fields["Pk"] == "7"


@pytest.mark.parametrize("position", [2, 10, -1])
def test_select_part_out_of_range_is_rejected(assembler, mock_client, position):
    with pytest.raises(PartSelectionError):
        assembler.select_part(position)
    mock_client.fetch_part_attributes.assert_not_called()


def test_select_part_with_no_results_is_rejected(assembler, state):
    state.found_parts = []
    with pytest.raises(PartSelectionError):
        assembler.select_part(0)


def test_part_selection_error_is_an_index_error():
    assert issubclass(PartSelectionError, IndexError)


def test_select_part_without_pk(assembler, state, mock_client):
    state.found_parts = [FoundPart({"description": "Broken"})]

    details, messages = assembler.select_part(0)

    assert details is None
    assert messages[0].display == Display.ERROR_DIALOG
    mock_client.fetch_part_attributes.assert_not_called()

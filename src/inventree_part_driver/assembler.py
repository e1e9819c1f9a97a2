# Module: src/inventree_part_driver/assembler.py
# Description: Builds the display-ready detail record of a part selected from the search results.

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .api_client import CatalogClient
from .asset_fetcher import AssetFetcher
from .models import (
    Display,
    DriverError,
    FoundPart,
    PartAttribute,
    PartDetails,
    PartParameter,
    SessionState,
    StatusMessage,
)
from .resolver import resolve_attribute, resolve_parameter

logger = logging.getLogger(__name__)

# Part fields shown to the user, everything else the API returns is hidden
VISIBLE_ATTRIBUTES = (
    "description",
    "default_location",
    "full_name",
    "in_stock",
    "link",
    "notes",
    "pk",
)


class PartSelectionError(DriverError, IndexError):
    """Raised when a part is selected by a position outside the search results."""
    pass


def is_visible_attribute(name: str) -> bool:
    return name in VISIBLE_ATTRIBUTES


def format_name_string(text: str) -> str:
    """
    Turns an API field name into a display name.

    Underscores become spaces, then the first character and every character
    following a space is upper-cased. Other characters are left untouched,
    so 'default_location' becomes 'Default Location'.
    """
    chars = list(text.replace("_", " "))
    for x, char in enumerate(chars):
        if x == 0 or chars[x - 1] == " ":
            chars[x] = char.upper()
    return "".join(chars)


def build_detail_fields(parameters: Iterable[PartParameter], attributes: Iterable[PartAttribute]) -> Dict[str, str]:
    """
    Merges resolved parameters and visible attributes into one display mapping.

    Parameters are written first, attributes second, so an attribute wins
    when both format to the same display name.
    """
    fields: Dict[str, str] = {}
    for parameter in parameters:
        fields[format_name_string(parameter.template_name)] = f"{parameter.data} {parameter.units}"
    for attribute in attributes:
        if is_visible_attribute(attribute.name):
            fields[format_name_string(attribute.name)] = attribute.resolved_value
    return fields


def image_url(server_url: str, image: str) -> str:
    """Image paths in part records are relative to the server root unless already absolute."""
    if image.startswith(("http://", "https://")):
        return image
    if not image.startswith("/"):
        image = "/" + image
    return server_url.rstrip("/") + image


class PartDetailAssembler:
    """
    Collects attributes, parameters and the image of a found part and joins
    them with the templates and stock locations of the session.
    """

    def __init__(self, state: SessionState, client: CatalogClient, fetcher: AssetFetcher):
        self.state = state
        self.client = client
        self.fetcher = fetcher

    def found_part_at(self, position: int) -> FoundPart:
        """Returns the search result at position, rejecting anything out of range."""
        count = len(self.state.found_parts)
        if not 0 <= position < count:
            msg = f"Part position {position} is out of range, the last search returned {count} part(s)."
            logger.warning(msg)
            raise PartSelectionError(msg)
        return self.state.found_parts[position]

    def _fetch_image(self, part: FoundPart, part_pk: int) -> Tuple[Optional[Path], List[StatusMessage]]:
        messages: List[StatusMessage] = []
        if part.image is None:
            logger.debug(f"Part {part_pk} has no image.")
            return None, messages
        url = image_url(self.state.server_url, part.image)
        destination = self.fetcher.destination_for(part_pk)
        if not self.fetcher.fetch_asset(url, destination):
            msg = f"Failed to download image of part {part_pk} from {url}"
            logger.warning(msg)
            messages.append(StatusMessage(msg, "select_part()", Display.CONSOLE))
            return None, messages
        return destination, messages

    def select_part(self, position: int) -> Tuple[Optional[PartDetails], List[StatusMessage]]:
        """
        Assembles the detail record of the search result at position.

        Args:
            position: Index into the results of the last search.

        Returns:
            A tuple containing (PartDetails or None, list of status messages).
            None is only returned if the search result carries no usable 'pk'.

        Raises:
            PartSelectionError: If position is outside the last search results.
        """
        part = self.found_part_at(position)
        messages: List[StatusMessage] = []

        part_pk = part.pk
        if part_pk is None:
            msg = f"Search result at position {position} has no valid 'pk'. Data: {part.data}"
            logger.error(msg)
            messages.append(StatusMessage(msg, "select_part()", Display.ERROR_DIALOG))
            return None, messages

        raw_attributes, attribute_messages = self.client.fetch_part_attributes(part_pk)
        messages.extend(attribute_messages)
        raw_parameters, parameter_messages = self.client.fetch_part_parameters(part_pk)
        messages.extend(parameter_messages)

        self.state.part_attributes = [
            resolve_attribute(raw, self.state.locations) for raw in (raw_attributes or [])
        ]
        self.state.part_parameters = [
            resolve_parameter(raw, self.state.templates) for raw in (raw_parameters or [])
        ]

        image_path, image_messages = self._fetch_image(part, part_pk)
        messages.extend(image_messages)

        fields = build_detail_fields(self.state.part_parameters, self.state.part_attributes)
        logger.info(f"Assembled {len(fields)} detail field(s) for part {part_pk}.")
        return PartDetails(part_pk=part_pk, fields=fields, image_path=image_path), messages

# Module: src/inventree_part_driver/resolver.py
# Description: Joins decoded part records with the template and location snapshots of a session.

import logging
from typing import Iterable, Optional

from .decoder import read_int
from .models import (
    ParameterTemplate,
    PartAttribute,
    PartParameter,
    RawPartAttribute,
    RawPartParameter,
    StockLocation,
)

logger = logging.getLogger(__name__)

DEFAULT_LOCATION_FIELD = "default_location"
LOCATION_SEPARATOR = " ->> "


def find_template(templates: Iterable[ParameterTemplate], pk: int) -> Optional[ParameterTemplate]:
    """Returns the first template with the given primary key, or None."""
    for template in templates:
        if template.pk == pk:
            return template
    return None


def find_location(locations: Iterable[StockLocation], pk: int) -> Optional[StockLocation]:
    """Returns the first stock location with the given primary key, or None."""
    for location in locations:
        if location.pk == pk:
            return location
    return None


def resolve_parameter(raw: RawPartParameter, templates: Iterable[ParameterTemplate]) -> PartParameter:
    """
    Resolves the template name and units of a part parameter.

    Args:
        raw: The decoded parameter.
        templates: The parameter templates of the current session.

    Returns:
        A PartParameter. Name and units are empty strings if the template is unknown.
    """
    template = find_template(templates, raw.template)
    if template is None:
        logger.debug(f"No parameter template with pk {raw.template} for parameter {raw.pk} of part {raw.part}.")
        return PartParameter(pk=raw.pk, part_pk=raw.part, template_name="", data=raw.data, units="")
    return PartParameter(
        pk=raw.pk,
        part_pk=raw.part,
        template_name=template.name,
        data=raw.data,
        units=template.units,
    )


def resolve_attribute(raw: RawPartAttribute, locations: Iterable[StockLocation]) -> PartAttribute:
    """
    Resolves foreign-key style part fields into readable values.

    Only 'default_location' is resolved, into "<name> ->> <description>".
    Every other field, and a location reference that cannot be found,
    keeps its raw value.
    """
    resolved_value = raw.raw_value
    if raw.name == DEFAULT_LOCATION_FIELD:
        location_pk = read_int(raw.raw_value, None)
        location = find_location(locations, location_pk) if location_pk is not None else None
        if location is not None:
            resolved_value = f"{location.name}{LOCATION_SEPARATOR}{location.description}"
        else:
            logger.debug(f"Default location '{raw.raw_value}' not found in stock locations. Keeping raw value.")
    return PartAttribute(name=raw.name, raw_value=raw.raw_value, resolved_value=resolved_value)

# Module: src/inventree_part_driver/decoder.py
# Description: Converts JSON documents returned by the InvenTree API into typed records.

import json
import logging
import re
from typing import Any, Dict, List, Optional

from .models import FoundPart, ParameterTemplate, RawPartAttribute, RawPartParameter, StockLocation

logger = logging.getLogger(__name__)

# Leading integer of a serialized value, trailing characters are ignored
_INT_PREFIX = re.compile(r'\s*([+-]?\d+)')


def remove_quotation_marks(text: str) -> str:
    """
    Removes the quotation marks the API uses to embed string data.

    If the first character is a double quote, the first and the last character
    are dropped. Anything else is returned unchanged. The last character is
    dropped even when it is not a quote, so '"a' becomes ''.
    """
    if text.startswith('"'):
        return text[1:-1]
    return text


def serialize_value(value: Any) -> str:
    """Renders a decoded JSON value back into its wire form."""
    return json.dumps(value, ensure_ascii=False)


def read_int(text: str, default: Optional[int]) -> Optional[int]:
    """Reads the leading integer of text, or returns default if there is none."""
    match = _INT_PREFIX.match(text)
    if not match:
        return default
    return int(match.group(1))


def _int_field(value: Any, default: Optional[int]) -> Optional[int]:
    return read_int(serialize_value(value), default)


def _str_field(value: Any) -> str:
    if value is None:
        return ""
    return remove_quotation_marks(serialize_value(value))


def _objects(doc: Any, kind: str) -> List[Dict[str, Any]]:
    """Returns the objects of an array document; anything else decodes to nothing."""
    if doc is None:
        return []
    if not isinstance(doc, list):
        logger.warning(f"Expected a JSON array of {kind}, got {type(doc).__name__}. Ignoring response.")
        return []
    objects = [item for item in doc if isinstance(item, dict)]
    if len(objects) != len(doc):
        logger.warning(f"Skipped {len(doc) - len(objects)} non-object entries in {kind} response.")
    return objects


def decode_parameter_templates(doc: Any) -> List[ParameterTemplate]:
    templates: List[ParameterTemplate] = []
    for obj in _objects(doc, "parameter templates"):
        template = ParameterTemplate()
        for key, value in obj.items():
            if key == 'pk':
                template.pk = _int_field(value, template.pk)
            elif key == 'name':
                template.name = _str_field(value)
            elif key == 'units':
                template.units = _str_field(value)
        templates.append(template)
    return templates


def decode_stock_locations(doc: Any) -> List[StockLocation]:
    locations: List[StockLocation] = []
    for obj in _objects(doc, "stock locations"):
        location = StockLocation()
        for key, value in obj.items():
            if key == 'pk':
                location.pk = _int_field(value, location.pk)
            elif key == 'parent':
                # null for top-level locations, keep the default
                location.parent = _int_field(value, location.parent)
            elif key == 'items':
                location.items = _int_field(value, location.items)
            elif key == 'url':
                location.url = _str_field(value)
            elif key == 'name':
                location.name = _str_field(value)
            elif key == 'description':
                location.description = _str_field(value)
            elif key == 'pathstring':
                location.pathstring = _str_field(value)
        locations.append(location)
    return locations


def decode_part_parameters(doc: Any) -> List[RawPartParameter]:
    parameters: List[RawPartParameter] = []
    for obj in _objects(doc, "part parameters"):
        parameter = RawPartParameter()
        for key, value in obj.items():
            if key == 'pk':
                parameter.pk = _int_field(value, parameter.pk)
            elif key == 'part':
                parameter.part = _int_field(value, parameter.part)
            elif key == 'template':
                parameter.template = _int_field(value, parameter.template)
            elif key == 'data':
                parameter.data = _str_field(value)
        parameters.append(parameter)
    return parameters


def decode_part_attributes(doc: Any) -> List[RawPartAttribute]:
    """Decodes every field of a single part object, in server order."""
    if doc is None:
        return []
    if not isinstance(doc, dict):
        logger.warning(f"Expected a JSON object for part attributes, got {type(doc).__name__}. Ignoring response.")
        return []
    return [
        RawPartAttribute(name=remove_quotation_marks(key), raw_value=_str_field(value))
        for key, value in doc.items()
    ]


def decode_version_info(doc: Any) -> Dict[str, str]:
    if doc is None:
        return {}
    if not isinstance(doc, dict):
        logger.warning(f"Expected a JSON object for version info, got {type(doc).__name__}. Ignoring response.")
        return {}
    return {key: _str_field(value) for key, value in doc.items()}


def decode_found_parts(doc: Any) -> List[FoundPart]:
    return [FoundPart(data=obj) for obj in _objects(doc, "parts")]

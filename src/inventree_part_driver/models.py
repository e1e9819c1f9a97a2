# Module: src/inventree_part_driver/models.py
# Description: Defines data structures used throughout the driver.

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class Display(Enum):
    """Where the host should surface a status message."""
    STATUS_BAR = 50
    ERROR_DIALOG = 51
    INFO_DIALOG = 52
    CONSOLE = 53


class DriverCapability(Enum):
    """Configuration categories a driver expects the host to supply."""
    PARTS_FILTERS = 100
    CREDENTIALS = 101
    SERVER_SETTINGS = 102
    ADD_PART = 103


@dataclass
class StatusMessage:
    """A human readable notification raised by one pipeline stage."""
    message: str
    context: str
    display: Display = Display.ERROR_DIALOG


@dataclass
class StockLocation:
    """Represents a stock location record from /api/stock/location/."""
    pk: int = -1
    parent: Optional[int] = None # None for top-level locations
    items: int = -1
    url: str = ""
    name: str = ""
    description: str = ""
    pathstring: str = ""


@dataclass
class ParameterTemplate:
    """Represents a part parameter template from /api/part/parameter/template/."""
    pk: int = -1
    name: str = ""
    units: str = ""


@dataclass
class RawPartParameter:
    """A part parameter as decoded from the wire, template not yet resolved."""
    pk: int = 1
    part: int = 1
    template: int = 1
    data: str = ""


@dataclass
class PartParameter:
    """A part parameter with its template name and units resolved."""
    pk: int
    part_pk: int
    template_name: str
    data: str
    units: str


@dataclass
class RawPartAttribute:
    """A single field of a part record as decoded from the wire."""
    name: str
    raw_value: str


@dataclass
class PartAttribute:
    """A part field with foreign-key style references resolved."""
    name: str
    raw_value: str
    resolved_value: str


@dataclass
class FoundPart:
    """One search hit. The JSON document is kept as returned by the server."""
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def pk(self) -> Optional[int]:
        value = self.data.get('pk')
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value

    @property
    def description(self) -> str:
        value = self.data.get('description')
        return value if isinstance(value, str) else ""

    @property
    def image(self) -> Optional[str]:
        value = self.data.get('image')
        return value if isinstance(value, str) and value else None


@dataclass
class PartDetails:
    """The display-ready record produced for one selected part."""
    part_pk: int
    fields: Dict[str, str] = field(default_factory=dict)
    image_path: Optional[Path] = None # None when the image could not be fetched


@dataclass
class SessionState:
    """State for the lifetime of one authenticated connection."""
    server_url: str
    token: str = ""
    driver_id: int = 0
    found_parts: List[FoundPart] = field(default_factory=list)
    templates: List[ParameterTemplate] = field(default_factory=list)
    locations: List[StockLocation] = field(default_factory=list)
    version_info: Dict[str, str] = field(default_factory=dict)
    part_parameters: List[PartParameter] = field(default_factory=list)
    part_attributes: List[PartAttribute] = field(default_factory=list)

    @property
    def api_url(self) -> str:
        return f"{self.server_url.rstrip('/')}/api/"

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def reset(self) -> None:
        """Drops everything obtained from the server, keeping the server URL."""
        self.token = ""
        self.driver_id = 0
        self.found_parts = []
        self.templates = []
        self.locations = []
        self.version_info = {}
        self.part_parameters = []
        self.part_attributes = []


class DriverError(Exception):
    """Base class for errors raised by the warehouse driver."""
    pass

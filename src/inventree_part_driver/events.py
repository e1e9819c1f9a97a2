# Module: src/inventree_part_driver/events.py
# Description: Typed events a driver publishes to its host, and the channel that delivers them.

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from .models import Display, StatusMessage

logger = logging.getLogger(__name__)


@dataclass
class StatusEvent:
    """A status notification, tagged with the driver that raised it."""
    message: str
    context: str
    display: Display
    driver_id: int

    @classmethod
    def from_message(cls, status: StatusMessage, driver_id: int) -> 'StatusEvent':
        return cls(message=status.message, context=status.context, display=status.display, driver_id=driver_id)


@dataclass
class FoundPartsEvent:
    """Descriptions of the parts found by the last search, in result order."""
    descriptions: List[str]
    driver_id: int


@dataclass
class PartDetailsEvent:
    """Display-ready fields of the selected part."""
    fields: Dict[str, str]
    driver_id: int
    image_path: Optional[Path] = None


DriverEvent = Union[StatusEvent, FoundPartsEvent, PartDetailsEvent]
EventListener = Callable[[DriverEvent], None]


@dataclass
class EventChannel:
    """Delivers driver events to every subscribed listener, in subscription order."""
    listeners: List[EventListener] = field(default_factory=list)

    def subscribe(self, listener: EventListener) -> None:
        if listener not in self.listeners:
            self.listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def publish(self, event: DriverEvent) -> None:
        if not self.listeners:
            logger.debug(f"No listener for {type(event).__name__}, event dropped.")
        for listener in list(self.listeners):
            listener(event)

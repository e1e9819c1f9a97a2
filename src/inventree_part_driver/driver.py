# Module: src/inventree_part_driver/driver.py
# Description: The warehouse driver contract offered to the host and its InvenTree implementation.

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

import requests

from .api_client import CatalogClient
from .assembler import PartDetailAssembler
from .asset_fetcher import AssetFetcher
from .events import DriverEvent, EventChannel, EventListener, FoundPartsEvent, PartDetailsEvent, StatusEvent
from .models import (
    Display,
    DriverCapability,
    DriverError,
    PartDetails,
    SessionState,
    StatusMessage,
)

logger = logging.getLogger(__name__)


class CapabilityNotImplementedError(DriverError, NotImplementedError):
    """Raised for driver operations a backend does not provide."""
    pass


class WarehouseDriver(ABC):
    """
    Interface shared by every warehouse backend a host can load.

    Results are returned from each operation and also published as events,
    tagged with the driver id given to connect().
    """

    @abstractmethod
    def connect(self, credentials: Dict[str, str], driver_id: int) -> bool:
        pass

    @abstractmethod
    def get_connection_info(self) -> Dict[str, str]:
        pass

    @abstractmethod
    def search(self, term: str) -> List[str]:
        pass

    @abstractmethod
    def select_part(self, position: int) -> Optional[PartDetails]:
        pass

    @abstractmethod
    def list_driver_capabilities(self) -> List[DriverCapability]:
        pass

    def list_available_filters(self) -> Dict[str, List[str]]:
        raise CapabilityNotImplementedError(f"{type(self).__name__} does not provide part filters.")

    def add_part_to_warehouse(self, part: Dict[str, str]) -> bool:
        raise CapabilityNotImplementedError(f"{type(self).__name__} cannot add parts to the warehouse.")

    @abstractmethod
    def subscribe(self, listener: EventListener) -> None:
        pass

    @abstractmethod
    def unsubscribe(self, listener: EventListener) -> None:
        pass


class InvenTreeDriver(WarehouseDriver):
    """Warehouse driver for an InvenTree server."""

    CAPABILITIES = (DriverCapability.CREDENTIALS, DriverCapability.SERVER_SETTINGS)

    def __init__(self, server_url: str, image_dir: Optional[Path] = None, timeout: Optional[float] = None,
                 http: Optional[requests.Session] = None):
        """
        Initializes the driver. No request is made until connect() is called.

        Args:
            server_url: Base URL of the InvenTree instance, without the /api/ suffix.
            image_dir: Directory part images are downloaded into. Defaults to the system temp dir.
            timeout: Seconds to wait for each request. None waits indefinitely.
            http: The requests session shared by the catalog client and the image fetcher.
        """
        self._owns_http = http is None
        self.http = http if http is not None else requests.Session()
        self.state = SessionState(server_url=server_url)
        self.events = EventChannel()
        self._cancel_event = threading.Event()
        self._lock = threading.Lock()
        self.client = CatalogClient(self.state, http=self.http, timeout=timeout, cancel_event=self._cancel_event)
        self.fetcher = AssetFetcher(image_dir=image_dir, http=self.http, timeout=timeout)
        self.assembler = PartDetailAssembler(self.state, self.client, self.fetcher)

    @property
    def driver_id(self) -> int:
        return self.state.driver_id

    def subscribe(self, listener: EventListener) -> None:
        self.events.subscribe(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        self.events.unsubscribe(listener)

    def cancel(self) -> None:
        """Makes the running operation skip its remaining requests."""
        logger.info("Cancelling pending InvenTree requests.")
        self._cancel_event.set()

    def _status_events(self, messages: List[StatusMessage]) -> List[DriverEvent]:
        return [StatusEvent.from_message(message, self.driver_id) for message in messages]

    def _publish(self, events: List[DriverEvent]) -> None:
        # Called without the lock held, so listeners may call back into the driver
        for event in events:
            self.events.publish(event)

    def connect(self, credentials: Dict[str, str], driver_id: int) -> bool:
        """
        Logs in and loads the templates and stock locations used to resolve part details.

        Args:
            credentials: Mapping with 'username' and 'password'.
            driver_id: Id echoed in every event so a host can tell its drivers apart.

        Returns:
            True if an API token was obtained.
        """
        if not credentials:
            msg = "No credentials defined! InvenTree needs credentials to permit access to the database."
            logger.error(msg)
            self._publish([StatusEvent(msg, "connect()", Display.CONSOLE, driver_id)])
            return False

        pending: List[DriverEvent] = []
        with self._lock:
            connected = self._connect_locked(credentials, driver_id, pending)
        self._publish(pending)
        return connected

    def _connect_locked(self, credentials: Dict[str, str], driver_id: int, pending: List[DriverEvent]) -> bool:
        self._cancel_event.clear()
        self.state.reset()
        self.state.driver_id = driver_id

        username = credentials.get("username", "")
        password = credentials.get("password", "")
        logger.info(f"Connecting to {self.state.api_url} as '{username}' "
                    f"(password {'SET' if password else 'NOT SET'}, driver id {driver_id}).")

        _, messages = self.client.fetch_version_info()
        pending.extend(self._status_events(messages))

        token, messages = self.client.fetch_auth_token(username, password)
        pending.extend(self._status_events(messages))
        if not token:
            msg = f"Could not log in to InvenTree as '{username}'."
            logger.error(msg)
            pending.extend(self._status_events([StatusMessage(msg, "connect()", Display.ERROR_DIALOG)]))
            return False

        _, messages = self.client.fetch_parameter_templates()
        pending.extend(self._status_events(messages))

        _, messages = self.client.fetch_stock_locations()
        pending.extend(self._status_events(messages))

        pending.extend(self._status_events([StatusMessage(
            f"Connected to InvenTree as: {username}",
            f"Version: {self.state.version_info.get('version', '')}",
            Display.STATUS_BAR,
        )]))
        return True

    def get_connection_info(self) -> Dict[str, str]:
        return dict(self.state.version_info)

    def search(self, term: str) -> List[str]:
        """
        Searches parts and publishes their descriptions.

        Returns:
            The descriptions of the found parts, in the order select_part() addresses them.
        """
        with self._lock:
            self._cancel_event.clear()
            found_parts, messages = self.client.search_parts(term)
            descriptions = [part.description for part in found_parts]
            pending = self._status_events(messages)
            pending.append(FoundPartsEvent(list(descriptions), self.driver_id))
        self._publish(pending)
        return descriptions

    def select_part(self, position: int) -> Optional[PartDetails]:
        """
        Builds and publishes the detail record of one search result.

        Raises:
            PartSelectionError: If position is outside the results of the last search.
        """
        with self._lock:
            self._cancel_event.clear()
            details, messages = self.assembler.select_part(position)
            pending = self._status_events(messages)
            if details is not None:
                pending.append(PartDetailsEvent(dict(details.fields), self.driver_id, details.image_path))
        self._publish(pending)
        return details

    def list_driver_capabilities(self) -> List[DriverCapability]:
        return list(self.CAPABILITIES)

    def close(self) -> None:
        """Closes the HTTP session if this driver created it."""
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "InvenTreeDriver":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

import requests
from pydantic import BaseModel, ValidationError, field_validator
from requests.exceptions import RequestException

from .decoder import (
    decode_found_parts,
    decode_parameter_templates,
    decode_part_attributes,
    decode_part_parameters,
    decode_stock_locations,
    decode_version_info,
)
from .models import (
    Display,
    FoundPart,
    ParameterTemplate,
    RawPartAttribute,
    RawPartParameter,
    SessionState,
    StatusMessage,
    StockLocation,
)

logger = logging.getLogger(__name__)


class TokenResponse(BaseModel):
    """Body of a successful /api/user/token/ request."""
    token: str

    @field_validator('token')
    @classmethod
    def validate_token(cls, v):
        """Reject blank tokens"""
        if not v.strip():
            raise ValueError("Server returned an empty token")
        return v


class CatalogClient:
    """
    Client for the JSON endpoints of an InvenTree server.

    Each fetch method runs one stage of the connect/search/detail pipeline,
    updates the SessionState it was given and returns a tuple of
    (decoded data or None, list of status messages). A failed stage never
    raises; the status messages tell the caller what went wrong.
    """
    def __init__(self, session_state: SessionState, http: Optional[requests.Session] = None,
                 timeout: Optional[float] = None, cancel_event: Optional[threading.Event] = None):
        """
        Initializes the catalog client.

        Args:
            session_state: The state object this client reads the token from and writes results to.
            http: The requests session to use. A new one is created if omitted.
            timeout: Seconds to wait for each request. None waits indefinitely.
            cancel_event: When set, every following stage returns without issuing a request.
        """
        self.state = session_state
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()

    def _get_json(self, path: str, context: str, params: Optional[Dict[str, Any]] = None,
                  auth: Optional[Tuple[str, str]] = None,
                  authenticated: bool = True) -> Tuple[Optional[Any], List[StatusMessage]]:
        """
        Performs one GET request against the API and parses the JSON body.

        Returns (payload, []) on HTTP 200 with a non-null body, (None, [status message]) otherwise.
        """
        messages: List[StatusMessage] = []
        if self.cancel_event.is_set():
            msg = f"Request to '{path}' cancelled."
            logger.info(msg)
            messages.append(StatusMessage(msg, context, Display.CONSOLE))
            return None, messages

        headers = {'Content-Type': 'application/json'}
        if authenticated:
            if not self.state.is_authenticated:
                msg = "Not connected to InvenTree. Request an API token first."
                logger.error(f"{context}: {msg}")
                messages.append(StatusMessage(msg, context, Display.ERROR_DIALOG))
                return None, messages
            headers['Authorization'] = f"Token {self.state.token}"

        url = f"{self.state.api_url}{path}"
        try:
            response = self.http.get(url, headers=headers, params=params, auth=auth, timeout=self.timeout)
        except RequestException as e:
            err_msg = f"API RequestException for {url}: {str(e)}"
            logger.error(err_msg)
            messages.append(StatusMessage(err_msg, context, Display.ERROR_DIALOG))
            return None, messages

        if response.status_code != 200:
            logger.error(f"Server responded with: HTTP {response.status_code} Reason: {response.reason} ({url})")
            messages.append(StatusMessage(
                f"Error Code: {response.status_code}\n{response.reason}", context, Display.ERROR_DIALOG))
            return None, messages

        try:
            payload = response.json()
        except ValueError as e:
            err_msg = f"Response from {url} was not valid JSON: {e}"
            logger.error(err_msg)
            messages.append(StatusMessage(err_msg, context, Display.ERROR_DIALOG))
            return None, messages

        if payload is None:
            err_msg = f"Server returned an empty JSON document for {url}."
            logger.error(err_msg)
            messages.append(StatusMessage(err_msg, context, Display.ERROR_DIALOG))
        return payload, messages

    def _check_shape(self, payload: Any, expected: type, context: str, messages: List[StatusMessage]) -> bool:
        """Reports a payload that is not a JSON array (list) or object (dict) as expected."""
        if isinstance(payload, expected):
            return True
        kind = "array" if expected is list else "object"
        err_msg = f"Unexpected response: expected a JSON {kind}, got {type(payload).__name__}."
        logger.error(f"{context}: {err_msg}")
        messages.append(StatusMessage(err_msg, context, Display.ERROR_DIALOG))
        return False

    def fetch_version_info(self) -> Tuple[Optional[Dict[str, str]], List[StatusMessage]]:
        """Queries the server version. Does not need a token."""
        payload, messages = self._get_json("", "fetch_version_info()", authenticated=False)
        if payload is None or not self._check_shape(payload, dict, "fetch_version_info()", messages):
            return None, messages
        version_info = decode_version_info(payload)
        self.state.version_info = version_info
        logger.info(f"InvenTree server version: {version_info.get('version', 'unknown')}")
        return version_info, messages

    def fetch_auth_token(self, username: str, password: str) -> Tuple[Optional[str], List[StatusMessage]]:
        """
        Requests an API token with HTTP basic auth and stores it in the session.

        Args:
            username: InvenTree user name.
            password: Password of that user.

        Returns:
            A tuple containing (token or None, list of status messages).
        """
        context = "fetch_auth_token()"
        payload, messages = self._get_json(
            "user/token/", context, auth=(username, password), authenticated=False)
        if payload is None:
            return None, messages
        try:
            token = TokenResponse.model_validate(payload).token
        except ValidationError as e:
            err_msg = f"Server did not return a usable API token for user '{username}': {e.errors()[0]['msg']}"
            logger.error(err_msg)
            messages.append(StatusMessage(err_msg, context, Display.ERROR_DIALOG))
            return None, messages
        self.state.token = token
        logger.info(f"API token received for user '{username}'.")
        return token, messages

    def fetch_parameter_templates(self) -> Tuple[Optional[List[ParameterTemplate]], List[StatusMessage]]:
        payload, messages = self._get_json("part/parameter/template/", "fetch_parameter_templates()")
        if payload is None or not self._check_shape(payload, list, "fetch_parameter_templates()", messages):
            return None, messages
        templates = decode_parameter_templates(payload)
        self.state.templates = templates
        logger.info(f"{len(templates)} template(s) received")
        return templates, messages

    def fetch_stock_locations(self) -> Tuple[Optional[List[StockLocation]], List[StatusMessage]]:
        payload, messages = self._get_json("stock/location/", "fetch_stock_locations()")
        if payload is None or not self._check_shape(payload, list, "fetch_stock_locations()", messages):
            return None, messages
        locations = decode_stock_locations(payload)
        self.state.locations = locations
        logger.info(f"{len(locations)} location(s) received")
        return locations, messages

    def search_parts(self, term: str) -> Tuple[List[FoundPart], List[StatusMessage]]:
        """
        Searches parts by free text.

        The found parts replace the ones of the previous search. On any failure
        the previous results are cleared and an empty list is returned.
        """
        self.state.found_parts = []
        payload, messages = self._get_json("part/", "search_parts()", params={'search': term})
        if payload is None or not self._check_shape(payload, list, "search_parts()", messages):
            return [], messages
        found_parts = decode_found_parts(payload)
        self.state.found_parts = found_parts
        logger.info(f"Search for '{term}' returned {len(found_parts)} part(s).")
        return found_parts, messages

    def fetch_part_attributes(self, part_pk: int) -> Tuple[Optional[List[RawPartAttribute]], List[StatusMessage]]:
        payload, messages = self._get_json(f"part/{part_pk}/", "fetch_part_attributes()")
        if payload is None or not self._check_shape(payload, dict, "fetch_part_attributes()", messages):
            return None, messages
        return decode_part_attributes(payload), messages

    def fetch_part_parameters(self, part_pk: int) -> Tuple[Optional[List[RawPartParameter]], List[StatusMessage]]:
        payload, messages = self._get_json(
            "part/parameter/", "fetch_part_parameters()", params={'part': part_pk})
        if payload is None or not self._check_shape(payload, list, "fetch_part_parameters()", messages):
            return None, messages
        return decode_part_parameters(payload), messages

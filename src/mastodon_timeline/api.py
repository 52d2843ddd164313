import json
import logging
from typing import TypeVar
from urllib.parse import urlsplit

import requests
from pydantic import BaseModel, TypeAdapter, ValidationError

from .constants import REQUEST_TIMEOUT, USER_AGENT
from .errors import ExchangeError, FetchError, MastodonTimelineError, RegistrationError
from .models.auth import AppRegistration, Credential, TokenResponse
from .models.page import Page
from .models.status import Account, Status

T = TypeVar("T", bound=BaseModel)

logger = logging.getLogger(__name__)

_STATUS_LIST = TypeAdapter(list[Status])
_SECRET_FIELDS = ("client_secret", "code")


def normalize_base_url(server_name: str) -> str:
    """Turn `mastodon.social` or `https://mastodon.social/` into `https://mastodon.social`."""
    server = server_name.strip()
    if not server:
        raise ValueError("Server name is empty")
    if "://" not in server:
        server = f"https://{server}"
    return server.rstrip("/")


def same_origin(url: str, base_url: str) -> bool:
    a, b = urlsplit(url), urlsplit(base_url)
    return (a.scheme, a.netloc) == (b.scheme, b.netloc)


def _mask(payload: dict) -> dict:
    return {key: "****" if key in _SECRET_FIELDS else value for key, value in payload.items()}


class MastodonAPI:
    """API client for a single Mastodon server."""

    base_url: str
    access_token: str | None = None
    session: requests.Session

    def __init__(self, base_url: str, access_token: str | None = None):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        if self.access_token:
            self.session.headers.update({"Authorization": f"Bearer {self.access_token}"})

    @classmethod
    def from_credential(cls, credential: Credential) -> "MastodonAPI":
        return cls(credential.server_base_url, credential.access_token)

    def debug(self, message: str):
        logger.debug(message)

    def _send(
        self,
        method: str,
        url: str,
        error: type[MastodonTimelineError],
        **kwargs,
    ) -> requests.Response:
        """Issue a request, mapping every failure onto `error`."""
        self.debug(f"{method} {url}")
        if "json" in kwargs:
            self.debug(f"Payload: {_mask(kwargs['json'])}")
        if kwargs.get("params"):
            self.debug(f"Params: {kwargs['params']}")

        # Mask Authorization header in debug output
        headers = dict(self.session.headers)
        if "Authorization" in headers:
            headers["Authorization"] = "****"
        self.debug(f"Headers: {headers}")

        try:
            response = self.session.request(method, url, timeout=REQUEST_TIMEOUT, **kwargs)
            self.debug(f"Response Status: {response.status_code}")
            response.raise_for_status()
            return response

        except requests.exceptions.RequestException as e:
            if e.response is not None:
                try:
                    error_data = e.response.json()
                except json.JSONDecodeError:
                    self.debug(f"Raw Error Response: {e.response.text}")
                    raise error(f"Request failed with status {e.response.status_code}") from e
                error_msg = str(e)
                if isinstance(error_data, dict):
                    error_msg = error_data.get("error", error_msg)
                    description = error_data.get("error_description", "")
                    if description and description != error_msg:
                        error_msg += f": {description}"
                raise error(error_msg) from e
            raise error(f"Request failed: {e}") from e

    def _request(
        self,
        Cls: type[T],
        method: str,
        endpoint: str,
        error: type[MastodonTimelineError],
        **kwargs,
    ) -> T:
        response = self._send(method, f"{self.base_url}{endpoint}", error, **kwargs)
        try:
            return Cls.model_validate_json(response.text)
        except ValidationError as e:
            raise error(f"Unexpected response from {endpoint}: {e}") from e

    # Registration
    def register_app(
        self,
        client_name: str,
        redirect_uri: str,
        scopes: frozenset[str],
        website: str | None = None,
    ) -> AppRegistration:
        data = {
            "client_name": client_name,
            "redirect_uris": redirect_uri,
            "scopes": " ".join(sorted(scopes)),
        }
        if website:
            data["website"] = website
        return self._request(AppRegistration, "POST", "/api/v1/apps", RegistrationError, json=data)

    def exchange_code(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        code: str,
        scopes: frozenset[str],
    ) -> TokenResponse:
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": client_id,
            "client_secret": client_secret,
            "redirect_uri": redirect_uri,
            "scope": " ".join(sorted(scopes)),
        }
        return self._request(TokenResponse, "POST", "/oauth/token", ExchangeError, json=data)

    # Accounts
    def verify_credentials(self) -> Account:
        return self._request(Account, "GET", "/api/v1/accounts/verify_credentials", FetchError)

    # Timelines
    def get_home_timeline(self, locator: str | None = None, limit: int | None = None) -> Page[Status]:
        """Fetch one page of the home timeline.

        Without a locator this is the newest page. A locator is one of the
        absolute URLs a previous response advertised in its `Link` header and
        already carries its own query string.
        """
        if locator is None:
            url = f"{self.base_url}/api/v1/timelines/home"
            params = {"limit": limit} if limit else {}
        else:
            if not same_origin(locator, self.base_url):
                raise FetchError(f"Refusing to follow page link to another host: {locator}")
            url = locator
            params = {}

        response = self._send("GET", url, FetchError, params=params)
        try:
            items = _STATUS_LIST.validate_json(response.text)
        except ValidationError as e:
            raise FetchError(f"Unexpected timeline response: {e}") from e

        links = response.links or {}
        return Page(
            items=items,
            next_locator=links.get("next", {}).get("url"),
            prev_locator=links.get("prev", {}).get("url"),
        )

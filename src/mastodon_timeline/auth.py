import logging
import webbrowser
from collections.abc import Callable
from urllib.parse import urlencode

from pydantic import ValidationError
from rich.console import Console
from rich.prompt import Prompt

from .api import MastodonAPI, normalize_base_url
from .constants import CLIENT_NAME, CLIENT_WEBSITE, OOB_REDIRECT_URI, READ_ALL_SCOPES
from .errors import BrowserOpenError, ExchangeError, RegistrationError
from .models.auth import Credential, PendingRegistration

logger = logging.getLogger(__name__)


def build_authorization_url(base_url: str, client_id: str, redirect_uri: str, scopes: frozenset[str]) -> str:
    query = urlencode(
        {
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(sorted(scopes)),
        }
    )
    return f"{base_url}/oauth/authorize?{query}"


def open_browser(url: str):
    """Open `url` in the user's browser, raising BrowserOpenError if that is not possible."""
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        raise BrowserOpenError(f"Couldn't open browser: {e}") from e
    if not opened:
        raise BrowserOpenError("No usable browser found")


class AuthorizationFlow:
    """Out-of-band OAuth authorization code flow.

    `register` creates a brand new client on the server every time it is
    called; registrations are never cached or reused. `authenticate` turns
    that pending registration into a Credential once the user has pasted the
    code the server displayed after consent.
    """

    def __init__(
        self,
        console: Console,
        api_factory: Callable[..., MastodonAPI] = MastodonAPI,
        code_reader: Callable[[], str] | None = None,
        browser_opener: Callable[[str], None] = open_browser,
    ):
        self.console = console
        self.api_factory = api_factory
        self.code_reader = code_reader or self._prompt_for_code
        self.browser_opener = browser_opener

    def _prompt_for_code(self) -> str:
        return Prompt.ask("Paste the authorization code", console=self.console)

    def register(self, server_name: str) -> PendingRegistration:
        try:
            base_url = normalize_base_url(server_name)
        except ValueError as e:
            raise RegistrationError(str(e)) from e

        api = self.api_factory(base_url)
        app = api.register_app(CLIENT_NAME, OOB_REDIRECT_URI, READ_ALL_SCOPES, CLIENT_WEBSITE)
        pending = PendingRegistration(
            server_base_url=base_url,
            client_id=app.client_id,
            client_secret=app.client_secret,
            redirect_uri=OOB_REDIRECT_URI,
            requested_scopes=READ_ALL_SCOPES,
            authorization_url=build_authorization_url(base_url, app.client_id, OOB_REDIRECT_URI, READ_ALL_SCOPES),
        )
        logger.info(f"Registered {CLIENT_NAME} with {base_url}")
        return pending

    def authenticate(self, pending: PendingRegistration) -> Credential:
        self.console.print("[info]Open this URL to authorize the application:[/info]")
        self.console.print(pending.authorization_url, markup=False, soft_wrap=True)
        try:
            self.browser_opener(pending.authorization_url)
        except BrowserOpenError as e:
            logger.warning(f"{e}; open the URL above manually")

        code = self.code_reader().strip()
        if not code:
            raise ExchangeError("No authorization code entered")

        api = self.api_factory(pending.server_base_url)
        token = api.exchange_code(
            pending.client_id,
            pending.client_secret,
            pending.redirect_uri,
            code,
            pending.requested_scopes,
        )
        granted = set(token.scope.split()) if token.scope else set(pending.requested_scopes)
        try:
            credential = Credential(
                server_base_url=pending.server_base_url,
                client_id=pending.client_id,
                client_secret=pending.client_secret,
                access_token=token.access_token,
                granted_scopes=granted,
            )
        except ValidationError as e:
            raise ExchangeError(f"Server returned an unusable token: {e}") from e
        logger.info(f"Authenticated with {pending.server_base_url} (scopes: {' '.join(sorted(granted))})")
        return credential

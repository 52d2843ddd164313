from __future__ import annotations

import webbrowser
from unittest.mock import Mock, patch
from urllib.parse import parse_qs, urlsplit

import pytest

from conftest import BASE_URL
from mastodon_timeline.auth import AuthorizationFlow, build_authorization_url, open_browser
from mastodon_timeline.constants import CLIENT_NAME, OOB_REDIRECT_URI, READ_ALL_SCOPES
from mastodon_timeline.errors import BrowserOpenError, ExchangeError, RegistrationError
from mastodon_timeline.models.auth import AppRegistration, PendingRegistration, TokenResponse


@pytest.fixture
def api():
    api = Mock()
    api.register_app.return_value = AppRegistration(client_id="cid", client_secret="csecret")
    api.exchange_code.return_value = TokenResponse(access_token="tok", scope="read")
    return api


@pytest.fixture
def pending():
    return PendingRegistration(
        server_base_url=BASE_URL,
        client_id="cid",
        client_secret="csecret",
        redirect_uri=OOB_REDIRECT_URI,
        requested_scopes=READ_ALL_SCOPES,
        authorization_url=build_authorization_url(BASE_URL, "cid", OOB_REDIRECT_URI, READ_ALL_SCOPES),
    )


def make_flow(console, api, code="the-code", browser_opener=None):
    factory = Mock(return_value=api)
    flow = AuthorizationFlow(
        console,
        api_factory=factory,
        code_reader=lambda: code,
        browser_opener=browser_opener or Mock(),
    )
    return flow, factory


class TestBuildAuthorizationUrl:
    def test_complete_url(self):
        url = build_authorization_url(BASE_URL, "cid", OOB_REDIRECT_URI, frozenset({"read"}))
        parts = urlsplit(url)

        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == f"{BASE_URL}/oauth/authorize"
        assert parse_qs(parts.query) == {
            "client_id": ["cid"],
            "redirect_uri": [OOB_REDIRECT_URI],
            "response_type": ["code"],
            "scope": ["read"],
        }


class TestRegister:
    def test_register_returns_pending(self, console, api):
        flow, factory = make_flow(console, api)

        pending = flow.register("mastodon.example")

        factory.assert_called_once_with(BASE_URL)
        api.register_app.assert_called_once()
        args = api.register_app.call_args.args
        assert args[:3] == (CLIENT_NAME, OOB_REDIRECT_URI, READ_ALL_SCOPES)
        assert pending.server_base_url == BASE_URL
        assert pending.client_id == "cid"
        assert pending.client_secret == "csecret"
        assert pending.authorization_url.startswith(f"{BASE_URL}/oauth/authorize?")
        assert "client_id=cid" in pending.authorization_url

    def test_register_twice_creates_two_registrations(self, console, api):
        flow, _ = make_flow(console, api)

        flow.register("mastodon.example")
        flow.register("mastodon.example")

        assert api.register_app.call_count == 2

    def test_empty_server_name(self, console, api):
        flow, factory = make_flow(console, api)

        with pytest.raises(RegistrationError, match="empty"):
            flow.register("  ")

        factory.assert_not_called()

    def test_server_rejection_propagates(self, console, api):
        api.register_app.side_effect = RegistrationError("Validation failed")
        flow, _ = make_flow(console, api)

        with pytest.raises(RegistrationError, match="Validation failed"):
            flow.register("mastodon.example")


class TestAuthenticate:
    def test_exchanges_code_for_credential(self, console, api, pending):
        opener = Mock()
        flow, factory = make_flow(console, api, browser_opener=opener)

        credential = flow.authenticate(pending)

        opener.assert_called_once_with(pending.authorization_url)
        factory.assert_called_once_with(BASE_URL)
        api.exchange_code.assert_called_once_with("cid", "csecret", OOB_REDIRECT_URI, "the-code", READ_ALL_SCOPES)
        assert credential.server_base_url == BASE_URL
        assert credential.client_id == "cid"
        assert credential.client_secret == "csecret"
        assert credential.access_token == "tok"
        assert credential.granted_scopes == {"read"}

    def test_url_printed_for_manual_use(self, console, api, pending):
        flow, _ = make_flow(console, api)

        flow.authenticate(pending)

        assert pending.authorization_url in console.file.getvalue()

    def test_browser_failure_is_not_fatal(self, console, api, pending, caplog):
        opener = Mock(side_effect=BrowserOpenError("No usable browser found"))
        flow, _ = make_flow(console, api, browser_opener=opener)

        with caplog.at_level("WARNING", logger="mastodon_timeline"):
            credential = flow.authenticate(pending)

        assert credential.access_token == "tok"
        assert "No usable browser found" in caplog.text

    def test_code_is_stripped(self, console, api, pending):
        flow, _ = make_flow(console, api, code="  the-code\n")

        flow.authenticate(pending)

        assert api.exchange_code.call_args.args[3] == "the-code"

    def test_empty_code(self, console, api, pending):
        flow, _ = make_flow(console, api, code="")

        with pytest.raises(ExchangeError, match="No authorization code"):
            flow.authenticate(pending)

        api.exchange_code.assert_not_called()

    def test_rejected_code(self, console, api, pending):
        api.exchange_code.side_effect = ExchangeError("invalid_grant")
        flow, _ = make_flow(console, api)

        with pytest.raises(ExchangeError, match="invalid_grant"):
            flow.authenticate(pending)

    def test_granted_scopes_from_token(self, console, api, pending):
        api.exchange_code.return_value = TokenResponse(access_token="tok", scope="read write")
        flow, _ = make_flow(console, api)

        assert flow.authenticate(pending).granted_scopes == {"read", "write"}

    def test_granted_scopes_default_to_requested(self, console, api, pending):
        api.exchange_code.return_value = TokenResponse(access_token="tok")
        flow, _ = make_flow(console, api)

        assert flow.authenticate(pending).granted_scopes == set(READ_ALL_SCOPES)

    def test_empty_access_token(self, console, api, pending):
        api.exchange_code.return_value = TokenResponse(access_token="")
        flow, _ = make_flow(console, api)

        with pytest.raises(ExchangeError, match="unusable token"):
            flow.authenticate(pending)


class TestOpenBrowser:
    @patch("mastodon_timeline.auth.webbrowser.open", return_value=True)
    def test_opens_url(self, mock_open):
        open_browser("https://mastodon.example/oauth/authorize")

        mock_open.assert_called_once_with("https://mastodon.example/oauth/authorize")

    @patch("mastodon_timeline.auth.webbrowser.open", return_value=False)
    def test_no_browser(self, mock_open):
        with pytest.raises(BrowserOpenError):
            open_browser("https://mastodon.example/oauth/authorize")

    @patch("mastodon_timeline.auth.webbrowser.open", side_effect=webbrowser.Error("could not locate runnable browser"))
    def test_browser_error(self, mock_open):
        with pytest.raises(BrowserOpenError, match="could not locate"):
            open_browser("https://mastodon.example/oauth/authorize")

from __future__ import annotations

import io
import json
import logging
from unittest.mock import Mock

import pytest
from rich.console import Console

from mastodon_timeline.main import timeline_theme
from mastodon_timeline.models.auth import Credential
from mastodon_timeline.models.page import Page

BASE_URL = "https://mastodon.example"


class FakeFeed:
    """A stationary feed split into fixed pages; locators are `page:<index>`."""

    def __init__(self, items, page_size):
        self.pages = [items[i : i + page_size] for i in range(0, len(items), page_size)]
        self.calls = []

    def __call__(self, locator):
        self.calls.append(locator)
        index = 0 if locator is None else int(locator.split(":")[1])
        return Page(
            items=list(self.pages[index]),
            next_locator=f"page:{index + 1}" if index + 1 < len(self.pages) else None,
            prev_locator=f"page:{index - 1}" if index > 0 else None,
        )


@pytest.fixture
def console():
    return Console(file=io.StringIO(), theme=timeline_theme, width=200)


@pytest.fixture
def credential():
    return Credential(
        server_base_url=BASE_URL,
        client_id="client-id",
        client_secret="client-secret",
        access_token="access-token",
        granted_scopes={"read"},
    )


@pytest.fixture
def fake_feed():
    return FakeFeed(list("ABCDEFGH"), page_size=3)


def status_json(status_id):
    return {
        "id": status_id,
        "uri": f"{BASE_URL}/users/alice/statuses/{status_id}",
        "url": f"{BASE_URL}/@alice/{status_id}",
        "created_at": "2024-05-01T12:00:00.000Z",
        "content": f"<p>status {status_id}</p>",
        "account": {"id": "1", "username": "alice", "acct": "alice", "display_name": "Alice"},
        "visibility": "public",
    }


def mock_response(status_code=200, body=None, links=None):
    response = Mock()
    response.status_code = status_code
    response.text = json.dumps(body)
    response.json.return_value = body
    response.links = links or {}
    return response


@pytest.fixture(autouse=True)
def reset_logging():
    """CLI tests install handlers on the package logger; undo that between tests."""
    yield
    logger = logging.getLogger("mastodon_timeline")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)

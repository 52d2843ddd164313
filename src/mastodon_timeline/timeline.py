import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Generic, TypeVar

from .models.page import Page

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Direction(StrEnum):
    next = "next"
    prev = "prev"


class Position(StrEnum):
    start = "start"
    middle = "middle"
    end = "end"
    single = "single"


class TimelineCursor(Generic[T]):
    """A window onto one page of a server-side feed.

    `advance` replaces the current page with the neighbouring one. When the
    requested direction has no locator the call is a no-op that returns
    None: the cursor keeps its items and both locators, so the other
    direction stays reachable. Failed fetches propagate and leave the cursor
    as it was.

    Not safe for concurrent use.
    """

    def __init__(self, fetch: Callable[[str | None], Page[T]], page: Page[T]):
        self._fetch = fetch
        self._page = page

    @classmethod
    def fetch_initial(cls, fetch: Callable[[str | None], Page[T]]) -> "TimelineCursor[T]":
        page = fetch(None)
        logger.info(f"Fetched initial page with {len(page.items)} items")
        return cls(fetch, page)

    @property
    def page(self) -> Page[T]:
        return self._page

    @property
    def items(self) -> list[T]:
        return list(self._page.items)

    @property
    def next_locator(self) -> str | None:
        return self._page.next_locator

    @property
    def prev_locator(self) -> str | None:
        return self._page.prev_locator

    @property
    def position(self) -> Position:
        has_next = self.next_locator is not None
        has_prev = self.prev_locator is not None
        if has_next and has_prev:
            return Position.middle
        if has_next:
            return Position.start
        if has_prev:
            return Position.end
        return Position.single

    def locator(self, direction: Direction) -> str | None:
        return self.next_locator if direction == Direction.next else self.prev_locator

    def advance(self, direction: Direction) -> list[T] | None:
        """Move one page in `direction`.

        Returns the new page's items, or None when there is no page in that
        direction. Raises FetchError on transport or auth failure.
        """
        direction = Direction(direction)
        locator = self.locator(direction)
        if locator is None:
            logger.debug(f"No {direction} page from {self.position} position, staying put")
            return None

        fetched = self._fetch(locator)

        if fetched.items:
            self._page = fetched
        else:
            logger.warning(f"Server returned an empty {direction} page")
            # An empty page never clears a locator we already hold
            self._page = Page(
                items=[],
                next_locator=fetched.next_locator or self.next_locator,
                prev_locator=fetched.prev_locator or self.prev_locator,
            )

        logger.info(f"Fetched {direction} page with {len(self._page.items)} items")
        return self.items

    def next_page(self) -> list[T] | None:
        return self.advance(Direction.next)

    def prev_page(self) -> list[T] | None:
        return self.advance(Direction.prev)

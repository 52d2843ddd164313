from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One fetched page of items plus the locators the server advertised."""

    items: list[T] = field(default_factory=list)
    next_locator: str | None = None
    prev_locator: str | None = None

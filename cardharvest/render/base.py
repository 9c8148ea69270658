"""
Page renderer contract.

A :class:`Renderer` is the one browser session shared by a harvest run.
It hands out :class:`RenderedPage` objects, one per URL visit, which
must always be closed again; both are async context managers so the
scoping is explicit at every call site::

    async with renderer:
        async with renderer.page() as page:
            await page.load(url, ready=ReadyCondition(".cardData img", required=False))
            fields = page.extract({"title": FieldSelector(".cardTitle")})

Concrete renderers only have to produce rendered HTML.  Field
extraction runs over that HTML with BeautifulSoup CSS selectors, so
every implementation (including test doubles) shares the same
extraction semantics.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from bs4 import BeautifulSoup

from ..errors import RendererError

RawValue = Union[str, List[str], None]


@dataclass(frozen=True)
class FieldSelector:
    """Where to find one raw field in the rendered DOM.

    Attributes:
        css: CSS selector.
        attr: Attribute to read.  When ``None`` the element's text is used.
        many: Return every match as a list instead of the first match.
    """

    css: str
    attr: Optional[str] = None
    many: bool = False


@dataclass(frozen=True)
class ReadyCondition:
    """Selector a page must expose before it is considered loaded.

    A required condition that never matches fails the load with
    ``NavigationTimeout``.  An optional one is waited for at most
    ``timeout`` seconds, after which the page is used as it is.
    """

    selector: str
    required: bool = True
    timeout: float = 10.0


def _element_value(element: Any, attr: Optional[str]) -> Optional[str]:
    if attr is None:
        return element.get_text(" ", strip=True)
    value = element.get(attr)
    if isinstance(value, list):  # multi-valued attributes such as class
        value = " ".join(value)
    return value


class RenderedPage(ABC):
    """A single rendered page, open between ``load`` and ``close``."""

    def __init__(self) -> None:
        self.url: Optional[str] = None
        self.html: Optional[str] = None
        self._soup: Optional[BeautifulSoup] = None

    async def __aenter__(self) -> "RenderedPage":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def load(
        self,
        url: str,
        *,
        ready: Optional[ReadyCondition] = None,
        timeout: float = 60.0,
    ) -> None:
        """Navigate to ``url`` and wait for ``ready``.

        Raises:
            NavigationTimeout: navigation or a required readiness wait
                exceeded its time limit.
            NavigationError: any other navigation failure.
        """
        html = await self._fetch(url, ready, timeout)
        self.url = url
        self.html = html
        self._soup = BeautifulSoup(html, "html.parser")

    def extract(self, selectors: Mapping[str, FieldSelector]) -> Dict[str, RawValue]:
        """Return the raw value of every named selector.

        Missing single-valued fields map to ``None``; missing multi-valued
        fields map to an empty list.
        """
        if self._soup is None:
            raise RendererError("extract() called before a page was loaded")
        raw: Dict[str, RawValue] = {}
        for name, selector in selectors.items():
            if selector.many:
                values = [_element_value(el, selector.attr) for el in self._soup.select(selector.css)]
                raw[name] = [v for v in values if v is not None]
            else:
                element = self._soup.select_one(selector.css)
                raw[name] = _element_value(element, selector.attr) if element is not None else None
        return raw

    @abstractmethod
    async def _fetch(self, url: str, ready: Optional[ReadyCondition], timeout: float) -> str:
        """Render ``url`` and return its HTML."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release the page.  Safe to call more than once."""
        self._soup = None


class Renderer(ABC):
    """A browser session.  Entering it starts the session, leaving closes it."""

    async def __aenter__(self) -> "Renderer":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @abstractmethod
    async def start(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def page(self) -> RenderedPage:
        """Open a new page on this session."""
        raise NotImplementedError

"""
Listing walker.

Loads one page of the card index and returns the card ids it links to,
deduplicated in first-seen order.  A listing page that will not load,
or never shows any card anchors, raises :class:`PageLoadError`; the
walker does not retry.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List
from urllib.parse import urlparse

from .config import DEFAULT_LISTING_URL_TEMPLATE
from .errors import PageLoadError, RendererError
from .render.base import FieldSelector, ReadyCondition, Renderer

logger = logging.getLogger(__name__)

DETAIL_PATH_MARKER = "/cards/info/"
CARD_ANCHOR = f"a[href*='{DETAIL_PATH_MARKER}']"


def ids_from_hrefs(hrefs: Iterable[str]) -> List[str]:
    """Card ids referenced by ``hrefs``, first occurrence order, no repeats.

    The id is the final path segment of a detail-page link; query
    strings and fragments are ignored.
    """
    found: Dict[str, None] = {}
    for href in hrefs:
        path = urlparse(href or "").path
        if DETAIL_PATH_MARKER not in path:
            continue
        card_id = path.rstrip("/").rsplit("/", 1)[-1]
        if card_id and card_id != "info":
            found.setdefault(card_id, None)
    return list(found)


class ListingWalker:
    """Discovers the card ids on one listing page.

    Readiness waits for the same card anchors the ids are read from, so
    a listing page with no card links at all is reported as a
    ``PageLoadError`` (and aborts a harvest run) rather than as an
    empty page.  A page whose anchors carry no usable id yields ``[]``.
    """

    def __init__(
        self,
        url_template: str = DEFAULT_LISTING_URL_TEMPLATE,
        *,
        ready_timeout: float = 10.0,
        navigation_timeout: float = 60.0,
    ) -> None:
        self.url_template = url_template
        self.ready = ReadyCondition(CARD_ANCHOR, required=True, timeout=ready_timeout)
        self.navigation_timeout = navigation_timeout
        self.selectors = {"hrefs": FieldSelector(CARD_ANCHOR, attr="href", many=True)}

    def listing_url(self, page: int) -> str:
        return self.url_template.format(page=page)

    async def discover_ids(self, renderer: Renderer, page: int) -> List[str]:
        url = self.listing_url(page)
        logger.debug("Walking listing page %d: %s", page, url)
        try:
            async with renderer.page() as rendered:
                await rendered.load(url, ready=self.ready, timeout=self.navigation_timeout)
                raw = rendered.extract(self.selectors)
        except RendererError as exc:
            raise PageLoadError(page, url, str(exc)) from exc
        return ids_from_hrefs(raw["hrefs"] or [])

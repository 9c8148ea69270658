"""
Detail resolver.

Turns one card identifier into an :class:`~cardharvest.schema.ItemRecord`
by rendering its detail page and running the field chains from
:mod:`cardharvest.detail.strategies`.  A card that cannot be rendered at
all resolves to ``None`` so the caller can skip it and carry on with the
rest of the listing page.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Sequence
from urllib.parse import urljoin

from ..config import DEFAULT_DETAIL_URL_TEMPLATE
from ..errors import DetailResolutionFailure, RendererError
from ..render.base import FieldSelector, RawValue, ReadyCondition, Renderer
from ..schema import NOT_AVAILABLE, ItemRecord
from .strategies import (
    CARD_CONTAINER,
    DETAIL_SELECTORS,
    FIELD_CHAINS,
    Strategy,
    extract_creators,
    resolve_field,
)

logger = logging.getLogger(__name__)


def build_record(card_id: str, raw: Mapping[str, RawValue], *, base_url: str = "",
                 chains: Mapping[str, Sequence[Strategy]] = FIELD_CHAINS) -> ItemRecord:
    """Assemble a record from raw extracted values, applying fallbacks."""
    image = resolve_field("image", raw, chains)
    if image != NOT_AVAILABLE and base_url:
        image = urljoin(base_url, image)
    return ItemRecord(
        id=card_id,
        name=resolve_field("name", raw, chains),
        image=image,
        description=resolve_field("description", raw, chains),
        tier=resolve_field("tier", raw, chains),
        creators=tuple(extract_creators(raw)),
    )


class DetailResolver:
    """Resolves card ids to records through a renderer passed in per call."""

    def __init__(
        self,
        url_template: str = DEFAULT_DETAIL_URL_TEMPLATE,
        *,
        ready_timeout: float = 10.0,
        navigation_timeout: float = 60.0,
        selectors: Optional[Dict[str, FieldSelector]] = None,
        chains: Optional[Mapping[str, Sequence[Strategy]]] = None,
    ) -> None:
        self.url_template = url_template
        self.ready = ReadyCondition(CARD_CONTAINER, required=False, timeout=ready_timeout)
        self.navigation_timeout = navigation_timeout
        self.selectors = selectors or DETAIL_SELECTORS
        self.chains = chains or FIELD_CHAINS

    def detail_url(self, card_id: str) -> str:
        return self.url_template.format(card_id=card_id)

    async def fetch_raw(self, renderer: Renderer, card_id: str) -> Dict[str, RawValue]:
        """Render the detail page and return raw selector values.

        Raises:
            DetailResolutionFailure: the page could not be rendered.
        """
        url = self.detail_url(card_id)
        try:
            async with renderer.page() as page:
                await page.load(url, ready=self.ready, timeout=self.navigation_timeout)
                return page.extract(self.selectors)
        except RendererError as exc:
            raise DetailResolutionFailure(card_id, str(exc)) from exc

    async def resolve(self, renderer: Renderer, card_id: str) -> Optional[ItemRecord]:
        """Resolve ``card_id`` or return ``None`` if its page is unusable."""
        logger.debug("Resolving card %s", card_id)
        try:
            raw = await self.fetch_raw(renderer, card_id)
        except DetailResolutionFailure as exc:
            logger.warning("Skipping %s", exc)
            return None
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error resolving card %s: %s", card_id, exc)
            return None
        return build_record(card_id, raw, base_url=self.detail_url(card_id), chains=self.chains)

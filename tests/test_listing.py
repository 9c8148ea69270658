"""Tests for listing page id discovery."""

from __future__ import annotations

import asyncio

import pytest  # type: ignore

from cardharvest.errors import NavigationError, PageLoadError
from cardharvest.listing import ListingWalker, ids_from_hrefs

from fakes import LISTING_TEMPLATE, FakeRenderer, listing_html


def _walker() -> ListingWalker:
    return ListingWalker(LISTING_TEMPLATE, ready_timeout=0.1, navigation_timeout=1)


def test_ids_from_hrefs_dedupes_in_first_seen_order() -> None:
    hrefs = [
        "/cards/info/b",
        "https://cards.test/cards/info/a?ref=list",
        "/cards/info/b/",
        "/profile/someone",
        "/cards/info/",
        "/cards/info/c#top",
    ]
    assert ids_from_hrefs(hrefs) == ["b", "a", "c"]


def test_discover_ids() -> None:
    renderer = FakeRenderer({LISTING_TEMPLATE.format(page=3): listing_html(["x", "y", "x", "z"])})
    ids = asyncio.run(_walker().discover_ids(renderer, 3))
    assert ids == ["x", "y", "z"]
    assert renderer.visited == ["https://cards.test/cards?page=3"]
    assert renderer.pages_opened == renderer.pages_closed == 1


def test_missing_anchors_raise_page_load_error() -> None:
    renderer = FakeRenderer({LISTING_TEMPLATE.format(page=1): "<html><body>Maintenance</body></html>"})
    with pytest.raises(PageLoadError) as excinfo:
        asyncio.run(_walker().discover_ids(renderer, 1))
    assert excinfo.value.page == 1
    assert renderer.pages_opened == renderer.pages_closed == 1


def test_navigation_error_raises_page_load_error() -> None:
    renderer = FakeRenderer({LISTING_TEMPLATE.format(page=2): NavigationError("net::ERR_FAILED")})
    with pytest.raises(PageLoadError) as excinfo:
        asyncio.run(_walker().discover_ids(renderer, 2))
    assert isinstance(excinfo.value.__cause__, NavigationError)
    assert "net::ERR_FAILED" in str(excinfo.value)


def test_anchors_without_ids_give_empty_list() -> None:
    html = "<html><body><a href='/cards/info/'>all cards</a></body></html>"
    renderer = FakeRenderer({LISTING_TEMPLATE.format(page=4): html})
    assert asyncio.run(_walker().discover_ids(renderer, 4)) == []

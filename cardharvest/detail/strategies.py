"""
Field extraction strategies for card detail pages.

The page renderer returns a mapping of raw selector values (see
``DETAIL_SELECTORS``).  Each record field is then resolved by running
its chain in ``FIELD_CHAINS`` in order: every strategy looks at the raw
mapping and returns a candidate string or ``None``, and the first
non-empty candidate wins.  When the whole chain comes up empty the
field takes its sentinel from ``SENTINELS``.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from ..render.base import FieldSelector, RawValue
from ..schema import NOT_AVAILABLE, UNKNOWN_TIER

Strategy = Callable[[Mapping[str, RawValue]], Optional[str]]

BREADCRUMB_NAMES = ".breadcrumb-new span[itemprop='name']"
CARD_CONTAINER = ".cardData video, .cardData img"

DETAIL_SELECTORS: Dict[str, FieldSelector] = {
    "breadcrumb_name": FieldSelector(f"{BREADCRUMB_NAMES}:nth-child(3)"),
    "breadcrumbs": FieldSelector(BREADCRUMB_NAMES, many=True),
    "title": FieldSelector(".cardTitle"),
    "name_field": FieldSelector(".cardData .cardName"),
    "video_source": FieldSelector(".cardData video source[src]", attr="src"),
    "video_src": FieldSelector(".cardData video[src]", attr="src"),
    "image_src": FieldSelector(".cardData img[src]", attr="src"),
    "meta_description": FieldSelector("meta[name='description']", attr="content"),
    "attributions": FieldSelector(".user_purchased p", many=True),
}

TIER_PREFIX = "Tier"
NAME_FROM_DESCRIPTION_RE = re.compile(r"^\s*(?P<name>.+?)\s+from\s+", re.IGNORECASE)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def raw_field(key: str) -> Strategy:
    """Strategy returning the raw value stored under ``key``."""

    def strategy(raw: Mapping[str, RawValue]) -> Optional[str]:
        value = raw.get(key)
        if isinstance(value, list):
            value = next((v for v in value if _clean(v)), None)
        return _clean(value)

    strategy.__name__ = f"raw_field_{key}"
    return strategy


def description_first_line(raw: Mapping[str, RawValue]) -> Optional[str]:
    content = raw.get("meta_description")
    if not isinstance(content, str):
        return None
    return _clean(content.split("\n")[0])


def name_from_description(raw: Mapping[str, RawValue]) -> Optional[str]:
    """Derive a name from descriptions shaped like ``"<Name> from <Series>..."``."""
    description = description_first_line(raw)
    if not description:
        return None
    match = NAME_FROM_DESCRIPTION_RE.match(description)
    return _clean(match.group("name")) if match else None


def tier_from_breadcrumbs(raw: Mapping[str, RawValue]) -> Optional[str]:
    crumbs = raw.get("breadcrumbs") or []
    if isinstance(crumbs, str):
        crumbs = [crumbs]
    for crumb in crumbs:
        if crumb and crumb.startswith(TIER_PREFIX):
            return _clean(crumb[len(TIER_PREFIX):])
    return None


FIELD_CHAINS: Dict[str, List[Strategy]] = {
    "name": [
        raw_field("breadcrumb_name"),
        raw_field("title"),
        raw_field("name_field"),
        name_from_description,
    ],
    "image": [
        raw_field("video_source"),
        raw_field("video_src"),
        raw_field("image_src"),
    ],
    "description": [description_first_line],
    "tier": [tier_from_breadcrumbs],
}

SENTINELS: Dict[str, str] = {
    "name": NOT_AVAILABLE,
    "image": NOT_AVAILABLE,
    "description": NOT_AVAILABLE,
    "tier": UNKNOWN_TIER,
}


def run_chain(chain: Sequence[Strategy], raw: Mapping[str, RawValue]) -> Optional[str]:
    for strategy in chain:
        value = strategy(raw)
        if value:
            return value
    return None


def resolve_field(name: str, raw: Mapping[str, RawValue],
                  chains: Mapping[str, Sequence[Strategy]] = FIELD_CHAINS) -> str:
    return run_chain(chains[name], raw) or SENTINELS[name]


def extract_creators(raw: Mapping[str, RawValue]) -> List[str]:
    """Names from attribution lines such as ``"Creator: someone"``.

    Everything after the first colon is kept, so ``"By: a: b"`` gives
    ``"a: b"`` rather than being cut at the second colon.  Lines
    without a colon or with nothing after it are dropped.  Order is
    preserved.
    """
    lines = raw.get("attributions") or []
    if isinstance(lines, str):
        lines = [lines]
    creators: List[str] = []
    for line in lines:
        if not line or ":" not in line:
            continue
        name = line.split(":", 1)[1].strip()
        if name:
            creators.append(name)
    return creators

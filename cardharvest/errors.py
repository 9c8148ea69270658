"""
Exception hierarchy for the harvester.

Per-item problems (``DetailResolutionFailure``) are absorbed by the
detail resolver.  Per-page problems (``PageLoadError``) and storage
problems (``PersistenceError``) are fatal for a run.  A field that
cannot be found is not an error at all: extractor strategies simply
return ``None`` and the record falls back to its sentinel value.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union


class HarvestError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(HarvestError):
    """Invalid or unreadable configuration."""


class RendererError(HarvestError):
    """A page could not be rendered."""


class NavigationError(RendererError):
    """Navigation failed for a reason other than a timeout."""


class NavigationTimeout(RendererError):
    """Navigation, or a required readiness wait, ran out of time."""


class PageLoadError(HarvestError):
    """A listing page could not be loaded or exposed no card anchors."""

    def __init__(self, page: int, url: str, reason: str = "") -> None:
        self.page = page
        self.url = url
        message = f"listing page {page} failed to load ({url})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DetailResolutionFailure(HarvestError):
    """A single card's detail page could not be loaded or extracted."""

    def __init__(self, card_id: str, reason: str = "") -> None:
        self.card_id = card_id
        super().__init__(f"card {card_id}: {reason}" if reason else f"card {card_id}")


class PersistenceError(HarvestError):
    """The dataset or checkpoint file could not be read or written."""

    def __init__(self, path: Union[str, Path], reason: str = "") -> None:
        self.path = Path(path)
        message = f"cannot persist {self.path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)

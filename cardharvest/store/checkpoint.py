"""
Checkpoint store.

The checkpoint is the number of the last listing page whose cards were
all resolved and persisted, kept as plain text in a single file.  A
missing or unreadable-as-integer file means no page has completed yet.
Only the harvest runner writes it; concurrent writers are not supported.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from ..errors import PersistenceError
from .files import UndecodableText, read_text, write_atomic

logger = logging.getLogger(__name__)


class CheckpointStore:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def read(self) -> int:
        try:
            text = read_text(self.path).strip()
        except UndecodableText as exc:
            logger.warning("Ignoring unreadable checkpoint %s: %s", self.path, exc)
            return 0
        if not text:
            return 0
        try:
            page = int(text)
        except ValueError:
            logger.warning("Ignoring malformed checkpoint %r in %s", text, self.path)
            return 0
        return max(page, 0)

    def write(self, page: int) -> None:
        """Overwrite the checkpoint; returns only once it is on disk."""
        if page < 0:
            raise ValueError(f"checkpoint must be non-negative, got {page}")
        write_atomic(self.path, f"{page}\n")

    def reset(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise PersistenceError(self.path, str(exc)) from exc
        logger.info("Checkpoint %s cleared", self.path)
